"""Business error taxonomy.

Every rule violation raised by the services is an ``EngineError`` with a
stable ``kind``. The route layer maps ``http_status`` onto the response;
store connectivity failures are deliberately not part of this hierarchy.
"""

from __future__ import annotations


class EngineError(Exception):
    kind = "EngineError"
    http_status = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "detail": self.message,
            "retryable": self.retryable,
        }


class ValidationError(EngineError):
    """Caller-supplied data violates one or more field constraints."""

    kind = "ValidationError"
    http_status = 400

    def __init__(self, violations: list[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Invalid input")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["violations"] = self.violations
        return data


class NotFoundError(EngineError):
    kind = "NotFoundError"
    http_status = 404

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")


class ForbiddenError(EngineError):
    kind = "ForbiddenError"
    http_status = 403


class InvalidTransitionError(EngineError):
    kind = "InvalidTransitionError"
    http_status = 409

    def __init__(self, entity_type: str, from_status: str, to_status: str):
        self.entity_type = entity_type
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid {entity_type} transition: \"{from_status}\" -> \"{to_status}\""
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["transition"] = {
            "entity_type": self.entity_type,
            "from": self.from_status,
            "to": self.to_status,
        }
        return data


class LoadNotOpenError(EngineError):
    kind = "LoadNotOpenError"
    http_status = 409


class LoadNoLongerOpenError(LoadNotOpenError):
    """Lost an acceptance race. Refresh and retry against current data."""

    kind = "LoadNoLongerOpenError"
    retryable = True


class DuplicateBidError(EngineError):
    kind = "DuplicateBidError"
    http_status = 409


class LoadNotAssignedError(EngineError):
    kind = "LoadNotAssignedError"
    http_status = 409


class ConflictError(EngineError):
    kind = "ConflictError"
    http_status = 409
    retryable = True
