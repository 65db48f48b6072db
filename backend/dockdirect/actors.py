"""Authenticated actor contexts passed explicitly into every engine call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from dockdirect.errors import ForbiddenError


@dataclass(frozen=True)
class ShipperActor:
    user_id: str
    role: ClassVar[str] = "shipper"


@dataclass(frozen=True)
class DriverActor:
    user_id: str
    role: ClassVar[str] = "driver"


@dataclass(frozen=True)
class AdminActor:
    user_id: str
    role: ClassVar[str] = "admin"


@dataclass(frozen=True)
class SystemActor:
    """The engine itself, e.g. moving a load when its contract is signed."""

    user_id: str = "system"
    role: ClassVar[str] = "system"


Actor = Union[ShipperActor, DriverActor, AdminActor, SystemActor]

SYSTEM = SystemActor()

_ROLES = {
    "shipper": ShipperActor,
    "driver": DriverActor,
    "admin": AdminActor,
}


def actor_for(user_id: str, role: str) -> Actor:
    """Build the actor context for an authenticated ``(user_id, role)`` pair."""
    if not user_id:
        raise ForbiddenError("Missing user id")
    actor_cls = _ROLES.get(role)
    if actor_cls is None:
        raise ForbiddenError(f"Unknown role '{role}'")
    return actor_cls(user_id=user_id)


def require_role(actor: Actor, *allowed: type) -> None:
    """Raise ForbiddenError unless ``actor`` is one of the ``allowed`` kinds."""
    if not isinstance(actor, allowed):
        names = " or ".join(cls.role for cls in allowed)
        raise ForbiddenError(f"{names.capitalize()} role required")
