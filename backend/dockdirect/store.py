"""Entity store helpers shared by the lifecycle services.

Thin wrappers over the SQLAlchemy session: keyed reads that raise
NotFoundError, the row lock used by bid acceptance, and the conditional
UPDATE that makes acceptance safe on backends without row locks.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from dockdirect.errors import NotFoundError
from dockdirect.models.load import Load
from dockdirect.states import LoadStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_or_404(db: Session, model, entity_id: str, entity_type: str):
    """Fetch ``model`` by primary key or raise NotFoundError."""
    obj = db.query(model).filter(model.id == entity_id).first()
    if obj is None:
        raise NotFoundError(entity_type, entity_id)
    return obj


def lock_load(db: Session, load_id: str) -> Load:
    """Read a load with ``SELECT ... FOR UPDATE``.

    The row lock serializes acceptance on Postgres; SQLite ignores it and
    relies on ``compare_and_set_load_status`` instead.
    """
    load = (
        db.query(Load)
        .filter(Load.id == load_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if load is None:
        raise NotFoundError("load", load_id)
    return load


def compare_and_set_load_status(
    db: Session,
    load: Load,
    expected_status: str,
    new_status: str,
    **values,
) -> bool:
    """Move ``load`` to ``new_status`` only if it is still ``expected_status``.

    Issues a single conditional UPDATE and reports whether it matched a row.
    On success the in-session object is refreshed to the committed-to-be state.
    """
    changes = {
        Load.status: new_status,
        Load.version: Load.version + 1,
        Load.updated_at: utcnow(),
    }
    for name, value in values.items():
        changes[getattr(Load, name)] = value

    matched = (
        db.query(Load)
        .filter(Load.id == load.id, Load.status == expected_status)
        .update(changes, synchronize_session=False)
    )
    if matched != 1:
        return False
    db.refresh(load)
    return True


def claim_open_load(db: Session, load: Load) -> bool:
    """Bump the version of ``load`` only while it is still open.

    Writers that depend on the load being open (bid placement) run this
    before inserting, so an acceptance or cancellation committed after
    their read makes the claim match no row instead of being overwritten.
    """
    matched = (
        db.query(Load)
        .filter(Load.id == load.id, Load.status == LoadStatus.OPEN.value)
        .update({Load.version: Load.version + 1}, synchronize_session=False)
    )
    if matched != 1:
        return False
    db.refresh(load)
    return True


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(obj, fields: Optional[list[str]] = None) -> dict:
    """Column values of an ORM object as a JSON-safe dict."""
    if fields is None:
        fields = [attr.key for attr in inspect(obj).mapper.column_attrs]
    return {name: _json_value(getattr(obj, name)) for name in fields}
