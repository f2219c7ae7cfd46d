import logging
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.audit_event import AuditEvent
from app.models.user import User

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    # event_metadata is a plain JSON column on SQLite
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def log_event(
    *,
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """Stage an audit row; it is committed with the caller's transaction."""
    event = AuditEvent(
        actor_user_id=actor.id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=_json_safe(metadata) if metadata else None,
    )
    db.add(event)
    logger.info("%s %s %s by %s", action, entity_type, entity_id, actor.email if actor else "system")
    return event
