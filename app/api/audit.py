from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.access import parse_id_or_400, require_admin
from app.db.session import get_db
from app.models.audit_event import AuditEvent

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("")
def list_audit_events(
    entity_type: str | None = Query(default=None, description="form or template"),
    entity_id: str | None = Query(default=None),
    action: str | None = Query(default=None, description="e.g. TEMPLATE_STATUS_CHANGED"),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    q = db.query(AuditEvent)

    if entity_type:
        q = q.filter(AuditEvent.entity_type == entity_type)
    if entity_id:
        q = q.filter(AuditEvent.entity_id == parse_id_or_400(entity_id, "entity"))
    if action:
        q = q.filter(AuditEvent.action == action.upper())

    rows = q.order_by(AuditEvent.created_at.desc()).limit(limit).all()

    return [
        {
            "id": str(r.id),
            "actor_user_id": str(r.actor_user_id) if r.actor_user_id else None,
            "action": r.action,
            "entity_type": r.entity_type,
            "entity_id": str(r.entity_id),
            "metadata": r.event_metadata,
            "created_at": r.created_at,
        }
        for r in rows
    ]
