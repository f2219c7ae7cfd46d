import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.access import assert_can_modify, parse_id_or_400
from app.core.activation import STATUS_ACTIVE, LifecycleError
from app.core.audit import log_event
from app.core.security import get_current_user
from app.core import template_activation as policy
from app.db.session import get_db
from app.models.form import Form
from app.models.template import Template
from app.models.user import User
from app.schemas.forms import UserRef
from app.schemas.templates import (
    TemplateCreate,
    TemplateFormOut,
    TemplateOut,
    TemplateStatusUpdate,
    TemplateUpdate,
    TemplateValidationOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])

DUPLICATE_NAME = "Template with this name already exists"


def _user_ref(u: User | None) -> UserRef | None:
    if u is None:
        return None
    return UserRef(id=str(u.id), name=u.full_name, email=u.email)


def _template_form_out(f: Form) -> TemplateFormOut:
    return TemplateFormOut(
        id=str(f.id),
        form_name=f.form_name,
        status=f.status,
        is_active=f.is_active,
        field_count=len(f.fields or []),
    )


def _template_out(t: Template) -> TemplateOut:
    forms = list(t.forms or [])
    return TemplateOut(
        id=str(t.id),
        template_name=t.template_name,
        approver_template=_user_ref(t.approver),
        status=t.status,
        is_active=t.is_active,
        forms=[_template_form_out(f) for f in forms],
        form_names=", ".join(f.form_name for f in forms),
        created_by=_user_ref(t.created_by),
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


def _load_template(db: Session, template_id: str) -> Template:
    """Fetch a non-deleted template and bring its cached status up to date."""
    tid = parse_id_or_400(template_id, "template")
    t = db.get(Template, tid)
    if not t or not t.is_active:
        raise HTTPException(status_code=404, detail="Template not found")
    policy.reconcile_status(db, t)
    return t


def _resolve_forms(db: Session, raw_ids: list[str]) -> list[Form]:
    ids = []
    for raw in raw_ids:
        fid = parse_id_or_400(raw, "form")
        if fid not in ids:
            ids.append(fid)
    if not ids:
        return []

    rows = db.query(Form).filter(Form.id.in_(ids), Form.is_active.is_(True)).all()
    by_id = {f.id: f for f in rows}
    missing = [str(i) for i in ids if i not in by_id]
    if missing:
        raise HTTPException(
            status_code=400,
            detail={"message": "One or more forms not found", "missing_form_ids": missing},
        )
    return [by_id[i] for i in ids]


def _resolve_approver(db: Session, raw: str) -> User:
    uid = parse_id_or_400(raw, "approver")
    approver = db.get(User, uid)
    if not approver or not approver.is_active:
        raise HTTPException(status_code=400, detail="Approver template user not found or inactive")
    return approver


def _commit_or_400(db: Session) -> None:
    try:
        db.commit()
    except LifecycleError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=e.to_detail())
    except IntegrityError:
        # lost a race on the name index
        db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)


@router.post("", response_model=TemplateOut, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if policy.is_name_taken(db, payload.template_name):
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    forms = _resolve_forms(db, payload.forms)
    approver = _resolve_approver(db, payload.approver_template)

    t = Template(
        template_name=payload.template_name,
        approver_template_id=approver.id,
        status=payload.status,
        created_by_user_id=current_user.id,
    )
    t.forms = forms
    db.add(t)
    try:
        db.flush()
    except LifecycleError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=e.to_detail())
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    log_event(
        db=db,
        actor=current_user,
        action="TEMPLATE_CREATED",
        entity_type="template",
        entity_id=t.id,
        metadata={"template_name": t.template_name, "form_count": len(forms), "status": t.status},
    )

    _commit_or_400(db)
    db.refresh(t)
    return _template_out(t)


@router.get("", response_model=list[TemplateOut])
def list_templates(
    search: str | None = Query(default=None, description="Case-insensitive match on template name"),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Template).filter(Template.is_active.is_(True))
    if search and search.strip():
        query = query.filter(Template.template_name.ilike(f"%{search.strip()}%"))
    rows = query.order_by(Template.created_at.desc()).all()
    for t in rows:
        policy.reconcile_status(db, t)
    return [_template_out(t) for t in rows]


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(
    template_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _template_out(_load_template(db, template_id))


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: str,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    t = _load_template(db, template_id)
    assert_can_modify(current_user, t.created_by_user_id, "template", verb="update")

    if policy.is_name_taken(db, payload.template_name, exclude_id=t.id):
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    forms = _resolve_forms(db, payload.forms)
    approver = _resolve_approver(db, payload.approver_template)

    t.template_name = payload.template_name
    t.approver_template_id = approver.id
    if [f.id for f in t.forms] != [f.id for f in forms]:
        t.forms = forms
    if payload.status is not None:
        t.status = payload.status

    log_event(
        db=db,
        actor=current_user,
        action="TEMPLATE_UPDATED",
        entity_type="template",
        entity_id=t.id,
        metadata={"template_name": t.template_name, "form_count": len(forms), "status": t.status},
    )

    _commit_or_400(db)
    db.refresh(t)
    return _template_out(t)


@router.patch("/{template_id}/status", response_model=TemplateOut)
def update_template_status(
    template_id: str,
    payload: TemplateStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    t = _load_template(db, template_id)
    assert_can_modify(current_user, t.created_by_user_id, "template", verb="update")

    old_status = t.status
    log_event(
        db=db,
        actor=current_user,
        action="TEMPLATE_STATUS_CHANGED",
        entity_type="template",
        entity_id=t.id,
        metadata={"from": old_status, "to": payload.status},
    )

    try:
        if payload.status == STATUS_ACTIVE:
            policy.activate(db, t)
        else:
            policy.deactivate(db, t)
    except LifecycleError as e:
        db.rollback()
        logger.info("Template %s activation refused: %s", template_id, e.message)
        raise HTTPException(status_code=400, detail=e.to_detail())

    return _template_out(t)


@router.get("/{template_id}/validate", response_model=TemplateValidationOut)
def validate_template(
    template_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    t = _load_template(db, template_id)
    return TemplateValidationOut(
        template_id=str(t.id),
        template_name=t.template_name,
        current_status=t.status,
        validation=policy.can_be_activated(db, t).to_dict(),
        statistics=policy.get_stats(db, t),
        forms_details=[_template_form_out(f) for f in t.forms],
    )


@router.delete("/{template_id}", status_code=200)
def delete_template(
    template_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    t = _load_template(db, template_id)
    assert_can_modify(current_user, t.created_by_user_id, "template", verb="delete")

    log_event(
        db=db,
        actor=current_user,
        action="TEMPLATE_DELETED",
        entity_type="template",
        entity_id=t.id,
        metadata={"template_name": t.template_name},
    )
    policy.soft_delete_template(db, t)
    return {"message": "Template deleted successfully", "id": str(t.id)}
