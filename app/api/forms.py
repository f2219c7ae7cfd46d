import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.access import assert_can_modify, parse_id_or_400
from app.core.activation import STATUS_ACTIVE, LifecycleError
from app.core.audit import log_event
from app.core.field_defaults import defaults_for
from app.core.field_validation import validate_field, validate_fields, validation_summary
from app.core.form_activation import can_be_activated, deactivate_if_invalid, soft_delete_form
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.form import Form
from app.models.user import User
from app.schemas.forms import (
    FormActivationCheckOut,
    FormCreate,
    FormOut,
    FormStatusUpdate,
    FormUpdate,
    UserRef,
)
from app.schemas.validation import FieldsValidationRequest, FieldValidationReport, FieldValidationRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


def _user_ref(u: User | None) -> UserRef | None:
    if u is None:
        return None
    return UserRef(id=str(u.id), name=u.full_name, email=u.email)


def _form_out(form: Form, warnings: list[str] | None = None) -> FormOut:
    fields = form.fields or []
    return FormOut(
        id=str(form.id),
        form_name=form.form_name,
        status=form.status,
        is_active=form.is_active,
        version=form.version,
        fields=fields,
        field_count=len(fields),
        created_by=_user_ref(form.created_by),
        initiator=_user_ref(form.initiator),
        reviewer=_user_ref(form.reviewer),
        approver=_user_ref(form.approver),
        last_modified=form.last_modified,
        created_at=form.created_at,
        updated_at=form.updated_at,
        warnings=warnings or [],
    )


def _get_form_or_404(db: Session, form_id: str) -> Form:
    fid = parse_id_or_400(form_id, "form")
    form = db.get(Form, fid)
    if not form or not form.is_active:
        raise HTTPException(status_code=404, detail="Form not found")
    return form


def _resolve_user_id(db: Session, raw: str | None, role: str):
    if not raw:
        return None
    uid = parse_id_or_400(raw, role)
    if db.get(User, uid) is None:
        raise HTTPException(status_code=400, detail=f"{role.capitalize()} user not found")
    return uid


def _validate_fields_or_400(fields) -> list[str]:
    result = validate_fields(fields)
    if not result.is_valid:
        raise HTTPException(
            status_code=400,
            detail={"message": "Field validation failed", "errors": result.errors, "warnings": result.warnings},
        )
    return result.warnings


def _name_taken(db: Session, form_name: str, owner_id, exclude_id=None) -> bool:
    q = db.query(Form.id).filter(
        func.lower(Form.form_name) == form_name.lower(),
        Form.created_by_user_id == owner_id,
        Form.is_active.is_(True),
    )
    if exclude_id is not None:
        q = q.filter(Form.id != exclude_id)
    return db.query(q.exists()).scalar()


def _commit_or_400(db: Session) -> None:
    try:
        db.commit()
    except LifecycleError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=e.to_detail())


@router.post("/validate-fields", response_model=FieldValidationReport)
def validate_form_fields(
    payload: FieldsValidationRequest,
    _: User = Depends(get_current_user),
):
    """Real-time validation for the form builder; never persists anything."""
    result = validate_fields(payload.fields)
    summary = validation_summary(payload.fields, result) if isinstance(payload.fields, list) else None
    return FieldValidationReport(**result.to_dict(), summary=summary)


@router.post("/validate-field", response_model=FieldValidationReport)
def validate_single_field(
    payload: FieldValidationRequest,
    _: User = Depends(get_current_user),
):
    return FieldValidationReport(**validate_field(payload.field).to_dict())


@router.get("/field-defaults/{field_type}")
def get_field_defaults(field_type: str, _: User = Depends(get_current_user)):
    defaults = defaults_for(field_type)
    if not defaults:
        raise HTTPException(status_code=404, detail=f"Unknown field type: {field_type}")
    return defaults


@router.post("", response_model=FormOut, status_code=status.HTTP_201_CREATED)
def create_form(
    payload: FormCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    warnings: list[str] = []
    if payload.fields:
        warnings = _validate_fields_or_400(payload.fields)

    if _name_taken(db, payload.form_name, current_user.id):
        raise HTTPException(status_code=400, detail="A form with this name already exists")

    form = Form(
        form_name=payload.form_name,
        fields=list(payload.fields),
        version=payload.version,
        status=payload.status,
        created_by_user_id=current_user.id,
        initiator_user_id=_resolve_user_id(db, payload.initiator, "initiator"),
        reviewer_user_id=_resolve_user_id(db, payload.reviewer, "reviewer"),
        approver_user_id=_resolve_user_id(db, payload.approver, "approver"),
    )
    db.add(form)
    try:
        db.flush()
    except LifecycleError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=e.to_detail())

    log_event(
        db=db,
        actor=current_user,
        action="FORM_CREATED",
        entity_type="form",
        entity_id=form.id,
        metadata={"form_name": form.form_name, "field_count": len(form.fields), "status": form.status},
    )

    db.commit()
    db.refresh(form)
    return _form_out(form, warnings)


@router.get("", response_model=list[FormOut])
def list_forms(
    search: str | None = Query(default=None, description="Case-insensitive match on form name"),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Form).filter(Form.is_active.is_(True))
    if search and search.strip():
        query = query.filter(Form.form_name.ilike(f"%{search.strip()}%"))
    rows = query.order_by(Form.created_at.desc()).all()
    return [_form_out(f) for f in rows]


@router.get("/{form_id}", response_model=FormOut)
def get_form(
    form_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _form_out(_get_form_or_404(db, form_id))


@router.put("/{form_id}", response_model=FormOut)
def update_form(
    form_id: str,
    payload: FormUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    form = _get_form_or_404(db, form_id)
    assert_can_modify(current_user, form.created_by_user_id, "form", verb="update")

    sent = payload.model_fields_set
    warnings: list[str] = []
    changes: dict[str, object] = {}

    if "form_name" in sent and payload.form_name is not None:
        if _name_taken(db, payload.form_name, form.created_by_user_id, exclude_id=form.id):
            raise HTTPException(status_code=400, detail="A form with this name already exists")
        form.form_name = payload.form_name
        changes["form_name"] = payload.form_name

    if "fields" in sent and payload.fields is not None:
        # clearing the list is allowed; the form then drops to inactive
        if payload.fields:
            warnings = _validate_fields_or_400(payload.fields)
        form.fields = list(payload.fields)
        changes["field_count"] = len(form.fields)
        if deactivate_if_invalid(form):
            changes["status"] = form.status

    if "version" in sent and payload.version is not None:
        form.version = payload.version

    for role in ("initiator", "reviewer", "approver"):
        if role in sent:
            setattr(form, f"{role}_user_id", _resolve_user_id(db, getattr(payload, role), role))
            changes[role] = getattr(payload, role)

    log_event(
        db=db,
        actor=current_user,
        action="FORM_UPDATED",
        entity_type="form",
        entity_id=form.id,
        metadata=changes,
    )

    _commit_or_400(db)
    db.refresh(form)
    return _form_out(form, warnings)


@router.put("/{form_id}/status", response_model=FormOut)
def update_form_status(
    form_id: str,
    payload: FormStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    form = _get_form_or_404(db, form_id)
    assert_can_modify(current_user, form.created_by_user_id, "form", verb="update")

    if payload.status == STATUS_ACTIVE:
        result = can_be_activated(form)
        if not result.is_valid:
            primary = result.errors[0]
            logger.info("Form %s activation refused: %s", form.id, result.messages)
            raise HTTPException(
                status_code=400,
                detail={
                    "message": f"Cannot activate form: {primary.message}",
                    "error": primary.type,
                    "details": dict(primary.details),
                    "errors": [e.to_dict() for e in result.errors],
                },
            )

    old_status = form.status
    form.status = payload.status

    log_event(
        db=db,
        actor=current_user,
        action="FORM_STATUS_CHANGED",
        entity_type="form",
        entity_id=form.id,
        metadata={"from": old_status, "to": payload.status},
    )

    _commit_or_400(db)
    db.refresh(form)
    return _form_out(form)


@router.get("/{form_id}/validate", response_model=FormActivationCheckOut)
def check_form_activation(
    form_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    form = _get_form_or_404(db, form_id)
    result = can_be_activated(form)
    return FormActivationCheckOut(**result.to_dict(), field_count=len(form.fields or []))


@router.delete("/{form_id}", status_code=200)
def delete_form(
    form_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    form = _get_form_or_404(db, form_id)
    assert_can_modify(current_user, form.created_by_user_id, "form", verb="delete")

    log_event(
        db=db,
        actor=current_user,
        action="FORM_DELETED",
        entity_type="form",
        entity_id=form.id,
        metadata={"form_name": form.form_name},
    )
    soft_delete_form(db, form)
    return {"message": "Form deleted successfully", "id": str(form.id)}
