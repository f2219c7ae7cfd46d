from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, inspect
from sqlalchemy.orm import Session

from app.core.activation import (
    APPROVER_NOT_FOUND,
    FORMS_NOT_FOUND,
    NO_ACTIVE_FORMS,
    NO_APPROVER,
    NO_FORMS,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    ActivationIssue,
    ActivationResult,
    LifecycleError,
)
from app.models.form import Form
from app.models.template import Template, template_forms
from app.models.user import User

logger = logging.getLogger(__name__)


def _split_forms(db: Session, template: Template) -> tuple[list[Form], list]:
    """
    Forms with unflushed state (new, or modified in this session) are
    judged by their in-memory attributes; the rest by a fresh query.
    """
    unflushed = set(db.new) | set(db.dirty)
    pending, stored_ids = [], []
    for form in template.forms or []:
        if form.id is None or form in unflushed:
            pending.append(form)
        else:
            stored_ids.append(form.id)
    return pending, stored_ids


def _form_count(template: Template) -> int:
    return len(template.forms or [])


def count_active_forms(db: Session, template: Template) -> int:
    pending, stored_ids = _split_forms(db, template)
    # column defaults are not applied before insert: unset is_active means live
    count = sum(1 for f in pending if f.status == STATUS_ACTIVE and f.is_active is not False)
    if stored_ids:
        count += (
            db.query(func.count(Form.id))
            .filter(Form.id.in_(stored_ids), Form.status == STATUS_ACTIVE, Form.is_active.is_(True))
            .scalar()
        )
    return count


def count_existing_forms(db: Session, template: Template) -> int:
    """Referenced forms that exist and are not soft-deleted."""
    pending, stored_ids = _split_forms(db, template)
    count = sum(1 for f in pending if f.is_active is not False)
    if stored_ids:
        count += (
            db.query(func.count(Form.id))
            .filter(Form.id.in_(stored_ids), Form.is_active.is_(True))
            .scalar()
        )
    return count


def can_be_activated(db: Session, template: Template) -> ActivationResult:
    """
    Re-reads the referenced forms' current status every time; the
    template's own `status` column is only a cache of this answer.
    """
    issues: list[ActivationIssue] = []
    form_count = _form_count(template)

    if not form_count:
        issues.append(
            ActivationIssue(
                type=NO_FORMS,
                message="Template must have at least one form to be activated",
                details={"currentFormCount": 0, "requiredFormCount": 1},
            )
        )
    else:
        active_count = count_active_forms(db, template)
        if active_count == 0:
            issues.append(
                ActivationIssue(
                    type=NO_ACTIVE_FORMS,
                    message="Template must have at least one active form to be activated",
                    details={
                        "totalFormCount": form_count,
                        "activeFormCount": active_count,
                        "requiredActiveFormCount": 1,
                    },
                )
            )

    if template.approver_template_id is None:
        issues.append(
            ActivationIssue(
                type=NO_APPROVER,
                message="Template must have an approver template to be activated",
            )
        )

    return ActivationResult.from_issues(issues)


def enforce_template_rules(db: Session, template: Template, *, is_new: bool) -> None:
    """
    Flush hook for a new or modified Template. Order matters: the
    empty-forms coercion runs before the activation check so it never
    turns into a rejection.
    """
    state = inspect(template)
    form_count = _form_count(template)

    if not form_count and template.status != STATUS_INACTIVE:
        logger.info("Template %s has no forms, setting status to inactive", template.id)
        template.status = STATUS_INACTIVE

    if template.status == STATUS_ACTIVE:
        result = can_be_activated(db, template)
        if not result.is_valid:
            logger.warning("Rejected save of active template %s: %s", template.id, result.messages)
            raise LifecycleError(
                "Cannot set template to active: " + ", ".join(result.messages),
                result.errors,
            )

    approver_changed = is_new or state.attrs.approver_template_id.history.has_changes()
    if template.approver_template_id is not None and approver_changed:
        if db.get(User, template.approver_template_id) is None:
            raise LifecycleError(
                "Specified approver template does not exist",
                [ActivationIssue(APPROVER_NOT_FOUND, "Specified approver template does not exist")],
            )

    forms_changed = is_new or state.attrs.forms.history.has_changes()
    if form_count and forms_changed:
        existing = count_existing_forms(db, template)
        if existing != form_count:
            raise LifecycleError(
                "One or more referenced forms do not exist or are inactive",
                [
                    ActivationIssue(
                        FORMS_NOT_FOUND,
                        "One or more referenced forms do not exist or are inactive",
                        {"referencedFormCount": form_count, "existingFormCount": existing},
                    )
                ],
            )


def is_name_taken(db: Session, template_name: str, exclude_id=None) -> bool:
    q = db.query(Template.id).filter(
        func.lower(Template.template_name) == template_name.strip().lower(),
        Template.is_active.is_(True),
    )
    if exclude_id is not None:
        q = q.filter(Template.id != exclude_id)
    return db.query(q.exists()).scalar()


def activate(db: Session, template: Template) -> Template:
    result = can_be_activated(db, template)
    if not result.is_valid:
        raise LifecycleError(
            "Cannot activate template: " + ", ".join(result.messages),
            result.errors,
        )
    # the flush hook re-checks; a form deactivated in between still gets caught
    template.status = STATUS_ACTIVE
    db.commit()
    db.refresh(template)
    return template


def deactivate(db: Session, template: Template) -> Template:
    template.status = STATUS_INACTIVE
    db.commit()
    db.refresh(template)
    return template


def reconcile_status(db: Session, template: Template) -> bool:
    """
    Lazy cascade from Form.status: an active template whose forms no
    longer allow activation is flipped to inactive and committed.
    Returns True when the stored status changed.
    """
    if template.status != STATUS_ACTIVE:
        return False
    if can_be_activated(db, template).is_valid:
        return False

    logger.info("Template %s lost its active forms, setting status to inactive", template.id)
    template.status = STATUS_INACTIVE
    db.commit()
    db.refresh(template)
    return True


def get_active_forms(db: Session, template: Template) -> list[Form]:
    pending, stored_ids = _split_forms(db, template)
    active = [f for f in pending if f.status == STATUS_ACTIVE and f.is_active is not False]
    if stored_ids:
        active += (
            db.query(Form)
            .filter(Form.id.in_(stored_ids), Form.status == STATUS_ACTIVE, Form.is_active.is_(True))
            .all()
        )
    return active


def get_stats(db: Session, template: Template) -> dict[str, Any]:
    """Read-only pre-flight view for an activation attempt."""
    validation = can_be_activated(db, template)
    form_count = _form_count(template)
    return {
        "form_count": form_count,
        "active_form_count": count_active_forms(db, template),
        "has_approver": template.approver_template_id is not None,
        "can_be_activated": validation.is_valid,
        "validation_errors": [e.to_dict() for e in validation.errors],
        "status": template.status,
        "is_active": template.is_active,
        "created_at": template.created_at,
        "updated_at": template.updated_at,
    }


def add_form(db: Session, template: Template, form: Form) -> Template:
    if all(f.id != form.id for f in template.forms):
        template.forms.append(form)
    db.commit()
    db.refresh(template)
    return template


def remove_form(db: Session, template: Template, form_id) -> Template:
    # removing the last form makes the hook coerce status to inactive
    db.refresh(template)
    template.forms = [f for f in template.forms if f.id != form_id]
    db.commit()
    db.refresh(template)
    return template


def soft_delete_template(db: Session, template: Template) -> Template:
    template.is_active = False
    db.commit()
    db.refresh(template)
    return template


def find_with_form(db: Session, form_id) -> list[Template]:
    return (
        db.query(Template)
        .join(template_forms, template_forms.c.template_id == Template.id)
        .filter(template_forms.c.form_id == form_id, Template.is_active.is_(True))
        .all()
    )


def find_by_approver(db: Session, user_id) -> list[Template]:
    return (
        db.query(Template)
        .filter(Template.approver_template_id == user_id, Template.is_active.is_(True))
        .all()
    )


def find_by_status(db: Session, status: str) -> list[Template]:
    return db.query(Template).filter(Template.status == status, Template.is_active.is_(True)).all()
