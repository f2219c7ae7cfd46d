from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.activation import (
    INVALID_FIELDS,
    NO_FIELDS,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    ActivationIssue,
    ActivationResult,
    LifecycleError,
)
from app.db.base import utc_now
from app.models.form import Form

logger = logging.getLogger(__name__)


def _field_problems(field) -> list[str]:
    if not isinstance(field, Mapping):
        return ["Missing type", "Missing or empty label"]
    problems = []
    if not field.get("type"):
        problems.append("Missing type")
    label = field.get("label")
    if not isinstance(label, str) or not label.strip():
        problems.append("Missing or empty label")
    return problems


def can_be_activated(form: Form) -> ActivationResult:
    """
    Persistence-time gate for status=active.

    Deliberately shallow: only field count plus type/label presence.
    validate_fields is the authoring-time check.
    """
    fields = form.fields or []
    issues: list[ActivationIssue] = []

    if not fields:
        issues.append(
            ActivationIssue(
                type=NO_FIELDS,
                message="Form must have at least one field to be activated",
                details={"currentFieldCount": 0, "requiredFieldCount": 1},
            )
        )
    else:
        invalid_fields = []
        for index, f in enumerate(fields, start=1):
            problems = _field_problems(f)
            if problems:
                fid = f.get("id") if isinstance(f, Mapping) else None
                invalid_fields.append({"fieldId": fid or f"field_{index}", "position": index, "errors": problems})

        if invalid_fields:
            issues.append(
                ActivationIssue(
                    type=INVALID_FIELDS,
                    message="Some fields are missing a type or label",
                    details={
                        "invalidFields": invalid_fields,
                        "errors": [
                            f"Field {f['fieldId']}: {', '.join(f['errors'])}" for f in invalid_fields
                        ],
                    },
                )
            )

    return ActivationResult.from_issues(issues)


def deactivate_if_invalid(form: Form) -> bool:
    """Drop an active form to inactive when its new field list cannot stay active."""
    if form.status != STATUS_ACTIVE:
        return False
    if can_be_activated(form).is_valid:
        return False
    logger.info("Form %s no longer valid for activation, setting status to inactive", form.id)
    form.status = STATUS_INACTIVE
    return True


def soft_delete_form(db: Session, form: Form) -> Form:
    # status is left alone; templates notice on their next read/save
    form.is_active = False
    db.commit()
    db.refresh(form)
    return form


def enforce_form_rules(db: Session, form: Form, *, is_new: bool) -> None:
    """Flush hook for a new or modified Form."""
    state = inspect(form)

    if not is_new and db.is_modified(form):
        form.last_modified = utc_now()

    if form.status != STATUS_ACTIVE:
        return

    touched = is_new or state.attrs.status.history.has_changes() or state.attrs.fields.history.has_changes()
    if not touched:
        return

    result = can_be_activated(form)
    if not result.is_valid:
        logger.warning("Rejected activation of form %s: %s", form.id, result.messages)
        raise LifecycleError(
            "Cannot activate form: " + ", ".join(result.messages),
            result.errors,
        )
