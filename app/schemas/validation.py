from typing import Any

from pydantic import BaseModel


class ActivationIssueOut(BaseModel):
    """Structured activation error; `type` is what the UI branches on"""
    type: str  # NO_FIELDS, INVALID_FIELDS, NO_FORMS, NO_ACTIVE_FORMS, NO_APPROVER
    message: str
    details: dict[str, Any] = {}


class ActivationReport(BaseModel):
    is_valid: bool
    errors: list[ActivationIssueOut]


class FieldsValidationRequest(BaseModel):
    fields: Any = None  # validated by app.core.field_validation, not by pydantic


class FieldValidationRequest(BaseModel):
    field: Any = None


class FieldValidationSummary(BaseModel):
    total_fields: int
    valid_fields: int
    error_count: int
    warning_count: int


class FieldValidationReport(BaseModel):
    """Authoring-time validation result (plain strings)"""
    is_valid: bool
    errors: list[str]
    warnings: list[str]  # Non-blocking warnings
    summary: FieldValidationSummary | None = None
