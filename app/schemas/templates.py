from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.forms import UserRef
from app.schemas.validation import ActivationIssueOut, ActivationReport


class TemplateCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    template_name: str = Field(min_length=3, max_length=100)
    forms: list[str]  # form ids
    approver_template: str = Field(min_length=1)  # user id
    status: Literal["active", "inactive"] = "inactive"


class TemplateUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    template_name: str = Field(min_length=3, max_length=100)
    forms: list[str]
    approver_template: str = Field(min_length=1)
    status: Literal["active", "inactive"] | None = None  # None keeps current status


class TemplateStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class TemplateFormOut(BaseModel):
    id: str
    form_name: str
    status: str
    is_active: bool
    field_count: int


class TemplateOut(BaseModel):
    id: str
    template_name: str
    approver_template: UserRef | None
    status: str
    is_active: bool
    forms: list[TemplateFormOut]
    form_names: str
    created_by: UserRef | None
    created_at: datetime
    updated_at: datetime


class TemplateStats(BaseModel):
    """Pre-flight view of an activation attempt"""
    form_count: int
    active_form_count: int
    has_approver: bool
    can_be_activated: bool
    validation_errors: list[ActivationIssueOut]
    status: str
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


class TemplateValidationOut(BaseModel):
    template_id: str
    template_name: str
    current_status: str
    validation: ActivationReport
    statistics: TemplateStats
    forms_details: list[TemplateFormOut]
