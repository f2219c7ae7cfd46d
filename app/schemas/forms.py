from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.validation import ActivationIssueOut


class UserRef(BaseModel):
    id: str
    name: str
    email: str


class FormCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    form_name: str = Field(min_length=3, max_length=100)
    fields: list[Any] = Field(default_factory=list)
    version: str = Field(default="1.0", max_length=20)
    initiator: str | None = None  # user ids
    reviewer: str | None = None
    approver: str | None = None
    status: Literal["active", "inactive"] = "inactive"


class FormUpdate(BaseModel):
    """Only keys present in the request body are applied"""
    model_config = ConfigDict(str_strip_whitespace=True)

    form_name: str | None = Field(default=None, min_length=3, max_length=100)
    fields: list[Any] | None = None
    version: str | None = Field(default=None, max_length=20)
    initiator: str | None = None
    reviewer: str | None = None
    approver: str | None = None


class FormStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class FormOut(BaseModel):
    id: str
    form_name: str
    status: str
    is_active: bool
    version: str
    fields: list[Any]
    field_count: int
    created_by: UserRef | None
    initiator: UserRef | None
    reviewer: UserRef | None
    approver: UserRef | None
    last_modified: datetime
    created_at: datetime
    updated_at: datetime
    warnings: list[str] = []


class FormActivationCheckOut(BaseModel):
    is_valid: bool
    errors: list[ActivationIssueOut]
    field_count: int
