from datetime import datetime

from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str
    is_active: bool
    is_admin: bool
    created_at: datetime


class UserOption(BaseModel):
    """Picker entry for the initiator/reviewer/approver selects"""
    id: str
    value: str
    label: str
    name: str
    email: str
