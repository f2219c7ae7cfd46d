from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# error-type vocabulary the frontend branches on
NO_FIELDS = "NO_FIELDS"
INVALID_FIELDS = "INVALID_FIELDS"
NO_FORMS = "NO_FORMS"
NO_ACTIVE_FORMS = "NO_ACTIVE_FORMS"
NO_APPROVER = "NO_APPROVER"
APPROVER_NOT_FOUND = "APPROVER_NOT_FOUND"
FORMS_NOT_FOUND = "FORMS_NOT_FOUND"

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)


@dataclass(frozen=True)
class ActivationIssue:
    type: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "details": dict(self.details)}


@dataclass(frozen=True)
class ActivationResult:
    is_valid: bool
    errors: list[ActivationIssue] = field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: list[ActivationIssue]) -> "ActivationResult":
        return cls(is_valid=not issues, errors=list(issues))

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {"is_valid": self.is_valid, "errors": [e.to_dict() for e in self.errors]}


class LifecycleError(Exception):
    """
    Raised from the flush hooks (and activate helpers) when a write would
    break a Form/Template invariant. The session must be rolled back.
    """

    def __init__(self, message: str, errors: list[ActivationIssue] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_detail(self) -> dict[str, Any]:
        return {"message": self.message, "errors": [e.to_dict() for e in self.errors]}
