from app.models.audit_event import AuditEvent
from app.models.form import Form
from app.models.template import Template, template_forms
from app.models.user import User

__all__ = [ "AuditEvent", "Form", "Template", "template_forms", "User" ]
