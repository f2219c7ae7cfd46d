from sqlalchemy import event
from sqlalchemy.orm import Session

from app.core.form_activation import enforce_form_rules
from app.core.template_activation import enforce_template_rules
from app.models.form import Form
from app.models.template import Template


@event.listens_for(Session, "before_flush")
def enforce_lifecycle_rules(session: Session, flush_context, instances) -> None:
    """
    Runs the Form and Template policies on every pending write.
    Raising aborts the flush; the caller has to roll back.
    """
    new = set(session.new)
    candidates = list(session.new) + [o for o in session.dirty if o not in new]

    with session.no_autoflush:
        for obj in candidates:
            if isinstance(obj, Form):
                enforce_form_rules(session, obj, is_new=obj in new)
        for obj in candidates:
            if isinstance(obj, Template):
                enforce_template_rules(session, obj, is_new=obj in new)
