from sqlalchemy.orm import Session

from app.models.form import Form
from app.models.template import Template
from app.models.user import User


def auth(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


def text_field(name: str = "full_name", label: str = "Full Name", **extra) -> dict:
    return {"id": f"field_{name}", "type": "text", "name": name, "label": label, **extra}


def create_user(db: Session, email: str, full_name="User", is_admin=False, is_active=True) -> User:
    u = User(email=email, full_name=full_name, is_active=is_active, is_admin=is_admin)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def create_form(
    db: Session,
    *,
    form_name: str = "Cable Request",
    fields: list[dict] | None = None,
    status: str = "inactive",
    created_by: User | None = None,
) -> Form:
    form = Form(
        form_name=form_name,
        fields=fields if fields is not None else [text_field()],
        status=status,
        created_by_user_id=created_by.id if created_by else None,
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def create_template(
    db: Session,
    *,
    template_name: str = "Onboarding",
    forms: list[Form] | None = None,
    approver: User | None = None,
    status: str = "inactive",
    created_by: User | None = None,
) -> Template:
    t = Template(
        template_name=template_name,
        approver_template_id=approver.id if approver else None,
        status=status,
        created_by_user_id=created_by.id if created_by else None,
    )
    t.forms = list(forms or [])
    db.add(t)
    db.commit()
    db.refresh(t)
    return t
