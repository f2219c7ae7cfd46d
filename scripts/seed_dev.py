# seed_dev.py
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.field_defaults import create_field
from app.core.template_activation import is_name_taken
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.form import Form
from app.models.template import Template
from app.models.user import User


# ---------- helpers: users ----------

def get_or_create_user(db: Session, email: str, full_name: str, is_admin: bool = False) -> User:
    u = db.query(User).filter(func.lower(User.email) == email.lower()).one_or_none()
    if u:
        # keep these up to date in dev
        changed = False
        if u.full_name != full_name:
            u.full_name = full_name
            changed = True
        if u.is_admin != is_admin:
            u.is_admin = is_admin
            changed = True
        if not u.is_active:
            u.is_active = True
            changed = True
        if changed:
            db.commit()
            db.refresh(u)
        return u

    u = User(email=email, full_name=full_name, is_active=True, is_admin=is_admin)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


# ---------- helpers: forms / templates ----------

def get_or_create_form(db: Session, form_name: str, owner: User, fields: list[dict], status: str = "active") -> Form:
    form = (
        db.query(Form)
        .filter(
            func.lower(Form.form_name) == form_name.lower(),
            Form.created_by_user_id == owner.id,
            Form.is_active.is_(True),
        )
        .one_or_none()
    )
    if form:
        return form

    form = Form(form_name=form_name, fields=fields, status=status, created_by_user_id=owner.id)
    db.add(form)
    db.commit()
    db.refresh(form)
    return form


def get_or_create_template(db: Session, template_name: str, owner: User, approver: User, forms: list[Form]) -> Template:
    if is_name_taken(db, template_name):
        return (
            db.query(Template)
            .filter(func.lower(Template.template_name) == template_name.lower(), Template.is_active.is_(True))
            .one()
        )

    t = Template(
        template_name=template_name,
        approver_template_id=approver.id,
        status="active",
        created_by_user_id=owner.id,
    )
    t.forms = forms
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


def main():
    # local SQLite has no migrations applied; create what is missing
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # ---- Users ----
        admin_user = get_or_create_user(db, "admin@cableforms.com", "Admin User", is_admin=True)
        john = get_or_create_user(db, "john@cableforms.com", "John Doe")
        approver_user = get_or_create_user(db, "approver@cableforms.com", "Approver User")

        # ---- Forms ----
        customer = get_or_create_form(
            db,
            "Customer Details",
            john,
            [
                create_field("header", text="Customer", label="Customer"),
                create_field("text", name="customer_name", label="Customer Name", required=True),
                create_field("email", name="customer_email", label="Email"),
                create_field("tel", name="customer_phone", label="Phone"),
            ],
        )
        install = get_or_create_form(
            db,
            "Installation Request",
            john,
            [
                create_field("select", name="package", label="Package", options=[
                    {"label": "Basic", "value": "basic"},
                    {"label": "Premium", "value": "premium"},
                ]),
                create_field("date", name="install_date", label="Preferred Date", required=True),
                create_field(
                    "textarea",
                    name="premium_notes",
                    label="Premium Notes",
                    dependsOn={"field": "package", "value": "premium", "condition": "equals"},
                ),
            ],
        )
        draft = get_or_create_form(db, "Draft Survey", admin_user, [], status="inactive")

        # ---- Template ----
        template = get_or_create_template(db, "New Subscriber", john, approver_user, [customer, install])

        print("\n=== DEV SEED COMPLETE ===")
        print("Users:")
        print(f"  admin:    {admin_user.email}")
        print(f"  author:   {john.email}")
        print(f"  approver: {approver_user.email}")

        print("\nForms:")
        for f in (customer, install, draft):
            print(f"  {f.id}  {f.form_name} ({f.status}, {len(f.fields)} fields)")

        print("\nTemplate:")
        print(f"  template_id: {template.id} (name={template.template_name}, status={template.status})")

        print("\nNext API steps:")
        print(f"  GET  /templates/{template.id}/validate   (X-User-Email: {john.email})")
        print(f"  PUT  /forms/{install.id}/status  {{\"status\": \"inactive\"}}")
        print(f"  GET  /templates/{template.id}   -> status drops to inactive once no form is active")

    finally:
        db.close()


if __name__ == "__main__":
    main()
