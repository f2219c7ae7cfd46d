from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.form import Form
from app.models.template import Template
from app.models.user import User

router = APIRouter(tags=["auth"])


@router.get("/me")
def me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user plus how many live forms/templates they own"""
    form_count = (
        db.query(func.count(Form.id))
        .filter(Form.created_by_user_id == current_user.id, Form.is_active.is_(True))
        .scalar()
    )
    template_count = (
        db.query(func.count(Template.id))
        .filter(Template.created_by_user_id == current_user.id, Template.is_active.is_(True))
        .scalar()
    )
    return {
        "id": str(current_user.id),
        "email": current_user.email,
        "full_name": current_user.full_name,
        "is_admin": current_user.is_admin,
        "is_active": current_user.is_active,
        "form_count": form_count,
        "template_count": template_count,
    }
