import re

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.access import parse_id_or_400
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.users import UserOption, UserOut

router = APIRouter(prefix="/users", tags=["users"])

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

AUTOCOMPLETE_LIMIT = 20


def user_to_out(u: User) -> UserOut:
    return UserOut(
        id=str(u.id),
        email=u.email,
        full_name=u.full_name,
        is_active=u.is_active,
        is_admin=u.is_admin,
        created_at=u.created_at,
    )


def _search(query, search: str | None):
    if search:
        term = f"%{search.strip().lower()}%"
        query = query.filter(User.full_name.ilike(term) | User.email.ilike(term))
    return query


@router.get("", response_model=list[UserOut])
def list_users(
    search: str | None = Query(default=None, description="Search by name or email"),
    include_inactive: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = _search(db.query(User), search)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))

    users = query.order_by(User.full_name.asc(), User.email.asc()).offset(offset).limit(limit).all()
    return [user_to_out(u) for u in users]


@router.get("/autocomplete", response_model=list[UserOption])
def autocomplete_users(
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """
    Active users only, shaped for the role pickers of the form and
    template editors.
    """
    users = (
        _search(db.query(User), search)
        .filter(User.is_active.is_(True))
        .order_by(User.full_name.asc())
        .limit(AUTOCOMPLETE_LIMIT)
        .all()
    )
    return [
        UserOption(id=str(u.id), value=str(u.id), label=u.full_name, name=u.full_name, email=u.email)
        for u in users
    ]


@router.get("/email/{email}", response_model=UserOut)
def get_user_by_email(
    email: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    email = email.strip()
    if not EMAIL_RE.fullmatch(email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    user = db.query(User).filter(func.lower(User.email) == email.lower()).one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user_to_out(user)


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    user = db.get(User, parse_id_or_400(user_id, "user"))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user_to_out(user)
