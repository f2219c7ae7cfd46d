import uuid

from fastapi import Depends, HTTPException, status

from app.core.security import get_current_user
from app.models.user import User


def parse_id_or_400(raw: str, entity: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {entity} ID format")


def assert_can_modify(user: User, owner_id, entity: str, verb: str = "edit"):
    """Owners and admins only; records without an owner are open to everyone."""
    if owner_id is None or user.is_admin or owner_id == user.id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Access denied. You can only {verb} your own {entity}s.",
    )


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden. Admin access required.")
    return user
