from fastapi import APIRouter

from app.core.config import settings
from app.core.field_validation import VALID_FIELD_TYPES

router = APIRouter()


@router.get("/")
def service_index():
    return {
        "name": "Cable Forms Backend",
        "env": settings.APP_ENV,
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "resources": ["/users", "/forms", "/templates", "/audit"],
        "field_types": list(VALID_FIELD_TYPES),
    }
