import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.api.health import router as health_router
from app.api.me import router as me_router
from app.api.root import router as root_router
from app.api.forms import router as forms_router
from app.api.templates import router as templates_router
from app.api.audit import router as audit_router
from app.api.users import router as users_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Cable Forms")

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_router)
app.include_router(health_router)
app.include_router(me_router)
app.include_router(users_router)
app.include_router(forms_router)
app.include_router(templates_router)
app.include_router(audit_router)
