from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utc_now() -> datetime:
    """Aware UTC timestamp for column defaults and `last_modified`."""
    return datetime.now(timezone.utc)


# Import models so metadata is complete, then register lifecycle hooks
from app.models import *  # noqa
from app.core import lifecycle  # noqa
