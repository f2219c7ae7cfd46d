import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utc_now


template_forms = Table(
    "template_forms",
    Base.metadata,
    Column("template_id", Uuid, ForeignKey("templates.id", ondelete="CASCADE"), primary_key=True),
    Column("form_id", Uuid, ForeignKey("forms.id", ondelete="RESTRICT"), primary_key=True),
    Column("added_at", DateTime(timezone=True), nullable=False, default=utc_now),
)


class Template(Base):
    __tablename__ = "templates"
    __table_args__ = (
        CheckConstraint("status IN ('active','inactive')", name="ck_templates_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    template_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # nullable in storage: a removed approver shows up as NO_APPROVER
    approver_template_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # cached; see app.core.template_activation.reconcile_status
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="inactive")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    forms = relationship(
        "Form",
        secondary=template_forms,
        order_by=template_forms.c.added_at,
        lazy="selectin",
    )
    approver = relationship("User", foreign_keys=[approver_template_id], lazy="selectin")
    created_by = relationship("User", foreign_keys=[created_by_user_id], lazy="selectin")


# case-insensitive name uniqueness among non-deleted templates
Index(
    "uq_templates_name_active",
    sa.func.lower(Template.template_name),
    unique=True,
    postgresql_where=Template.is_active == sa.true(),
    sqlite_where=Template.is_active == sa.true(),
)
