import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, JSON, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utc_now


class Form(Base):
    __tablename__ = "forms"
    __table_args__ = (
        CheckConstraint("status IN ('active','inactive')", name="ck_forms_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    form_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # list of FieldConfig dicts, see app.core.field_validation
    fields: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="inactive")

    # soft-delete flag, independent of status
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0")

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    initiator_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewer_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approver_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    last_modified: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    created_by = relationship("User", foreign_keys=[created_by_user_id], lazy="selectin")
    initiator = relationship("User", foreign_keys=[initiator_user_id], lazy="selectin")
    reviewer = relationship("User", foreign_keys=[reviewer_user_id], lazy="selectin")
    approver = relationship("User", foreign_keys=[approver_user_id], lazy="selectin")
