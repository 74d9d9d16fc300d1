"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class StudyGroupModel(Base):
    """Study group aggregate stored as one row.

    Members, meetings and messages are embedded JSON documents so that the
    whole aggregate is written by a single versioned UPDATE.
    """

    __tablename__ = "study_groups"
    __table_args__ = (
        CheckConstraint(
            "max_members BETWEEN 2 AND 100", name="ck_study_groups_max_members"
        ),
        CheckConstraint(
            "status IN ('active', 'inactive', 'archived')",
            name="ck_study_groups_status",
        ),
        CheckConstraint(
            "(is_public AND access_code IS NULL) OR (NOT is_public AND access_code IS NOT NULL)",
            name="ck_study_groups_access_code",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    creator_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), nullable=False, index=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # NULLs never collide, so only private groups take part in uniqueness
    access_code: Mapped[str | None] = mapped_column(String(16), unique=True)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    tags: Mapped[list[str]] = mapped_column(JSONDocument, nullable=False, default=list)
    members: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list
    )
    meetings: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list
    )
    messages: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
