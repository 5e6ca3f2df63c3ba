"""Form, FormVersion and FormField models."""
import uuid
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from form_core.core.permissions import VersionStatus, Visibility

from .base import Base, created_at, updated_at, uuid_pk


class Form(Base):
    """
    A form definition owned by its creator.

    Lifecycle: draft -> published -> unpublished. While ``is_published`` is
    False only the owner and admins may access the form; ACL entries are kept
    but ignored until the form is published again.
    """

    __tablename__ = "forms"

    id: Mapped[uuid_pk]
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    owner_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    visibility: Mapped[str] = mapped_column(
        String(20), default=Visibility.PRIVATE.value, nullable=False
    )
    created_at: Mapped[created_at]
    updated_at: Mapped[updated_at]

    @classmethod
    async def get_by_id(cls, db: AsyncSession, form_id: uuid.UUID) -> Optional["Form"]:
        """Get form by id."""
        result = await db.execute(select(cls).where(cls.id == form_id))
        return result.scalar_one_or_none()


class FormVersion(Base):
    __tablename__ = "form_versions"
    __table_args__ = (Index("ix_form_versions_form_status", "form_id", "status"),)

    id: Mapped[uuid_pk]
    form_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=VersionStatus.DRAFT.value, nullable=False
    )
    list_config: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    created_by_user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[created_at]

    @classmethod
    async def get_latest(
        cls, db: AsyncSession, form_id: uuid.UUID, status: VersionStatus
    ) -> Optional["FormVersion"]:
        """Get the highest-numbered version of a form in the given status."""
        result = await db.execute(
            select(cls)
            .where(cls.form_id == form_id, cls.status == VersionStatus(status).value)
            .order_by(cls.version.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


class FormField(Base):
    __tablename__ = "form_fields"

    id: Mapped[uuid_pk]
    form_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("form_versions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    config: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    default_value: Mapped[Optional[Any]] = mapped_column(JSON)

    @classmethod
    async def list_for_version(cls, db: AsyncSession, version_id: uuid.UUID) -> list["FormField"]:
        result = await db.execute(
            select(cls).where(cls.version_id == version_id).order_by(cls.order)
        )
        return list(result.scalars().all())
