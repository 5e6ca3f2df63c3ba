"""FormEntry model - submitted records for a form."""
import uuid
from typing import Any, Optional

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, created_at, updated_at, uuid_pk


class FormEntry(Base):
    __tablename__ = "form_entries"

    id: Mapped[uuid_pk]
    form_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    # Denormalized text used by list search
    search_text: Mapped[Optional[str]] = mapped_column(Text)
    created_by_user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    updated_by_user_id: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[created_at]
    updated_at: Mapped[updated_at]
