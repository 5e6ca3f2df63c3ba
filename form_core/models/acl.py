"""FormAcl model - per-principal grants on a form."""
import uuid

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, created_at, uuid_pk


class FormAcl(Base):
    """
    A grant of a permission set to one principal on one form.

    At most one entry exists per (form, principal_type, principal_id); the
    unique index is the final arbiter when two creations race.
    """

    __tablename__ = "forms_acls"
    __table_args__ = (
        Index(
            "ix_forms_acls_principal_unique",
            "form_id",
            "principal_type",
            "principal_id",
            unique=True,
        ),
    )

    id: Mapped[uuid_pk]
    form_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    principal_type: Mapped[str] = mapped_column(String(20), nullable=False)
    principal_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Stored as an array, evaluated as a set
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[created_at]
