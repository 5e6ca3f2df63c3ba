"""create forms, versions, fields, entries and ACL tables

Revision ID: a3f1c2d4e5b6
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3f1c2d4e5b6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "forms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("owner_user_id", sa.String(length=255), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("visibility", sa.String(length=20), nullable=False, server_default="private"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_forms_name"), "forms", ["name"], unique=False)
    op.create_index(op.f("ix_forms_owner_user_id"), "forms", ["owner_user_id"], unique=False)

    op.create_table(
        "form_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("list_config", sa.JSON(), nullable=True),
        sa.Column("created_by_user_id", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_form_versions_form_id"), "form_versions", ["form_id"], unique=False)
    op.create_index("ix_form_versions_form_status", "form_versions", ["form_id", "status"], unique=False)

    op.create_table(
        "form_fields",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("version_id", sa.Uuid(), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("hidden", sa.Boolean(), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("config", sa.JSON(), nullable=True),
        sa.Column("default_value", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["version_id"], ["form_versions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_form_fields_form_id"), "form_fields", ["form_id"], unique=False)
    op.create_index(op.f("ix_form_fields_version_id"), "form_fields", ["version_id"], unique=False)

    op.create_table(
        "form_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("search_text", sa.Text(), nullable=True),
        sa.Column("created_by_user_id", sa.String(length=255), nullable=False),
        sa.Column("updated_by_user_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_form_entries_form_id"), "form_entries", ["form_id"], unique=False)
    op.create_index(op.f("ix_form_entries_created_by_user_id"), "form_entries", ["created_by_user_id"], unique=False)

    op.create_table(
        "forms_acls",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("form_id", sa.Uuid(), nullable=False),
        sa.Column("principal_type", sa.String(length=20), nullable=False),
        sa.Column("principal_id", sa.String(length=255), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_forms_acls_form_id"), "forms_acls", ["form_id"], unique=False)
    op.create_index(op.f("ix_forms_acls_principal_id"), "forms_acls", ["principal_id"], unique=False)
    op.create_index(
        "ix_forms_acls_principal_unique",
        "forms_acls",
        ["form_id", "principal_type", "principal_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_forms_acls_principal_unique", table_name="forms_acls")
    op.drop_index(op.f("ix_forms_acls_principal_id"), table_name="forms_acls")
    op.drop_index(op.f("ix_forms_acls_form_id"), table_name="forms_acls")
    op.drop_table("forms_acls")
    op.drop_index(op.f("ix_form_entries_created_by_user_id"), table_name="form_entries")
    op.drop_index(op.f("ix_form_entries_form_id"), table_name="form_entries")
    op.drop_table("form_entries")
    op.drop_index(op.f("ix_form_fields_version_id"), table_name="form_fields")
    op.drop_index(op.f("ix_form_fields_form_id"), table_name="form_fields")
    op.drop_table("form_fields")
    op.drop_index("ix_form_versions_form_status", table_name="form_versions")
    op.drop_index(op.f("ix_form_versions_form_id"), table_name="form_versions")
    op.drop_table("form_versions")
    op.drop_index(op.f("ix_forms_owner_user_id"), table_name="forms")
    op.drop_index(op.f("ix_forms_name"), table_name="forms")
    op.drop_table("forms")
