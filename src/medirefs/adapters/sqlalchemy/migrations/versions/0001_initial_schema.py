"""Initial catalog and import audit schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "catalog_record",
        sa.Column("identifier", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("classification", sa.String(), nullable=False),
        sa.Column("sub_classification", sa.String(), nullable=True),
        sa.Column("primary_code", sa.String(), nullable=True),
        sa.Column("secondary_code", sa.String(), nullable=True),
        sa.Column("tertiary_code", sa.String(), nullable=True),
        sa.Column("description_text", sa.Text(), nullable=True),
        sa.Column("notes_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("identifier", name=op.f("pk_catalog_record")),
    )
    op.create_index(
        "ix_catalog_record_primary_code",
        "catalog_record",
        ["primary_code"],
        unique=False,
    )

    op.create_table(
        "import_session",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_name", sa.String(), nullable=False),
        sa.Column("source_size_bytes", sa.Integer(), nullable=True),
        sa.Column("total_candidate_count", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_count", sa.Integer(), nullable=False),
        sa.Column("success_count", sa.Integer(), nullable=False),
        sa.Column("error_count", sa.Integer(), nullable=False),
        sa.Column("duplicate_count", sa.Integer(), nullable=False),
        sa.Column("is_reportable", sa.Boolean(), nullable=False),
        sa.Column("error_messages", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_import_session")),
    )

    op.create_table(
        "import_audit_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column(
            "operation",
            sa.Enum("INSERT", "UPDATE", "SKIP", "ERROR", name="auditoperation", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "outcome",
            sa.Enum("SUCCESS", "FAILURE", name="auditoutcome", native_enum=False),
            nullable=False,
        ),
        sa.Column("original_row", sa.JSON(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=True),
        sa.Column("target_identifier", sa.String(), nullable=True),
        sa.Column(
            "duplicate_kind",
            sa.Enum("NEW", "BY_IDENTIFIER", "BY_CODE", name="duplicatekind", native_enum=False),
            nullable=True,
        ),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"],
            ["import_session.id"],
            name=op.f("fk_import_audit_entry_session_id_import_session"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_import_audit_entry")),
        sa.UniqueConstraint(
            "session_id",
            "sequence",
            name="uq_import_audit_entry_session_sequence",
        ),
    )


def downgrade() -> None:
    op.drop_table("import_audit_entry")
    op.drop_table("import_session")
    op.drop_index("ix_catalog_record_primary_code", table_name="catalog_record")
    op.drop_table("catalog_record")
