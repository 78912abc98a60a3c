"""
Create user_profiles table.

Revision ID: create_user_profiles
Revises:
Create Date: 2026-03-01 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "create_user_profiles"
down_revision = None
branch_labels = None
depends_on = None


def _json_type():
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        return postgresql.JSONB
    return sa.JSON


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)

    if "user_profiles" in inspector.get_table_names():
        # Already exists (from a create_all bootstrap) – skip creating
        return

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("talent_type", sa.String(length=50), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column("availability_status", sa.String(length=50), nullable=True),
        sa.Column("questionnaire_responses", _json_type(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    # One profile per subject
    op.create_index(
        "ix_user_profiles_subject_id", "user_profiles", ["subject_id"], unique=True
    )


def downgrade() -> None:
    op.drop_index("ix_user_profiles_subject_id", table_name="user_profiles")
    op.drop_table("user_profiles")
