"""Create users and files tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Initial schema: `users` (one row per Google identity) and `files`
       (one row per uploaded item, owned by a user email).

Rollback: downgrade() drops both tables; every file record is lost, the S3
objects they point to are not touched.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Verified Google account email",
        ),
        sa.Column(
            "avatar",
            sa.Text(),
            nullable=True,
            comment="Google profile picture URL",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "files",
        sa.Column(
            "id",
            sa.String(36),
            nullable=False,
            comment="UUID4 assigned at intake; also the S3 object stem",
        ),
        sa.Column(
            "user_email",
            sa.String(320),
            nullable=False,
            comment="Owner of the file",
        ),
        sa.Column(
            "status",
            sa.String(20),
            server_default=sa.text("'pending'"),
            nullable=False,
            comment="Lifecycle state: pending, completed, management",
        ),
        sa.Column(
            "extension",
            sa.String(16),
            nullable=True,
            comment="Declared file extension, lowercase without dot",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_email"],
            ["users.email"],
            name="fk_files_user_email",
            ondelete="CASCADE",
        ),
    )

    # Serves GET /api/files: WHERE user_email = ? ORDER BY created_at DESC
    op.create_index(
        "idx_files_user_email_created_at",
        "files",
        ["user_email", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_files_user_email_created_at", table_name="files")
    op.drop_table("files")
    op.drop_table("users")
