"""quiz session blobs

Revision ID: 3b7d1c0a9e42
Revises:
Create Date: 2026-10-19 12:04:31.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7d1c0a9e42'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # снимки квиз-сессий, один ряд на ключ клиента
    op.create_table(
        "quiz_session_blobs",
        sa.Column("key", sa.String(200), primary_key=True),
        sa.Column(
            "payload",
            sa.LargeBinary(),
            nullable=False,
            comment="json-снимок Session целиком",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    )

    op.create_index(
        "ix_quiz_session_blobs_updated_at",
        "quiz_session_blobs",
        ["updated_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_quiz_session_blobs_updated_at", table_name="quiz_session_blobs")
    op.drop_table("quiz_session_blobs")
