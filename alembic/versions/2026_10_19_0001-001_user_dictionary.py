"""user dictionary

Revision ID: 001
Revises:
Create Date: 2026-10-19

Table as defined in inkwell/models/database_models.py: user_dictionary.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── user_dictionary ───────────────────────────────────────────────────
    op.create_table(
        "user_dictionary",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("word", sa.String(255), nullable=False),
        sa.Column("language_code", sa.String(16), nullable=False, server_default="en"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "language_code", "word", name="uq_user_dictionary_user_lang_word"),
    )


def downgrade() -> None:
    op.drop_table("user_dictionary")
