"""Create folder, flashcard and review tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20251104_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "folders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("position", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("deadline", sa.String(length=10), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "flashcards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("folder_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("question_type", sa.String(length=16), nullable=False),
        sa.Column("question_content", sa.Text(), nullable=False),
        sa.Column("answer_type", sa.String(length=16), nullable=True),
        sa.Column("answer_content", sa.Text(), nullable=True),
        sa.Column("timer_mode", sa.String(length=16), server_default=sa.text("'5min'"), nullable=False),
        sa.Column("timer_seconds", sa.Integer(), server_default=sa.text("300"), nullable=False),
        sa.Column("ease_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("interval_days", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("repetitions", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_reviewed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("folder_id",),
            ("folders.id",),
            name="fk_flashcards_folder_id_folders",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_flashcards_due_date", "flashcards", ("due_date",))
    op.create_index("ix_flashcards_folder_id", "flashcards", ("folder_id",))

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("flashcard_id", sa.Integer(), nullable=False),
        sa.Column("correct", sa.Boolean(), nullable=False),
        sa.Column("response_time_seconds", sa.Float(), nullable=False),
        sa.Column("timer_limit_seconds", sa.Float(), nullable=False),
        sa.Column("speed_ratio", sa.Float(), nullable=False),
        sa.Column("quality", sa.Integer(), nullable=False),
        sa.Column("ease_before", sa.Float(), nullable=False),
        sa.Column("ease_after", sa.Float(), nullable=False),
        sa.Column("interval_before", sa.Float(), nullable=False),
        sa.Column("interval_after", sa.Float(), nullable=False),
        sa.Column(
            "reviewed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("flashcard_id",),
            ("flashcards.id",),
            name="fk_reviews_flashcard_id_flashcards",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_reviews_flashcard_id", "reviews", ("flashcard_id",))


def downgrade() -> None:
    op.drop_index("ix_reviews_flashcard_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_flashcards_folder_id", table_name="flashcards")
    op.drop_index("ix_flashcards_due_date", table_name="flashcards")
    op.drop_table("flashcards")
    op.drop_table("folders")
