"""create catalog and progress tables

Revision ID: 3b7d5e1a9c20
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3b7d5e1a9c20"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        "class",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "subject",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["class_id"], ["class.id"]),
    )
    op.create_index("idx_subject_class_id", "subject", ["class_id"])
    op.create_table(
        "chapter",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subject.id"]),
    )
    op.create_index("idx_chapter_subject_id", "chapter", ["subject_id"])
    op.create_table(
        "student",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["class_id"], ["class.id"]),
    )
    op.create_table(
        "mcq",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("chapter_id", sa.String(length=36), nullable=True),
        sa.Column(
            "format", sa.Enum("long", "short", name="mcq_formats"), nullable=False
        ),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("correct_option", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapter.id"]),
    )
    op.create_table(
        "long_form_video",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("chapter_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("video_url", sa.String(length=500), nullable=True),
        sa.Column("total_time_seconds", sa.Float(), nullable=False),
        sa.Column("checkpoints", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapter.id"]),
    )
    op.create_index(
        "idx_long_form_video_chapter_id", "long_form_video", ["chapter_id"]
    )
    op.create_table(
        "short_form_content",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("chapter_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=500), nullable=True),
        sa.Column("sequence", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapter.id"]),
    )
    op.create_index(
        "idx_short_form_content_chapter_id", "short_form_content", ["chapter_id"]
    )
    op.create_table(
        "mock_test",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column(
            "difficulty",
            sa.Enum("easy", "moderate", "hard", name="mock_test_difficulties"),
            nullable=False,
        ),
        sa.Column("timer", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["subject_id"], ["subject.id"]),
    )
    op.create_index("idx_mock_test_subject_id", "mock_test", ["subject_id"])
    op.create_table(
        "mock_test_mcq",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("mock_test_id", sa.String(length=36), nullable=False),
        sa.Column("mcq_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("timer", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["mock_test_id"], ["mock_test.id"]),
        sa.ForeignKeyConstraint(["mcq_id"], ["mcq.id"]),
        sa.UniqueConstraint("mock_test_id", "mcq_id", name="uq_mock_test_mcq"),
    )

    op.create_table(
        "video_progress",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("video_id", sa.String(length=36), nullable=False),
        sa.Column("chapter_id", sa.String(length=36), nullable=False),
        sa.Column("resume_time", sa.Float(), nullable=False),
        sa.Column("total_time", sa.Float(), nullable=False),
        sa.Column("progress_percent", sa.Float(), nullable=False),
        sa.Column("is_watched", sa.Boolean(), nullable=False),
        sa.Column("mcqs_attempted", sa.Integer(), nullable=False),
        sa.Column("correct_mcqs", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "video_id", "chapter_id", name="uq_video_progress_key"
        ),
    )
    op.create_index(
        "idx_video_progress_user_chapter", "video_progress", ["user_id", "chapter_id"]
    )
    op.create_table(
        "short_form_progress",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("short_form_id", sa.String(length=36), nullable=False),
        sa.Column("chapter_id", sa.String(length=36), nullable=False),
        sa.Column("watched_clip_indexes", sa.JSON(), nullable=False),
        sa.Column("attempted_mcq_ids", sa.JSON(), nullable=False),
        sa.Column("mcq_attempts", sa.JSON(), nullable=False),
        sa.Column("total_mcqs_attempted", sa.Integer(), nullable=False),
        sa.Column("correct_count", sa.Integer(), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), nullable=False),
        sa.Column("is_watched", sa.Boolean(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id",
            "short_form_id",
            "chapter_id",
            name="uq_short_form_progress_key",
        ),
    )
    op.create_index(
        "idx_short_form_progress_user_chapter",
        "short_form_progress",
        ["user_id", "chapter_id"],
    )
    op.create_table(
        "mock_test_attempt",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("mock_test_id", sa.String(length=36), nullable=False),
        sa.Column("is_attempted", sa.Boolean(), nullable=False),
        sa.Column("mcq_attempts", sa.JSON(), nullable=False),
        sa.Column("total_mcqs_attempted", sa.Integer(), nullable=False),
        sa.Column("correct_count", sa.Integer(), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "mock_test_id", "subject_id", name="uq_mock_test_attempt_key"
        ),
    )
    op.create_index(
        "idx_mock_test_attempt_user_subject",
        "mock_test_attempt",
        ["user_id", "subject_id"],
    )


def downgrade():
    op.drop_index("idx_mock_test_attempt_user_subject", table_name="mock_test_attempt")
    op.drop_table("mock_test_attempt")
    op.drop_index(
        "idx_short_form_progress_user_chapter", table_name="short_form_progress"
    )
    op.drop_table("short_form_progress")
    op.drop_index("idx_video_progress_user_chapter", table_name="video_progress")
    op.drop_table("video_progress")
    op.drop_table("mock_test_mcq")
    op.drop_index("idx_mock_test_subject_id", table_name="mock_test")
    op.drop_table("mock_test")
    op.drop_index("idx_short_form_content_chapter_id", table_name="short_form_content")
    op.drop_table("short_form_content")
    op.drop_index("idx_long_form_video_chapter_id", table_name="long_form_video")
    op.drop_table("long_form_video")
    op.drop_table("mcq")
    op.drop_table("student")
    op.drop_index("idx_chapter_subject_id", table_name="chapter")
    op.drop_table("chapter")
    op.drop_index("idx_subject_class_id", table_name="subject")
    op.drop_table("subject")
    op.drop_table("class")
