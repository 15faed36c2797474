"""Database models for the course catalog and per-student progress records."""

from datetime import datetime
import uuid

from sqlalchemy import Enum
from sqlalchemy.types import JSON

from extensions import db


def _new_id() -> str:
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# ============================================================================
# CATALOG
# ============================================================================


class Class(db.Model):
    """A school class (grade) grouping subjects and students."""

    __tablename__ = "class"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    subjects = db.relationship("Subject", back_populates="class_", lazy=True)
    students = db.relationship("Student", back_populates="class_", lazy=True)

    def __repr__(self) -> str:
        return f"<Class {self.name}>"


class Subject(db.Model):
    """Subject taught in a class."""

    __tablename__ = "subject"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(100), nullable=False)
    class_id = db.Column(db.String(36), db.ForeignKey("class.id"), nullable=False)

    class_ = db.relationship("Class", back_populates="subjects")
    chapters = db.relationship("Chapter", back_populates="subject", lazy=True)

    __table_args__ = (db.Index("idx_subject_class_id", "class_id"),)

    def __repr__(self) -> str:
        return f"<Subject {self.name}>"


class Chapter(db.Model):
    """Catalog unit of content under a subject."""

    __tablename__ = "chapter"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(200), nullable=False)
    subject_id = db.Column(db.String(36), db.ForeignKey("subject.id"), nullable=False)

    subject = db.relationship("Subject", back_populates="chapters")

    __table_args__ = (db.Index("idx_chapter_subject_id", "subject_id"),)

    def __repr__(self) -> str:
        return f"<Chapter {self.name}>"


class Student(db.Model):
    """Student profile linking an application user to a class."""

    __tablename__ = "student"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=True)
    class_id = db.Column(db.String(36), db.ForeignKey("class.id"), nullable=False)

    class_ = db.relationship("Class", back_populates="students")

    def __repr__(self) -> str:
        return f"<Student user:{self.user_id} class:{self.class_id}>"


class Mcq(db.Model):
    """Multiple choice question used by videos, short forms and mock tests."""

    __tablename__ = "mcq"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    chapter_id = db.Column(db.String(36), db.ForeignKey("chapter.id"), nullable=True)
    format = db.Column(
        Enum("long", "short", name="mcq_formats"), nullable=False, default="long"
    )
    question = db.Column(db.Text, nullable=False)
    options = db.Column(JSON, nullable=False, default=list)
    correct_option = db.Column(db.String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Mcq {self.id}>"


class LongFormVideo(db.Model):
    """Long-form chapter video with optional MCQ checkpoints."""

    __tablename__ = "long_form_video"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    chapter_id = db.Column(db.String(36), db.ForeignKey("chapter.id"), nullable=False)
    title = db.Column(db.String(200), nullable=True)
    video_url = db.Column(db.String(500), nullable=True)
    total_time_seconds = db.Column(db.Float, nullable=False, default=0)
    # [{"title", "startTime", "endTime", "mcqId"}]
    checkpoints = db.Column(JSON, nullable=False, default=list)

    __table_args__ = (db.Index("idx_long_form_video_chapter_id", "chapter_id"),)

    def __repr__(self) -> str:
        return f"<LongFormVideo {self.id}>"


class ShortFormContent(db.Model):
    """Ordered sequence of clip and MCQ steps attached to a chapter."""

    __tablename__ = "short_form_content"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    chapter_id = db.Column(db.String(36), db.ForeignKey("chapter.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    thumbnail_url = db.Column(db.String(500), nullable=True)
    # [{"type": "clip", "clipUrl", "duration"} | {"type": "mcq", "mcqId", "timer"}]
    sequence = db.Column(JSON, nullable=False, default=list)

    __table_args__ = (db.Index("idx_short_form_content_chapter_id", "chapter_id"),)

    def __repr__(self) -> str:
        return f"<ShortFormContent {self.title}>"


class MockTest(db.Model):
    """Subject-level mock test made of catalog MCQs."""

    __tablename__ = "mock_test"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    subject_id = db.Column(db.String(36), db.ForeignKey("subject.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    difficulty = db.Column(
        Enum("easy", "moderate", "hard", name="mock_test_difficulties"),
        nullable=False,
        default="moderate",
    )
    timer = db.Column(db.Integer, nullable=True)

    mcqs = db.relationship(
        "MockTestMcq",
        back_populates="mock_test",
        lazy=True,
        order_by="MockTestMcq.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (db.Index("idx_mock_test_subject_id", "subject_id"),)

    def __repr__(self) -> str:
        return f"<MockTest {self.title}>"


class MockTestMcq(db.Model):
    """Link between a mock test and one of its MCQs."""

    __tablename__ = "mock_test_mcq"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    mock_test_id = db.Column(
        db.String(36), db.ForeignKey("mock_test.id"), nullable=False
    )
    mcq_id = db.Column(db.String(36), db.ForeignKey("mcq.id"), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    timer = db.Column(db.Integer, nullable=True)

    mock_test = db.relationship("MockTest", back_populates="mcqs")
    mcq = db.relationship("Mcq")

    __table_args__ = (
        db.UniqueConstraint("mock_test_id", "mcq_id", name="uq_mock_test_mcq"),
    )


# ============================================================================
# PROGRESS RECORDS
# ============================================================================


class VideoProgress(db.Model):
    """Watch position of one long-form video for one user."""

    __tablename__ = "video_progress"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False)
    video_id = db.Column(db.String(36), nullable=False)
    chapter_id = db.Column(db.String(36), nullable=False)
    resume_time = db.Column(db.Float, nullable=False, default=0)
    total_time = db.Column(db.Float, nullable=False)
    progress_percent = db.Column(db.Float, nullable=False, default=0)
    is_watched = db.Column(db.Boolean, nullable=False, default=False)
    mcqs_attempted = db.Column(db.Integer, nullable=False, default=0)
    correct_mcqs = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "video_id", "chapter_id", name="uq_video_progress_key"
        ),
        db.Index("idx_video_progress_user_chapter", "user_id", "chapter_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "videoId": self.video_id,
            "chapterId": self.chapter_id,
            "resumeTime": self.resume_time,
            "totalTime": self.total_time,
            "progress": self.progress_percent,
            "isWatched": bool(self.is_watched),
            "mcqsAttempted": self.mcqs_attempted or 0,
            "correctMcqs": self.correct_mcqs or 0,
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return (
            f"<VideoProgress user:{self.user_id} video:{self.video_id} "
            f"{self.progress_percent}%>"
        )


class ShortFormProgress(db.Model):
    """Coverage of one short-form sequence for one user."""

    __tablename__ = "short_form_progress"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False)
    short_form_id = db.Column(db.String(36), nullable=False)
    chapter_id = db.Column(db.String(36), nullable=False)
    watched_clip_indexes = db.Column(JSON, nullable=False, default=list)
    attempted_mcq_ids = db.Column(JSON, nullable=False, default=list)
    # [{"mcqId", "selectedOption", "isCorrect", "incorrectOption"}]
    mcq_attempts = db.Column(JSON, nullable=False, default=list)
    total_mcqs_attempted = db.Column(db.Integer, nullable=False, default=0)
    correct_count = db.Column(db.Integer, nullable=False, default=0)
    incorrect_count = db.Column(db.Integer, nullable=False, default=0)
    is_watched = db.Column(db.Boolean, nullable=False, default=False)
    percentage = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "short_form_id", "chapter_id", name="uq_short_form_progress_key"
        ),
        db.Index("idx_short_form_progress_user_chapter", "user_id", "chapter_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "shortFormId": self.short_form_id,
            "chapterId": self.chapter_id,
            "watchedClipIndexes": list(self.watched_clip_indexes or []),
            "attemptedMcqIds": list(self.attempted_mcq_ids or []),
            "mcqAttempts": list(self.mcq_attempts or []),
            "totalMcqsAttempted": self.total_mcqs_attempted or 0,
            "correctCount": self.correct_count or 0,
            "incorrectCount": self.incorrect_count or 0,
            "isWatched": bool(self.is_watched),
            "percentage": self.percentage,
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return (
            f"<ShortFormProgress user:{self.user_id} "
            f"short_form:{self.short_form_id}>"
        )


class MockTestAttempt(db.Model):
    """Scored answers of one user for one mock test."""

    __tablename__ = "mock_test_attempt"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), nullable=False)
    subject_id = db.Column(db.String(36), nullable=False)
    mock_test_id = db.Column(db.String(36), nullable=False)
    is_attempted = db.Column(db.Boolean, nullable=False, default=False)
    # [{"mcqId", "selectedOption", "isCorrect", "incorrectOption"}]
    mcq_attempts = db.Column(JSON, nullable=False, default=list)
    total_mcqs_attempted = db.Column(db.Integer, nullable=False, default=0)
    correct_count = db.Column(db.Integer, nullable=False, default=0)
    incorrect_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "mock_test_id", "subject_id", name="uq_mock_test_attempt_key"
        ),
        db.Index("idx_mock_test_attempt_user_subject", "user_id", "subject_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "subjectId": self.subject_id,
            "mockTestId": self.mock_test_id,
            "isAttempted": bool(self.is_attempted),
            "mcqAttempts": list(self.mcq_attempts or []),
            "totalMcqsAttempted": self.total_mcqs_attempted or 0,
            "correctCount": self.correct_count or 0,
            "incorrectCount": self.incorrect_count or 0,
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return (
            f"<MockTestAttempt user:{self.user_id} mock_test:{self.mock_test_id}>"
        )
