"""Shared fixtures: in-memory database, test client and catalog builders."""

import os
import sys
import uuid

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_TYPE"] = "NullCache"
os.environ["PARALLEL_PROGRESS_READS"] = "false"
os.environ.setdefault("FLASK_KEY", "test-secret")

from app import app as flask_app  # noqa: E402
from extensions import db  # noqa: E402
from models import (  # noqa: E402
    Chapter,
    Class,
    LongFormVideo,
    Mcq,
    MockTest,
    MockTestMcq,
    ShortFormContent,
    Student,
    Subject,
)


def new_id() -> str:
    return str(uuid.uuid4())


class CatalogBuilder:
    """Creates catalog rows with sensible defaults and commits each one."""

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def klass(self, name="Class 10"):
        return self._save(Class(id=new_id(), name=name))

    def subject(self, klass, name="Physics"):
        return self._save(Subject(id=new_id(), name=name, class_id=klass.id))

    def chapter(self, subject, name="Chapter"):
        return self._save(Chapter(id=new_id(), name=name, subject_id=subject.id))

    def student(self, klass, user_id=None):
        return self._save(
            Student(id=new_id(), user_id=user_id or new_id(), class_id=klass.id)
        )

    def mcq(self, chapter=None, correct="A", fmt="short"):
        return self._save(
            Mcq(
                id=new_id(),
                chapter_id=chapter.id if chapter else None,
                format=fmt,
                question="Question?",
                options=["A", "B", "C", "D"],
                correct_option=correct,
            )
        )

    def video(self, chapter, total=600, title="Video"):
        return self._save(
            LongFormVideo(
                id=new_id(),
                chapter_id=chapter.id,
                title=title,
                total_time_seconds=total,
                checkpoints=[],
            )
        )

    def short_form(self, chapter, clips=(30, 45), mcqs=(), title="Short form"):
        sequence = [{"type": "clip", "duration": d, "clipUrl": "c.mp4"} for d in clips]
        sequence += [{"type": "mcq", "mcqId": m.id, "timer": 20} for m in mcqs]
        return self._save(
            ShortFormContent(
                id=new_id(),
                chapter_id=chapter.id,
                title=title,
                thumbnail_url="thumb.jpg",
                sequence=sequence,
            )
        )

    def mock_test(self, subject, mcqs, title="Mock test"):
        test = MockTest(id=new_id(), subject_id=subject.id, title=title)
        for position, mcq in enumerate(mcqs):
            test.mcqs.append(MockTestMcq(mcq_id=mcq.id, position=position))
        return self._save(test)


@pytest.fixture()
def app():
    flask_app.config["TESTING"] = True
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def catalog(app):
    return CatalogBuilder()


@pytest.fixture()
def user_id():
    return new_id()
