"""Progress Record Store

Reads and upserts the three progress record kinds.  Every record is keyed
by a natural key backed by a unique constraint, and ``upsert_*`` always
replaces all mutable fields of the keyed record; nothing is merged.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from flask import current_app
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import MockTestAttempt, ShortFormProgress, VideoProgress
from services.errors import InternalError

VIDEO_PROGRESS_KEY = ("user_id", "video_id", "chapter_id")
SHORT_FORM_PROGRESS_KEY = ("user_id", "short_form_id", "chapter_id")
MOCK_TEST_ATTEMPT_KEY = ("user_id", "mock_test_id", "subject_id")

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class ProgressStore:
    """Persistence operations for progress records."""

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def _all(self, query, action: str) -> list:
        try:
            return query.all()
        except SQLAlchemyError as exc:
            current_app.logger.exception("Progress read failed while %s: %s", action, exc)
            raise InternalError("Progress store failure", {"action": action}) from exc

    def find_video_progress(
        self,
        user_id: str,
        chapter_ids: Optional[Iterable[str]] = None,
        video_id: Optional[str] = None,
    ) -> List[VideoProgress]:
        query = VideoProgress.query.filter_by(user_id=user_id)
        if chapter_ids is not None:
            query = query.filter(VideoProgress.chapter_id.in_(list(chapter_ids)))
        if video_id is not None:
            query = query.filter_by(video_id=video_id)
        return self._all(
            query.order_by(VideoProgress.updated_at.desc()), "loading video progress"
        )

    def find_short_form_progress(
        self,
        user_id: str,
        chapter_ids: Optional[Iterable[str]] = None,
        short_form_ids: Optional[Iterable[str]] = None,
    ) -> List[ShortFormProgress]:
        query = ShortFormProgress.query.filter_by(user_id=user_id)
        if chapter_ids is not None:
            query = query.filter(ShortFormProgress.chapter_id.in_(list(chapter_ids)))
        if short_form_ids is not None:
            query = query.filter(
                ShortFormProgress.short_form_id.in_(list(short_form_ids))
            )
        return self._all(
            query.order_by(ShortFormProgress.updated_at.desc()),
            "loading short form progress",
        )

    def find_mock_test_attempts(
        self, user_id: str, subject_ids: Optional[Iterable[str]] = None
    ) -> List[MockTestAttempt]:
        query = MockTestAttempt.query.filter_by(user_id=user_id)
        if subject_ids is not None:
            query = query.filter(MockTestAttempt.subject_id.in_(list(subject_ids)))
        return self._all(query, "loading mock test attempts")

    def find_mock_test_attempt(
        self, user_id: str, mock_test_id: str, subject_id: str
    ) -> Optional[MockTestAttempt]:
        results = self._all(
            MockTestAttempt.query.filter_by(
                user_id=user_id, mock_test_id=mock_test_id, subject_id=subject_id
            ).limit(1),
            "loading mock test attempt",
        )
        return results[0] if results else None

    # ------------------------------------------------------------------ #
    # Upserts
    # ------------------------------------------------------------------ #

    def upsert_video_progress(self, key: Dict[str, str], data: Dict) -> VideoProgress:
        return self._upsert(VideoProgress, VIDEO_PROGRESS_KEY, key, data)

    def upsert_short_form_progress(
        self, key: Dict[str, str], data: Dict
    ) -> ShortFormProgress:
        return self._upsert(ShortFormProgress, SHORT_FORM_PROGRESS_KEY, key, data)

    def upsert_mock_test_attempt(
        self, key: Dict[str, str], data: Dict
    ) -> MockTestAttempt:
        return self._upsert(MockTestAttempt, MOCK_TEST_ATTEMPT_KEY, key, data)

    def _upsert(self, model, key_columns, key: Dict[str, str], data: Dict):
        """Insert the keyed record or replace its mutable fields, atomically."""
        key = {column: key[column] for column in key_columns}
        values = dict(data)
        values.update(key)
        values["updated_at"] = datetime.utcnow()

        try:
            dialect = db.session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is not None:
                statement = insert(model.__table__).values(**values)
                statement = statement.on_conflict_do_update(
                    index_elements=list(key_columns),
                    set_={
                        column: statement.excluded[column]
                        for column in values
                        if column not in key
                    },
                )
                db.session.execute(statement)
            else:
                record = (
                    model.query.filter_by(**key).with_for_update().one_or_none()
                )
                if record is None:
                    db.session.add(model(**values))
                else:
                    for column, value in values.items():
                        setattr(record, column, value)
            db.session.commit()
            return model.query.filter_by(**key).one()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception(
                "Failed to upsert %s for %s: %s", model.__tablename__, key, exc
            )
            raise InternalError(
                "Progress store failure", {"record": model.__tablename__}
            ) from exc
