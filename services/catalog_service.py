"""Catalog Service Module

Read-only access to the class → subject → chapter → content hierarchy.
The catalog is owned elsewhere; this service only looks things up, raising
``NotFoundError`` for absent nodes and returning plain value objects so the
aggregation code never touches ORM state.
"""

from typing import Dict, Iterable, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import cache, db
from models import (
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
from services.catalog_index import (
    SCOPE_CHAPTER,
    SCOPE_CLASS,
    SCOPE_LEVELS,
    SCOPE_SUBJECT,
    CatalogIndex,
    ChapterNode,
    Scope,
    SubjectNode,
)
from services.completion import MockTestItem, ShortFormItem, VideoItem
from services.errors import InternalError, InvalidArgumentError, NotFoundError
from utils.validation import require_id


# Class structure is immutable from the core's point of view, so the node
# lists are cached for CACHE_DEFAULT_TIMEOUT seconds.


@cache.memoize()
def _subject_nodes_for_class(class_id: str) -> List[SubjectNode]:
    rows = (
        Subject.query.filter_by(class_id=class_id)
        .order_by(Subject.name.asc(), Subject.id.asc())
        .all()
    )
    return [SubjectNode(row.id, row.name, row.class_id) for row in rows]


@cache.memoize()
def _chapter_nodes_for_subjects(subject_ids: tuple) -> List[ChapterNode]:
    if not subject_ids:
        return []
    rows = (
        Chapter.query.filter(Chapter.subject_id.in_(subject_ids))
        .order_by(Chapter.subject_id.asc(), Chapter.name.asc(), Chapter.id.asc())
        .all()
    )
    return [ChapterNode(row.id, row.name, row.subject_id) for row in rows]


class CatalogService:
    """Lookups against the externally owned catalog."""

    def _wrap_store_error(self, exc: Exception, action: str):
        current_app.logger.exception("Catalog lookup failed while %s: %s", action, exc)
        return InternalError("Catalog store failure", {"action": action})

    # ------------------------------------------------------------------ #
    # Single lookups
    # ------------------------------------------------------------------ #

    def _get(self, model, item_id: str, label: str):
        try:
            item = db.session.get(model, item_id)
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, f"loading {label}") from exc
        if item is None:
            raise NotFoundError(f"{label} not found", {"id": item_id})
        return item

    def get_class(self, class_id: str) -> Class:
        return self._get(Class, require_id(class_id, "classId"), "Class")

    def get_subject(self, subject_id: str) -> SubjectNode:
        subject = self._get(Subject, require_id(subject_id, "subjectId"), "Subject")
        return SubjectNode(subject.id, subject.name, subject.class_id)

    def get_chapter(self, chapter_id: str) -> ChapterNode:
        chapter = self._get(Chapter, require_id(chapter_id, "chapterId"), "Chapter")
        return ChapterNode(chapter.id, chapter.name, chapter.subject_id)

    def get_short_form(self, short_form_id: str) -> ShortFormItem:
        content = self._get(
            ShortFormContent, require_id(short_form_id, "shortFormId"), "Short form"
        )
        return self._short_form_item(content)

    def get_mock_test(self, mock_test_id: str) -> MockTestItem:
        mock_test_id = require_id(mock_test_id, "mockTestId")
        items = self._mock_test_items([self._get(MockTest, mock_test_id, "Mock test")])
        return items[0]

    def find_student_by_user_id(self, user_id: str) -> Student:
        user_id = require_id(user_id, "userId")
        try:
            student = Student.query.filter_by(user_id=user_id).first()
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "loading student") from exc
        if student is None:
            raise NotFoundError("Student not found", {"userId": user_id})
        return student

    # ------------------------------------------------------------------ #
    # Collection lookups
    # ------------------------------------------------------------------ #

    def find_subjects_by_class(self, class_id: str) -> List[SubjectNode]:
        try:
            return list(_subject_nodes_for_class(class_id))
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "listing subjects") from exc

    def find_chapters_by_subjects(self, subject_ids: Iterable[str]) -> List[ChapterNode]:
        key = tuple(sorted(set(subject_ids)))
        try:
            return list(_chapter_nodes_for_subjects(key))
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "listing chapters") from exc

    def find_short_forms_by_chapters(
        self, chapter_ids: Iterable[str]
    ) -> List[ShortFormItem]:
        chapter_ids = list(chapter_ids)
        if not chapter_ids:
            return []
        try:
            rows = (
                ShortFormContent.query.filter(
                    ShortFormContent.chapter_id.in_(chapter_ids)
                )
                .order_by(ShortFormContent.title.asc(), ShortFormContent.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "listing short forms") from exc
        return [self._short_form_item(row) for row in rows]

    def find_videos_by_chapters(self, chapter_ids: Iterable[str]) -> List[VideoItem]:
        chapter_ids = list(chapter_ids)
        if not chapter_ids:
            return []
        try:
            rows = LongFormVideo.query.filter(
                LongFormVideo.chapter_id.in_(chapter_ids)
            ).all()
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "listing videos") from exc
        return [
            VideoItem(
                id=row.id,
                chapter_id=row.chapter_id,
                total_time=row.total_time_seconds or 0,
                checkpoint_mcq_ids=tuple(
                    str(point["mcqId"])
                    for point in row.checkpoints or []
                    if point.get("mcqId")
                ),
                title=row.title,
            )
            for row in rows
        ]

    def find_mock_tests_by_subjects(
        self, subject_ids: Iterable[str]
    ) -> List[MockTestItem]:
        subject_ids = list(subject_ids)
        if not subject_ids:
            return []
        try:
            rows = (
                MockTest.query.filter(MockTest.subject_id.in_(subject_ids))
                .order_by(MockTest.title.asc(), MockTest.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "listing mock tests") from exc
        return self._mock_test_items(rows)

    def find_mcq_correct_options(self, mcq_ids: Iterable[str]) -> Dict[str, str]:
        mcq_ids = list(mcq_ids)
        if not mcq_ids:
            return {}
        try:
            rows = (
                db.session.query(Mcq.id, Mcq.correct_option)
                .filter(Mcq.id.in_(mcq_ids))
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "resolving MCQ answers") from exc
        return {mcq_id: option for mcq_id, option in rows}

    # ------------------------------------------------------------------ #
    # Scope resolution
    # ------------------------------------------------------------------ #

    def build_index(self, class_id: str) -> CatalogIndex:
        """Return the index for every subject and chapter of ``class_id``."""
        subjects = self.find_subjects_by_class(class_id)
        chapters = self.find_chapters_by_subjects([s.id for s in subjects])
        return CatalogIndex.build(class_id, subjects, chapters)

    def resolve_scope(self, user_id: str, scope: Scope) -> CatalogIndex:
        """Resolve ``scope`` into a catalog subtree for ``user_id``."""
        if scope.level not in SCOPE_LEVELS:
            raise InvalidArgumentError(
                f"Unknown scope '{scope.level}'", {"scope": scope.level}
            )

        if scope.level == SCOPE_CLASS:
            if scope.id is None:
                class_id = self.find_student_by_user_id(user_id).class_id
            else:
                class_id = self.get_class(scope.id).id
            index = self.build_index(class_id)
            if not index.subjects:
                raise NotFoundError(
                    "No subjects found for this class", {"classId": class_id}
                )
            return index

        if scope.level == SCOPE_SUBJECT:
            subject = self.get_subject(scope.id)
            chapters = self.find_chapters_by_subjects([subject.id])
            return CatalogIndex.build(subject.class_id, [subject], chapters)

        chapter = self.get_chapter(scope.id)
        subject = self.get_subject(chapter.subject_id)
        return CatalogIndex.build(subject.class_id, [subject], [chapter])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _short_form_item(content: ShortFormContent) -> ShortFormItem:
        return ShortFormItem.from_sequence(
            content.id,
            content.chapter_id,
            content.sequence,
            title=content.title,
            thumbnail_url=content.thumbnail_url,
        )

    def _mock_test_items(self, tests: List[MockTest]) -> List[MockTestItem]:
        """Attach ``(mcq_id, correct_option)`` pairs to each test in one query."""
        if not tests:
            return []
        test_ids = [test.id for test in tests]
        try:
            rows = (
                db.session.query(
                    MockTestMcq.mock_test_id, MockTestMcq.mcq_id, Mcq.correct_option
                )
                .join(Mcq, Mcq.id == MockTestMcq.mcq_id)
                .filter(MockTestMcq.mock_test_id.in_(test_ids))
                .order_by(MockTestMcq.mock_test_id, MockTestMcq.position)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._wrap_store_error(exc, "resolving mock test MCQs") from exc

        answers: Dict[str, list] = {test_id: [] for test_id in test_ids}
        for mock_test_id, mcq_id, correct_option in rows:
            answers[mock_test_id].append((mcq_id, correct_option))

        return [
            MockTestItem(
                id=test.id,
                subject_id=test.subject_id,
                title=test.title,
                mcqs=tuple(answers[test.id]),
            )
            for test in tests
        ]


def scope_from_path(level: str, scope_id: Optional[str]) -> Scope:
    """Build a ``Scope`` from boundary input, validating the level."""
    level = (level or "").strip().lower()
    if level not in SCOPE_LEVELS:
        raise InvalidArgumentError(f"Unknown scope '{level}'", {"scope": level})
    if level == SCOPE_CHAPTER:
        return Scope.chapter(scope_id)
    if level == SCOPE_SUBJECT:
        return Scope.subject(scope_id)
    return Scope.student_class(scope_id)
