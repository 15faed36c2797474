"""Rollup Service Module

Per-kind progress reports (long-form video, short-form, mock test) folded
chapter → subject → overall over a resolved catalog scope, plus the
single-number overall-progress helpers used by dashboard cards.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional

from flask import current_app

from services.aggregates import ProgressTally, merge_all
from services.catalog_index import SCOPE_CHAPTER, CatalogIndex, Scope
from services.catalog_service import CatalogService
from services.completion import MockTestItem, VideoItem
from services.errors import InvalidArgumentError
from services.progress_store import ProgressStore
from utils.concurrency import run_concurrently
from utils.formatting import percentage, round_half_up
from utils.validation import require_id

KIND_VIDEO = "video"
KIND_SHORT_FORM = "short_form"
KIND_MOCK_TEST = "mock_test"
REPORT_KINDS = (KIND_VIDEO, KIND_SHORT_FORM, KIND_MOCK_TEST)


class RollupService:
    """Service class for per-kind chapter/subject progress roll-ups."""

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        store: Optional[ProgressStore] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.store = store or ProgressStore()

    def rollup(self, user_id: str, scope: Scope, kind: str) -> Dict[str, Any]:
        """Build the ``kind`` report for ``user_id`` over ``scope``."""
        kind = (kind or "").strip().lower().replace("-", "_")
        if kind == KIND_VIDEO:
            return self.video_report(user_id, scope)
        if kind == KIND_SHORT_FORM:
            return self.short_form_report(user_id, scope)
        if kind == KIND_MOCK_TEST:
            return self.mock_test_report(user_id, scope)
        raise InvalidArgumentError(
            f"Unknown report kind '{kind}'", {"kind": kind, "allowed": list(REPORT_KINDS)}
        )

    def _resolve(self, user_id: str, scope: Optional[Scope], kind: str):
        user_id = require_id(user_id, "userId")
        scope = scope or Scope.student_class()
        current_app.logger.debug(
            "Building %s report user=%s scope=%s:%s", kind, user_id, scope.level, scope.id
        )
        return user_id, self.catalog.resolve_scope(user_id, scope)

    # ============================================================================
    # LONG-FORM VIDEO
    # ============================================================================

    def video_report(self, user_id: str, scope: Optional[Scope] = None) -> Dict[str, Any]:
        """Chapter-completion report over long-form videos.

        A chapter is completed once any of its videos is watched.
        """
        user_id, index = self._resolve(user_id, scope, KIND_VIDEO)

        videos, records = run_concurrently(
            lambda: self.catalog.find_videos_by_chapters(index.chapter_ids),
            lambda: self.store.find_video_progress(user_id, chapter_ids=index.chapter_ids),
        )
        videos_by_id = {video.id: video for video in videos}

        chapter_tallies = {
            chapter_id: ProgressTally.for_chapters([chapter_id])
            for chapter_id in index.chapter_ids
        }
        for video in videos:
            tally = chapter_tallies.get(video.chapter_id)
            if tally is not None:
                tally.total_items += 1

        for record in records:
            tally = chapter_tallies.get(record.chapter_id)
            if tally is None:
                continue
            item = videos_by_id.get(record.video_id) or VideoItem(
                id=record.video_id, chapter_id=record.chapter_id
            )
            completion = item.evaluate(record)
            tally.add(completion)
            if completion.is_completed:
                tally.completed_items += 1
                tally.completed_chapters.add(record.chapter_id)

        return self._chapter_report(index, chapter_tallies, self._video_fields)

    @staticmethod
    def _video_fields(tally: ProgressTally) -> Dict[str, Any]:
        return {
            "totalVideos": tally.total_items,
            "videosWatched": tally.completed_items,
            "totalWatchedTime": tally.watched_time,
            "totalTime": tally.total_time,
            **tally.mcq_summary(),
        }

    # ============================================================================
    # SHORT-FORM
    # ============================================================================

    def short_form_report(
        self, user_id: str, scope: Optional[Scope] = None
    ) -> Dict[str, Any]:
        """Chapter-completion report over short-form sequences.

        A chapter is completed when the distinct clips and MCQs the user
        covered reach the totals of *all* short forms in that chapter.
        """
        user_id, index = self._resolve(user_id, scope, KIND_SHORT_FORM)

        items, records = run_concurrently(
            lambda: self.catalog.find_short_forms_by_chapters(index.chapter_ids),
            lambda: self.store.find_short_form_progress(
                user_id, chapter_ids=index.chapter_ids
            ),
        )
        items_by_id = {item.id: item for item in items}

        chapter_tallies = {
            chapter_id: ProgressTally.for_chapters([chapter_id])
            for chapter_id in index.chapter_ids
        }
        for item in items:
            tally = chapter_tallies.get(item.chapter_id)
            if tally is not None:
                tally.total_items += 1
                tally.total_clips += item.total_clips
                tally.total_mcqs += item.total_mcqs

        for record in records:
            item = items_by_id.get(record.short_form_id)
            if item is None:
                current_app.logger.debug(
                    "Skipping progress for unknown short form %s", record.short_form_id
                )
                continue
            tally = chapter_tallies.get(item.chapter_id)
            if tally is None:
                continue
            completion = item.evaluate(record)
            tally.add(completion)
            if completion.is_completed:
                tally.completed_items += 1

        for chapter_id, tally in chapter_tallies.items():
            units = tally.total_clips + tally.total_mcqs
            if (
                units > 0
                and tally.clips_watched >= tally.total_clips
                and tally.mcqs_attempted >= tally.total_mcqs
            ):
                tally.completed_chapters.add(chapter_id)

        return self._chapter_report(index, chapter_tallies, self._short_form_fields)

    @staticmethod
    def _short_form_fields(tally: ProgressTally) -> Dict[str, Any]:
        return {
            "totalShortForms": tally.total_items,
            "shortFormsCompleted": tally.completed_items,
            "totalClips": tally.total_clips,
            "clipsWatched": tally.clips_watched,
            "totalMcqs": tally.total_mcqs,
            "totalWatchedTime": tally.watched_time,
            "totalTime": tally.total_time,
            "coveragePercentage": tally.coverage_percentage,
            **tally.mcq_summary(),
        }

    # ============================================================================
    # SHARED CHAPTER FOLDING
    # ============================================================================

    def _chapter_report(
        self, index: CatalogIndex, chapter_tallies: Dict[str, ProgressTally], fields
    ) -> Dict[str, Any]:
        names = index.chapter_names()
        subject_reports = []
        subject_tallies = []
        for subject in index.subjects:
            chapter_ids = index.chapters_for(subject.id)
            tally = merge_all(chapter_tallies[cid] for cid in chapter_ids)
            subject_tallies.append(tally)
            subject_reports.append(
                {
                    "subjectId": subject.id,
                    "subjectName": subject.name,
                    **self._completion_fields(tally),
                    **fields(tally),
                    "chapters": [
                        {
                            "chapterId": cid,
                            "chapterName": names.get(cid),
                            "isCompleted": cid in chapter_tallies[cid].completed_chapters,
                            **fields(chapter_tallies[cid]),
                        }
                        for cid in chapter_ids
                    ],
                }
            )

        overall = merge_all(subject_tallies)
        return {
            "overall": {**self._completion_fields(overall), **fields(overall)},
            "subjects": subject_reports,
        }

    @staticmethod
    def _completion_fields(tally: ProgressTally) -> Dict[str, Any]:
        return {
            "totalChapters": tally.total_chapters,
            "completedChapters": tally.completed_chapter_count,
            "progressPercentage": tally.progress_percentage,
        }

    # ============================================================================
    # MOCK TESTS
    # ============================================================================

    def mock_test_report(
        self, user_id: str, scope: Optional[Scope] = None
    ) -> Dict[str, Any]:
        """MCQ-coverage report over mock tests, per subject.

        Progress is attempted MCQs over the MCQs of every mock test in the
        subject; accuracy is correct over attempted across attempts.
        """
        if scope is not None and scope.level == SCOPE_CHAPTER:
            raise InvalidArgumentError(
                "Mock tests are reported per subject, not per chapter",
                {"scope": scope.level},
            )
        user_id, index = self._resolve(user_id, scope, KIND_MOCK_TEST)

        mock_tests, attempts = run_concurrently(
            lambda: self.catalog.find_mock_tests_by_subjects(index.subject_ids),
            lambda: self.store.find_mock_test_attempts(
                user_id, subject_ids=index.subject_ids
            ),
        )
        tests_by_subject = defaultdict(list)
        for test in mock_tests:
            tests_by_subject[test.subject_id].append(test)
        attempts_by_subject = defaultdict(dict)
        for attempt in attempts:
            attempts_by_subject[attempt.subject_id][attempt.mock_test_id] = attempt

        subject_reports = []
        subject_tallies = []
        for subject in index.subjects:
            tests = tests_by_subject[subject.id]
            subject_attempts = attempts_by_subject[subject.id]

            tally = ProgressTally(total_items=len(tests))
            tally.total_mcqs = sum(test.total_mcqs for test in tests)
            for attempt in subject_attempts.values():
                # Attempts still count when their mock test left the catalog.
                item = MockTestItem(id=attempt.mock_test_id, subject_id=subject.id)
                tally.add(item.evaluate(attempt))
                tally.completed_items += 1
            subject_tallies.append(tally)

            subject_reports.append(
                {
                    "subjectId": subject.id,
                    "subjectName": subject.name,
                    **self._mock_test_fields(tally),
                    "mockTests": [
                        {
                            "mockTestId": test.id,
                            "title": test.title,
                            "totalMcqs": test.total_mcqs,
                            "isAttempted": test.id in subject_attempts,
                            "mcqsAttempted": (
                                subject_attempts[test.id].total_mcqs_attempted or 0
                                if test.id in subject_attempts
                                else 0
                            ),
                        }
                        for test in tests
                    ],
                }
            )

        return {
            "overall": self._mock_test_fields(merge_all(subject_tallies)),
            "subjects": subject_reports,
        }

    @staticmethod
    def _mock_test_fields(tally: ProgressTally) -> Dict[str, Any]:
        return {
            "totalMockTests": tally.total_items,
            "attemptedMockTests": tally.completed_items,
            "totalMcqs": tally.total_mcqs,
            **tally.mcq_summary(),
            "progressPercentage": percentage(tally.mcqs_attempted, tally.total_mcqs),
        }

    # ============================================================================
    # OVERALL PROGRESS HELPERS
    # ============================================================================

    def subjects_progress_by_class(
        self, class_id: str, user_id: str
    ) -> List[Dict[str, Any]]:
        """Average video progress of each subject of a class."""
        user_id = require_id(user_id, "userId")
        klass = self.catalog.get_class(class_id)
        index = self.catalog.build_index(klass.id)
        if not index.subjects:
            return []

        records = self.store.find_video_progress(user_id, chapter_ids=index.chapter_ids)
        chapter_progress = self._chapter_video_progress(records)

        return [
            {
                "subjectId": subject.id,
                "subjectName": subject.name,
                "progress": self._mean_chapter_progress(
                    index.chapters_for(subject.id), chapter_progress
                ),
            }
            for subject in index.subjects
        ]

    def subject_overall_progress(self, subject_id: str, user_id: str) -> Dict[str, int]:
        user_id = require_id(user_id, "userId")
        subject = self.catalog.get_subject(subject_id)
        chapter_ids = [c.id for c in self.catalog.find_chapters_by_subjects([subject.id])]
        if not chapter_ids:
            return {"progress": 0}
        records = self.store.find_video_progress(user_id, chapter_ids=chapter_ids)
        return {
            "progress": self._mean_chapter_progress(
                chapter_ids, self._chapter_video_progress(records)
            )
        }

    @staticmethod
    def _chapter_video_progress(records) -> Dict[str, float]:
        """Mean ``progress_percent`` of the user's videos, per chapter."""
        sums: Dict[str, List[float]] = defaultdict(list)
        for record in records:
            sums[record.chapter_id].append(record.progress_percent or 0)
        return {chapter_id: sum(values) / len(values) for chapter_id, values in sums.items()}

    @staticmethod
    def _mean_chapter_progress(chapter_ids, chapter_progress: Dict[str, float]) -> int:
        if not chapter_ids:
            return 0
        total = sum(chapter_progress.get(chapter_id, 0) for chapter_id in chapter_ids)
        return round_half_up(total / len(chapter_ids))

    def mock_test_overall_progress(self, subject_id: str, user_id: str) -> Dict[str, int]:
        user_id = require_id(user_id, "userId")
        subject = self.catalog.get_subject(subject_id)
        tests = self.catalog.find_mock_tests_by_subjects([subject.id])
        if not tests:
            return {"progressPercentage": 0}
        attempts = self.store.find_mock_test_attempts(user_id, subject_ids=[subject.id])
        attempted = sum(attempt.total_mcqs_attempted or 0 for attempt in attempts)
        total = sum(test.total_mcqs for test in tests)
        return {"progressPercentage": percentage(attempted, total)}

    def short_form_overall_progress(self, chapter_id: str, user_id: str) -> Dict[str, int]:
        user_id = require_id(user_id, "userId")
        chapter = self.catalog.get_chapter(chapter_id)
        items = self.catalog.find_short_forms_by_chapters([chapter.id])
        if not items:
            return {"progressPercentage": 0}
        records = self.store.find_short_form_progress(
            user_id, short_form_ids=[item.id for item in items]
        )
        tally = ProgressTally(
            total_clips=sum(item.total_clips for item in items),
            total_mcqs=sum(item.total_mcqs for item in items),
        )
        items_by_id = {item.id: item for item in items}
        for record in records:
            tally.add(items_by_id[record.short_form_id].evaluate(record))
        return {"progressPercentage": tally.coverage_percentage}
