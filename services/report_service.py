"""Report Service Module

Builds the unified course report for a student: long-form and short-form
progress folded into one subject-by-subject view, with course totals taken
from set unions and raw sums.
"""

from typing import Any, Dict, Optional

from flask import current_app

from services.aggregates import ProgressTally, merge_all
from services.catalog_index import Scope
from services.catalog_service import CatalogService
from services.completion import VideoItem
from services.progress_store import ProgressStore
from utils.concurrency import run_concurrently
from utils.validation import require_id


class ReportService:
    """Service class for the cross-format progress report."""

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        store: Optional[ProgressStore] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.store = store or ProgressStore()

    def unified_report(self, user_id: str) -> Dict[str, Any]:
        """Merge video and short-form progress across the student's class.

        Only short-form sequence MCQs make up ``totalMcqs``; MCQs answered at
        video checkpoints still count towards attempted/correct.  A chapter is
        completed by a watched video or by a fully covered short form.
        """
        user_id = require_id(user_id, "userId")
        index = self.catalog.resolve_scope(user_id, Scope.student_class())
        current_app.logger.debug(
            "Building unified report user=%s class=%s", user_id, index.class_id
        )

        short_forms, video_records, short_form_records = run_concurrently(
            lambda: self.catalog.find_short_forms_by_chapters(index.chapter_ids),
            lambda: self.store.find_video_progress(user_id),
            lambda: self.store.find_short_form_progress(user_id),
        )
        short_forms_by_id = {item.id: item for item in short_forms}

        tallies = {
            subject.id: ProgressTally.for_chapters(index.chapters_for(subject.id))
            for subject in index.subjects
        }
        for item in short_forms:
            subject_id = index.subject_for_chapter(item.chapter_id)
            if subject_id is not None:
                tallies[subject_id].total_mcqs += item.total_mcqs

        for record in video_records:
            subject_id = index.subject_for_chapter(record.chapter_id)
            if subject_id is None:
                continue
            tally = tallies[subject_id]
            completion = VideoItem(
                id=record.video_id, chapter_id=record.chapter_id
            ).evaluate(record)
            tally.total_items += 1
            tally.add(completion)
            if completion.is_completed:
                tally.completed_items += 1
                tally.completed_chapters.add(record.chapter_id)

        for record in short_form_records:
            subject_id = index.subject_for_chapter(record.chapter_id)
            item = short_forms_by_id.get(record.short_form_id)
            if subject_id is None or item is None:
                continue
            tally = tallies[subject_id]
            completion = item.evaluate(record)
            tally.total_clips += item.total_clips
            tally.add(completion)
            if completion.is_completed:
                tally.completed_chapters.add(record.chapter_id)

        subjects = []
        for subject in index.subjects:
            tally = tallies[subject.id]
            subjects.append(
                {
                    "subjectId": subject.id,
                    "subjectName": subject.name,
                    "totalChapters": tally.total_chapters,
                    "completedChapters": tally.completed_chapter_count,
                    **self._fields(tally),
                    "progressPercentage": tally.progress_percentage,
                }
            )

        overall = merge_all(tallies.values())
        return {
            "overall": {
                "totalChapters": overall.total_chapters,
                "completedChapters": overall.completed_chapter_count,
                "courseCompletionPercentage": overall.progress_percentage,
                **self._fields(overall),
            },
            "subjects": subjects,
        }

    @staticmethod
    def _fields(tally: ProgressTally) -> Dict[str, Any]:
        # Short-form clips count as videos here, alongside long-form videos.
        return {
            "totalVideos": tally.total_items + tally.total_clips,
            "videosWatched": tally.completed_items + tally.clips_watched,
            "totalMcqs": tally.total_mcqs,
            "mcqsAttempted": tally.mcqs_attempted,
            "correctMcqs": tally.correct_count,
            "incorrectMcqs": tally.incorrect_count,
            "accuracyPercentage": tally.accuracy_percentage,
            "totalWatchTime": tally.watched_time,
            "totalTime": tally.total_time,
        }
