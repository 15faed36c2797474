"""Progress Service Module

Handles saving and fetching per-item progress for long-form videos and
short-form clip/MCQ sequences.  Completion flags are computed here, at
save time, and stored with the record.
"""

from typing import Any, Dict, List, Optional

from flask import current_app

from models import ShortFormProgress, VideoProgress
from services.catalog_service import CatalogService
from services.completion import VIDEO_WATCHED_THRESHOLD, compute_video_progress
from services.errors import InvalidArgumentError, NotFoundError
from services.progress_store import ProgressStore
from utils.validation import (
    require_count,
    require_id,
    require_id_list,
    require_index_list,
    require_list,
    require_number,
)


class ProgressService:
    """Service class for video and short-form progress records."""

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        store: Optional[ProgressStore] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.store = store or ProgressStore()

    # ============================================================================
    # VIDEO PROGRESS TRACKING
    # ============================================================================

    def save_video_progress(
        self,
        user_id: str,
        video_id: str,
        chapter_id: str,
        resume_time: float,
        total_time: float,
        mcqs_attempted: Optional[int] = None,
        correct_mcqs: Optional[int] = None,
    ) -> VideoProgress:
        """Record the watch position of a video, replacing any earlier save."""
        user_id = require_id(user_id, "userId")
        video_id = require_id(video_id, "videoId")
        chapter_id = require_id(chapter_id, "chapterId")
        resume_time = require_number(resume_time, "resumeTime")
        total_time = require_number(total_time, "totalTime", strictly_positive=True)
        mcqs_attempted = require_count(mcqs_attempted, "mcqsAttempted")
        correct_mcqs = require_count(correct_mcqs, "correctMcqs")
        if correct_mcqs > mcqs_attempted:
            raise InvalidArgumentError(
                "correctMcqs cannot exceed mcqsAttempted", {"field": "correctMcqs"}
            )

        self.catalog.get_chapter(chapter_id)

        threshold = current_app.config.get(
            "VIDEO_WATCHED_THRESHOLD", VIDEO_WATCHED_THRESHOLD
        )
        progress_percent, is_watched = compute_video_progress(
            resume_time, total_time, threshold
        )

        record = self.store.upsert_video_progress(
            {"user_id": user_id, "video_id": video_id, "chapter_id": chapter_id},
            {
                "resume_time": resume_time,
                "total_time": total_time,
                "progress_percent": progress_percent,
                "is_watched": is_watched,
                "mcqs_attempted": mcqs_attempted,
                "correct_mcqs": correct_mcqs,
            },
        )
        current_app.logger.debug(
            "Saved video progress user=%s video=%s %.1f%% watched=%s",
            user_id,
            video_id,
            progress_percent,
            is_watched,
        )
        return record

    def get_video_progress(self, user_id: str, video_id: str) -> List[VideoProgress]:
        """Return every progress record the user has for a video."""
        user_id = require_id(user_id, "userId")
        video_id = require_id(video_id, "videoId")
        return self.store.find_video_progress(user_id, video_id=video_id)

    # ============================================================================
    # SHORT-FORM PROGRESS TRACKING
    # ============================================================================

    def save_short_form_progress(
        self,
        user_id: str,
        short_form_id: str,
        chapter_id: str,
        watched_clip_indexes: Any = None,
        attempted_mcq_ids: Any = None,
        mcq_attempts: Any = None,
    ) -> ShortFormProgress:
        """Record coverage of a short-form sequence.

        Clip indexes and attempted MCQ ids are stored as de-duplicated sets, so
        saving the same coverage twice yields the same record.  ``mcq_attempts``
        replaces the stored attempt history wholesale.
        """
        user_id = require_id(user_id, "userId")
        short_form_id = require_id(short_form_id, "shortFormId")
        chapter_id = require_id(chapter_id, "chapterId")
        watched = require_index_list(watched_clip_indexes, "watchedClipIndexes")
        attempted = require_id_list(attempted_mcq_ids, "attemptedMcqIds")
        raw_attempts = require_list(mcq_attempts, "mcqAttempts", default=[])

        item = self.catalog.get_short_form(short_form_id)
        if item.chapter_id != chapter_id:
            raise InvalidArgumentError(
                "Short form does not belong to this chapter",
                {"shortFormId": short_form_id, "chapterId": chapter_id},
            )

        out_of_range = [index for index in watched if index >= item.total_clips]
        if out_of_range:
            raise InvalidArgumentError(
                "watchedClipIndexes contains indexes outside the sequence",
                {"indexes": out_of_range, "totalClips": item.total_clips},
            )
        unknown = [mcq_id for mcq_id in attempted if mcq_id not in item.mcq_ids]
        if unknown:
            raise InvalidArgumentError(
                "attemptedMcqIds contains MCQs outside the sequence",
                {"mcqIds": unknown},
            )

        processed = self._score_attempts(item.mcq_ids, raw_attempts)
        correct_count = sum(1 for attempt in processed if attempt["isCorrect"])

        total_units = item.total_units
        percentage = (
            (len(watched) + len(attempted)) / total_units * 100 if total_units else 0
        )

        record = self.store.upsert_short_form_progress(
            {
                "user_id": user_id,
                "short_form_id": short_form_id,
                "chapter_id": chapter_id,
            },
            {
                "watched_clip_indexes": watched,
                "attempted_mcq_ids": attempted,
                "mcq_attempts": processed,
                "total_mcqs_attempted": len(processed),
                "correct_count": correct_count,
                "incorrect_count": len(processed) - correct_count,
                "is_watched": item.is_covered(len(watched), len(attempted)),
                "percentage": percentage,
            },
        )
        current_app.logger.debug(
            "Saved short form progress user=%s short_form=%s clips=%s/%s mcqs=%s/%s",
            user_id,
            short_form_id,
            len(watched),
            item.total_clips,
            len(attempted),
            item.total_mcqs,
        )
        return record

    def _score_attempts(
        self, sequence_mcq_ids, raw_attempts: List[Any]
    ) -> List[Dict[str, Any]]:
        """Score submitted answers against the MCQ catalog."""
        known = set(sequence_mcq_ids)
        answers = self.catalog.find_mcq_correct_options(known)
        processed = []
        for raw in raw_attempts:
            if not isinstance(raw, dict):
                raise InvalidArgumentError(
                    "mcqAttempts must contain objects", {"field": "mcqAttempts"}
                )
            mcq_id = require_id(raw.get("mcqId"), "mcqAttempts.mcqId")
            if mcq_id not in known:
                raise InvalidArgumentError(
                    "mcqAttempts contains MCQs outside the sequence",
                    {"mcqId": mcq_id},
                )
            selected = raw.get("selectedOption")
            if not isinstance(selected, str):
                raise InvalidArgumentError(
                    "selectedOption must be a string",
                    {"field": "mcqAttempts.selectedOption"},
                )
            is_correct = answers.get(mcq_id) is not None and selected == answers[mcq_id]
            processed.append(
                {
                    "mcqId": mcq_id,
                    "selectedOption": selected,
                    "isCorrect": is_correct,
                    "incorrectOption": None if is_correct else selected,
                }
            )
        return processed

    def get_short_form_progress(
        self, user_id: str, short_form_id: str
    ) -> ShortFormProgress:
        """Return the user's progress on a short form."""
        user_id = require_id(user_id, "userId")
        short_form_id = require_id(short_form_id, "shortFormId")
        records = self.store.find_short_form_progress(
            user_id, short_form_ids=[short_form_id]
        )
        if not records:
            raise NotFoundError(
                "Progress not found", {"userId": user_id, "shortFormId": short_form_id}
            )
        return records[0]

    def short_form_attempt_status(
        self, user_id: str, chapter_id: str
    ) -> List[Dict[str, Any]]:
        """List a chapter's short forms with whether the user has touched each."""
        user_id = require_id(user_id, "userId")
        chapter = self.catalog.get_chapter(chapter_id)

        short_forms = self.catalog.find_short_forms_by_chapters([chapter.id])
        if not short_forms:
            raise NotFoundError(
                "No short forms found for this chapter", {"chapterId": chapter.id}
            )

        records = self.store.find_short_form_progress(user_id, chapter_ids=[chapter.id])
        attempted = {record.short_form_id for record in records}

        return [
            {
                "shortFormId": item.id,
                "title": item.title,
                "thumbnailUrl": item.thumbnail_url,
                "isAttempted": item.id in attempted,
            }
            for item in short_forms
        ]
