"""Mock test attempt processing and attempt lookups."""

from typing import Any, Dict, List, Optional

from flask import current_app

from models import MockTestAttempt
from services.catalog_service import CatalogService
from services.errors import ConflictError, InvalidArgumentError, NotFoundError
from services.progress_store import ProgressStore
from utils.validation import require_id, require_list


class MockTestService:
    """Scores mock test submissions and reports attempt state."""

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        store: Optional[ProgressStore] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.store = store or ProgressStore()

    def record_attempt(
        self, user_id: str, subject_id: str, mock_test_id: str, mcq_attempts: Any
    ) -> MockTestAttempt:
        """Score and store a batch of mock test answers.

        Any MCQ already answered in the stored attempt for the same
        (user, mock test, subject) is rejected before anything is written.
        The stored record is then replaced by the scored batch; earlier
        answers are not merged into it.
        """
        user_id = require_id(user_id, "userId")
        subject_id = require_id(subject_id, "subjectId")
        mock_test_id = require_id(mock_test_id, "mockTestId")
        submissions = require_list(mcq_attempts, "mcqAttempts")
        submitted = self._parse_submissions(submissions)

        self.catalog.get_subject(subject_id)
        mock_test = self.catalog.get_mock_test(mock_test_id)

        existing = self.store.find_mock_test_attempt(user_id, mock_test_id, subject_id)
        if existing is not None:
            already = {str(a.get("mcqId")) for a in existing.mcq_attempts or []}
            repeated = [mcq_id for mcq_id, _ in submitted if mcq_id in already]
            if repeated:
                current_app.logger.warning(
                    "Rejected repeated mock test answers user=%s mock_test=%s mcqs=%s",
                    user_id,
                    mock_test_id,
                    repeated,
                )
                raise ConflictError(
                    "One or more MCQs already attempted", {"mcqIds": repeated}
                )

        answers = mock_test.correct_options()
        processed = []
        correct_count = 0
        for mcq_id, selected in submitted:
            if mcq_id not in answers:
                raise InvalidArgumentError(
                    "MCQ is not part of this mock test", {"mcqId": mcq_id}
                )
            is_correct = selected == answers[mcq_id]
            if is_correct:
                correct_count += 1
            processed.append(
                {
                    "mcqId": mcq_id,
                    "selectedOption": selected,
                    "isCorrect": is_correct,
                    "incorrectOption": None if is_correct else selected,
                }
            )

        record = self.store.upsert_mock_test_attempt(
            {"user_id": user_id, "mock_test_id": mock_test_id, "subject_id": subject_id},
            {
                "is_attempted": True,
                "mcq_attempts": processed,
                "correct_count": correct_count,
                "incorrect_count": len(processed) - correct_count,
                "total_mcqs_attempted": len(processed),
            },
        )
        current_app.logger.info(
            "Saved mock test attempt user=%s mock_test=%s correct=%s/%s",
            user_id,
            mock_test_id,
            correct_count,
            len(processed),
        )
        return record

    @staticmethod
    def _parse_submissions(submissions: List[Any]) -> List[tuple]:
        parsed = []
        seen = set()
        for raw in submissions:
            if not isinstance(raw, dict):
                raise InvalidArgumentError(
                    "mcqAttempts must contain objects", {"field": "mcqAttempts"}
                )
            mcq_id = require_id(raw.get("mcqId"), "mcqAttempts.mcqId")
            selected = raw.get("selectedOption")
            if not isinstance(selected, str) or not selected:
                raise InvalidArgumentError(
                    "selectedOption is required",
                    {"field": "mcqAttempts.selectedOption"},
                )
            if mcq_id in seen:
                raise InvalidArgumentError(
                    "MCQ submitted more than once", {"mcqId": mcq_id}
                )
            seen.add(mcq_id)
            parsed.append((mcq_id, selected))
        return parsed

    def get_attempt(
        self, user_id: str, subject_id: str, mock_test_id: str
    ) -> MockTestAttempt:
        user_id = require_id(user_id, "userId")
        subject_id = require_id(subject_id, "subjectId")
        mock_test_id = require_id(mock_test_id, "mockTestId")
        attempt = self.store.find_mock_test_attempt(user_id, mock_test_id, subject_id)
        if attempt is None:
            raise NotFoundError(
                "Attempt not found",
                {"userId": user_id, "subjectId": subject_id, "mockTestId": mock_test_id},
            )
        return attempt

    def attempt_status_by_subject(
        self, user_id: str, subject_id: str
    ) -> List[Dict[str, Any]]:
        """List a subject's mock tests with whether the user attempted each."""
        user_id = require_id(user_id, "userId")
        subject = self.catalog.get_subject(subject_id)

        mock_tests = self.catalog.find_mock_tests_by_subjects([subject.id])
        attempts = self.store.find_mock_test_attempts(user_id, subject_ids=[subject.id])
        attempted = {attempt.mock_test_id for attempt in attempts}

        return [
            {
                "mockTestId": test.id,
                "title": test.title,
                "subject": subject.name,
                "totalMcqs": test.total_mcqs,
                "isAttempted": test.id in attempted,
            }
            for test in mock_tests
        ]
