"""API Routes Blueprint

Handles all API endpoints: progress saves and fetches for long-form videos,
short-form sequences and mock tests, plus the progress reports built from
them.
"""

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from services import (
    get_mock_test_service,
    get_progress_service,
    get_report_service,
    get_rollup_service,
)
from services.catalog_index import Scope
from services.catalog_service import scope_from_path
from services.errors import InternalError, InvalidArgumentError, ProgressError

# Create the Blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")

ERROR_STATUS = {
    "invalid_argument": 400,
    "not_found": 404,
    "conflict": 409,
    "internal": 500,
}


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return data


# ============================================================================
# ERROR HANDLING
# ============================================================================


@api_bp.errorhandler(ProgressError)
def handle_progress_error(error: ProgressError):
    status = ERROR_STATUS.get(error.kind, 500)
    if status >= 500:
        current_app.logger.error("API request failed: %s", error.message)
    return jsonify(error.to_dict()), status


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    if isinstance(error, HTTPException):
        return error
    current_app.logger.exception("Unhandled error in %s", request.path)
    return jsonify(InternalError().to_dict()), 500


# ============================================================================
# LONG-FORM VIDEO PROGRESS
# ============================================================================


@api_bp.route("/video-progress", methods=["PUT", "POST"])
def save_video_progress():
    """Save the watch position of a long-form video."""
    data = _json_body()
    record = get_progress_service().save_video_progress(
        data.get("userId"),
        data.get("videoId"),
        data.get("chapterId"),
        data.get("resumeTime"),
        data.get("totalTime"),
        mcqs_attempted=data.get("mcqsAttempted"),
        correct_mcqs=data.get("correctMcqs"),
    )
    return jsonify({"message": "Progress saved", "data": record.to_dict()})


@api_bp.route("/video-progress/<user_id>/<video_id>")
def get_video_progress(user_id, video_id):
    records = get_progress_service().get_video_progress(user_id, video_id)
    if not records:
        return jsonify({"message": "No progress found", "data": []})
    return jsonify({"data": [record.to_dict() for record in records]})


@api_bp.route("/video-progress/report/<user_id>")
def video_progress_report(user_id):
    """Long-form video report for the student's class."""
    return jsonify(get_rollup_service().video_report(user_id))


# ============================================================================
# SHORT-FORM PROGRESS
# ============================================================================


@api_bp.route("/short-form-progress", methods=["PUT", "POST"])
def save_short_form_progress():
    """Save clip and MCQ coverage of a short-form sequence."""
    data = _json_body()
    record = get_progress_service().save_short_form_progress(
        data.get("userId"),
        data.get("shortFormId"),
        data.get("chapterId"),
        watched_clip_indexes=data.get("watchedClipIndexes"),
        attempted_mcq_ids=data.get("attemptedMcqIds"),
        mcq_attempts=data.get("mcqAttempts"),
    )
    return jsonify({"message": "Progress saved", "data": record.to_dict()})


@api_bp.route("/short-form-progress/attempt-status")
def short_form_attempt_status():
    status = get_progress_service().short_form_attempt_status(
        request.args.get("userId"), request.args.get("chapterId")
    )
    return jsonify({"data": status})


@api_bp.route("/short-form-progress/report/<user_id>")
def short_form_report(user_id):
    """Short-form report for the student's class."""
    return jsonify(get_rollup_service().short_form_report(user_id))


@api_bp.route("/short-form-progress/<user_id>/<short_form_id>")
def get_short_form_progress(user_id, short_form_id):
    record = get_progress_service().get_short_form_progress(user_id, short_form_id)
    return jsonify({"message": "Progress fetched", "data": record.to_dict()})


# ============================================================================
# MOCK TESTS
# ============================================================================


@api_bp.route("/mock-tests/attempts", methods=["POST"])
def record_mock_test_attempt():
    """Score and store a batch of mock test answers."""
    data = _json_body()
    attempt = get_mock_test_service().record_attempt(
        data.get("userId"),
        data.get("subjectId"),
        data.get("mockTestId"),
        data.get("mcqAttempts"),
    )
    return (
        jsonify({"message": "Mock test attempt saved", "data": attempt.to_dict()}),
        201,
    )


@api_bp.route("/mock-tests/attempts/<user_id>/<subject_id>/<mock_test_id>")
def get_mock_test_attempt(user_id, subject_id, mock_test_id):
    attempt = get_mock_test_service().get_attempt(user_id, subject_id, mock_test_id)
    return jsonify({"data": attempt.to_dict()})


@api_bp.route("/mock-tests/attempt-status")
def mock_test_attempt_status():
    status = get_mock_test_service().attempt_status_by_subject(
        request.args.get("userId"), request.args.get("subjectId")
    )
    return jsonify({"data": status})


@api_bp.route("/mock-tests/report/<user_id>")
def mock_test_report(user_id):
    """Mock test report for the student's class."""
    return jsonify(get_rollup_service().mock_test_report(user_id))


# ============================================================================
# REPORTS AND OVERALL PROGRESS
# ============================================================================


@api_bp.route("/progress/unified/<user_id>")
def unified_report(user_id):
    """Combined long-form and short-form report."""
    return jsonify(get_report_service().unified_report(user_id))


@api_bp.route("/progress/rollup/<kind>/<user_id>")
@api_bp.route("/progress/rollup/<kind>/<level>/<scope_id>/<user_id>")
def rollup_report(kind, user_id, level=None, scope_id=None):
    """Per-kind report over a chapter, subject or class scope."""
    scope = scope_from_path(level, scope_id) if level else Scope.student_class()
    return jsonify(get_rollup_service().rollup(user_id, scope, kind))


@api_bp.route("/progress/subjects/<class_id>/<user_id>")
def subjects_progress_by_class(class_id, user_id):
    return jsonify(get_rollup_service().subjects_progress_by_class(class_id, user_id))


@api_bp.route("/progress/subjects/<subject_id>/<user_id>/overall")
def subject_overall_progress(subject_id, user_id):
    return jsonify(get_rollup_service().subject_overall_progress(subject_id, user_id))


@api_bp.route("/progress/mock-tests/<subject_id>/<user_id>")
def mock_test_overall_progress(subject_id, user_id):
    return jsonify(get_rollup_service().mock_test_overall_progress(subject_id, user_id))


@api_bp.route("/progress/short-forms/<chapter_id>/<user_id>")
def short_form_overall_progress(chapter_id, user_id):
    return jsonify(get_rollup_service().short_form_overall_progress(chapter_id, user_id))
