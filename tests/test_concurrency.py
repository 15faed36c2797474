"""Tests for threaded progress reads."""

import pytest

from services import get_progress_service, get_report_service, get_rollup_service
from services.errors import NotFoundError
from utils.concurrency import run_concurrently


@pytest.fixture()
def learner(catalog, user_id):
    klass = catalog.klass()
    catalog.student(klass, user_id=user_id)
    physics = catalog.subject(klass, "Physics")
    chemistry = catalog.subject(klass, "Chemistry")
    motion = catalog.chapter(physics, "Motion")
    catalog.chapter(physics, "Force")
    bonds = catalog.chapter(chemistry, "Bonds")
    mcq = catalog.mcq(motion, correct="A")
    video = catalog.video(motion, total=100)
    catalog.video(bonds, total=100)
    short_form = catalog.short_form(motion, clips=(10, 20), mcqs=[mcq])

    progress = get_progress_service()
    progress.save_video_progress(user_id, video.id, motion.id, 100, 100, 2, 1)
    progress.save_short_form_progress(
        user_id,
        short_form.id,
        motion.id,
        [0, 1],
        [mcq.id],
        [{"mcqId": mcq.id, "selectedOption": "A"}],
    )
    return user_id


def _reports(user_id):
    rollup = get_rollup_service()
    return (
        rollup.video_report(user_id),
        rollup.short_form_report(user_id),
        get_report_service().unified_report(user_id),
    )


def test_parallel_reports_match_sequential(app, learner, monkeypatch):
    sequential = _reports(learner)

    monkeypatch.setitem(app.config, "PARALLEL_PROGRESS_READS", True)
    for _ in range(5):
        assert _reports(learner) == sequential

    video, short_form, unified = sequential
    assert video["overall"]["completedChapters"] == 1
    assert short_form["overall"]["completedChapters"] == 1
    assert unified["overall"]["mcqsAttempted"] == 3


def test_results_keep_call_order(app, monkeypatch):
    monkeypatch.setitem(app.config, "PARALLEL_PROGRESS_READS", True)
    assert run_concurrently(lambda: "a", lambda: "b", lambda: "c") == ["a", "b", "c"]


@pytest.mark.parametrize("parallel", [True, False])
def test_error_in_one_call_reaches_caller(app, monkeypatch, parallel):
    monkeypatch.setitem(app.config, "PARALLEL_PROGRESS_READS", parallel)
    error = NotFoundError("Chapter not found", {"chapterId": "x"})

    def failing():
        raise error

    with pytest.raises(NotFoundError) as excinfo:
        run_concurrently(lambda: [], failing)
    assert excinfo.value is error
