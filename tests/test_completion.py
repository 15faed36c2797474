"""Tests for per-item completion predicates."""

from types import SimpleNamespace

import pytest

from services.completion import (
    MockTestItem,
    ShortFormItem,
    VideoItem,
    compute_video_progress,
    evaluate,
)


def _short_form():
    sequence = [
        {"type": "clip", "duration": 10},
        {"type": "mcq", "mcqId": "m1"},
        {"type": "clip", "duration": 20},
        {"type": "clip", "duration": 30},
        {"type": "mcq", "mcqId": "m2"},
    ]
    return ShortFormItem.from_sequence("sf", "ch", sequence)


def _sf_record(indexes=(), mcq_ids=(), correct=0, incorrect=0):
    return SimpleNamespace(
        watched_clip_indexes=list(indexes),
        attempted_mcq_ids=list(mcq_ids),
        correct_count=correct,
        incorrect_count=incorrect,
    )


@pytest.mark.parametrize(
    "resume,total,expected_watched",
    [(95, 100, True), (94.9, 100, False), (0, 100, False), (120, 100, True)],
)
def test_video_watched_threshold(resume, total, expected_watched):
    percent, watched = compute_video_progress(resume, total)
    assert watched is expected_watched
    assert 0 <= percent <= 100


def test_video_progress_clamped_past_end():
    percent, watched = compute_video_progress(150, 100)
    assert percent == 100.0
    assert watched is True


def test_video_progress_non_positive_total():
    assert compute_video_progress(10, 0) == (0.0, False)


def test_video_item_uses_stored_flag():
    item = VideoItem(id="v", chapter_id="ch", total_time=100)
    record = SimpleNamespace(
        is_watched=True, resume_time=97, total_time=100, mcqs_attempted=3, correct_mcqs=2
    )
    completion = item.evaluate(record)
    assert completion.is_completed
    assert completion.watched_time == 97
    assert completion.incorrect_count == 1


def test_absent_record_is_not_completed():
    assert not VideoItem(id="v", chapter_id="ch").evaluate(None).is_completed
    assert not evaluate(_short_form(), None).is_completed
    assert not MockTestItem(id="t", subject_id="s").evaluate(None).is_completed


def test_short_form_clip_indexes_address_clips_only():
    item = _short_form()
    assert item.total_clips == 3
    assert item.total_mcqs == 2
    assert item.clip_durations == (10, 20, 30)


def test_short_form_full_coverage_in_any_order():
    item = _short_form()
    completion = item.evaluate(_sf_record(indexes=[2, 0, 1], mcq_ids=["m2", "m1"]))
    assert completion.is_completed
    assert completion.watched_time == 60
    assert completion.total_time == 60


def test_short_form_partial_progress_still_contributes():
    item = _short_form()
    completion = item.evaluate(_sf_record(indexes=[1], mcq_ids=["m1"], correct=1))
    assert not completion.is_completed
    assert completion.clips_watched == 1
    assert completion.watched_time == 20
    assert completion.mcqs_attempted == 1
    assert completion.correct_count == 1


def test_short_form_ignores_unknown_units():
    item = _short_form()
    completion = item.evaluate(_sf_record(indexes=[0, 1, 2, 7], mcq_ids=["m1", "zz"]))
    assert completion.clips_watched == 3
    assert completion.mcqs_attempted == 1
    assert not completion.is_completed


def test_empty_short_form_is_never_completed():
    item = ShortFormItem.from_sequence("sf", "ch", [])
    assert item.total_units == 0
    assert not item.evaluate(_sf_record()).is_completed


def test_mock_test_attempt_presence_marks_attempted():
    item = MockTestItem(id="t", subject_id="s", mcqs=(("q1", "A"), ("q2", "B")))
    record = SimpleNamespace(total_mcqs_attempted=1, correct_count=0, incorrect_count=1)
    completion = item.evaluate(record)
    assert completion.is_completed
    assert completion.total_mcqs == 2
    assert item.correct_options() == {"q1": "A", "q2": "B"}
