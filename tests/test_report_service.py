"""Tests for the unified long-form + short-form report."""

import uuid

import pytest

from services import get_progress_service, get_report_service
from services.errors import InvalidArgumentError, NotFoundError


@pytest.fixture()
def school(catalog, user_id):
    klass = catalog.klass()
    catalog.student(klass, user_id=user_id)
    return klass


def _subject_entry(report, subject_id):
    return next(s for s in report["subjects"] if s["subjectId"] == subject_id)


def test_chapter_completed_by_short_form_alone(catalog, school, user_id):
    subject = catalog.subject(school)
    chapter = catalog.chapter(subject, "Short only")
    catalog.chapter(subject, "Untouched")
    mcq = catalog.mcq(chapter, correct="B")
    content = catalog.short_form(chapter, clips=(20, 40), mcqs=[mcq])
    get_progress_service().save_short_form_progress(
        user_id,
        content.id,
        chapter.id,
        [0, 1],
        [mcq.id],
        [{"mcqId": mcq.id, "selectedOption": "B"}],
    )

    report = get_report_service().unified_report(user_id)
    entry = _subject_entry(report, subject.id)
    assert entry["completedChapters"] == 1
    assert entry["progressPercentage"] == 50
    assert entry["totalVideos"] == 2
    assert entry["videosWatched"] == 2
    assert entry["totalMcqs"] == 1
    assert entry["totalWatchTime"] == 60
    assert report["overall"]["courseCompletionPercentage"] == 50


def test_video_and_short_form_on_same_chapter_count_once(catalog, school, user_id):
    subject = catalog.subject(school)
    chapter = catalog.chapter(subject)
    video = catalog.video(chapter, total=100)
    content = catalog.short_form(chapter, clips=(10,))
    progress = get_progress_service()
    progress.save_video_progress(user_id, video.id, chapter.id, 100, 100)
    progress.save_short_form_progress(user_id, content.id, chapter.id, [0], [], [])

    report = get_report_service().unified_report(user_id)
    assert report["overall"]["completedChapters"] == 1
    assert report["overall"]["totalChapters"] == 1
    # One long-form video plus one short-form clip.
    assert report["overall"]["totalVideos"] == 2
    assert report["overall"]["videosWatched"] == 2


def test_video_checkpoint_mcqs_count_in_numerators_only(catalog, school, user_id):
    subject = catalog.subject(school)
    chapter = catalog.chapter(subject)
    video = catalog.video(chapter, total=100)
    get_progress_service().save_video_progress(
        user_id, video.id, chapter.id, 40, 100, mcqs_attempted=4, correct_mcqs=3
    )

    entry = _subject_entry(get_report_service().unified_report(user_id), subject.id)
    assert entry["totalMcqs"] == 0
    assert entry["mcqsAttempted"] == 4
    assert entry["correctMcqs"] == 3
    assert entry["incorrectMcqs"] == 1
    assert entry["accuracyPercentage"] == 75
    assert entry["completedChapters"] == 0


def test_overall_accuracy_from_raw_sums(catalog, school, user_id):
    physics = catalog.subject(school, "Physics")
    chemistry = catalog.subject(school, "Chemistry")
    p_chapter = catalog.chapter(physics)
    c_chapter = catalog.chapter(chemistry)
    p_video = catalog.video(p_chapter)
    c_video = catalog.video(c_chapter)
    progress = get_progress_service()
    # Physics 1/1 correct (100%), chemistry 1/9 correct (11%).
    progress.save_video_progress(user_id, p_video.id, p_chapter.id, 10, 600, 1, 1)
    progress.save_video_progress(user_id, c_video.id, c_chapter.id, 10, 600, 9, 1)

    report = get_report_service().unified_report(user_id)
    assert _subject_entry(report, physics.id)["accuracyPercentage"] == 100
    assert _subject_entry(report, chemistry.id)["accuracyPercentage"] == 11
    # 2 correct of 10 attempted; averaging subjects would give 56.
    assert report["overall"]["accuracyPercentage"] == 20


def test_progress_outside_class_is_ignored(catalog, school, user_id):
    subject = catalog.subject(school)
    catalog.chapter(subject)
    elsewhere = catalog.chapter(catalog.subject(catalog.klass("Other")))
    video = catalog.video(elsewhere)
    get_progress_service().save_video_progress(user_id, video.id, elsewhere.id, 600, 600)

    report = get_report_service().unified_report(user_id)
    assert report["overall"]["totalVideos"] == 0
    assert report["overall"]["completedChapters"] == 0


def test_missing_student(app):
    with pytest.raises(NotFoundError):
        get_report_service().unified_report(str(uuid.uuid4()))


def test_no_subjects(school, user_id):
    with pytest.raises(NotFoundError):
        get_report_service().unified_report(user_id)


def test_malformed_user_id(app):
    with pytest.raises(InvalidArgumentError):
        get_report_service().unified_report("12345")
