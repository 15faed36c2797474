"""Tests for mock test attempt scoring and duplicate rejection."""

import uuid

import pytest

from models import MockTestAttempt
from services import get_mock_test_service
from services.errors import ConflictError, InvalidArgumentError, NotFoundError


@pytest.fixture()
def mock_setup(catalog):
    klass = catalog.klass()
    subject = catalog.subject(klass, "Physics")
    chapter = catalog.chapter(subject)
    mcqs = [catalog.mcq(chapter, correct=option) for option in ("A", "B", "C")]
    test = catalog.mock_test(subject, mcqs, title="Mock 1")
    return subject, test, mcqs


def _answers(*pairs):
    return [{"mcqId": mcq.id, "selectedOption": option} for mcq, option in pairs]


def test_attempt_is_scored(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    attempt = get_mock_test_service().record_attempt(
        user_id, subject.id, test.id, _answers((mcqs[0], "A"), (mcqs[1], "D"))
    )
    assert attempt.is_attempted is True
    assert attempt.correct_count == 1
    assert attempt.incorrect_count == 1
    assert attempt.total_mcqs_attempted == 2
    assert attempt.mcq_attempts[0]["isCorrect"] is True
    assert attempt.mcq_attempts[1]["incorrectOption"] == "D"


def test_reattempting_an_mcq_conflicts_without_writing(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    service = get_mock_test_service()
    service.record_attempt(user_id, subject.id, test.id, _answers((mcqs[0], "A")))

    with pytest.raises(ConflictError):
        service.record_attempt(
            user_id, subject.id, test.id, _answers((mcqs[1], "B"), (mcqs[0], "B"))
        )

    stored = MockTestAttempt.query.filter_by(user_id=user_id).one()
    assert [a["mcqId"] for a in stored.mcq_attempts] == [mcqs[0].id]
    assert stored.correct_count == 1


def test_new_batch_replaces_stored_attempt(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    service = get_mock_test_service()
    service.record_attempt(user_id, subject.id, test.id, _answers((mcqs[0], "A")))
    attempt = service.record_attempt(
        user_id, subject.id, test.id, _answers((mcqs[1], "B"), (mcqs[2], "A"))
    )

    assert MockTestAttempt.query.filter_by(user_id=user_id).count() == 1
    assert [a["mcqId"] for a in attempt.mcq_attempts] == [mcqs[1].id, mcqs[2].id]
    assert attempt.correct_count == 1
    assert attempt.total_mcqs_attempted == 2


def test_mcq_not_in_mock_test(catalog, mock_setup, user_id):
    subject, test, _ = mock_setup
    stray = catalog.mcq()
    with pytest.raises(InvalidArgumentError):
        get_mock_test_service().record_attempt(
            user_id, subject.id, test.id, _answers((stray, "A"))
        )
    assert MockTestAttempt.query.count() == 0


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "A",
        [{"mcqId": "bad", "selectedOption": "A"}],
        [{"selectedOption": "A"}],
    ],
)
def test_malformed_attempts(mock_setup, user_id, payload):
    subject, test, _ = mock_setup
    with pytest.raises(InvalidArgumentError):
        get_mock_test_service().record_attempt(user_id, subject.id, test.id, payload)


def test_duplicate_mcq_in_one_batch(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    with pytest.raises(InvalidArgumentError):
        get_mock_test_service().record_attempt(
            user_id, subject.id, test.id, _answers((mcqs[0], "A"), (mcqs[0], "B"))
        )


def test_missing_subject_or_mock_test(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    service = get_mock_test_service()
    with pytest.raises(NotFoundError):
        service.record_attempt(user_id, str(uuid.uuid4()), test.id, _answers((mcqs[0], "A")))
    with pytest.raises(NotFoundError):
        service.record_attempt(
            user_id, subject.id, str(uuid.uuid4()), _answers((mcqs[0], "A"))
        )


def test_get_attempt(mock_setup, user_id):
    subject, test, mcqs = mock_setup
    service = get_mock_test_service()
    with pytest.raises(NotFoundError):
        service.get_attempt(user_id, subject.id, test.id)

    service.record_attempt(user_id, subject.id, test.id, _answers((mcqs[2], "C")))
    assert service.get_attempt(user_id, subject.id, test.id).correct_count == 1


def test_attempt_status_by_subject(catalog, mock_setup, user_id):
    subject, test, mcqs = mock_setup
    other = catalog.mock_test(subject, mcqs[:1], title="Mock 2")
    service = get_mock_test_service()
    service.record_attempt(user_id, subject.id, test.id, _answers((mcqs[0], "A")))

    status = service.attempt_status_by_subject(user_id, subject.id)
    assert {s["mockTestId"]: s["isAttempted"] for s in status} == {
        test.id: True,
        other.id: False,
    }
    assert {s["subject"] for s in status} == {"Physics"}
