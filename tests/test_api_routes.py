"""Tests for the API blueprint: request handling and error status mapping."""

import uuid

import pytest


@pytest.fixture()
def setup(catalog, user_id):
    klass = catalog.klass()
    catalog.student(klass, user_id=user_id)
    subject = catalog.subject(klass, "Physics")
    chapter = catalog.chapter(subject, "Motion")
    video = catalog.video(chapter, total=200)
    mcq = catalog.mcq(chapter, correct="A")
    short_form = catalog.short_form(chapter, clips=(15,), mcqs=[mcq])
    mock_test = catalog.mock_test(subject, [mcq])
    return {
        "class": klass,
        "subject": subject,
        "chapter": chapter,
        "video": video,
        "mcq": mcq,
        "short_form": short_form,
        "mock_test": mock_test,
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "healthy"
    assert "progress_service" in data["services"]


def test_save_and_fetch_video_progress(client, setup, user_id):
    response = client.put(
        "/api/video-progress",
        json={
            "userId": user_id,
            "videoId": setup["video"].id,
            "chapterId": setup["chapter"].id,
            "resumeTime": 190,
            "totalTime": 200,
        },
    )
    assert response.status_code == 200
    assert response.get_json()["data"]["isWatched"] is True

    response = client.get(f"/api/video-progress/{user_id}/{setup['video'].id}")
    assert response.status_code == 200
    assert len(response.get_json()["data"]) == 1


def test_video_progress_report(client, setup, user_id):
    response = client.get(f"/api/video-progress/report/{user_id}")
    assert response.status_code == 200
    data = response.get_json()
    assert data["overall"]["totalChapters"] == 1
    assert data["subjects"][0]["chapters"][0]["chapterName"] == "Motion"


def test_invalid_body_is_400(client, app):
    response = client.put("/api/video-progress", data="nope", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_argument"


def test_invalid_id_is_400(client, app):
    response = client.get("/api/progress/unified/not-an-id")
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "invalid_argument"
    assert body["details"]["field"] == "userId"


def test_missing_student_is_404(client, app):
    response = client.get(f"/api/progress/unified/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.get_json()["message"] == "Student not found"


def test_mock_test_conflict_is_409(client, setup, user_id):
    payload = {
        "userId": user_id,
        "subjectId": setup["subject"].id,
        "mockTestId": setup["mock_test"].id,
        "mcqAttempts": [{"mcqId": setup["mcq"].id, "selectedOption": "A"}],
    }
    first = client.post("/api/mock-tests/attempts", json=payload)
    assert first.status_code == 201
    assert first.get_json()["data"]["correctCount"] == 1

    second = client.post("/api/mock-tests/attempts", json=payload)
    assert second.status_code == 409
    assert second.get_json()["error"] == "conflict"


def test_mock_test_attempt_status(client, setup, user_id):
    response = client.get(
        "/api/mock-tests/attempt-status",
        query_string={"userId": user_id, "subjectId": setup["subject"].id},
    )
    assert response.status_code == 200
    assert response.get_json()["data"][0]["isAttempted"] is False


def test_short_form_round_trip(client, setup, user_id):
    response = client.put(
        "/api/short-form-progress",
        json={
            "userId": user_id,
            "shortFormId": setup["short_form"].id,
            "chapterId": setup["chapter"].id,
            "watchedClipIndexes": [0],
            "attemptedMcqIds": [setup["mcq"].id],
            "mcqAttempts": [{"mcqId": setup["mcq"].id, "selectedOption": "A"}],
        },
    )
    assert response.status_code == 200
    assert response.get_json()["data"]["isWatched"] is True

    response = client.get(
        f"/api/short-form-progress/{user_id}/{setup['short_form'].id}"
    )
    assert response.status_code == 200

    response = client.get(
        "/api/short-form-progress/attempt-status",
        query_string={"userId": user_id, "chapterId": setup["chapter"].id},
    )
    assert response.get_json()["data"][0]["isAttempted"] is True

    response = client.get(f"/api/short-form-progress/report/{user_id}")
    assert response.get_json()["overall"]["completedChapters"] == 1


def test_rollup_route_with_scope(client, setup, user_id):
    response = client.get(
        f"/api/progress/rollup/video/subject/{setup['subject'].id}/{user_id}"
    )
    assert response.status_code == 200
    assert response.get_json()["overall"]["totalChapters"] == 1

    response = client.get(f"/api/progress/rollup/video/galaxy/{uuid.uuid4()}/{user_id}")
    assert response.status_code == 400


def test_overall_progress_routes(client, setup, user_id):
    class_id = setup["class"].id
    subject_id = setup["subject"].id
    chapter_id = setup["chapter"].id

    response = client.get(f"/api/progress/subjects/{class_id}/{user_id}")
    assert response.get_json() == [
        {"subjectId": subject_id, "subjectName": "Physics", "progress": 0}
    ]
    response = client.get(f"/api/progress/subjects/{subject_id}/{user_id}/overall")
    assert response.get_json() == {"progress": 0}
    response = client.get(f"/api/progress/mock-tests/{subject_id}/{user_id}")
    assert response.get_json() == {"progressPercentage": 0}
    response = client.get(f"/api/progress/short-forms/{chapter_id}/{user_id}")
    assert response.get_json() == {"progressPercentage": 0}


def test_unknown_subject_is_404(client, app, user_id):
    response = client.get(f"/api/progress/mock-tests/{uuid.uuid4()}/{user_id}")
    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_report_keys_keep_insertion_order(client, setup, user_id):
    response = client.get(f"/api/progress/unified/{user_id}")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert body.index('"overall"') < body.index('"subjects"')
    assert body.index('"totalChapters"') < body.index('"accuracyPercentage"')
