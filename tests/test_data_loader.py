"""Tests for catalog loading and seeding."""

import json
import os

from models import Chapter, MockTest, MockTestMcq, ShortFormContent, Student, Subject
from services import get_catalog_loader, get_catalog_service, get_report_service
from utils.data_loader import CatalogLoader

SAMPLE_CATALOG = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "catalog.json"
)
DEMO_USER = "6a1f2d3c-0000-4000-8000-100000000001"


def test_seed_sample_catalog(app):
    counts = CatalogLoader().seed_file(SAMPLE_CATALOG)

    assert counts["classes"] == 1
    assert counts["subjects"] == Subject.query.count() == 2
    assert counts["chapters"] == Chapter.query.count() == 3
    assert ShortFormContent.query.count() == 1
    assert Student.query.filter_by(user_id=DEMO_USER).count() == 1
    assert MockTestMcq.query.count() == 2


def test_seeding_twice_is_stable(app):
    loader = CatalogLoader()
    loader.seed_file(SAMPLE_CATALOG)
    loader.seed_file(SAMPLE_CATALOG)

    assert Subject.query.count() == 2
    assert MockTest.query.count() == 1
    assert MockTestMcq.query.count() == 2
    assert Student.query.count() == 1


def test_seeded_catalog_feeds_reports(app):
    CatalogLoader().seed_file(SAMPLE_CATALOG)

    mock_test = get_catalog_service().get_mock_test("6a1f2d3c-0000-4000-8000-000010000001")
    assert mock_test.total_mcqs == 2

    report = get_report_service().unified_report(DEMO_USER)
    assert report["overall"]["totalChapters"] == 3
    assert report["overall"]["totalMcqs"] == 1


def test_missing_file_returns_none(app, tmp_path):
    assert CatalogLoader(str(tmp_path)).seed_file(str(tmp_path / "absent.json")) is None


def test_invalid_json_returns_none(app, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert CatalogLoader(str(tmp_path)).load_json_file(str(path)) is None


def test_non_object_document_returns_none(app, tmp_path):
    path = tmp_path / "list.json"
    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    assert CatalogLoader(str(tmp_path)).load_json_file(str(path)) is None


def test_factory_loader_reads_catalog_data_directory(app):
    loader = get_catalog_loader()
    assert loader.data_root == os.path.abspath(
        os.path.dirname(app.config["CATALOG_DATA_PATH"])
    )
    assert loader.seed_file("catalog.json")["classes"] == 1
