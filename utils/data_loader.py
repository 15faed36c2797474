"""
CatalogLoader utility for loading catalog documents from JSON files and
seeding them into the database.  Used for development data and tests; the
live catalog is maintained elsewhere.
"""

import json
import os
from typing import Any, Dict, Optional

from flask import current_app

from extensions import db
from models import (
    Chapter,
    Class,
    LongFormVideo,
    Mcq,
    MockTest,
    MockTestMcq,
    ShortFormContent,
    Student,
    Subject,
)


class CatalogLoader:
    """Loads a catalog document and upserts its nodes by id."""

    def __init__(self, data_root_path: Optional[str] = None):
        # Relative roots resolve against the project root (one directory above
        # this utils module) when they don't exist from the working directory.
        data_root_path = data_root_path or "data"
        resolved_root = os.path.abspath(data_root_path)

        if not os.path.exists(resolved_root) and not os.path.isabs(data_root_path):
            module_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
            candidate = os.path.join(module_root, data_root_path)
            if os.path.exists(candidate):
                resolved_root = candidate

        self.data_root = resolved_root

    def resolve_path(self, file_path: str) -> str:
        if os.path.isabs(file_path) or os.path.exists(file_path):
            return file_path
        return os.path.join(self.data_root, os.path.basename(file_path))

    def load_json_file(self, file_path: str) -> Optional[Dict[str, Any]]:
        """
        Load a catalog JSON file and return its contents.

        Returns:
            Dictionary containing the catalog, or None if the file doesn't
            exist or is corrupted
        """
        file_path = self.resolve_path(file_path)
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            current_app.logger.error("Catalog file not found: %s", file_path)
            return None
        except json.JSONDecodeError as e:
            current_app.logger.error("Invalid JSON in catalog file %s: %s", file_path, e)
            return None

        if not isinstance(data, dict):
            current_app.logger.error("Catalog file %s must hold a JSON object", file_path)
            return None
        return data

    def seed(self, catalog: Dict[str, Any]) -> Dict[str, int]:
        """
        Insert or update every node of ``catalog``.

        Args:
            catalog: {"classes": [...], "students": [...]} with subjects,
                chapters and content nested under their parents

        Returns:
            Count of nodes written per kind
        """
        counts = {
            "classes": 0,
            "subjects": 0,
            "chapters": 0,
            "mcqs": 0,
            "videos": 0,
            "shortForms": 0,
            "mockTests": 0,
            "students": 0,
        }

        try:
            for class_data in catalog.get("classes", []):
                db.session.merge(Class(id=class_data["id"], name=class_data["name"]))
                counts["classes"] += 1

                for subject_data in class_data.get("subjects", []):
                    db.session.merge(
                        Subject(
                            id=subject_data["id"],
                            name=subject_data["name"],
                            class_id=class_data["id"],
                        )
                    )
                    counts["subjects"] += 1

                    for chapter_data in subject_data.get("chapters", []):
                        self._seed_chapter(subject_data["id"], chapter_data, counts)

                    db.session.flush()
                    for test_data in subject_data.get("mockTests", []):
                        self._seed_mock_test(subject_data["id"], test_data)
                        counts["mockTests"] += 1

            for student_data in catalog.get("students", []):
                student = Student.query.filter_by(user_id=student_data["userId"]).first()
                if student is None:
                    student = Student(user_id=student_data["userId"])
                    db.session.add(student)
                student.name = student_data.get("name")
                student.class_id = student_data["classId"]
                counts["students"] += 1

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info("Seeded catalog: %s", counts)
        return counts

    def _seed_chapter(self, subject_id: str, data: Dict[str, Any], counts: Dict[str, int]):
        db.session.merge(Chapter(id=data["id"], name=data["name"], subject_id=subject_id))
        counts["chapters"] += 1

        for mcq in data.get("mcqs", []):
            db.session.merge(
                Mcq(
                    id=mcq["id"],
                    chapter_id=data["id"],
                    format=mcq.get("format", "long"),
                    question=mcq["question"],
                    options=mcq.get("options", []),
                    correct_option=mcq["correctOption"],
                )
            )
            counts["mcqs"] += 1

        for video in data.get("videos", []):
            db.session.merge(
                LongFormVideo(
                    id=video["id"],
                    chapter_id=data["id"],
                    title=video.get("title"),
                    video_url=video.get("videoUrl"),
                    total_time_seconds=video.get("totalTimeSeconds", 0),
                    checkpoints=video.get("checkpoints", []),
                )
            )
            counts["videos"] += 1

        for short_form in data.get("shortForms", []):
            db.session.merge(
                ShortFormContent(
                    id=short_form["id"],
                    chapter_id=data["id"],
                    title=short_form["title"],
                    thumbnail_url=short_form.get("thumbnailUrl"),
                    sequence=short_form.get("sequence", []),
                )
            )
            counts["shortForms"] += 1

    def _seed_mock_test(self, subject_id: str, data: Dict[str, Any]):
        mock_test = db.session.merge(
            MockTest(
                id=data["id"],
                subject_id=subject_id,
                title=data["title"],
                difficulty=data.get("difficulty", "moderate"),
                timer=data.get("timer"),
            )
        )
        linked = {link.mcq_id for link in mock_test.mcqs}
        for position, entry in enumerate(data.get("mcqs", [])):
            if entry["mcqId"] in linked:
                continue
            mock_test.mcqs.append(
                MockTestMcq(mcq_id=entry["mcqId"], position=position, timer=entry.get("timer"))
            )

    def seed_file(self, file_path: str) -> Optional[Dict[str, int]]:
        catalog = self.load_json_file(file_path)
        if catalog is None:
            return None
        return self.seed(catalog)
