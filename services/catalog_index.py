"""Read-only catalog traversal structures built once per aggregation call."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class SubjectNode:
    id: str
    name: str
    class_id: str


@dataclass(frozen=True)
class ChapterNode:
    id: str
    name: str
    subject_id: str


@dataclass
class CatalogIndex:
    """Chapter ↔ subject lookups for one resolved catalog subtree.

    Subjects keep catalog order; a chapter belongs to exactly one subject.
    """

    class_id: Optional[str]
    subjects: List[SubjectNode] = field(default_factory=list)
    chapters: List[ChapterNode] = field(default_factory=list)
    chapter_subject: Dict[str, str] = field(default_factory=dict)
    subject_chapters: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        class_id: Optional[str],
        subjects: Iterable[SubjectNode],
        chapters: Iterable[ChapterNode],
    ) -> "CatalogIndex":
        subjects = list(subjects)
        index = cls(class_id=class_id, subjects=subjects)
        for subject in subjects:
            index.subject_chapters[subject.id] = []
        for chapter in chapters:
            if chapter.subject_id not in index.subject_chapters:
                continue
            if chapter.id in index.chapter_subject:
                continue
            index.chapters.append(chapter)
            index.chapter_subject[chapter.id] = chapter.subject_id
            index.subject_chapters[chapter.subject_id].append(chapter.id)
        return index

    @property
    def subject_ids(self) -> List[str]:
        return [subject.id for subject in self.subjects]

    @property
    def chapter_ids(self) -> List[str]:
        return [chapter.id for chapter in self.chapters]

    def subject_for_chapter(self, chapter_id: Optional[str]) -> Optional[str]:
        if chapter_id is None:
            return None
        return self.chapter_subject.get(str(chapter_id))

    def chapters_for(self, subject_id: str) -> List[str]:
        return self.subject_chapters.get(subject_id, [])

    def chapter_names(self) -> Dict[str, str]:
        return {chapter.id: chapter.name for chapter in self.chapters}


SCOPE_CHAPTER = "chapter"
SCOPE_SUBJECT = "subject"
SCOPE_CLASS = "class"
SCOPE_LEVELS = (SCOPE_CHAPTER, SCOPE_SUBJECT, SCOPE_CLASS)


@dataclass(frozen=True)
class Scope:
    """Part of the catalog a report covers.

    A class scope without an id means "the class of the requesting student".
    """

    level: str
    id: Optional[str] = None

    @classmethod
    def chapter(cls, chapter_id: str) -> "Scope":
        return cls(SCOPE_CHAPTER, chapter_id)

    @classmethod
    def subject(cls, subject_id: str) -> "Scope":
        return cls(SCOPE_SUBJECT, subject_id)

    @classmethod
    def student_class(cls, class_id: Optional[str] = None) -> "Scope":
        return cls(SCOPE_CLASS, class_id)
