"""Running totals folded chapter → subject → overall by the report builders."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Set

from services.completion import ItemCompletion
from utils.formatting import percentage


@dataclass
class ProgressTally:
    """Chapter sets plus raw sums; percentages are always derived from sums.

    Item and unit totals (``total_items``, ``total_clips``, ``total_mcqs``)
    come from the catalog and are set by the caller; so is
    ``completed_items``.  ``add`` only folds the sums a record contributes.
    """

    chapters: Set[str] = field(default_factory=set)
    completed_chapters: Set[str] = field(default_factory=set)
    total_items: int = 0
    completed_items: int = 0
    total_clips: int = 0
    clips_watched: int = 0
    total_mcqs: int = 0
    mcqs_attempted: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    watched_time: float = 0
    total_time: float = 0

    @classmethod
    def for_chapters(cls, chapter_ids: Iterable[str]) -> "ProgressTally":
        return cls(chapters=set(chapter_ids))

    def add(self, completion: ItemCompletion) -> None:
        self.clips_watched += completion.clips_watched
        self.mcqs_attempted += completion.mcqs_attempted
        self.correct_count += completion.correct_count
        self.incorrect_count += completion.incorrect_count
        self.watched_time += completion.watched_time
        self.total_time += completion.total_time

    def merge(self, other: "ProgressTally") -> "ProgressTally":
        """Fold ``other`` into this tally; chapter sets are unioned."""
        self.chapters |= other.chapters
        self.completed_chapters |= other.completed_chapters
        self.total_items += other.total_items
        self.completed_items += other.completed_items
        self.total_clips += other.total_clips
        self.clips_watched += other.clips_watched
        self.total_mcqs += other.total_mcqs
        self.mcqs_attempted += other.mcqs_attempted
        self.correct_count += other.correct_count
        self.incorrect_count += other.incorrect_count
        self.watched_time += other.watched_time
        self.total_time += other.total_time
        return self

    @property
    def total_chapters(self) -> int:
        return len(self.chapters)

    @property
    def completed_chapter_count(self) -> int:
        return len(self.completed_chapters & self.chapters)

    @property
    def progress_percentage(self) -> int:
        return percentage(self.completed_chapter_count, self.total_chapters)

    @property
    def accuracy_percentage(self) -> int:
        return percentage(self.correct_count, self.mcqs_attempted)

    @property
    def coverage_percentage(self) -> int:
        return percentage(
            self.clips_watched + self.mcqs_attempted,
            self.total_clips + self.total_mcqs,
        )

    def mcq_summary(self) -> Dict[str, Any]:
        return {
            "mcqsAttempted": self.mcqs_attempted,
            "correctMcqs": self.correct_count,
            "incorrectMcqs": self.incorrect_count,
            "accuracyPercentage": self.accuracy_percentage,
        }


def merge_all(tallies: Iterable[ProgressTally]) -> ProgressTally:
    """Return a fresh tally holding the union/sum of ``tallies``."""
    total = ProgressTally()
    for tally in tallies:
        total.merge(tally)
    return total
