"""Completion Predicate Module

Decides, per content item, whether a user's progress record counts as
"completed" and what it contributes to roll-ups.  Each content kind is a
small immutable item type with an ``evaluate(record)`` method, so callers
never branch on which fields a record happens to carry.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set, Tuple

from utils.formatting import clamp_percent

VIDEO_WATCHED_THRESHOLD = 95

CLIP = "clip"
MCQ = "mcq"


@dataclass(frozen=True)
class ItemCompletion:
    """What a single item contributes to chapter/subject totals."""

    is_completed: bool = False
    watched_time: float = 0
    total_time: float = 0
    mcqs_attempted: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    clips_watched: int = 0
    total_clips: int = 0
    total_mcqs: int = 0


def compute_video_progress(
    resume_time: float, total_time: float, threshold: float = VIDEO_WATCHED_THRESHOLD
) -> Tuple[float, bool]:
    """Return ``(progress_percent, is_watched)`` for a watch position.

    ``progress_percent`` is clamped to 100 even when the resume time runs past
    the end of the video.  A non-positive total never counts as watched.
    """
    if not total_time or total_time <= 0:
        return 0.0, False
    raw = resume_time / total_time * 100
    return clamp_percent(raw), raw >= threshold


class ContentItem:
    """Base class for catalog items that can be evaluated against progress."""

    kind = None

    def evaluate(self, record) -> ItemCompletion:
        raise NotImplementedError


@dataclass(frozen=True)
class VideoItem(ContentItem):
    """Long-form video; completion is the ``is_watched`` flag set at save time."""

    id: str
    chapter_id: str
    total_time: float = 0
    checkpoint_mcq_ids: Tuple[str, ...] = ()
    title: Optional[str] = None

    kind = "video"

    def evaluate(self, record) -> ItemCompletion:
        if record is None:
            return ItemCompletion()
        attempted = record.mcqs_attempted or 0
        correct = record.correct_mcqs or 0
        return ItemCompletion(
            is_completed=bool(record.is_watched),
            watched_time=record.resume_time or 0,
            total_time=record.total_time or 0,
            mcqs_attempted=attempted,
            correct_count=correct,
            incorrect_count=max(attempted - correct, 0),
        )


@dataclass(frozen=True)
class ShortFormItem(ContentItem):
    """Short-form clip/MCQ sequence; completion is set coverage, not order.

    Clip indexes address the clip-only sub-list of the sequence, so index 0 is
    the first clip even when the sequence opens with an MCQ.
    """

    id: str
    chapter_id: str
    clip_durations: Tuple[float, ...] = ()
    mcq_ids: Tuple[str, ...] = ()
    title: Optional[str] = None
    thumbnail_url: Optional[str] = None

    kind = "short_form"

    @classmethod
    def from_sequence(cls, id, chapter_id, sequence, title=None, thumbnail_url=None):
        durations = []
        mcq_ids = []
        for step in sequence or []:
            step_type = step.get("type")
            if step_type == CLIP:
                durations.append(step.get("duration") or 0)
            elif step_type == MCQ and step.get("mcqId"):
                mcq_ids.append(str(step["mcqId"]))
        return cls(
            id=id,
            chapter_id=chapter_id,
            clip_durations=tuple(durations),
            mcq_ids=tuple(mcq_ids),
            title=title,
            thumbnail_url=thumbnail_url,
        )

    @property
    def total_clips(self) -> int:
        return len(self.clip_durations)

    @property
    def total_mcqs(self) -> int:
        return len(set(self.mcq_ids))

    @property
    def total_units(self) -> int:
        return self.total_clips + self.total_mcqs

    @property
    def total_duration(self) -> float:
        return sum(self.clip_durations)

    def covered_clips(self, indexes: Iterable[int]) -> Set[int]:
        return {index for index in indexes or [] if 0 <= index < self.total_clips}

    def covered_mcqs(self, mcq_ids: Iterable[str]) -> Set[str]:
        known = set(self.mcq_ids)
        return {str(mcq_id) for mcq_id in mcq_ids or [] if str(mcq_id) in known}

    def is_covered(self, clips_watched: int, mcqs_attempted: int) -> bool:
        # An empty sequence has nothing to complete.
        if self.total_units == 0:
            return False
        return clips_watched >= self.total_clips and mcqs_attempted >= self.total_mcqs

    def evaluate(self, record) -> ItemCompletion:
        if record is None:
            return ItemCompletion(total_clips=self.total_clips, total_mcqs=self.total_mcqs)
        watched = self.covered_clips(record.watched_clip_indexes)
        attempted = self.covered_mcqs(record.attempted_mcq_ids)
        watched_time = sum(self.clip_durations[index] for index in watched)
        return ItemCompletion(
            is_completed=self.is_covered(len(watched), len(attempted)),
            watched_time=watched_time,
            total_time=self.total_duration,
            mcqs_attempted=len(attempted),
            correct_count=record.correct_count or 0,
            incorrect_count=record.incorrect_count or 0,
            clips_watched=len(watched),
            total_clips=self.total_clips,
            total_mcqs=self.total_mcqs,
        )


@dataclass(frozen=True)
class MockTestItem(ContentItem):
    """Mock test; any stored attempt marks it attempted (binary, not partial)."""

    id: str
    subject_id: str
    title: Optional[str] = None
    # ((mcq_id, correct_option), ...) in test order
    mcqs: Tuple[Tuple[str, str], ...] = field(default=())

    kind = "mock_test"

    @property
    def total_mcqs(self) -> int:
        return len(self.mcqs)

    def correct_options(self) -> Dict[str, str]:
        return {mcq_id: option for mcq_id, option in self.mcqs}

    def evaluate(self, record) -> ItemCompletion:
        if record is None:
            return ItemCompletion(total_mcqs=self.total_mcqs)
        return ItemCompletion(
            is_completed=True,
            mcqs_attempted=record.total_mcqs_attempted or 0,
            correct_count=record.correct_count or 0,
            incorrect_count=record.incorrect_count or 0,
            total_mcqs=self.total_mcqs,
        )


def evaluate(item: ContentItem, record) -> ItemCompletion:
    """Apply ``item``'s completion predicate to ``record`` (which may be None)."""
    return item.evaluate(record)
