"""Segment helpers for the sorted question sequence.

A segment is a contiguous run of questions sharing a category. A category
whose questions are not contiguous in the sequence yields several segments;
that is accepted, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from scorecard.models.catalog import Category


@dataclass(frozen=True)
class Segment:
    category_id: str
    name: str
    colour: Optional[str]
    start_index: int
    end_index: int  # exclusive

    @property
    def question_count(self) -> int:
        return self.end_index - self.start_index

    def contains(self, index: int) -> bool:
        return self.start_index <= index < self.end_index


def compute_segments(sequence: Sequence, categories: Sequence[Category]) -> list[Segment]:
    """Group the sorted question sequence into contiguous category runs.

    Walks the sequence once. Unknown categories still form a segment, named
    after their id.
    """
    by_id = {c.id: c for c in categories}
    segments: list[Segment] = []
    start = 0
    for idx in range(1, len(sequence) + 1):
        at_end = idx == len(sequence)
        if at_end or sequence[idx].category_id != sequence[start].category_id:
            cat_id = sequence[start].category_id
            cat = by_id.get(cat_id)
            segments.append(
                Segment(
                    category_id=cat_id,
                    name=cat.name if cat is not None else cat_id,
                    colour=cat.colour if cat is not None else None,
                    start_index=start,
                    end_index=idx,
                )
            )
            start = idx
    return segments


def segment_index_for(segments: Sequence[Segment], index: int) -> int:
    """Return the position of the segment containing ``index``, or -1."""
    for pos, seg in enumerate(segments):
        if seg.contains(index):
            return pos
    return -1


def needs_interstitial(segments: Sequence[Segment], prev_index: int, next_index: int) -> bool:
    """True when moving forward from ``prev_index`` crosses into a later segment.

    Backward moves never qualify, and the first segment never gets an
    interstitial.
    """
    if next_index <= prev_index:
        return False
    src = segment_index_for(segments, prev_index)
    dst = segment_index_for(segments, next_index)
    return dst > src and dst > 0


__all__ = ["Segment", "compute_segments", "segment_index_for", "needs_interstitial"]
