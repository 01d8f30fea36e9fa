"""Progress indicator arithmetic with an endowed-progress floor.

The displayed progress starts at the floor rather than zero:
``floor + raw * (100 - floor) / 100`` where ``raw`` is the share of
questions already passed.
"""

from __future__ import annotations

from typing import Sequence

from scorecard.logic.segments import Segment

ENDOWED_PROGRESS = 8


def raw_progress(current_index: int, total_questions: int) -> float:
    if total_questions <= 0:
        return 0.0
    return current_index / total_questions * 100


def displayed_progress(current_index: int, total_questions: int, floor: float = ENDOWED_PROGRESS) -> float:
    """Overall progress shown to the respondent; equals ``floor`` at index 0."""
    raw = raw_progress(current_index, total_questions)
    return floor + raw * (100 - floor) / 100


def segment_fills(
    segments: Sequence[Segment],
    current_index: int,
    floor: float = ENDOWED_PROGRESS,
) -> list[float]:
    """Per-segment fill percentages for a segmented progress bar.

    - passed segments read 100;
    - the segment holding ``current_index`` reads its share of questions
      already passed, with the floor applied only when it is the first one;
    - unreached segments read 0, except the first which never drops below
      the floor.
    """
    fills: list[float] = []
    for pos, seg in enumerate(segments):
        is_first = pos == 0
        if current_index >= seg.end_index:
            fill = 100.0
        elif seg.contains(current_index):
            count = seg.question_count
            fill = (current_index - seg.start_index) / count * 100 if count else 0.0
            if is_first:
                fill = floor + fill * (100 - floor) / 100
        else:
            fill = 0.0
        if is_first:
            fill = max(fill, float(floor))
        fills.append(fill)
    return fills


__all__ = ["ENDOWED_PROGRESS", "raw_progress", "displayed_progress", "segment_fills"]
