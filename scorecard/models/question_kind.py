"""QuestionKind enumeration for the supported question types.

Provides a simple constants container instead of an Enum to keep imports
lightweight in architectural tests. Kind groupings used by the flow and the
scoring engine live here so both sides agree on them.
"""

from __future__ import annotations


class QuestionKind:
    MULTIPLE_CHOICE = "multiple_choice"
    YES_NO = "yes_no"
    SLIDING_SCALE = "sliding_scale"
    RATING_SCALE = "rating_scale"
    OPEN_TEXT = "open_text"
    CHECKBOX_SELECT = "checkbox_select"
    IMAGE_SELECT = "image_select"


ALL_KINDS: frozenset[str] = frozenset(
    {
        QuestionKind.MULTIPLE_CHOICE,
        QuestionKind.YES_NO,
        QuestionKind.SLIDING_SCALE,
        QuestionKind.RATING_SCALE,
        QuestionKind.OPEN_TEXT,
        QuestionKind.CHECKBOX_SELECT,
        QuestionKind.IMAGE_SELECT,
    }
)

# Kinds whose answer is a single pick; these auto-advance once picked
AUTO_ADVANCE_KINDS: frozenset[str] = frozenset(
    {
        QuestionKind.MULTIPLE_CHOICE,
        QuestionKind.YES_NO,
        QuestionKind.IMAGE_SELECT,
        QuestionKind.RATING_SCALE,
    }
)

# Kinds that carry AnswerOption rows
OPTION_BEARING_KINDS: frozenset[str] = frozenset(
    {
        QuestionKind.MULTIPLE_CHOICE,
        QuestionKind.YES_NO,
        QuestionKind.CHECKBOX_SELECT,
        QuestionKind.IMAGE_SELECT,
    }
)

# Sentinel option ids stored for continuous-input kinds
SCALE_SELECTION_TOKEN = "__scale"
RATING_SELECTION_TOKEN = "__rating"


__all__ = [
    "QuestionKind",
    "ALL_KINDS",
    "AUTO_ADVANCE_KINDS",
    "OPTION_BEARING_KINDS",
    "SCALE_SELECTION_TOKEN",
    "RATING_SELECTION_TOKEN",
]
