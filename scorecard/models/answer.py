"""Pydantic models for respondent answers.

``AnswerInput`` is what a respondent submits for the current question.
``AnswerDraft`` is the in-memory answer the flow holds per question, with the
points snapshot already taken. ``RecordedAnswer`` is the persisted form, one
per (respondent_id, question_id).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnswerInput(BaseModel):
    selected_option_ids: List[str] = Field(default_factory=list)
    open_text: Optional[str] = None
    # Numeric position for sliding_scale / rating_scale questions
    value: Optional[int] = None


class AnswerDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_option_ids: tuple[str, ...] = ()
    open_text: Optional[str] = None
    points_awarded: int = 0

    def is_empty(self) -> bool:
        """True when nothing was selected and the free text is blank."""
        if self.selected_option_ids:
            return False
        return not (self.open_text or "").strip()

    def is_single_selection(self) -> bool:
        return len(self.selected_option_ids) == 1


class RecordedAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    respondent_id: str
    question_id: str
    selected_option_ids: tuple[str, ...] = ()
    open_text: Optional[str] = None
    points_awarded: int = 0
    answered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnswerUpsertModel(BaseModel):
    """Payload accepted by the answer route for the session's current question."""

    question_id: Optional[str] = None
    selected_option_ids: List[str] = Field(default_factory=list)
    open_text: Optional[str] = None
    value: Optional[int] = None

    def to_input(self) -> AnswerInput:
        return AnswerInput(
            selected_option_ids=list(self.selected_option_ids),
            open_text=self.open_text,
            value=self.value,
        )


__all__ = ["AnswerInput", "AnswerDraft", "RecordedAnswer", "AnswerUpsertModel"]
