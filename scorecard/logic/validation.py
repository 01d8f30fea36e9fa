"""Type-aware validation for submitted answers.

Checks that an AnswerInput is coherent with the question kind it targets
before the flow records it. Unknown option ids, multiple picks on a
single-select question and missing numeric values are rejected here so the
per-kind point functions can assume well-formed input.
"""

from __future__ import annotations

from typing import Sequence

from scorecard.models.answer import AnswerInput
from scorecard.models.catalog import AnswerOption
from scorecard.models.question_kind import (
    OPTION_BEARING_KINDS,
    QuestionKind,
)


class AnswerValidationError(ValueError):
    pass


def validate_answer_input(question, answer: AnswerInput, options: Sequence[AnswerOption]) -> None:
    """Raise AnswerValidationError when ``answer`` does not fit ``question``.

    An empty answer (nothing selected, no text, no value) is always accepted;
    it clears the answer, and the next save overwrites the stored one.
    """
    kind = question.type
    if kind in OPTION_BEARING_KINDS:
        if answer.value is not None:
            raise AnswerValidationError(f"value not accepted for {kind} question")
        known = {o.id for o in options}
        unknown = [oid for oid in answer.selected_option_ids if oid not in known]
        if unknown:
            raise AnswerValidationError(f"unknown option ids: {sorted(set(unknown))}")
        if kind != QuestionKind.CHECKBOX_SELECT and len(answer.selected_option_ids) > 1:
            raise AnswerValidationError(f"{kind} accepts a single option")
        return
    if kind in (QuestionKind.SLIDING_SCALE, QuestionKind.RATING_SCALE):
        if answer.selected_option_ids:
            raise AnswerValidationError(f"option ids not accepted for {kind} question; send value")
        if answer.value is None:
            return
        low = question.settings.min if kind == QuestionKind.SLIDING_SCALE else 1
        high = question.settings.max
        if not low <= answer.value <= high:
            raise AnswerValidationError(f"value {answer.value} outside [{low}, {high}]")
        return
    if kind == QuestionKind.OPEN_TEXT:
        if answer.selected_option_ids or answer.value is not None:
            raise AnswerValidationError("open_text accepts only open_text")
        return
    raise AnswerValidationError(f"unsupported question type: {kind}")


__all__ = ["AnswerValidationError", "validate_answer_input"]
