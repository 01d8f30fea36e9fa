"""Catalog models: categories, questions, answer options and score tiers.

Questions form a tagged union discriminated on ``type``. Each variant carries
its own settings and knows two things about scoring:

- ``max_points(options)``: the most the question can contribute to its
  category, computed from the *current* catalog;
- ``record(answer, options)``: the in-memory draft for a submitted answer,
  including the ``points_awarded`` snapshot taken at answer time.

Catalog objects are configuration and are never mutated by the flow or the
scoring engine.
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from scorecard.models.answer import AnswerDraft, AnswerInput
from scorecard.models.question_kind import (
    QuestionKind,
    RATING_SELECTION_TOKEN,
    SCALE_SELECTION_TOKEN,
)


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    sort_order: int = 0
    colour: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None
    include_in_total: bool = True


class AnswerOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    question_id: str
    text: str
    points: int = 0
    sort_order: int = 0
    image_url: Optional[str] = None


class ScoreTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    label: str
    min_pct: int
    max_pct: int
    colour: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0

    def contains(self, percentage: int) -> bool:
        return self.min_pct <= percentage <= self.max_pct


class ScaleSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int = 0
    max: int = 10
    min_label: Optional[str] = None
    max_label: Optional[str] = None


class RatingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max: int = 5


class TextSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    multiline: bool = False
    placeholder: Optional[str] = None


class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category_id: str
    text: str
    help_text: Optional[str] = None
    required: bool = False
    sort_order: int = 0

    def max_points(self, options: Sequence[AnswerOption]) -> int:  # pragma: no cover - overridden
        raise NotImplementedError

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:  # pragma: no cover - overridden
        raise NotImplementedError


class _SingleSelectQuestion(_QuestionBase):
    def max_points(self, options: Sequence[AnswerOption]) -> int:
        if not options:
            return 0
        return max(o.points for o in options)

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:
        selected = tuple(answer.selected_option_ids[:1])
        points = 0
        if selected:
            by_id = {o.id: o for o in options}
            opt = by_id.get(selected[0])
            points = opt.points if opt is not None else 0
        return AnswerDraft(selected_option_ids=selected, points_awarded=points)


class MultipleChoiceQuestion(_SingleSelectQuestion):
    type: Literal["multiple_choice"] = QuestionKind.MULTIPLE_CHOICE


class YesNoQuestion(_SingleSelectQuestion):
    type: Literal["yes_no"] = QuestionKind.YES_NO


class ImageSelectQuestion(_SingleSelectQuestion):
    type: Literal["image_select"] = QuestionKind.IMAGE_SELECT


class CheckboxSelectQuestion(_QuestionBase):
    type: Literal["checkbox_select"] = QuestionKind.CHECKBOX_SELECT

    def max_points(self, options: Sequence[AnswerOption]) -> int:
        # Several boxes may be ticked, so every positive option counts
        return sum(o.points for o in options if o.points > 0)

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:
        # Keep submission order, drop duplicates
        selected = tuple(dict.fromkeys(answer.selected_option_ids))
        chosen = set(selected)
        points = sum(o.points for o in options if o.id in chosen)
        return AnswerDraft(selected_option_ids=selected, points_awarded=points)


class SlidingScaleQuestion(_QuestionBase):
    type: Literal["sliding_scale"] = QuestionKind.SLIDING_SCALE
    settings: ScaleSettings = Field(default_factory=ScaleSettings)

    def max_points(self, options: Sequence[AnswerOption]) -> int:
        return max(self.settings.max, 0)

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:
        if answer.value is None:
            return AnswerDraft()
        value = min(max(int(answer.value), self.settings.min), self.settings.max)
        return AnswerDraft(selected_option_ids=(SCALE_SELECTION_TOKEN,), points_awarded=value)


class RatingScaleQuestion(_QuestionBase):
    type: Literal["rating_scale"] = QuestionKind.RATING_SCALE
    settings: RatingSettings = Field(default_factory=RatingSettings)

    def max_points(self, options: Sequence[AnswerOption]) -> int:
        return max(self.settings.max, 0)

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:
        if answer.value is None:
            return AnswerDraft()
        value = min(max(int(answer.value), 1), self.settings.max)
        return AnswerDraft(selected_option_ids=(RATING_SELECTION_TOKEN,), points_awarded=value)


class OpenTextQuestion(_QuestionBase):
    type: Literal["open_text"] = QuestionKind.OPEN_TEXT
    settings: TextSettings = Field(default_factory=TextSettings)

    def max_points(self, options: Sequence[AnswerOption]) -> int:
        return 0

    def record(self, answer: AnswerInput, options: Sequence[AnswerOption]) -> AnswerDraft:
        return AnswerDraft(open_text=answer.open_text, points_awarded=0)


Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        YesNoQuestion,
        ImageSelectQuestion,
        CheckboxSelectQuestion,
        SlidingScaleQuestion,
        RatingScaleQuestion,
        OpenTextQuestion,
    ],
    Field(discriminator="type"),
]


class QuestionCatalog(BaseModel):
    """Ordered categories, questions and options for one assessment."""

    model_config = ConfigDict(frozen=True)

    assessment_id: str
    categories: List[Category] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    options: List[AnswerOption] = Field(default_factory=list)

    def category(self, category_id: str) -> Optional[Category]:
        for cat in self.categories:
            if cat.id == category_id:
                return cat
        return None

    def options_for(self, question_id: str) -> List[AnswerOption]:
        return sorted(
            (o for o in self.options if o.question_id == question_id),
            key=lambda o: o.sort_order,
        )

    def options_by_question(self) -> Dict[str, List[AnswerOption]]:
        grouped: Dict[str, List[AnswerOption]] = {}
        for opt in sorted(self.options, key=lambda o: o.sort_order):
            grouped.setdefault(opt.question_id, []).append(opt)
        return grouped

    def sorted_questions(self) -> list:
        """Questions ordered by category sort_order, then question sort_order.

        Questions whose category is unknown sort as category order 0. Ties fall
        back to the question id so the order is deterministic.
        """
        cat_order = {c.id: c.sort_order for c in self.categories}
        return sorted(
            self.questions,
            key=lambda q: (cat_order.get(q.category_id, 0), q.sort_order, q.id),
        )


__all__ = [
    "Category",
    "AnswerOption",
    "ScoreTier",
    "ScaleSettings",
    "RatingSettings",
    "TextSettings",
    "MultipleChoiceQuestion",
    "YesNoQuestion",
    "ImageSelectQuestion",
    "CheckboxSelectQuestion",
    "SlidingScaleQuestion",
    "RatingScaleQuestion",
    "OpenTextQuestion",
    "Question",
    "QuestionCatalog",
]
