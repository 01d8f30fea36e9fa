"""Pydantic models for API response bodies."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from scorecard.models.benchmark import Benchmarks
from scorecard.models.score_types import ScoreResult


class OptionView(BaseModel):
    id: str
    text: str
    image_url: Optional[str] = None


class QuestionView(BaseModel):
    id: str
    category_id: str
    type: str
    text: str
    help_text: Optional[str] = None
    required: bool
    settings: Dict[str, Any] = {}
    options: List[OptionView] = []


class AnswerView(BaseModel):
    selected_option_ids: List[str]
    open_text: Optional[str] = None
    points_awarded: int


class SegmentView(BaseModel):
    category_id: str
    name: str
    colour: Optional[str] = None
    start_index: int
    end_index: int
    fill: float


class InterstitialView(BaseModel):
    category_id: str
    name: str
    colour: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None


class FlowView(BaseModel):
    session_id: str
    assessment_id: str
    respondent_id: str
    mode: str
    completed: bool
    current_index: int
    total_questions: int
    progress: float
    segments: List[SegmentView]
    question: Optional[QuestionView] = None
    answer: Optional[AnswerView] = None
    interstitial: Optional[InterstitialView] = None
    can_advance: bool
    auto_advance_pending: bool = False
    warnings: List[Dict[str, str]] = []
    last_action: Optional[str] = None


class CatalogView(BaseModel):
    assessment_id: str
    questions: List[QuestionView]
    segments: List[SegmentView]


class ResultsView(BaseModel):
    assessment_id: str
    respondent_id: str
    score: ScoreResult
    benchmarks: Optional[Benchmarks] = None
    percentile_rank: Optional[int] = None


__all__ = [
    "OptionView",
    "QuestionView",
    "AnswerView",
    "SegmentView",
    "InterstitialView",
    "FlowView",
    "CatalogView",
    "ResultsView",
]
