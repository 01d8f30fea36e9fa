"""Immutable score result types produced by the scoring engine."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from scorecard.models.catalog import ScoreTier


class CategoryScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    category_id: str
    name: str
    colour: Optional[str] = None
    include_in_total: bool = True
    total_points: int
    max_points: int
    percentage: int
    tier: Optional[ScoreTier] = None


class OverallScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_points: int
    total_max_points: int
    percentage: int
    tier: Optional[ScoreTier] = None


class ScoreResult(BaseModel):
    """Output contract for presentation and report consumers.

    Consumers must treat this as read-only; the model is frozen and the
    category scores are a tuple.
    """

    model_config = ConfigDict(frozen=True)

    category_scores: tuple[CategoryScore, ...]
    overall: OverallScore

    @property
    def overall_percentage(self) -> int:
        return self.overall.percentage

    @property
    def overall_tier(self) -> Optional[ScoreTier]:
        return self.overall.tier


__all__ = ["CategoryScore", "OverallScore", "ScoreResult"]
