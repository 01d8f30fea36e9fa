"""Assembly of the results view consumed by presentation layers.

Combines the immutable score result with optional benchmark context. The
percentile rank is an estimate interpolated from the benchmark quartiles:
linear within each quartile band, clamped to [1, 99].
"""

from __future__ import annotations

from typing import Optional

from scorecard.logic.scoring import round_half_up
from scorecard.models.benchmark import Benchmarks, BenchmarkStats
from scorecard.models.response_types import ResultsView
from scorecard.models.score_types import ScoreResult


def _band(pct: float, low: float, high: float, base: float) -> float:
    span = high - low
    if span <= 0:
        return base + 25
    return base + (pct - low) / span * 25


def estimate_percentile_rank(percentage: float, stats: Optional[BenchmarkStats]) -> Optional[int]:
    if stats is None:
        return None
    p25, p50, p75 = stats.percentile_25, stats.median_score, stats.percentile_75
    if percentage <= p25:
        rank = percentage / p25 * 25 if p25 > 0 else 25
    elif percentage <= p50:
        rank = _band(percentage, p25, p50, 25)
    elif percentage <= p75:
        rank = _band(percentage, p50, p75, 50)
    else:
        rank = _band(percentage, p75, 100, 75)
    return min(99, max(1, round_half_up(rank)))


def build_results_view(
    assessment_id: str,
    respondent_id: str,
    score: ScoreResult,
    benchmarks: Optional[Benchmarks],
) -> ResultsView:
    rank = estimate_percentile_rank(score.overall_percentage, benchmarks.overall) if benchmarks else None
    return ResultsView(
        assessment_id=assessment_id,
        respondent_id=respondent_id,
        score=score,
        benchmarks=benchmarks,
        percentile_rank=rank,
    )


__all__ = ["estimate_percentile_rank", "build_results_view"]
