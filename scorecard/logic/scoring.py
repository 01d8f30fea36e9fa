"""Scoring engine.

Turns a respondent's recorded answers, the current catalog and the tier list
into per-category and overall scores. The computation is pure: no I/O, no
clock, and identical inputs always produce an identical ``ScoreResult``.

- ``total_points`` sums the ``points_awarded`` snapshots taken at answer time.
- ``max_points`` is derived from the current catalog, per question kind.
- The overall percentage is points-weighted across categories, never an
  average of category percentages. Categories flagged
  ``include_in_total=False`` are reported but left out of the overall sums.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Sequence

from scorecard.logic.tier_resolver import order_tiers, resolve_tier
from scorecard.models.answer import RecordedAnswer
from scorecard.models.catalog import QuestionCatalog, ScoreTier
from scorecard.models.score_types import CategoryScore, OverallScore, ScoreResult


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def percentage_of(points: int, max_points: int) -> int:
    """Return ``points`` as a whole percentage of ``max_points`` within [0, 100].

    A zero (or negative) maximum yields exactly 0.
    """
    if max_points <= 0:
        return 0
    pct = round_half_up(points / max_points * 100)
    return min(max(pct, 0), 100)


def _answers_by_question(answers: Iterable[RecordedAnswer]) -> Dict[str, RecordedAnswer]:
    # Later entries win so a replayed upsert stream collapses to one per key
    latest: Dict[str, RecordedAnswer] = {}
    for ans in answers:
        latest[ans.question_id] = ans
    return latest


def score_categories(
    catalog: QuestionCatalog,
    answers: Iterable[RecordedAnswer],
    tiers: Sequence[ScoreTier],
) -> List[CategoryScore]:
    """Compute one CategoryScore per catalog category, in category sort_order."""
    by_question = _answers_by_question(answers)
    options = catalog.options_by_question()
    ordered_tiers = order_tiers(tiers)
    scores: List[CategoryScore] = []
    for cat in sorted(catalog.categories, key=lambda c: c.sort_order):
        total = 0
        possible = 0
        for question in catalog.questions:
            if question.category_id != cat.id:
                continue
            possible += question.max_points(options.get(question.id, []))
            recorded = by_question.get(question.id)
            if recorded is not None:
                total += recorded.points_awarded
        pct = percentage_of(total, possible)
        scores.append(
            CategoryScore(
                category_id=cat.id,
                name=cat.name,
                colour=cat.colour,
                include_in_total=cat.include_in_total,
                total_points=total,
                max_points=possible,
                percentage=pct,
                tier=resolve_tier(pct, ordered_tiers),
            )
        )
    return scores


def score_overall(category_scores: Sequence[CategoryScore], tiers: Sequence[ScoreTier]) -> OverallScore:
    """Points-weighted aggregate over the categories that count toward the total."""
    counted = [c for c in category_scores if c.include_in_total]
    total = sum(c.total_points for c in counted)
    possible = sum(c.max_points for c in counted)
    pct = percentage_of(total, possible)
    return OverallScore(
        total_points=total,
        total_max_points=possible,
        percentage=pct,
        tier=resolve_tier(pct, tiers),
    )


def calculate_scores(
    catalog: QuestionCatalog,
    answers: Iterable[RecordedAnswer],
    tiers: Sequence[ScoreTier],
) -> ScoreResult:
    """Compute the full immutable score result for one respondent."""
    categories = score_categories(catalog, answers, tiers)
    overall = score_overall(categories, tiers)
    return ScoreResult(category_scores=tuple(categories), overall=overall)


__all__ = [
    "round_half_up",
    "percentage_of",
    "score_categories",
    "score_overall",
    "calculate_scores",
]
