"""Score endpoints.

Scores are recomputed on every request from the stored answers and the
current catalog; nothing is cached. Pending save retries of the respondent's
live sessions are flushed first so a late write is not missed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response

from scorecard.config import AppConfig
from scorecard.logic.csv_io import build_score_csv
from scorecard.logic.events import SCORE_CALCULATED, publish
from scorecard.logic.flow_sessions import build_answer_store, drain_respondent_sessions
from scorecard.logic.repository_benchmarks import SqlBenchmarkAdapter
from scorecard.logic.repository_catalog import load_tiers
from scorecard.logic.results_view import build_results_view
from scorecard.logic.scoring import calculate_scores
from scorecard.models.response_types import ResultsView
from scorecard.models.score_types import ScoreResult
from scorecard.routes.catalog import load_catalog_or_problem

logger = logging.getLogger(__name__)

router = APIRouter()


def _score(assessment_id: str, respondent_id: str, cfg: AppConfig) -> ScoreResult:
    catalog = load_catalog_or_problem(assessment_id)
    tiers = load_tiers(assessment_id)
    drain_respondent_sessions(assessment_id, respondent_id)
    answers = build_answer_store(cfg).list_for_respondent(respondent_id)
    result = calculate_scores(catalog, answers, tiers)
    publish(
        SCORE_CALCULATED,
        {
            "assessment_id": assessment_id,
            "respondent_id": respondent_id,
            "overall_percentage": result.overall_percentage,
            "tier": result.overall_tier.label if result.overall_tier else None,
        },
    )
    return result


@router.get(
    "/assessments/{assessment_id}/respondents/{respondent_id}/score",
    summary="Get a respondent's score",
    response_model=ResultsView,
)
def get_score(assessment_id: str, respondent_id: str, request: Request) -> ResultsView:
    cfg: AppConfig = request.app.state.config
    result = _score(assessment_id, respondent_id, cfg)
    adapter = SqlBenchmarkAdapter(min_sample_size=cfg.benchmarks.min_sample_size)
    return build_results_view(assessment_id, respondent_id, result, adapter.get_benchmarks(assessment_id))


@router.get(
    "/assessments/{assessment_id}/respondents/{respondent_id}/score.csv",
    summary="Export a respondent's score as CSV",
)
def get_score_csv(assessment_id: str, respondent_id: str, request: Request) -> Response:
    cfg: AppConfig = request.app.state.config
    result = _score(assessment_id, respondent_id, cfg)
    body = build_score_csv(result, include_header=cfg.csv.export_include_header)
    filename = f"score-{assessment_id}-{respondent_id}.csv"
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


__all__ = ["router", "get_score", "get_score_csv"]
