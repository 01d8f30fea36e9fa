"""Catalog endpoint.

Exposes the sorted question sequence of an assessment together with its
category segments, as the flow would present them.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from scorecard.logic.flow_sessions import question_view, segment_views
from scorecard.logic.problem_factory import problem_assessment_not_found, problem_catalog_invalid
from scorecard.logic.repository_catalog import CatalogLoadError, load_catalog
from scorecard.logic.segments import compute_segments
from scorecard.models.catalog import QuestionCatalog
from scorecard.models.response_types import CatalogView

logger = logging.getLogger(__name__)

router = APIRouter()


def load_catalog_or_problem(assessment_id: str) -> QuestionCatalog:
    """Load a catalog, translating missing or broken catalogs into problems.

    An assessment with categories but no questions is a valid, empty catalog.
    """
    try:
        catalog = load_catalog(assessment_id)
    except CatalogLoadError as exc:
        raise HTTPException(status_code=500, detail=problem_catalog_invalid(str(exc)))
    if not catalog.categories and not catalog.questions:
        raise HTTPException(status_code=404, detail=problem_assessment_not_found(assessment_id))
    return catalog


@router.get(
    "/assessments/{assessment_id}/catalog",
    summary="Get the sorted question sequence",
    response_model=CatalogView,
)
def get_catalog(assessment_id: str) -> CatalogView:
    catalog = load_catalog_or_problem(assessment_id)
    sequence = catalog.sorted_questions()
    segments = compute_segments(sequence, catalog.categories)
    logger.info("catalog_view assessment=%s questions=%s segments=%s", assessment_id, len(sequence), len(segments))
    return CatalogView(
        assessment_id=assessment_id,
        questions=[question_view(catalog, q) for q in sequence],
        segments=segment_views(segments, [0.0] * len(segments)),
    )


__all__ = ["router", "load_catalog_or_problem", "get_catalog"]
