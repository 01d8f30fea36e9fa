"""Centralised construction of problem+json payloads.

Route modules raise ``HTTPException(status, detail=problem_...())`` with these
dicts instead of embedding codes and titles inline.
"""

from __future__ import annotations

from typing import Dict
import logging


logger = logging.getLogger(__name__)


def _problem(title: str, status: int, detail: str, code: str) -> Dict[str, object]:
    problem = {
        "title": title,
        "status": status,
        "detail": detail,
        "code": code,
    }
    logger.info("error_handler.handle code=%s status=%s", code, status)
    return problem


def problem_session_not_found(session_id: str) -> Dict[str, object]:
    """404: no live flow session with this id."""
    return _problem("Not Found", 404, f"flow session {session_id} not found", "FLOW_SESSION_NOT_FOUND")


def problem_assessment_not_found(assessment_id: str) -> Dict[str, object]:
    """404: the assessment has no stored catalog configuration."""
    return _problem("Not Found", 404, f"assessment {assessment_id} not found", "ASSESSMENT_NOT_FOUND")


def problem_catalog_invalid(detail: str) -> Dict[str, object]:
    """500: the stored catalog could not be interpreted."""
    return _problem("Catalog Invalid", 500, detail, "CATALOG_INVALID")


def problem_answer_invalid(detail: str) -> Dict[str, object]:
    """422: the submitted answer does not fit the current question."""
    return _problem("Invalid Answer", 422, detail, "ANSWER_INVALID")


def problem_flow_busy(detail: str) -> Dict[str, object]:
    """409: no question is on display (interstitial or completed)."""
    return _problem("Conflict", 409, detail, "FLOW_NOT_ON_QUESTION")


def problem_stale_question(detail: str) -> Dict[str, object]:
    """409: the answer targets a question the respondent has left."""
    return _problem("Conflict", 409, detail, "FLOW_STALE_QUESTION")


__all__ = [
    "problem_session_not_found",
    "problem_assessment_not_found",
    "problem_catalog_invalid",
    "problem_answer_invalid",
    "problem_flow_busy",
    "problem_stale_question",
]
