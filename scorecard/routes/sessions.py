"""Response flow endpoints.

A session wraps one FlowController. Every request first runs the session's
due timers, so auto-advance and interstitial dwell take effect on the next
call after their delay has elapsed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from scorecard.logic.flow_controller import FlowBusyError, FlowController, StaleQuestionError
from scorecard.logic.flow_sessions import (
    SessionNotFoundError,
    build_flow_view,
    start_session,
    touch_session,
)
from scorecard.logic.problem_factory import (
    problem_answer_invalid,
    problem_flow_busy,
    problem_session_not_found,
    problem_stale_question,
)
from scorecard.logic.validation import AnswerValidationError
from scorecard.models.answer import AnswerUpsertModel
from scorecard.models.response_types import FlowView
from scorecard.routes.catalog import load_catalog_or_problem

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionStartModel(BaseModel):
    respondent_id: str = Field(min_length=1)
    resume: bool = True


def _session_or_404(session_id: str) -> FlowController:
    try:
        return touch_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=problem_session_not_found(session_id))


@router.post(
    "/assessments/{assessment_id}/sessions",
    summary="Start a response flow",
    status_code=201,
    response_model=FlowView,
)
def create_session(assessment_id: str, body: SessionStartModel, request: Request) -> FlowView:
    catalog = load_catalog_or_problem(assessment_id)
    controller = start_session(catalog, body.respondent_id, request.app.state.config, resume=body.resume)
    return build_flow_view(controller, last_action="started")


@router.get("/sessions/{session_id}", summary="Get the flow state", response_model=FlowView)
def get_session(session_id: str) -> FlowView:
    controller = _session_or_404(session_id)
    return build_flow_view(controller)


@router.put("/sessions/{session_id}/answer", summary="Answer the current question", response_model=FlowView)
def put_answer(session_id: str, body: AnswerUpsertModel) -> FlowView:
    controller = _session_or_404(session_id)
    try:
        draft = controller.set_answer(body.to_input(), question_id=body.question_id)
    except AnswerValidationError as exc:
        raise HTTPException(status_code=422, detail=problem_answer_invalid(str(exc)))
    except StaleQuestionError as exc:
        raise HTTPException(status_code=409, detail=problem_stale_question(str(exc)))
    except FlowBusyError as exc:
        raise HTTPException(status_code=409, detail=problem_flow_busy(str(exc)))
    logger.info(
        "flow_answer session=%s question=%s points=%s",
        session_id,
        controller.current_question.id if controller.current_question else None,
        draft.points_awarded,
    )
    return build_flow_view(controller, last_action="cleared" if draft.is_empty() else "answered")


@router.post("/sessions/{session_id}/next", summary="Advance the flow", response_model=FlowView)
def post_next(session_id: str) -> FlowView:
    controller = _session_or_404(session_id)
    result = controller.handle_next()
    return build_flow_view(controller, last_action=result)


@router.post("/sessions/{session_id}/back", summary="Step back one question", response_model=FlowView)
def post_back(session_id: str) -> FlowView:
    controller = _session_or_404(session_id)
    result = controller.handle_back()
    return build_flow_view(controller, last_action=result)


__all__ = ["router", "SessionStartModel"]
