"""Flow session registry and view assembly.

Sessions live in process memory (``inmemory_state.FLOW_SESSIONS``); each has
its own FlowController and TimerScheduler. Timers are cooperative, so every
access through ``touch_session`` first runs whatever became due since the
previous request. Completed sessions are released once no save retry is
pending (on scoring, or when the respondent starts a new session).
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from scorecard.config import AppConfig
from scorecard.logic import inmemory_state
from scorecard.logic.answer_saver import AnswerSaver
from scorecard.logic.answer_store import AnswerStore, InMemoryAnswerStore
from scorecard.logic.flow_controller import FlowController, FlowTimings
from scorecard.logic.repository_answers import SqlAnswerStore
from scorecard.logic.timers import TimerScheduler
from scorecard.models.catalog import QuestionCatalog
from scorecard.models.response_types import (
    AnswerView,
    FlowView,
    InterstitialView,
    OptionView,
    QuestionView,
    SegmentView,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    pass


def build_answer_store(cfg: AppConfig) -> AnswerStore:
    if cfg.persistence.answer_store == "memory":
        return InMemoryAnswerStore()
    return SqlAnswerStore()


def timings_from_config(cfg: AppConfig) -> FlowTimings:
    return FlowTimings(
        auto_advance_ms=cfg.flow.auto_advance_ms,
        interstitial_ms=cfg.flow.interstitial_ms,
        next_lock_ms=cfg.flow.next_lock_ms,
        endowed_progress=cfg.flow.endowed_progress,
    )


def start_session(
    catalog: QuestionCatalog,
    respondent_id: str,
    cfg: AppConfig,
    *,
    store: Optional[AnswerStore] = None,
    clock: Optional[Callable[[], float]] = None,
    resume: bool = True,
) -> FlowController:
    """Create and register a FlowController for one respondent."""
    session_id = str(uuid.uuid4())
    scheduler = TimerScheduler(clock)
    store = store or build_answer_store(cfg)
    saver = AnswerSaver(
        store,
        scheduler,
        respondent_id,
        retry_attempts=cfg.persistence.retry_attempts,
        retry_base_ms=cfg.persistence.retry_base_ms,
    )
    controller = FlowController(
        catalog,
        respondent_id,
        store,
        scheduler=scheduler,
        timings=timings_from_config(cfg),
        saver=saver,
        session_id=session_id,
    )
    if resume and not controller.state.completed:
        loaded = controller.preload_answers()
        if loaded:
            logger.info("flow_session_resumed session=%s answers=%s", session_id, loaded)
    release_finished_sessions(catalog.assessment_id, respondent_id)
    inmemory_state.FLOW_SESSIONS[session_id] = controller
    logger.info(
        "flow_session_started session=%s assessment=%s respondent=%s questions=%s",
        session_id,
        catalog.assessment_id,
        respondent_id,
        controller.total_questions,
    )
    return controller


def touch_session(session_id: str) -> FlowController:
    """Return the session's controller after running its due timers."""
    controller = inmemory_state.FLOW_SESSIONS.get(str(session_id))
    if controller is None:
        raise SessionNotFoundError(session_id)
    fired = controller.scheduler.run_due()
    if fired:
        logger.info("flow_timers_fired session=%s count=%s", session_id, fired)
    return controller


def _sessions_for(assessment_id: str, respondent_id: str) -> list[tuple[str, FlowController]]:
    return [
        (sid, c)
        for sid, c in inmemory_state.FLOW_SESSIONS.items()
        if c.catalog.assessment_id == assessment_id and c.respondent_id == str(respondent_id)
    ]


def release_finished_sessions(assessment_id: str, respondent_id: str) -> int:
    """Drop the respondent's completed sessions that have no save left to retry."""
    released = 0
    for sid, controller in _sessions_for(assessment_id, respondent_id):
        if controller.state.completed and not controller.saver.retry_pending():
            del inmemory_state.FLOW_SESSIONS[sid]
            released += 1
    if released:
        logger.info(
            "flow_sessions_released assessment=%s respondent=%s count=%s", assessment_id, respondent_id, released
        )
    return released


def drain_respondent_sessions(assessment_id: str, respondent_id: str) -> int:
    """Bring the answer store up to date before the respondent is scored.

    Runs each live session's due timers, then its pending save retries
    without waiting for their backoff. Completed sessions with nothing left
    to retry are released. Returns the number of retries attempted.
    """
    attempted = 0
    for sid, controller in _sessions_for(assessment_id, respondent_id):
        controller.scheduler.run_due()
        attempted += controller.saver.flush()
    release_finished_sessions(assessment_id, respondent_id)
    return attempted


def question_view(catalog: QuestionCatalog, question) -> QuestionView:
    settings = getattr(question, "settings", None)
    return QuestionView(
        id=question.id,
        category_id=question.category_id,
        type=question.type,
        text=question.text,
        help_text=question.help_text,
        required=question.required,
        settings=settings.model_dump() if settings is not None else {},
        options=[
            OptionView(id=o.id, text=o.text, image_url=o.image_url)
            for o in catalog.options_for(question.id)
        ],
    )


def segment_views(segments, fills) -> list[SegmentView]:
    return [
        SegmentView(
            category_id=s.category_id,
            name=s.name,
            colour=s.colour,
            start_index=s.start_index,
            end_index=s.end_index,
            fill=round(fill, 2),
        )
        for s, fill in zip(segments, fills)
    ]


def build_flow_view(controller: FlowController, last_action: Optional[str] = None) -> FlowView:
    state = controller.state
    question = controller.current_question
    draft = controller.current_answer()
    seg = controller.interstitial_segment()
    interstitial = None
    if seg is not None:
        cat = controller.catalog.category(seg.category_id)
        interstitial = InterstitialView(
            category_id=seg.category_id,
            name=seg.name,
            colour=seg.colour,
            description=cat.description if cat else None,
            icon=cat.icon if cat else None,
        )
    return FlowView(
        session_id=str(controller.session_id),
        assessment_id=controller.catalog.assessment_id,
        respondent_id=controller.respondent_id,
        mode=state.mode,
        completed=state.completed,
        current_index=state.current_index,
        total_questions=controller.total_questions,
        progress=round(controller.progress(), 2),
        segments=segment_views(controller.segments, controller.segment_progress()),
        question=question_view(controller.catalog, question) if question is not None else None,
        answer=(
            AnswerView(
                selected_option_ids=list(draft.selected_option_ids),
                open_text=draft.open_text,
                points_awarded=draft.points_awarded,
            )
            if draft is not None
            else None
        ),
        interstitial=interstitial,
        can_advance=controller.can_advance(),
        auto_advance_pending=controller.scheduler.is_pending(state.pending_timer_token),
        warnings=controller.saver.warnings(),
        last_action=last_action,
    )


__all__ = [
    "SessionNotFoundError",
    "build_answer_store",
    "timings_from_config",
    "start_session",
    "touch_session",
    "release_finished_sessions",
    "drain_respondent_sessions",
    "question_view",
    "segment_views",
    "build_flow_view",
]
