"""Response-flow state machine for one respondent session.

The controller walks the catalog's sorted question sequence and owns all
traversal state in an explicit ``FlowState`` value. State only changes through
the named transitions below:

- ``set_answer``: record the current question's in-memory answer and, for
  single-select kinds, arm the auto-advance timer;
- ``handle_next``: persist the current answer, then advance (possibly via a
  category interstitial) or complete the flow;
- ``handle_back``: step back one question;
- timer callbacks: auto-advance, interstitial commit, lock release.

Every timer is a generation token on the session's ``TimerScheduler``. A
callback whose token no longer matches the state is discarded and logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from scorecard.logic.answer_saver import AnswerSaver
from scorecard.logic.answer_store import AnswerStore
from scorecard.logic.events import FLOW_COMPLETED, INTERSTITIAL_SHOWN, publish
from scorecard.logic.progress import ENDOWED_PROGRESS, displayed_progress, segment_fills
from scorecard.logic.segments import Segment, compute_segments, needs_interstitial, segment_index_for
from scorecard.logic.timers import TimerScheduler
from scorecard.logic.validation import validate_answer_input
from scorecard.models.answer import AnswerDraft, AnswerInput
from scorecard.models.catalog import QuestionCatalog
from scorecard.models.question_kind import AUTO_ADVANCE_KINDS

logger = logging.getLogger(__name__)


class FlowMode:
    QUESTION = "question"
    INTERSTITIAL = "interstitial"
    COMPLETE = "complete"


class NavResult:
    ADVANCED = "advanced"
    INTERSTITIAL = "interstitial"
    COMPLETED = "completed"
    MOVED_BACK = "moved_back"
    LOCKED = "locked"
    BLOCKED = "blocked"
    IGNORED = "ignored"


class FlowError(Exception):
    """Base class for rejected flow transitions."""


class FlowBusyError(FlowError):
    """An answer arrived while no question is on display."""


class StaleQuestionError(FlowError):
    """An answer targeted a question other than the current one."""


@dataclass
class FlowTimings:
    auto_advance_ms: int = 600
    interstitial_ms: int = 2200
    next_lock_ms: int = 350
    endowed_progress: int = ENDOWED_PROGRESS


@dataclass
class FlowState:
    current_index: int = 0
    answers: Dict[str, AnswerDraft] = field(default_factory=dict)
    segment_index: int = 0
    mode: str = FlowMode.QUESTION
    # auto-advance timer for the question on display
    pending_timer_token: Optional[int] = None
    interstitial_token: Optional[int] = None
    interstitial_target: Optional[int] = None
    lock_token: Optional[int] = None

    @property
    def completed(self) -> bool:
        return self.mode == FlowMode.COMPLETE


class FlowController:
    def __init__(
        self,
        catalog: QuestionCatalog,
        respondent_id: str,
        store: AnswerStore,
        *,
        scheduler: Optional[TimerScheduler] = None,
        timings: Optional[FlowTimings] = None,
        saver: Optional[AnswerSaver] = None,
        on_complete: Optional[Callable[["FlowController"], None]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.catalog = catalog
        self.respondent_id = str(respondent_id)
        self.session_id = session_id
        self.scheduler = scheduler or TimerScheduler()
        self.timings = timings or FlowTimings()
        self.saver = saver or AnswerSaver(store, self.scheduler, self.respondent_id)
        self.sequence: list = catalog.sorted_questions()
        self.segments: List[Segment] = compute_segments(self.sequence, catalog.categories)
        self._options = catalog.options_by_question()
        self._on_complete: List[Callable[["FlowController"], None]] = []
        if on_complete is not None:
            self._on_complete.append(on_complete)
        self.state = FlowState()
        if not self.sequence:
            logger.info("flow_catalog_empty session=%s respondent=%s", self.session_id, self.respondent_id)
            self._complete()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def total_questions(self) -> int:
        return len(self.sequence)

    @property
    def current_question(self):
        if self.state.mode != FlowMode.QUESTION or not self.sequence:
            return None
        return self.sequence[self.state.current_index]

    def current_answer(self) -> Optional[AnswerDraft]:
        question = self.current_question
        if question is None:
            return None
        return self.state.answers.get(question.id)

    def interstitial_segment(self) -> Optional[Segment]:
        if self.state.mode != FlowMode.INTERSTITIAL or self.state.interstitial_target is None:
            return None
        pos = segment_index_for(self.segments, self.state.interstitial_target)
        return self.segments[pos] if pos >= 0 else None

    def can_advance(self) -> bool:
        """Gate for the manual Next control; required questions need an answer."""
        question = self.current_question
        if question is None:
            return False
        if not question.required:
            return True
        draft = self.state.answers.get(question.id)
        return draft is not None and not draft.is_empty()

    def progress(self) -> float:
        if self.state.completed:
            return 100.0
        return displayed_progress(self.state.current_index, self.total_questions, self.timings.endowed_progress)

    def segment_progress(self) -> List[float]:
        if self.state.completed:
            return [100.0 for _ in self.segments]
        return segment_fills(self.segments, self.state.current_index, self.timings.endowed_progress)

    def add_completion_listener(self, callback: Callable[["FlowController"], None]) -> None:
        self._on_complete.append(callback)
        if self.state.completed:
            callback(self)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def preload_answers(self) -> int:
        """Seed in-memory answers from the store so a returning respondent resumes.

        Does not arm auto-advance; only a change made in this session does.
        """
        loaded = 0
        for question in self.sequence:
            recorded = self.saver.store.get(self.respondent_id, question.id)
            if recorded is None:
                continue
            self.state.answers[question.id] = AnswerDraft(
                selected_option_ids=tuple(recorded.selected_option_ids),
                open_text=recorded.open_text,
                points_awarded=recorded.points_awarded,
            )
            loaded += 1
        return loaded

    def set_answer(self, answer: AnswerInput, question_id: Optional[str] = None) -> AnswerDraft:
        """Record the in-memory answer for the question on display."""
        question = self.current_question
        if question is None:
            raise FlowBusyError(f"no question on display (mode={self.state.mode})")
        if question_id is not None and str(question_id) != question.id:
            raise StaleQuestionError(f"question {question_id} is not the current question {question.id}")
        options = self._options.get(question.id, [])
        validate_answer_input(question, answer, options)
        draft = question.record(answer, options)
        previous = self.state.answers.get(question.id)
        # A cleared answer stays in the map so the next save overwrites the stored one
        self.state.answers[question.id] = draft

        if draft.is_empty():
            self._cancel_auto_advance()
            return draft

        if question.type in AUTO_ADVANCE_KINDS and draft.is_single_selection():
            unchanged = previous == draft and self.scheduler.is_pending(self.state.pending_timer_token)
            if not unchanged:
                self._arm_auto_advance()
        else:
            self._cancel_auto_advance()
        return draft

    def handle_next(self, trigger: str = "manual") -> str:
        """Persist the current answer and move forward or complete."""
        if self.state.mode != FlowMode.QUESTION:
            logger.info("flow_next_ignored session=%s mode=%s trigger=%s", self.session_id, self.state.mode, trigger)
            return NavResult.IGNORED
        if self.scheduler.is_pending(self.state.lock_token):
            logger.info("flow_next_locked session=%s trigger=%s", self.session_id, trigger)
            return NavResult.LOCKED
        if trigger == "manual" and not self.can_advance():
            return NavResult.BLOCKED

        self.state.lock_token = self.scheduler.call_later(
            self.timings.next_lock_ms, self._release_lock, label="next-lock"
        )
        self._cancel_auto_advance()

        idx = self.state.current_index
        question = self.sequence[idx]
        draft = self.state.answers.get(question.id)
        if draft is not None:
            self.saver.save(question.id, draft)

        if idx >= self.total_questions - 1:
            self._complete()
            return NavResult.COMPLETED

        target = idx + 1
        if needs_interstitial(self.segments, idx, target):
            self.state.mode = FlowMode.INTERSTITIAL
            self.state.interstitial_target = target
            self.state.interstitial_token = self.scheduler.call_later(
                self.timings.interstitial_ms, self._commit_interstitial, label="interstitial"
            )
            seg = self.interstitial_segment()
            publish(
                INTERSTITIAL_SHOWN,
                {
                    "session_id": self.session_id,
                    "respondent_id": self.respondent_id,
                    "category_id": seg.category_id if seg else None,
                },
            )
            return NavResult.INTERSTITIAL

        self._go_to(target)
        logger.info("flow_advance session=%s index=%s trigger=%s", self.session_id, target, trigger)
        return NavResult.ADVANCED

    def handle_back(self) -> str:
        """Step back one question without an interstitial or a re-save."""
        if self.state.mode != FlowMode.QUESTION:
            return NavResult.IGNORED
        if self.state.current_index <= 0:
            return NavResult.IGNORED
        self._go_to(self.state.current_index - 1)
        logger.info("flow_back session=%s index=%s", self.session_id, self.state.current_index)
        return NavResult.MOVED_BACK

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _go_to(self, index: int) -> None:
        self._cancel_auto_advance()
        self.state.current_index = index
        self.state.segment_index = max(segment_index_for(self.segments, index), 0)

    def _arm_auto_advance(self) -> None:
        self._cancel_auto_advance()
        self.state.pending_timer_token = self.scheduler.call_later(
            self.timings.auto_advance_ms, self._on_auto_advance, label="auto-advance"
        )

    def _cancel_auto_advance(self) -> None:
        self.scheduler.cancel(self.state.pending_timer_token)
        self.state.pending_timer_token = None

    def _on_auto_advance(self, token: int) -> None:
        if token != self.state.pending_timer_token:
            logger.info("flow_timer_stale session=%s kind=auto-advance token=%s", self.session_id, token)
            return
        self.state.pending_timer_token = None
        self.handle_next(trigger="auto")

    def _commit_interstitial(self, token: int) -> None:
        if token != self.state.interstitial_token or self.state.interstitial_target is None:
            logger.info("flow_timer_stale session=%s kind=interstitial token=%s", self.session_id, token)
            return
        target = self.state.interstitial_target
        self.state.interstitial_token = None
        self.state.interstitial_target = None
        self.state.mode = FlowMode.QUESTION
        self._go_to(target)
        logger.info("flow_advance session=%s index=%s trigger=interstitial", self.session_id, target)

    def _release_lock(self, token: int) -> None:
        if token == self.state.lock_token:
            self.state.lock_token = None

    def _complete(self) -> None:
        if self.state.mode == FlowMode.COMPLETE:
            return
        self._cancel_auto_advance()
        self.scheduler.cancel(self.state.interstitial_token)
        self.state.interstitial_token = None
        self.state.interstitial_target = None
        self.state.mode = FlowMode.COMPLETE
        publish(
            FLOW_COMPLETED,
            {
                "session_id": self.session_id,
                "respondent_id": self.respondent_id,
                "assessment_id": self.catalog.assessment_id,
                "answered": sum(1 for d in self.state.answers.values() if not d.is_empty()),
            },
        )
        for callback in list(self._on_complete):
            callback(self)


__all__ = [
    "FlowMode",
    "NavResult",
    "FlowError",
    "FlowBusyError",
    "StaleQuestionError",
    "FlowTimings",
    "FlowState",
    "FlowController",
]
