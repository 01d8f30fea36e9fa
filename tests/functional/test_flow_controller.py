"""Response flow behaviour driven by a manual clock.

Every test owns its scheduler and an isolated in-memory store, so timer
behaviour (auto-advance 600 ms, interstitial dwell 2200 ms, next-lock
350 ms) is asserted exactly.
"""

from __future__ import annotations

from typing import Optional

import pytest

from scorecard.logic import events
from scorecard.logic.answer_saver import AnswerSaver
from scorecard.logic.answer_store import InMemoryAnswerStore
from scorecard.logic.flow_controller import (
    FlowBusyError,
    FlowController,
    FlowMode,
    NavResult,
    StaleQuestionError,
)
from scorecard.logic.timers import ManualClock, TimerScheduler
from scorecard.logic.validation import AnswerValidationError
from scorecard.models.answer import AnswerInput
from scorecard.models.catalog import AnswerOption, Category, QuestionCatalog


def _opt(qid: str, oid: str, points: int, order: int = 0) -> AnswerOption:
    return AnswerOption(id=oid, question_id=qid, text=oid, points=points, sort_order=order)


def _three_category_catalog(required_b2: bool = False) -> QuestionCatalog:
    return QuestionCatalog(
        assessment_id="flow",
        categories=[
            Category(id="A", name="Strategy", sort_order=1, description="Where you are heading"),
            Category(id="B", name="People", sort_order=2),
            Category(id="C", name="Delivery", sort_order=3),
        ],
        questions=[
            {"type": "multiple_choice", "id": "a1", "category_id": "A", "text": "Plan?", "sort_order": 1},
            {"type": "yes_no", "id": "a2", "category_id": "A", "text": "Written down?", "sort_order": 2},
            {"type": "checkbox_select", "id": "b1", "category_id": "B", "text": "Which apply?", "sort_order": 1},
            {
                "type": "open_text",
                "id": "b2",
                "category_id": "B",
                "text": "Tell us more",
                "sort_order": 2,
                "required": required_b2,
            },
            {"type": "rating_scale", "id": "c1", "category_id": "C", "text": "Rate delivery", "sort_order": 1},
        ],
        options=[
            _opt("a1", "a1-x", 5, 1),
            _opt("a1", "a1-y", 2, 2),
            _opt("a2", "a2-yes", 5, 1),
            _opt("a2", "a2-no", 0, 2),
            _opt("b1", "b1-x", 3, 1),
            _opt("b1", "b1-y", 4, 2),
        ],
    )


def _single_category_catalog() -> QuestionCatalog:
    return QuestionCatalog(
        assessment_id="single",
        categories=[Category(id="S", name="Solo", sort_order=1)],
        questions=[
            {"type": "yes_no", "id": f"s{i}", "category_id": "S", "text": f"S{i}", "sort_order": i}
            for i in range(1, 4)
        ],
        options=[o for i in range(1, 4) for o in (_opt(f"s{i}", f"s{i}-y", 1), _opt(f"s{i}", f"s{i}-n", 0))],
    )


class FailingStore(InMemoryAnswerStore):
    """In-memory store whose first ``failures`` writes raise."""

    def __init__(self, failures: Optional[int] = None) -> None:
        super().__init__({})
        self.failures = failures
        self.calls = 0

    def upsert(self, respondent_id, question_id, draft, answered_at=None):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise RuntimeError("database unavailable")
        super().upsert(respondent_id, question_id, draft, answered_at)


def _controller(catalog: QuestionCatalog, store=None, **saver_kwargs):
    scheduler = TimerScheduler(ManualClock())
    store = store if store is not None else InMemoryAnswerStore({})
    saver = AnswerSaver(store, scheduler, "r1", **saver_kwargs) if saver_kwargs else None
    controller = FlowController(catalog, "r1", store, scheduler=scheduler, saver=saver, session_id="s1")
    return controller, scheduler, store


def _pick(*ids: str) -> AnswerInput:
    return AnswerInput(selected_option_ids=list(ids))


def _event_types() -> list[str]:
    return [e["type"] for e in events.EVENT_BUFFER]


# -----------------------------
# Auto-advance
# -----------------------------


def test_single_selection_auto_advances_exactly_once():
    controller, scheduler, store = _controller(_three_category_catalog())
    controller.set_answer(_pick("a1-x"))
    scheduler.advance(599)
    assert controller.state.current_index == 0
    scheduler.advance(1)
    assert controller.state.current_index == 1
    assert store.get("r1", "a1").points_awarded == 5
    scheduler.advance(10_000)
    assert controller.state.current_index == 1


def test_changing_selection_rearms_a_single_new_timer():
    controller, scheduler, store = _controller(_three_category_catalog())
    controller.set_answer(_pick("a1-x"))
    scheduler.advance(400)
    controller.set_answer(_pick("a1-y"))
    scheduler.advance(400)  # the first timer would have fired at 600
    assert controller.state.current_index == 0
    scheduler.advance(200)
    assert controller.state.current_index == 1
    assert store.get("r1", "a1").selected_option_ids == ("a1-y",)
    assert scheduler.pending_count() == 1  # only the next-lock remains


def test_same_selection_resubmitted_keeps_the_pending_timer():
    controller, scheduler, _ = _controller(_three_category_catalog())
    controller.set_answer(_pick("a1-x"))
    token = controller.state.pending_timer_token
    scheduler.advance(400)
    controller.set_answer(_pick("a1-x"))
    assert controller.state.pending_timer_token == token
    scheduler.advance(200)
    assert controller.state.current_index == 1


def test_leaving_the_question_cancels_its_timer():
    controller, scheduler, _ = _controller(_three_category_catalog())
    controller.set_answer(_pick("a1-x"))
    assert controller.handle_next() == NavResult.ADVANCED
    assert controller.state.pending_timer_token is None
    scheduler.advance(5_000)
    assert controller.state.current_index == 1


def test_clearing_the_answer_cancels_auto_advance():
    controller, scheduler, _ = _controller(_three_category_catalog())
    controller.set_answer(_pick("a1-x"))
    controller.set_answer(AnswerInput())
    assert controller.current_answer().is_empty()
    assert not controller.scheduler.is_pending(controller.state.pending_timer_token)
    scheduler.advance(5_000)
    assert controller.state.current_index == 0


def test_clearing_a_saved_answer_overwrites_it_on_next():
    controller, scheduler, store = _controller(_three_category_catalog())
    controller.state.current_index = 2
    controller.set_answer(_pick("b1-x", "b1-y"))
    assert controller.handle_next() == NavResult.ADVANCED
    assert store.get("r1", "b1").points_awarded == 7
    scheduler.advance(350)

    assert controller.handle_back() == NavResult.MOVED_BACK
    controller.set_answer(AnswerInput())
    assert controller.handle_next() == NavResult.ADVANCED
    stored = store.get("r1", "b1")
    assert stored.selected_option_ids == ()
    assert stored.points_awarded == 0


def test_multi_select_and_text_never_auto_advance():
    controller, scheduler, _ = _controller(_three_category_catalog())
    controller.handle_next()
    scheduler.advance(350)
    controller.handle_next()
    scheduler.advance(2_200)
    assert controller.current_question.id == "b1"
    controller.set_answer(_pick("b1-x"))
    scheduler.advance(5_000)
    assert controller.current_question.id == "b1"
    assert controller.current_answer().points_awarded == 3


def test_rating_scale_auto_advances_on_value():
    controller, scheduler, store = _controller(_three_category_catalog())
    controller.state.current_index = 4
    controller.set_answer(AnswerInput(value=4))
    scheduler.advance(600)
    assert controller.state.completed
    assert store.get("r1", "c1").points_awarded == 4


# -----------------------------
# Interstitials and navigation
# -----------------------------


def test_crossing_a_category_boundary_shows_a_dwell_interstitial():
    controller, scheduler, _ = _controller(_three_category_catalog())
    assert controller.handle_next() == NavResult.ADVANCED
    scheduler.advance(350)
    assert controller.handle_next() == NavResult.INTERSTITIAL
    assert controller.state.mode == FlowMode.INTERSTITIAL
    assert controller.interstitial_segment().category_id == "B"
    assert controller.current_question is None
    assert controller.state.current_index == 1  # not committed during dwell

    with pytest.raises(FlowBusyError):
        controller.set_answer(_pick("b1-x"))
    assert controller.handle_next() == NavResult.IGNORED
    assert controller.handle_back() == NavResult.IGNORED

    scheduler.advance(2_199)
    assert controller.state.mode == FlowMode.INTERSTITIAL
    scheduler.advance(1)
    assert controller.state.mode == FlowMode.QUESTION
    assert controller.current_question.id == "b1"
    assert events.INTERSTITIAL_SHOWN in _event_types()


def test_no_interstitial_at_start_or_without_boundaries():
    controller, scheduler, _ = _controller(_single_category_catalog())
    assert controller.state.mode == FlowMode.QUESTION
    assert controller.interstitial_segment() is None
    for _ in range(2):
        assert controller.handle_next() == NavResult.ADVANCED
        scheduler.advance(350)
    assert controller.handle_back() == NavResult.MOVED_BACK
    assert controller.handle_back() == NavResult.MOVED_BACK
    assert events.INTERSTITIAL_SHOWN not in _event_types()


def test_back_steps_without_interstitial_or_save():
    controller, scheduler, store = _controller(_three_category_catalog())
    assert controller.handle_back() == NavResult.IGNORED
    controller.set_answer(_pick("a1-x"))
    controller.handle_next()
    scheduler.advance(350)
    controller.set_answer(_pick("a2-yes"))
    controller.handle_next()
    scheduler.advance(2_200)
    assert controller.current_question.id == "b1"
    saved = len(store.list_for_respondent("r1"))

    assert controller.handle_back() == NavResult.MOVED_BACK
    assert controller.state.mode == FlowMode.QUESTION
    assert controller.current_question.id == "a2"
    assert controller.current_answer().selected_option_ids == ("a2-yes",)
    assert len(store.list_for_respondent("r1")) == saved


def test_rapid_duplicate_next_is_absorbed_by_the_lock():
    controller, scheduler, _ = _controller(_single_category_catalog())
    assert controller.handle_next() == NavResult.ADVANCED
    assert controller.handle_next() == NavResult.LOCKED
    assert controller.state.current_index == 1
    scheduler.advance(349)
    assert controller.handle_next() == NavResult.LOCKED
    scheduler.advance(1)
    assert controller.handle_next() == NavResult.ADVANCED
    assert controller.state.current_index == 2


def test_auto_advance_racing_a_manual_next_moves_once():
    controller, scheduler, _ = _controller(_single_category_catalog())
    controller.set_answer(_pick("s1-y"))
    scheduler.advance(500)
    assert controller.handle_next() == NavResult.ADVANCED
    scheduler.advance(300)
    assert controller.state.current_index == 1


def test_required_question_gates_manual_next_only():
    controller, scheduler, _ = _controller(_three_category_catalog(required_b2=True))
    controller.state.current_index = 3
    assert controller.current_question.id == "b2"
    assert controller.can_advance() is False
    assert controller.handle_next() == NavResult.BLOCKED
    controller.set_answer(AnswerInput(open_text="   "))
    assert controller.can_advance() is False
    controller.set_answer(AnswerInput(open_text="We hire slowly"))
    assert controller.can_advance() is True
    assert controller.handle_next() == NavResult.INTERSTITIAL


# -----------------------------
# Answers
# -----------------------------


def test_answer_for_another_question_is_rejected():
    controller, _, _ = _controller(_three_category_catalog())
    with pytest.raises(StaleQuestionError):
        controller.set_answer(_pick("a2-yes"), question_id="a2")
    draft = controller.set_answer(_pick("a1-y"), question_id="a1")
    assert draft.points_awarded == 2


@pytest.mark.parametrize(
    "answer",
    [
        AnswerInput(selected_option_ids=["nope"]),
        AnswerInput(selected_option_ids=["a1-x", "a1-y"]),
        AnswerInput(value=3),
    ],
)
def test_incoherent_answers_are_rejected(answer):
    controller, scheduler, _ = _controller(_three_category_catalog())
    with pytest.raises(AnswerValidationError):
        controller.set_answer(answer)
    assert controller.current_answer() is None
    assert scheduler.pending_count() == 0


def test_returning_respondent_resumes_with_saved_answers():
    store = InMemoryAnswerStore({})
    first, scheduler, _ = _controller(_three_category_catalog(), store=store)
    first.set_answer(_pick("a1-x"))
    scheduler.advance(600)

    second, second_scheduler, _ = _controller(_three_category_catalog(), store=store)
    assert second.preload_answers() == 1
    assert second.current_answer().selected_option_ids == ("a1-x",)
    assert second_scheduler.pending_count() == 0


# -----------------------------
# Completion
# -----------------------------


def test_empty_catalog_completes_immediately():
    catalog = QuestionCatalog(assessment_id="empty", categories=[Category(id="A", name="A")])
    controller, scheduler, _ = _controller(catalog)
    assert controller.state.completed
    assert controller.current_question is None
    assert controller.interstitial_segment() is None
    assert controller.progress() == 100.0
    assert controller.handle_next() == NavResult.IGNORED
    assert _event_types() == [events.FLOW_COMPLETED]

    seen = []
    controller.add_completion_listener(seen.append)
    assert seen == [controller]


def test_last_question_completes_after_its_save_was_issued():
    controller, scheduler, store = _controller(_single_category_catalog())
    seen = []
    controller.add_completion_listener(lambda c: seen.append(store.get("r1", "s3")))
    controller.state.current_index = 2
    controller.set_answer(_pick("s3-y"))
    assert controller.handle_next() == NavResult.COMPLETED
    assert controller.state.current_index == 2
    assert seen and seen[0].points_awarded == 1
    assert controller.progress() == 100.0
    assert controller.segment_progress() == [100.0]
    assert _event_types().count(events.FLOW_COMPLETED) == 1
    with pytest.raises(FlowBusyError):
        controller.set_answer(_pick("s3-n"))


def test_progress_starts_at_endowed_floor():
    controller, _, _ = _controller(_three_category_catalog())
    assert controller.progress() == 8
    assert controller.segment_progress() == pytest.approx([8.0, 0.0, 0.0])


# -----------------------------
# Persistence failures
# -----------------------------


def test_save_failure_does_not_block_and_is_retried():
    store = FailingStore(failures=1)
    controller, scheduler, _ = _controller(_single_category_catalog(), store=store, retry_base_ms=500)
    controller.set_answer(_pick("s1-y"))
    assert controller.handle_next() == NavResult.ADVANCED
    assert controller.state.current_index == 1
    assert controller.saver.warnings() == [{"question_id": "s1", "error": "database unavailable"}]
    assert controller.saver.retry_pending("s1")
    assert events.ANSWER_SAVE_FAILED in _event_types()

    scheduler.advance(500)
    assert store.get("r1", "s1").points_awarded == 1
    assert controller.saver.warnings() == []
    assert not controller.saver.retry_pending()


def test_retries_back_off_and_then_give_up():
    store = FailingStore(failures=None)
    controller, scheduler, _ = _controller(
        _single_category_catalog(), store=store, retry_attempts=2, retry_base_ms=100
    )
    controller.set_answer(_pick("s1-y"))
    controller.handle_next()
    assert store.calls == 1
    scheduler.advance(99)
    assert store.calls == 1
    scheduler.advance(1)  # retry 1 after 100 ms
    assert store.calls == 2
    scheduler.advance(200)  # retry 2 after 200 ms more
    assert store.calls == 3
    scheduler.advance(10_000)
    assert store.calls == 3
    assert not controller.saver.retry_pending("s1")
    assert controller.saver.warnings()[0]["question_id"] == "s1"


def test_failed_final_save_is_written_by_flush():
    store = FailingStore(failures=1)
    controller, scheduler, _ = _controller(_single_category_catalog(), store=store, retry_base_ms=60_000)
    controller.state.current_index = 2
    controller.set_answer(_pick("s3-y"))
    assert controller.handle_next() == NavResult.COMPLETED
    assert controller.saver.retry_pending("s3")
    assert store.get("r1", "s3") is None

    assert controller.saver.flush() == 1
    assert store.get("r1", "s3").points_awarded == 1
    assert not controller.saver.retry_pending()
    assert controller.saver.warnings() == []
    scheduler.advance(120_000)
    assert store.calls == 2


def test_newer_save_supersedes_a_pending_retry():
    store = FailingStore(failures=1)
    controller, scheduler, _ = _controller(_single_category_catalog(), store=store, retry_base_ms=500)
    controller.set_answer(_pick("s1-y"))
    controller.handle_next()
    scheduler.advance(350)
    controller.handle_back()
    controller.set_answer(_pick("s1-n"))
    controller.handle_next()
    assert not controller.saver.retry_pending("s1")
    scheduler.advance(1_000)
    assert store.get("r1", "s1").selected_option_ids == ("s1-n",)
    assert store.calls == 2
