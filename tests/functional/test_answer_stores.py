"""AnswerStore implementations: one row per (respondent_id, question_id)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import text

from scorecard.logic.answer_store import InMemoryAnswerStore
from scorecard.logic.repository_answers import SqlAnswerStore
from scorecard.models.answer import AnswerDraft


def test_sql_upsert_keeps_a_single_row_per_key(engine):
    store = SqlAnswerStore(engine)
    store.upsert("store-r1", "q1", AnswerDraft(selected_option_ids=("o1",), points_awarded=1))
    store.upsert("store-r1", "q1", AnswerDraft(selected_option_ids=("o2", "o3"), points_awarded=7))

    with engine.connect() as conn:
        count = conn.execute(
            text("SELECT COUNT(*) FROM recorded_answer WHERE respondent_id = 'store-r1' AND question_id = 'q1'")
        ).scalar_one()
    assert count == 1

    recorded = store.get("store-r1", "q1")
    assert recorded.selected_option_ids == ("o2", "o3")
    assert recorded.points_awarded == 7
    assert recorded.answered_at.tzinfo is not None


def test_sql_store_round_trips_text_and_timestamp(engine):
    store = SqlAnswerStore(engine)
    when = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    store.upsert("store-r2", "t1", AnswerDraft(open_text="Hiring is slow"), answered_at=when)
    recorded = store.get("store-r2", "t1")
    assert recorded.open_text == "Hiring is slow"
    assert recorded.selected_option_ids == ()
    assert recorded.answered_at == when


def test_sql_store_lists_only_the_respondents_answers(engine):
    store = SqlAnswerStore(engine)
    store.upsert("store-r3", "b", AnswerDraft(selected_option_ids=("x",), points_awarded=2))
    store.upsert("store-r3", "a", AnswerDraft(selected_option_ids=("y",), points_awarded=3))
    store.upsert("store-r4", "a", AnswerDraft(selected_option_ids=("y",), points_awarded=3))
    listed = store.list_for_respondent("store-r3")
    assert [a.question_id for a in listed] == ["a", "b"]
    assert store.get("store-r3", "missing") is None


def test_memory_store_upserts_by_key():
    data: dict = {}
    store = InMemoryAnswerStore(data)
    store.upsert("r", "q", AnswerDraft(selected_option_ids=("o1",), points_awarded=1))
    store.upsert("r", "q", AnswerDraft(selected_option_ids=("o2",), points_awarded=4))
    assert len(data) == 1
    assert store.get("r", "q").points_awarded == 4
    assert [a.question_id for a in store.list_for_respondent("r")] == ["q"]
    assert store.list_for_respondent("other") == []
