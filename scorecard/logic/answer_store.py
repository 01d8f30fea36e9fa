"""AnswerStore contract and the in-memory implementation.

A store keeps at most one RecordedAnswer per (respondent_id, question_id);
every write is an upsert.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from scorecard.logic import inmemory_state
from scorecard.models.answer import AnswerDraft, RecordedAnswer

logger = logging.getLogger(__name__)


class AnswerStore(Protocol):
    def upsert(
        self,
        respondent_id: str,
        question_id: str,
        draft: AnswerDraft,
        answered_at: Optional[datetime] = None,
    ) -> None: ...

    def get(self, respondent_id: str, question_id: str) -> Optional[RecordedAnswer]: ...

    def list_for_respondent(self, respondent_id: str) -> List[RecordedAnswer]: ...


class InMemoryAnswerStore:
    """Dict-backed store; defaults to the process-wide RECORDED_ANSWERS map."""

    def __init__(self, data: Optional[Dict[Tuple[str, str], RecordedAnswer]] = None) -> None:
        self._data = inmemory_state.RECORDED_ANSWERS if data is None else data

    def upsert(
        self,
        respondent_id: str,
        question_id: str,
        draft: AnswerDraft,
        answered_at: Optional[datetime] = None,
    ) -> None:
        key = (str(respondent_id), str(question_id))
        self._data[key] = RecordedAnswer(
            respondent_id=key[0],
            question_id=key[1],
            selected_option_ids=tuple(draft.selected_option_ids),
            open_text=draft.open_text,
            points_awarded=draft.points_awarded,
            answered_at=answered_at or datetime.now(timezone.utc),
        )
        logger.info("answer_upsert_memory rs=%s q=%s points=%s", key[0], key[1], draft.points_awarded)

    def get(self, respondent_id: str, question_id: str) -> Optional[RecordedAnswer]:
        return self._data.get((str(respondent_id), str(question_id)))

    def list_for_respondent(self, respondent_id: str) -> List[RecordedAnswer]:
        rid = str(respondent_id)
        return [a for (r, _), a in sorted(self._data.items()) if r == rid]


__all__ = ["AnswerStore", "InMemoryAnswerStore"]
