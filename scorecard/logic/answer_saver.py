"""Non-blocking answer persistence with retry.

The flow issues a save and moves on. A failed write is logged, published as
``answer.save_failed`` and retried on the session scheduler with exponential
backoff; the respondent is never blocked. A newer save for the same question
supersedes any pending retry of an older one. ``flush`` runs pending retries
immediately for readers that need the store current (scoring).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from scorecard.logic.answer_store import AnswerStore
from scorecard.logic.events import ANSWER_SAVED, ANSWER_SAVE_FAILED, publish
from scorecard.logic.timers import TimerScheduler
from scorecard.models.answer import AnswerDraft

logger = logging.getLogger(__name__)


class AnswerSaver:
    def __init__(
        self,
        store: AnswerStore,
        scheduler: TimerScheduler,
        respondent_id: str,
        *,
        retry_attempts: int = 3,
        retry_base_ms: int = 500,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.respondent_id = str(respondent_id)
        self.retry_attempts = max(int(retry_attempts), 0)
        self.retry_base_ms = max(int(retry_base_ms), 0)
        # question_id -> token of the retry timer currently pending
        self._retry_tokens: Dict[str, int] = {}
        # question_id -> (draft, answered_at, attempt) the pending retry will write
        self._pending: Dict[str, Tuple[AnswerDraft, datetime, int]] = {}
        # question_id -> last error text for saves not yet durable
        self._failures: Dict[str, str] = {}

    def save(self, question_id: str, draft: AnswerDraft) -> bool:
        """Issue a save; return True when the store accepted it right away."""
        self._drop_retry(question_id)
        return self._attempt(question_id, draft, datetime.now(timezone.utc), attempt=1)

    def flush(self) -> int:
        """Run every pending retry now instead of at its backoff deadline.

        A retry that fails again is rescheduled as usual. Returns the number
        of retries attempted.
        """
        attempted = 0
        for question_id in sorted(self._retry_tokens):
            draft, answered_at, attempt = self._pending[question_id]
            self._drop_retry(question_id)
            logger.info(
                "answer_retry_flushed respondent=%s question=%s attempt=%s",
                self.respondent_id,
                question_id,
                attempt + 1,
            )
            self._attempt(question_id, draft, answered_at, attempt + 1)
            attempted += 1
        return attempted

    def _drop_retry(self, question_id: str) -> None:
        self.scheduler.cancel(self._retry_tokens.pop(question_id, None))
        self._pending.pop(question_id, None)

    def _attempt(self, question_id: str, draft: AnswerDraft, answered_at: datetime, attempt: int) -> bool:
        try:
            self.store.upsert(self.respondent_id, question_id, draft, answered_at)
        except Exception as exc:
            self._failures[question_id] = str(exc) or exc.__class__.__name__
            logger.warning(
                "answer_save_failed respondent=%s question=%s attempt=%s error=%s",
                self.respondent_id,
                question_id,
                attempt,
                exc,
                exc_info=True,
            )
            publish(
                ANSWER_SAVE_FAILED,
                {"respondent_id": self.respondent_id, "question_id": question_id, "attempt": attempt},
            )
            self._schedule_retry(question_id, draft, answered_at, attempt)
            return False
        self._failures.pop(question_id, None)
        publish(
            ANSWER_SAVED,
            {
                "respondent_id": self.respondent_id,
                "question_id": question_id,
                "points_awarded": draft.points_awarded,
            },
        )
        return True

    def _schedule_retry(self, question_id: str, draft: AnswerDraft, answered_at: datetime, attempt: int) -> None:
        if attempt > self.retry_attempts:
            logger.error(
                "answer_save_abandoned respondent=%s question=%s attempts=%s",
                self.respondent_id,
                question_id,
                attempt,
            )
            self._drop_retry(question_id)
            return
        delay = self.retry_base_ms * (2 ** (attempt - 1))

        def _retry(token: int) -> None:
            if self._retry_tokens.get(question_id) != token:
                logger.info("answer_retry_stale question=%s token=%s", question_id, token)
                return
            del self._retry_tokens[question_id]
            self._pending.pop(question_id, None)
            self._attempt(question_id, draft, answered_at, attempt + 1)

        self._pending[question_id] = (draft, answered_at, attempt)
        self._retry_tokens[question_id] = self.scheduler.call_later(delay, _retry, label=f"save-retry:{question_id}")

    def warnings(self) -> List[Dict[str, str]]:
        """Saves that have not reached the store yet, for a non-blocking notice."""
        return [{"question_id": qid, "error": err} for qid, err in sorted(self._failures.items())]

    def retry_pending(self, question_id: Optional[str] = None) -> bool:
        if question_id is None:
            return bool(self._retry_tokens)
        return question_id in self._retry_tokens


__all__ = ["AnswerSaver"]
