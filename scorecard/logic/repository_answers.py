"""SQL-backed AnswerStore.

Writes are single-statement upserts on the (respondent_id, question_id)
primary key, using the dialect's ``ON CONFLICT DO UPDATE`` so concurrent
writers never produce duplicate rows.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from scorecard.db.base import get_engine, session_scope
from scorecard.models.answer import AnswerDraft, RecordedAnswer
from scorecard.models.response import RecordedAnswerRow

logger = logging.getLogger(__name__)

_TABLE = RecordedAnswerRow.__table__


def _insert_for(engine: Engine):
    name = engine.dialect.name
    if name == "postgresql":
        return postgresql.insert(_TABLE)
    if name == "sqlite":
        return sqlite.insert(_TABLE)
    raise NotImplementedError(f"answer upsert not supported for dialect {name}")


def _to_model(row: RecordedAnswerRow) -> RecordedAnswer:
    try:
        selected = json.loads(row.selected_option_ids or "[]")
    except json.JSONDecodeError:
        logger.error(
            "recorded_answer_bad_selection respondent=%s question=%s",
            row.respondent_id,
            row.question_id,
            exc_info=True,
        )
        selected = []
    answered_at = row.answered_at
    if answered_at is not None and answered_at.tzinfo is None:
        # SQLite hands back naive datetimes; values are written in UTC
        answered_at = answered_at.replace(tzinfo=timezone.utc)
    return RecordedAnswer(
        respondent_id=row.respondent_id,
        question_id=row.question_id,
        selected_option_ids=tuple(str(s) for s in selected),
        open_text=row.open_text,
        points_awarded=int(row.points_awarded or 0),
        answered_at=answered_at,
    )


class SqlAnswerStore:
    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    def upsert(
        self,
        respondent_id: str,
        question_id: str,
        draft: AnswerDraft,
        answered_at: Optional[datetime] = None,
    ) -> None:
        values = {
            "respondent_id": str(respondent_id),
            "question_id": str(question_id),
            "selected_option_ids": json.dumps(list(draft.selected_option_ids)),
            "open_text": draft.open_text,
            "points_awarded": int(draft.points_awarded),
            "answered_at": answered_at or datetime.now(timezone.utc),
        }
        stmt = _insert_for(self.engine).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[_TABLE.c.respondent_id, _TABLE.c.question_id],
            set_={
                "selected_option_ids": stmt.excluded.selected_option_ids,
                "open_text": stmt.excluded.open_text,
                "points_awarded": stmt.excluded.points_awarded,
                "answered_at": stmt.excluded.answered_at,
            },
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)
        logger.info(
            "answer_upsert respondent=%s question=%s points=%s",
            values["respondent_id"],
            values["question_id"],
            values["points_awarded"],
        )

    def get(self, respondent_id: str, question_id: str) -> Optional[RecordedAnswer]:
        with session_scope(self.engine) as session:
            row = session.get(RecordedAnswerRow, (str(respondent_id), str(question_id)))
            return _to_model(row) if row is not None else None

    def list_for_respondent(self, respondent_id: str) -> List[RecordedAnswer]:
        with session_scope(self.engine) as session:
            rows = session.execute(
                select(RecordedAnswerRow)
                .where(RecordedAnswerRow.respondent_id == str(respondent_id))
                .order_by(RecordedAnswerRow.question_id)
            ).scalars().all()
            return [_to_model(r) for r in rows]


__all__ = ["SqlAnswerStore"]
