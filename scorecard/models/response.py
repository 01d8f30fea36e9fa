"""ORM model for recorded answers, unique over (respondent_id, question_id)."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class RecordedAnswerRow(Base):  # type: ignore[valid-type]
    __tablename__ = "recorded_answer"

    # Composite primary key doubles as the upsert conflict target
    respondent_id = Column(String, primary_key=True)
    question_id = Column(String, primary_key=True)
    # JSON-encoded ordered list of option ids
    selected_option_ids = Column(Text, nullable=False, default="[]")
    open_text = Column(Text, nullable=True)
    points_awarded = Column(Integer, nullable=False, default=0)
    answered_at = Column(DateTime(timezone=True), nullable=False)


__all__ = ["RecordedAnswerRow", "Base"]
