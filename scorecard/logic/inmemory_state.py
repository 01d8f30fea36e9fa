"""Central in-memory state holders (dev/test and the memory store backend).

Defines the single source of truth for ephemeral state used by routes and
stores during tests and local development. This removes duplicated globals
across modules and supports explicit dependency injection.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

# Recorded answers for the memory backend: (respondent_id, question_id) -> RecordedAnswer
RECORDED_ANSWERS: Dict[Tuple[str, str], Any] = {}

# Live flow sessions: session_id -> FlowController
FLOW_SESSIONS: Dict[str, Any] = {}

__all__ = [
    "RECORDED_ANSWERS",
    "FLOW_SESSIONS",
]
