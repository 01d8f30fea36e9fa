"""Domain event constants and publisher.

Defines event type constants and a simple publish() callable used by the
flow, the answer saver and the score route.
"""

from __future__ import annotations

from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)

ANSWER_SAVED = "answer.saved"
ANSWER_SAVE_FAILED = "answer.save_failed"
INTERSTITIAL_SHOWN = "flow.interstitial_shown"
FLOW_COMPLETED = "flow.completed"
SCORE_CALCULATED = "score.calculated"


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event.

    In this minimal implementation, we log the event for observability.
    """
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    # Buffer events in-memory for test observation
    EVENT_BUFFER.append({"type": event_type, "payload": payload})


# In-memory buffer for domain events (test-only visibility)
EVENT_BUFFER: List[Dict[str, Any]] = []


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events

__all__ = [
    "ANSWER_SAVED",
    "ANSWER_SAVE_FAILED",
    "INTERSTITIAL_SHOWN",
    "FLOW_COMPLETED",
    "SCORE_CALCULATED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
