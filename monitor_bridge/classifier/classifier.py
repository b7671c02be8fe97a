"""Pure classification of bus messages into agents and categories.

Nothing here keeps state: the same (subject, payload) always resolves to
the same (agent, category).
"""

import json
import math
from datetime import datetime, timezone
from typing import Any

from ..models import Category, ClassifiedEvent, RawMessage

# Evaluated top-down, first substring match wins
CATEGORY_RULES: tuple[tuple[str, Category], ...] = (
    ("message", Category.MESSAGE),
    ("tool", Category.TOOL),
    ("knowledge", Category.KNOWLEDGE),
    ("lifecycle", Category.LIFECYCLE),
)

DEFAULT_AGENT = "main"

# Generic segment used by pre-fix publishers instead of the real agent id
PLACEHOLDER_AGENT = "agent"

SESSION_FIELDS = ("session", "sessionKey")


def _reject_constant(name: str) -> float:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"{text} overflows a JSON number")
    return value


def decode_payload(data: bytes) -> Any:
    """Decode a message body as JSON, wrapping anything else as {"raw": ...}.

    NaN, Infinity and overflowing numbers count as undecodable, so the
    payload always re-encodes as standard JSON.
    """
    try:
        return json.loads(
            data.decode("utf-8"),
            parse_constant=_reject_constant,
            parse_float=_finite_float,
        )
    except (UnicodeDecodeError, ValueError, RecursionError):
        return {"raw": data.decode("utf-8", errors="replace")}


def classify_category(subject: str) -> Category:
    """Map a subject to its category by ordered substring rules."""
    for needle, category in CATEGORY_RULES:
        if needle in subject:
            return category
    return Category.UNKNOWN


def sub_category(subject: str) -> str:
    """Last dot-delimited segment of a subject."""
    return subject.rsplit(".", 1)[-1]


def extract_session_key(payload: Any) -> str | None:
    """Return the first non-empty string session field of a payload, if any."""
    if not isinstance(payload, dict):
        return None
    for name in SESSION_FIELDS:
        value = payload.get(name)
        if isinstance(value, str) and value:
            return value
    return None


def _field(value: str, separator: str, index: int) -> str | None:
    parts = value.split(separator)
    if index < len(parts) and parts[index]:
        return parts[index]
    return None


def classify_agent(subject: str, payload: Any) -> str:
    """
    Resolve the agent that produced a message.

    Session keys look like "agent:<agentId>:<sessionId>" and win over the
    subject hierarchy "<ns>.events.<agentId>.<type>", because legacy
    publishers route everything through a generic "agent" subject segment.
    """
    session_key = extract_session_key(payload)
    if session_key is not None:
        from_session = _field(session_key, ":", 1)
        if from_session is not None and from_session != PLACEHOLDER_AGENT:
            return from_session

    from_subject = _field(subject, ".", 2)
    if from_subject is not None and from_subject != PLACEHOLDER_AGENT:
        return from_subject

    return DEFAULT_AGENT


def classify_message(
    message: RawMessage, received_at: datetime | None = None
) -> ClassifiedEvent:
    """Decode and classify a raw bus message."""
    payload = decode_payload(message.data)
    return ClassifiedEvent(
        subject=message.subject,
        agent_id=classify_agent(message.subject, payload),
        category=classify_category(message.subject),
        payload=payload,
        received_at=received_at or datetime.now(timezone.utc),
    )
