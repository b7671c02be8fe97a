"""Bus message and classified event models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Category(str, Enum):
    """Coarse event categories derived from subject text."""

    MESSAGE = "message"
    TOOL = "tool"
    KNOWLEDGE = "knowledge"
    LIFECYCLE = "lifecycle"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RawMessage:
    """A message as delivered by the bus."""

    subject: str
    data: bytes


@dataclass
class ClassifiedEvent:
    """A decoded bus message with its resolved agent and category."""

    subject: str
    agent_id: str
    category: Category
    payload: Any  # decoded JSON, or {"raw": str} when undecodable
    received_at: datetime

    def to_frame(self) -> dict[str, Any]:
        """Build the push-channel frame sent to live subscribers."""
        return {
            "type": "event",
            "subject": self.subject,
            "agent": self.agent_id,
            "category": self.category.value,
            "data": self.payload,
            "timestamp": int(self.received_at.timestamp() * 1000),
        }
