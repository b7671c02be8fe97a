"""Agent registry data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AgentDescriptor:
    """A statically configured agent of the monitored fleet."""

    id: str
    display_name: str
    icon: str
    stream_name: str  # durable stream holding the agent's events
    subject_prefix: str  # e.g. "openclaw.events.vera."

    def owns(self, subject: str) -> bool:
        """Whether a subject belongs to this agent's hierarchy."""
        return subject.startswith(self.subject_prefix)
