"""Synthetic event publisher for local development."""

from .sim import EVENT_TYPES, ISim, Sim, build_event

__all__ = ["EVENT_TYPES", "ISim", "Sim", "build_event"]
