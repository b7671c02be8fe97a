"""Event classification module."""

from .classifier import (
    CATEGORY_RULES,
    DEFAULT_AGENT,
    classify_agent,
    classify_category,
    classify_message,
    decode_payload,
    extract_session_key,
    sub_category,
)

__all__ = [
    "CATEGORY_RULES",
    "DEFAULT_AGENT",
    "classify_agent",
    "classify_category",
    "classify_message",
    "decode_payload",
    "extract_session_key",
    "sub_category",
]
