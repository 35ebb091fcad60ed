# utils/sanitization.py
from typing import Optional
import re

CONTROL_CHARS = r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f-\x9f]"
WHITESPACE = re.compile(r"\s+")


def clean_query(value: Optional[str]) -> str:
    """Drop control characters and surrounding whitespace; inner spacing is kept."""
    if value is None:
        return ""
    return re.sub(CONTROL_CHARS, "", value).strip()


def normalize_topic_name(value: Optional[str]) -> str:
    """Canonical Topic key: trimmed and lower-cased."""
    return clean_query(value).lower()


def squash_name(value: str) -> str:
    """Lower-cased with all whitespace removed ("Black Hole" -> "blackhole")."""
    return WHITESPACE.sub("", value.lower())
