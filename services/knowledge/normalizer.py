# services/knowledge/normalizer.py
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from services.knowledge.errors import MalformedGeneratorOutput, IncompleteGeneratorOutput

logger = logging.getLogger(__name__)

MAX_UNWRAP_DEPTH = 4
MAX_OPENERS_PER_KIND = 16
WRAPPER_KEYS = ("response", "result")

# Evaluated top to bottom; the first substring found in the squashed key wins.
KEY_RULES: Tuple[Tuple[str, str], ...] = (
    ("chatresponse", "chat_response"),
    ("canonical", "canonical_name"),
    ("topic", "topic"),
    ("title", "title"),
    ("tags", "tags"),
    ("content", "content"),
)

REQUIRED_FIELDS = ("topic", "content")

_NON_ALNUM = re.compile(r"[^0-9a-z]")


class GeneratedTopic(BaseModel):
    topic: str
    content: str
    tags: List[str] = Field(default_factory=list)
    canonical_name: str
    chat_response: str = ""
    title: Optional[str] = None
    extras: Dict[str, Any] = Field(default_factory=dict)


def normalize_generator_output(raw_text: str) -> GeneratedTopic:
    """
    Coerce whatever the generator returned into a GeneratedTopic.

    Handles markdown fences, leading/trailing prose, top-level arrays,
    `response`/`result` wrappers and loosely named keys.

    Raises:
        MalformedGeneratorOutput: no JSON payload could be decoded.
        IncompleteGeneratorOutput: topic or content missing.
    """
    raw_text = raw_text or ""
    payload = _decode_payload(raw_text)
    obj = _unwrap(payload)
    if not isinstance(obj, dict):
        raise IncompleteGeneratorOutput(REQUIRED_FIELDS, raw_text)

    fields, extras = _normalize_keys(obj)

    missing = [name for name in REQUIRED_FIELDS if not _as_text(fields.get(name))]
    if missing:
        logger.error(f"Generator output missing {missing}: {raw_text[:500]}")
        raise IncompleteGeneratorOutput(missing, raw_text)

    topic = _as_text(fields["topic"])
    canonical = _as_text(fields.get("canonical_name")) or topic
    title = _as_text(fields.get("title")) or None

    return GeneratedTopic(
        topic=topic,
        content=_as_text(fields["content"]),
        tags=_coerce_tags(fields.get("tags")),
        canonical_name=canonical,
        chat_response=_as_text(fields.get("chat_response")),
        title=title,
        extras=extras,
    )


def _candidate_spans(text: str) -> List[Tuple[int, int]]:
    """
    Every opener paired with the last matching closer, so a stray bracket in
    leading prose does not hide the payload after it.
    """
    spans = []
    for opener, closer in (("{", "}"), ("[", "]")):
        end = text.rfind(closer)
        start = text.find(opener)
        tried = 0
        while start != -1 and start < end and tried < MAX_OPENERS_PER_KIND:
            spans.append((start, end))
            tried += 1
            start = text.find(opener, start + 1)
    # Opens first, then closes last
    spans.sort(key=lambda span: (span[0], -span[1]))
    return spans


def _decode_payload(raw_text: str) -> Any:
    candidates = [raw_text[start:end + 1] for start, end in _candidate_spans(raw_text)]
    if not candidates:
        candidates = [raw_text.strip()]

    last_error = None
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e

    logger.error(f"Failed to parse generator output as JSON: {last_error}. Content: {raw_text[:500]}")
    raise MalformedGeneratorOutput(f"Generator output is not valid JSON: {last_error}", raw_text)


def _unwrap(payload: Any) -> Any:
    current = payload
    for _ in range(MAX_UNWRAP_DEPTH):
        if isinstance(current, list):
            if not current:
                return None
            current = current[0]
            continue

        if isinstance(current, dict):
            wrapped = _wrapper_value(current)
            if wrapped is None:
                return current
            current = wrapped
            continue

        return current

    # Depth budget spent: only accept what we are already holding
    return current if isinstance(current, dict) and _wrapper_value(current) is None else None


def _wrapper_value(obj: Dict[str, Any]) -> Any:
    for key, value in obj.items():
        if isinstance(key, str) and key.strip().lower() in WRAPPER_KEYS and isinstance(value, (dict, list)):
            return value
    return None


def _normalize_keys(obj: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    fields: Dict[str, Any] = {}
    exact: set = set()
    extras: Dict[str, Any] = {}

    for key, value in obj.items():
        lowered = str(key).strip().lower()
        squashed = _NON_ALNUM.sub("", lowered)

        target = None
        for needle, field_name in KEY_RULES:
            if needle in squashed:
                target = field_name
                break

        if target is None:
            extras[lowered] = value
            continue

        is_exact = squashed == _NON_ALNUM.sub("", target)
        if target in fields and (target in exact or not is_exact):
            continue
        fields[target] = value
        if is_exact:
            exact.add(target)

    return fields, extras


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _coerce_tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []

    tags = []
    for item in items:
        text = _as_text(item)
        if text and text not in tags:
            tags.append(text)
    return tags
