# services/knowledge/auto_linker.py
import logging
import re
import threading
from typing import Iterable, List, Optional, Tuple

from cachetools import LRUCache

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 2

LINK_PATTERN = re.compile(r"\[\[(.*?)\]\]")
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")

# Compatibility jamo and precomposed syllables
HANGUL_PATTERN = re.compile(r"[ㄱ-ㅣ가-힣]")

# Masked links become OPEN + digits-as-private-use-chars + CLOSE,
# which no keyword can match or straddle.
_PH_OPEN = "\uf8fe"
_PH_CLOSE = "\uf8ff"
_PH_DIGIT_BASE = 0xE000
_PLACEHOLDER_PATTERN = re.compile(_PH_OPEN + "([\ue000-\ue009]+)" + _PH_CLOSE)

# Hangul counts as a word character for \b; only ASCII letters, digits and _ block a match
_ASCII_EDGE_BEFORE = r"(?<![A-Za-z0-9_])"
_ASCII_EDGE_AFTER = r"(?![A-Za-z0-9_])"

_keyword_patterns = LRUCache(maxsize=20000)
_alternations = LRUCache(maxsize=256)
_cache_lock = threading.Lock()


def is_hangul(keyword: str) -> bool:
    return bool(HANGUL_PATTERN.search(keyword))


def keyword_pattern(keyword: str) -> str:
    """
    Regex source for a single keyword.

    Latin keywords are bounded by ASCII word characters only, so "NASA의"
    still links, and must not touch a masked link.
    Korean keywords are left unanchored because particles attach directly
    to nouns ("블랙홀의").
    """
    with _cache_lock:
        cached = _keyword_patterns.get(keyword)
    if cached is not None:
        return cached

    escaped = re.escape(keyword)
    if is_hangul(keyword):
        pattern = escaped
    else:
        pattern = rf"(?<!{_PH_CLOSE}){_ASCII_EDGE_BEFORE}{escaped}{_ASCII_EDGE_AFTER}(?!{_PH_OPEN})"

    with _cache_lock:
        _keyword_patterns[keyword] = pattern
    return pattern


def _alternation(candidates: Tuple[str, ...]) -> "re.Pattern":
    with _cache_lock:
        compiled = _alternations.get(candidates)
    if compiled is not None:
        return compiled

    compiled = re.compile("|".join(keyword_pattern(k) for k in candidates), re.IGNORECASE)
    with _cache_lock:
        _alternations[candidates] = compiled
    return compiled


def _placeholder(index: int) -> str:
    return _PH_OPEN + "".join(chr(_PH_DIGIT_BASE + int(d)) for d in str(index)) + _PH_CLOSE


def _placeholder_index(encoded: str) -> int:
    return int("".join(str(ord(c) - _PH_DIGIT_BASE) for c in encoded))


class AutoLinker:
    """
    Wraps known Topic/Alias names in `[[...]]`.

    Built once per keyword index; `link` is idempotent for a stable index.
    """

    def __init__(self, keywords: Iterable[str]):
        unique = {}
        for keyword in keywords:
            keyword = (keyword or "").strip()
            if len(keyword) < MIN_KEYWORD_LENGTH:
                continue
            unique.setdefault(keyword.lower(), keyword)

        # Longest first so multi-word names beat their substrings
        self._keywords: List[Tuple[str, str]] = sorted(
            unique.items(), key=lambda item: (-len(item[0]), item[0])
        )

    def __len__(self) -> int:
        return len(self._keywords)

    def candidates(self, text: str) -> Tuple[str, ...]:
        lowered = text.lower()
        return tuple(keyword for low, keyword in self._keywords if low in lowered)

    def link(self, text: Optional[str]) -> Optional[str]:
        if not text:
            return text

        candidates = self.candidates(text)
        if not candidates:
            return text

        placeholders: List[str] = []

        def _mask(match):
            placeholders.append(match.group(0))
            return _placeholder(len(placeholders) - 1)

        masked = LINK_PATTERN.sub(_mask, text)
        linked = _alternation(candidates).sub(lambda m: f"[[{m.group(0)}]]", masked)

        return _PLACEHOLDER_PATTERN.sub(lambda m: placeholders[_placeholder_index(m.group(1))], linked)


def auto_link(text: Optional[str], keywords: Iterable[str]) -> Optional[str]:
    return AutoLinker(keywords).link(text)


def normalize_markdown_links(text: Optional[str]) -> str:
    """[Text](https://...) -> [[Text]]"""
    if not text:
        return ""
    return MARKDOWN_LINK_PATTERN.sub(r"[[\1]]", text)


def extract_links(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [name.strip() for name in LINK_PATTERN.findall(text) if name.strip()]
