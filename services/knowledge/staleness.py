# services/knowledge/staleness.py
import calendar
import os
from datetime import datetime, timezone
from typing import Optional

FRESHNESS_WINDOW_MONTHS = int(os.getenv("KNOWLEDGE_FRESHNESS_MONTHS", "3"))

MISSING_TOPIC = "missing_topic"
MISSING_ARTICLE = "missing_article"
EMPTY_ARTICLE = "empty_article"
EXPIRED = "expired"


def months_before(moment: datetime, months: int) -> datetime:
    """Calendar-month subtraction; the day is clamped to the target month's end."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def staleness_reason(match, now: Optional[datetime] = None, window_months: int = None) -> Optional[str]:
    """
    Decide whether cached content for one language can be served.

    `match` is a resolver TopicMatch (or None). Returns None when the article
    is fresh, otherwise the reason it must be regenerated.
    """
    if match is None:
        return MISSING_TOPIC

    article = match.article
    if article is None:
        return MISSING_ARTICLE
    if not (article.content or "").strip():
        return EMPTY_ARTICLE

    now = as_utc(now or datetime.now(timezone.utc))
    window = FRESHNESS_WINDOW_MONTHS if window_months is None else window_months
    cutoff = months_before(now, window)
    if article.updated_at is None or as_utc(article.updated_at) < cutoff:
        return EXPIRED

    return None


def needs_regeneration(match, now: Optional[datetime] = None, window_months: int = None) -> bool:
    return staleness_reason(match, now, window_months) is not None
