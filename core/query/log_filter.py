"""
core.query.log_filter

Predicate, time-parsing and ordering helpers behind LogStore.query.

Used by:
  - runtime/store/log_store.py
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

# Filters compared with plain equality against the entry value.
EXACT_MATCH_FILTERS = ("level", "resourceId", "traceId", "spanId", "commit")


# -------------------------------------------------------------------
# Timestamps
# -------------------------------------------------------------------


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    A trailing "Z" and naive values are read as UTC; explicit offsets are
    converted. Returns None for anything that cannot be parsed.
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# -------------------------------------------------------------------
# Filtering
# -------------------------------------------------------------------


def _matches(
    entry: Mapping[str, Any],
    filters: Mapping[str, str],
    start: Optional[datetime],
    end: Optional[datetime],
) -> bool:
    for key in EXACT_MATCH_FILTERS:
        if key in filters and entry.get(key) != filters[key]:
            return False

    if "message" in filters:
        message = entry.get("message")
        if not isinstance(message, str):
            return False
        if filters["message"].lower() not in message.lower():
            return False

    if "timestamp_start" in filters or "timestamp_end" in filters:
        logged_at = parse_timestamp(entry.get("timestamp"))
        if logged_at is None:
            # Unparsable entry timestamps never satisfy a range bound.
            return False
        if "timestamp_start" in filters and (start is None or logged_at < start):
            return False
        if "timestamp_end" in filters and (end is None or logged_at > end):
            return False

    return True


def filter_entries(
    entries: Iterable[Mapping[str, Any]], filters: Mapping[str, str]
) -> List[Dict[str, Any]]:
    """
    Return the entries satisfying every supplied filter.

    Parameters
    ----------
    entries:
        Stored entries in insertion order.
    filters:
        Active filters keyed by wire name (see LogQuery.active_filters).
        A bound that cannot be parsed matches nothing.
    """
    start = parse_timestamp(filters.get("timestamp_start"))
    end = parse_timestamp(filters.get("timestamp_end"))
    return [entry for entry in entries if _matches(entry, filters, start, end)]


# -------------------------------------------------------------------
# Ordering
# -------------------------------------------------------------------


def sort_newest_first(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sort entries by timestamp, most recent first.

    The sort is stable: equal timestamps keep insertion order. Entries with
    unparsable timestamps go last, also in insertion order.
    """

    def sort_key(entry: Mapping[str, Any]):
        parsed = parse_timestamp(entry.get("timestamp"))
        if parsed is None:
            return (False, datetime.min.replace(tzinfo=timezone.utc))
        return (True, parsed)

    # sorted(reverse=True) preserves the relative order of equal keys.
    return sorted(entries, key=sort_key, reverse=True)
