"""
Sort / filter projection of the location dashboard.

view() never mutates its input: it returns a new list ordered by the
chosen key, with Python's stable sort keeping ties in input order.
"""

from enum import Enum
from typing import Callable, List, Sequence, Union

from .location_stats import compute_stats
from .review_models import Group, LocationReport, LocationStats


class SortKey(str, Enum):
    AVG_ASC = "avg_asc"        # worst first, no-rating groups last
    AVG_DESC = "avg_desc"      # best first, no-rating groups last
    VOLUME = "volume"          # most rows first
    NEGATIVE = "negative"      # highest negative share first


def _sort_value(key: SortKey) -> Callable[[LocationStats], float]:
    if key is SortKey.AVG_ASC:
        return lambda s: s.avg if s.avg is not None else float("inf")
    if key is SortKey.AVG_DESC:
        return lambda s: -(s.avg if s.avg is not None else 0.0)
    if key is SortKey.VOLUME:
        return lambda s: -s.total
    return lambda s: -s.pct_negative


def matches_filter(group: Group, filter_text: str) -> bool:
    """Case-insensitive substring match on name, region or state."""
    needle = filter_text.lower()
    if not needle:
        return True
    return any(needle in (value or "").lower() for value in (group.name, group.region, group.state))


def view(
    groups: Sequence[Group],
    filter_text: str = "",
    sort_key: Union[SortKey, str] = SortKey.AVG_ASC,
) -> List[Group]:
    """
    Filter and order groups for display.

    Args:
        groups: Groups from the grouping engine
        filter_text: Matched against name / region / state, empty keeps all
        sort_key: SortKey or its string value

    Raises:
        ValueError: Unknown sort key
    """
    key = SortKey(sort_key)
    kept = [g for g in groups if matches_filter(g, filter_text or "")]
    value = _sort_value(key)
    ranked = sorted(((g, compute_stats(g)) for g in kept), key=lambda pair: value(pair[1]))
    return [g for g, _ in ranked]


def view_reports(
    reports: Sequence[LocationReport],
    filter_text: str = "",
    sort_key: Union[SortKey, str] = SortKey.AVG_ASC,
) -> List[LocationReport]:
    """Same projection over LocationReports, reusing their stats."""
    key = SortKey(sort_key)
    value = _sort_value(key)
    kept = [r for r in reports if matches_filter(r.group, filter_text or "")]
    return sorted(kept, key=lambda r: value(r.stats))
