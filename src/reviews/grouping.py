"""
Grouping Engine
===============

Partitions raw review rows into named groups by a user-selected column
(region, state, city, individual location, ...).

Rows whose key is empty, starts with a numeric database id (5+ digits) or
names a corporate rollup are dropped before grouping: they belong to no
group and are not counted anywhere except GroupingResult.dropped_rows.

Groups are rebuilt from scratch on every call; nothing is cached.

Usage:
    engine = GroupingEngine()
    result = engine.group(rows, "Region")
    for group in result.groups:
        ...
"""

import logging
from typing import Callable, Dict, List, Optional

from src.data.data_models import (
    COL_BUSINESS,
    COL_CITY,
    COL_COMMENT,
    COL_DATE,
    COL_DIVISION,
    COL_LOCATION,
    COL_RATING,
    COL_REGION,
    COL_SOURCE,
    COL_STATE,
    Dataset,
    Row,
    cell,
    parse_number,
    round_half_up,
)
from src.scoring.scoring_config import DEFAULT_NOISE_FILTER, NoiseFilterConfig

from .review_models import Group, GroupingResult, ReviewComment

logger = logging.getLogger(__name__)


KeyFunction = Callable[[Row], str]


def _city_key(row: Row) -> str:
    city = cell(row, COL_CITY).strip()
    state = cell(row, COL_STATE).strip()
    if not city:
        return ""
    return f"{city}, {state}" if state else city


def _location_key(row: Row) -> str:
    business = cell(row, COL_BUSINESS).strip()
    location = cell(row, COL_LOCATION).strip()
    if location:
        return f"{business} - {location}" if business else location
    place = _city_key(row) or cell(row, COL_STATE).strip()
    if place:
        return f"{business} - {place}" if business else place
    return business


# Preset groupings offered by the upload screen, broadest first
GROUP_PRESETS: Dict[str, KeyFunction] = {
    "region": lambda row: cell(row, COL_REGION),
    "division": lambda row: cell(row, COL_DIVISION),
    "state": lambda row: cell(row, COL_STATE),
    "city": _city_key,
    "location": _location_key,
}


def is_noise_key(key: str, config: NoiseFilterConfig = DEFAULT_NOISE_FILTER) -> bool:
    """True when a resolved group key must be dropped from grouping."""
    if key == config.unknown_key:
        return True
    if config.numeric_id_pattern.match(key):
        return True
    lowered = key.lower()
    return any(blocked.lower() in lowered for blocked in config.blocked_substrings)


def rating_bucket(rating: float) -> int:
    """Star bucket 0..5 of a rating, half-up (2.5 -> 3)."""
    return round_half_up(min(5.0, max(0.0, rating)))


class GroupingEngine:
    """
    Buckets rows by exact string equality of their resolved key.

    Output order is first-seen order of each key; callers that need a
    specific order go through src.reviews.views.
    """

    def __init__(self, noise_filter: Optional[NoiseFilterConfig] = None):
        self.noise_filter = noise_filter or DEFAULT_NOISE_FILTER

    def resolve_key(self, row: Row, key_fn: KeyFunction) -> str:
        return key_fn(row).strip() or self.noise_filter.unknown_key

    def group(self, dataset: Dataset, key_column: str) -> GroupingResult:
        """
        Group rows by the value of key_column.

        A column absent from the Dataset resolves every key to "Unknown",
        so the result is empty rather than an error.
        """
        result = self._group_with(dataset, lambda row: cell(row, key_column))
        result.key = key_column
        return result

    def group_by_preset(self, dataset: Dataset, preset: str) -> GroupingResult:
        """Group rows with one of GROUP_PRESETS (region, division, state, city, location)."""
        key_fn = GROUP_PRESETS.get(preset)
        if key_fn is None:
            raise ValueError(
                f"Unknown grouping preset '{preset}', expected one of {sorted(GROUP_PRESETS)}"
            )
        result = self._group_with(dataset, key_fn)
        result.key = preset
        return result

    def _group_with(self, dataset: Dataset, key_fn: KeyFunction) -> GroupingResult:
        groups: Dict[str, Group] = {}
        dropped = 0

        for row in dataset:
            key = self.resolve_key(row, key_fn)
            if is_noise_key(key, self.noise_filter):
                dropped += 1
                continue

            group = groups.get(key)
            if group is None:
                group = Group(
                    name=key,
                    region=cell(row, COL_REGION),
                    state=cell(row, COL_STATE),
                    city=cell(row, COL_CITY),
                    business=cell(row, COL_BUSINESS),
                )
                groups[key] = group

            self._accumulate(group, row)

        if dataset and not groups:
            logger.warning(f"No groups built from {len(dataset)} rows (all keys filtered as noise)")
        else:
            logger.debug(f"Built {len(groups)} groups from {len(dataset)} rows, {dropped} dropped")

        return GroupingResult(groups=list(groups.values()), dropped_rows=dropped)

    @staticmethod
    def _accumulate(group: Group, row: Row):
        group.rows.append(row)

        raw_rating = cell(row, COL_RATING).strip()
        rating = parse_number(raw_rating)
        if rating is not None:
            group.ratings.append(rating)
            group.rating_dist[rating_bucket(rating)] += 1

        source = cell(row, COL_SOURCE).strip()
        if source:
            group.sources[source] = group.sources.get(source, 0) + 1

        comment = cell(row, COL_COMMENT).strip()
        if comment:
            group.comments.append(ReviewComment(
                text=comment,
                rating=raw_rating,
                date=cell(row, COL_DATE).strip(),
                source=source,
            ))


def group_rows(
    dataset: Dataset,
    key_column: str,
    noise_filter: Optional[NoiseFilterConfig] = None,
) -> List[Group]:
    """Group a Dataset by key_column. See GroupingEngine.group."""
    return GroupingEngine(noise_filter).group(dataset, key_column).groups


def group_rows_by_preset(
    dataset: Dataset,
    preset: str,
    noise_filter: Optional[NoiseFilterConfig] = None,
) -> List[Group]:
    """Group a Dataset with a named preset. See GroupingEngine.group_by_preset."""
    return GroupingEngine(noise_filter).group_by_preset(dataset, preset).groups
