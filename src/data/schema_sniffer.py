"""
Schema Sniffer
==============

Classifies an uploaded Dataset from its header alone:

- ANALYSES_EXPORT: previously stored LLM analyses (overall_sentiment,
  sentiment_score, pain_points, themes all present)
- RAW_REVIEWS: a review export with Review Comment or Review Rating
- GENERIC: anything else

All rows share the header's column set, so only the first row is
inspected.
"""

from typing import FrozenSet

from .data_models import COL_COMMENT, COL_RATING, Dataset, DatasetKind

ANALYSES_EXPORT_COLUMNS: FrozenSet[str] = frozenset({
    "overall_sentiment",
    "sentiment_score",
    "pain_points",
    "themes",
})

RAW_REVIEW_COLUMNS: FrozenSet[str] = frozenset({COL_COMMENT, COL_RATING})


def columns_of(dataset: Dataset) -> FrozenSet[str]:
    """Column set of a Dataset (empty for an empty Dataset)."""
    if not dataset:
        return frozenset()
    return frozenset(dataset[0].keys())


def sniff_kind(dataset: Dataset) -> DatasetKind:
    """Return the DatasetKind implied by the header."""
    columns = columns_of(dataset)
    if ANALYSES_EXPORT_COLUMNS <= columns:
        return DatasetKind.ANALYSES_EXPORT
    if columns & RAW_REVIEW_COLUMNS:
        return DatasetKind.RAW_REVIEWS
    return DatasetKind.GENERIC
