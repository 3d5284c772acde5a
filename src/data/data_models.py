"""
Pulse Data Models
=================

Core data structures for uploaded review exports and stored analyses.

Rows are plain string-keyed dicts: the grouping column and most fields are
chosen at runtime from whatever headers the upload carries, so a fixed
struct would not fit. Every cell is a string; numeric interpretation happens
in the aggregators through parse_number().
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


Row = Dict[str, str]
Dataset = List[Row]


# Column names of a raw review export (case-sensitive)
COL_RATING = "Review Rating"
COL_COMMENT = "Review Comment"
COL_SOURCE = "Review Source"
COL_DATE = "Date Posted On"
COL_REGION = "Region"
COL_DIVISION = "Division"
COL_STATE = "State"
COL_CITY = "City"
COL_BUSINESS = "Business Name"
COL_LOCATION = "Location"


class DatasetKind(str, Enum):
    """What an uploaded file contains, derived from its header."""
    RAW_REVIEWS = "raw_reviews"
    ANALYSES_EXPORT = "analyses_export"
    GENERIC = "generic"


class Sentiment(str, Enum):
    """overall_sentiment values produced by the analysis prompt."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    MIXED = "mixed"
    NEUTRAL = "neutral"


def cell(row: Mapping[str, Any], column: str) -> str:
    """Read a cell, missing or null values read as an empty string."""
    value = row.get(column)
    if value is None:
        return ""
    return str(value)


_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(raw: Any) -> Optional[float]:
    """
    Lenient numeric parse of a cell.

    Accepts a leading number followed by noise ("4 stars" -> 4.0).
    Returns None for anything that has no leading number, and for
    NaN / infinite values.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            return None
        value = float(match.group(0))
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round half away from zero on the decimal representation.

    Python's round() is banker's rounding (round(2.5) == 2); dashboards
    expect 2.5 -> 3. Returns an int when digits == 0.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


@dataclass
class AnalysisRecord:
    """
    One stored structured-sentiment result.

    List fields (themes, pain_points, ...) are kept raw: they arrive as JSON
    text from CSV exports and the analyses table, or as lists from the LLM.
    Aggregators parse them with parse_string_list().
    """
    overall_sentiment: str = ""
    sentiment_score: Any = None
    themes: Any = None
    pain_points: Any = None
    praise_points: Any = None
    competitor_mentions: Any = None
    feature_requests: Any = None
    source_type: str = ""
    summary: str = ""
    key_quote: str = ""
    url: str = ""
    created_at: str = ""

    # Present on LLM output and stored rows, not required by aggregation
    confidence: str = ""
    sentiment_per_theme: Any = None
    client_id: Optional[str] = None
    competitor_id: Optional[str] = None
    id: Optional[str] = None

    LIST_FIELDS = (
        "themes",
        "pain_points",
        "praise_points",
        "competitor_mentions",
        "feature_requests",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisRecord":
        """Build a record from a DB row, CSV row or LLM response; unknown keys are ignored."""
        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        def optional(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None or value == "":
                return None
            return str(value)

        return cls(
            overall_sentiment=text("overall_sentiment"),
            sentiment_score=data.get("sentiment_score"),
            themes=data.get("themes"),
            pain_points=data.get("pain_points"),
            praise_points=data.get("praise_points"),
            competitor_mentions=data.get("competitor_mentions"),
            feature_requests=data.get("feature_requests"),
            source_type=text("source_type"),
            summary=text("summary"),
            key_quote=text("key_quote"),
            url=text("url"),
            created_at=text("created_at"),
            confidence=text("confidence"),
            sentiment_per_theme=data.get("sentiment_per_theme"),
            client_id=optional("client_id"),
            competitor_id=optional("competitor_id"),
            id=optional("id"),
        )

    @property
    def score(self) -> Optional[float]:
        """sentiment_score as a number, None when it does not parse."""
        return parse_number(self.sentiment_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_sentiment": self.overall_sentiment,
            "sentiment_score": self.sentiment_score,
            "themes": self.themes,
            "pain_points": self.pain_points,
            "praise_points": self.praise_points,
            "competitor_mentions": self.competitor_mentions,
            "feature_requests": self.feature_requests,
            "source_type": self.source_type,
            "summary": self.summary,
            "key_quote": self.key_quote,
            "url": self.url,
            "created_at": self.created_at,
            "confidence": self.confidence,
            "sentiment_per_theme": self.sentiment_per_theme,
            "client_id": self.client_id,
            "competitor_id": self.competitor_id,
            "id": self.id,
        }
