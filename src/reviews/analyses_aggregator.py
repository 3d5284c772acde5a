"""
Analyses Aggregator
===================

Cross-record rollups over stored analyses (client or competitor):
    - average sentiment score and sentiment distribution
    - top-N frequency tables for themes / pain points / praise / competitors
    - per source_type average score and sentiment shares
    - competitor comparison

List fields are stored as JSON text in the analyses table and in CSV
exports. They are parsed defensively: anything that is not a list of
strings contributes nothing, and never aborts the aggregation.

Usage:
    records = [AnalysisRecord.from_dict(r) for r in rows]
    aggregate = aggregate_analyses(records)
"""

import json
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.data.data_models import AnalysisRecord, round_half_up
from src.scoring.scoring_config import DEFAULT_ANALYSES_CONFIG, AnalysesConfig

from .review_models import AnalysesAggregate, CompetitorSummary, FrequencyTable, SourceAverage

logger = logging.getLogger(__name__)


def parse_string_list(raw: Any) -> List[str]:
    """
    Parse a serialized list cell into a list of strings.

    Accepts an actual list or JSON text of a list. Non-string items are
    skipped. Returns [] on any failure.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = raw
    elif isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            items = json.loads(raw)
        except (ValueError, TypeError):
            return []
        if not isinstance(items, list):
            return []
    else:
        return []
    return [item for item in items if isinstance(item, str)]


def frequency_table(values: Iterable[str], limit: Optional[int] = None) -> FrequencyTable:
    """
    Count values and sort by descending count.

    Counter preserves first-seen order and sorted() is stable, so ties
    stay in first-encountered order.
    """
    counts = Counter(values)
    table = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        table = table[:limit]
    return table


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return round_half_up(sum(values) / len(values), 1)


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


class AnalysesAggregator:
    """Builds the AnalysesAggregate shown on the client dashboard."""

    def __init__(self, config: Optional[AnalysesConfig] = None):
        self.config = config or DEFAULT_ANALYSES_CONFIG

    def aggregate(self, records: Sequence[AnalysisRecord]) -> AnalysesAggregate:
        cfg = self.config

        scores = [r.score for r in records if r.score is not None]
        sentiment_counts = self.sentiment_counts(records)

        def top(field_name: str) -> FrequencyTable:
            values = (
                item
                for record in records
                for item in parse_string_list(getattr(record, field_name))
            )
            return frequency_table(values, cfg.top_n.get(field_name))

        aggregate = AnalysesAggregate(
            total=len(records),
            avg_score=_mean(scores),
            sentiment_counts=sentiment_counts,
            top_themes=top("themes"),
            top_pains=top("pain_points"),
            top_praise=top("praise_points"),
            top_competitors=top("competitor_mentions"),
            top_feature_requests=top("feature_requests"),
            source_averages=self.source_averages(records),
            key_quotes=[r.key_quote for r in records if r.key_quote][:cfg.key_quotes],
        )

        if records and not scores:
            logger.warning(f"None of {len(records)} analyses has a numeric sentiment_score")
        logger.debug(
            f"Aggregated {len(records)} analyses: avg={aggregate.avg_score}, "
            f"{len(aggregate.source_averages)} sources"
        )
        return aggregate

    def sentiment_counts(self, records: Iterable[AnalysisRecord]) -> Dict[str, int]:
        """Tally of the known overall_sentiment values; unknown values are ignored."""
        counts = {s: 0 for s in self.config.sentiments}
        for record in records:
            if record.overall_sentiment in counts:
                counts[record.overall_sentiment] += 1
        return counts

    def source_averages(self, records: Iterable[AnalysisRecord]) -> List[SourceAverage]:
        """
        Per source_type rollup, sorted by descending average.

        Sources without a single valid score sort last; ties keep
        first-encountered order.
        """
        buckets: Dict[str, List[AnalysisRecord]] = {}
        for record in records:
            source = record.source_type or self.config.default_source
            buckets.setdefault(source, []).append(record)

        averages = []
        for source, members in buckets.items():
            scores = [r.score for r in members if r.score is not None]
            counts = self.sentiment_counts(members)
            averages.append(SourceAverage(
                source=source,
                count=len(members),
                avg=_mean(scores),
                sentiment_counts=counts,
                pct_negative=_percent(counts.get("negative", 0), len(members)),
                pct_positive=_percent(counts.get("positive", 0), len(members)),
            ))

        averages.sort(key=lambda s: s.avg if s.avg is not None else float("-inf"), reverse=True)
        return averages

    def summarize_competitors(
        self,
        records: Iterable[AnalysisRecord],
        competitor_names: Mapping[str, str],
    ) -> List[CompetitorSummary]:
        """
        Average score and dominant sentiment per competitor.

        Records whose competitor_id is not in competitor_names are skipped.
        The dominant sentiment is the most frequent overall_sentiment
        (first seen wins ties), "neutral" when there is none.
        """
        buckets: Dict[str, List[AnalysisRecord]] = {}
        for record in records:
            if record.competitor_id and record.competitor_id in competitor_names:
                buckets.setdefault(record.competitor_id, []).append(record)

        summaries = []
        for competitor_id, members in buckets.items():
            sentiments = frequency_table(r.overall_sentiment for r in members if r.overall_sentiment)
            summaries.append(CompetitorSummary(
                competitor_id=competitor_id,
                name=competitor_names[competitor_id],
                count=len(members),
                avg=_mean([r.score for r in members if r.score is not None]),
                dominant_sentiment=sentiments[0][0] if sentiments else "neutral",
            ))
        return summaries


def split_by_owner(
    records: Iterable[AnalysisRecord],
) -> Tuple[List[AnalysisRecord], List[AnalysisRecord]]:
    """
    Separate a client's own analyses from its competitor analyses.

    Own analyses carry a client_id and no competitor_id.
    """
    own, competitors = [], []
    for record in records:
        if record.competitor_id:
            competitors.append(record)
        elif record.client_id:
            own.append(record)
    return own, competitors


def aggregate_analyses(
    records: Sequence[AnalysisRecord],
    config: Optional[AnalysesConfig] = None,
) -> AnalysesAggregate:
    """Aggregate stored analyses. See AnalysesAggregator.aggregate."""
    return AnalysesAggregator(config).aggregate(records)
