"""
Pulse Review Analyzer (deep dive)
=================================

Sends a group's verbatim comments to the LLM collaborator and returns a
structured AnalysisRecord per group:
- overall sentiment and 1-10 score
- themes, pain points, praise points
- competitor mentions and feature requests
- key quote and stakeholder summary

Each group is a self-contained unit (name + comment text). Deep dives for
different groups run concurrently and never affect each other: a failure
becomes an error-tagged DeepDiveResult for that one group. Results are
merged back by group name; results for groups that no longer exist (the
dataset was replaced or regrouped) are discarded.

Usage:
    service = DeepDiveService(LLMReviewAnalyzer())
    results = asyncio.run(service.run(groups, names=["Southeast"]))
    state = merge_deep_dive(state, results, live_names={g.name for g in groups})
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Sequence

from src.data.config import LLMConfig
from src.data.data_models import AnalysisRecord
from src.reviews.review_models import Group

from .llm_client import LLMClient, get_llm_client

logger = logging.getLogger(__name__)


AnalyzeFn = Callable[[str, str], Awaitable[Mapping[str, Any]]]

NO_REVIEW_TEXT = "No review text found"


REVIEW_ANALYSIS_PROMPT = """You are a brand sentiment analyst. Analyze the following customer reviews for "{label}" and return ONLY valid JSON with no markdown, no code blocks, no explanation.

Return this exact structure:
{{
  "overall_sentiment": "positive" | "negative" | "mixed" | "neutral",
  "sentiment_score": <number 1-10>,
  "confidence": "high" | "medium" | "low",
  "themes": ["<theme1>", "<theme2>"],
  "sentiment_per_theme": {{ "<theme>": "positive" | "negative" | "mixed" | "neutral" }},
  "pain_points": ["<complaint>"],
  "praise_points": ["<positive>"],
  "competitor_mentions": ["<competitor>"],
  "feature_requests": ["<request>"],
  "key_quote": "<most representative sentence from the reviews>",
  "summary": "<2-3 sentence stakeholder summary>"
}}

Reviews:
---
{reviews_text}
---"""


def build_review_text(group: Group) -> str:
    """
    Format a group's comments for the prompt.

    One block per comment, "Rating: 4/5 | Source: Google | Date: ... | text",
    empty parts omitted, blocks separated by a blank line.
    """
    blocks = []
    for comment in group.comments:
        parts = [
            f"Rating: {comment.rating}/5" if comment.rating else "",
            f"Source: {comment.source}" if comment.source else "",
            f"Date: {comment.date}" if comment.date else "",
            comment.text,
        ]
        blocks.append(" | ".join(p for p in parts if p))
    return "\n\n".join(blocks)


class LLMReviewAnalyzer:
    """
    analyze(text, label) backed by the LLM client.

    Input is truncated to LLMConfig.max_input_chars before prompting.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None, config: Optional[LLMConfig] = None):
        self._llm_client = llm_client
        self.config = config or LLMConfig()

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = get_llm_client(model=self.config.model)
        return self._llm_client

    async def __call__(self, text: str, label: str) -> Dict[str, Any]:
        prompt = REVIEW_ANALYSIS_PROMPT.format(
            label=label,
            reviews_text=text[:self.config.max_input_chars],
        )
        return await self.llm_client.generate_json(prompt, max_tokens=self.config.max_tokens)


@dataclass(frozen=True)
class DeepDiveResult:
    """Outcome of one group's deep dive: exactly one of record / error is set."""
    group: str
    record: Optional[AnalysisRecord] = None
    error: Optional[str] = None
    review_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class DeepDiveService:
    """
    Runs deep dives over groups and optionally persists each success.

    Args:
        analyze: async (text, label) -> AnalysisRecord-shaped mapping
        repository: optional store with a save(record) method
        source_type: source_type written on each record (e.g. "csv_region")
    """

    def __init__(self, analyze: AnalyzeFn, repository=None, source_type: str = "csv_upload"):
        self.analyze = analyze
        self.repository = repository
        self.source_type = source_type

    async def analyze_text(self, text: str, label: str, source_type: Optional[str] = None) -> AnalysisRecord:
        """
        Analyze free text under a label and store the result.

        Raises whatever the analyze callable raises.
        """
        data = await self.analyze(text, label)
        record = AnalysisRecord.from_dict({
            **data,
            "url": f"csv_upload:{label}",
            "source_type": source_type or self.source_type,
        })

        if self.repository is not None:
            try:
                await asyncio.to_thread(self.repository.save, record)
            except Exception as e:
                # a storage failure does not fail the analysis
                logger.error(f"Failed to store analysis for '{label}': {e}")

        return record

    async def analyze_group(self, group: Group) -> DeepDiveResult:
        text = build_review_text(group)
        review_count = len(group.comments)

        if not text.strip():
            return DeepDiveResult(group=group.name, error=NO_REVIEW_TEXT, review_count=0)

        try:
            record = await self.analyze_text(text, group.name)
        except Exception as e:
            logger.warning(f"Deep dive failed for '{group.name}': {e}")
            return DeepDiveResult(group=group.name, error=str(e) or type(e).__name__,
                                  review_count=review_count)

        logger.info(
            f"Deep dive for '{group.name}': {record.overall_sentiment} "
            f"({record.sentiment_score}) from {review_count} reviews"
        )
        return DeepDiveResult(group=group.name, record=record, review_count=review_count)

    async def run(
        self,
        groups: Sequence[Group],
        names: Optional[Iterable[str]] = None,
    ) -> Dict[str, DeepDiveResult]:
        """
        Deep-dive the selected groups concurrently.

        Args:
            groups: Current groups
            names: Group names to analyze, all groups when None

        Returns:
            {group name: DeepDiveResult}, in group order
        """
        wanted = None if names is None else set(names)
        selected = [g for g in groups if wanted is None or g.name in wanted]
        results = await asyncio.gather(*(self.analyze_group(g) for g in selected))
        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning(f"{failed}/{len(results)} deep dives failed")
        return {r.group: r for r in results}


def merge_deep_dive(
    state: Mapping[str, DeepDiveResult],
    results: Mapping[str, DeepDiveResult],
    live_names: Iterable[str],
) -> Dict[str, DeepDiveResult]:
    """
    Merge results into per-group display state.

    Returns a new mapping; results for names not in live_names are stale
    and dropped. Entries already in state for groups that disappeared are
    dropped too.
    """
    live = set(live_names)
    merged = {name: result for name, result in state.items() if name in live}
    for name, result in results.items():
        if name in live:
            merged[name] = result
        else:
            logger.debug(f"Discarding stale deep dive for '{name}'")
    return merged
