"""
Pulse AI Module
===============

LLM collaborator for qualitative review analysis:
- llm_client: Anthropic / OpenAI clients with JSON extraction
- review_analyzer: per-group deep dive and result merging
"""

from .llm_client import LLMClient, AnthropicClient, OpenAIClient, get_llm_client, extract_json
from .review_analyzer import (
    DeepDiveService,
    DeepDiveResult,
    LLMReviewAnalyzer,
    build_review_text,
    merge_deep_dive,
)

__all__ = [
    "LLMClient",
    "AnthropicClient",
    "OpenAIClient",
    "get_llm_client",
    "extract_json",
    "DeepDiveService",
    "DeepDiveResult",
    "LLMReviewAnalyzer",
    "build_review_text",
    "merge_deep_dive",
]
