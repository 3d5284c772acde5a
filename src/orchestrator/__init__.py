"""
Pulse Orchestrator Module
=========================

Entry points around the aggregation core.

Components:
    - setup_logging / configure_from_settings: console or JSON-lines logging with rotation
    - timed: stage timing logged with structured fields
    - CLI: Command-line interface over CSV exports

Usage:
    python -m src.orchestrator.cli locations reviews.csv --group-by Region
"""

from .logging_config import setup_logging, configure_from_settings, timed, JSONFormatter, ConsoleFormatter

__all__ = [
    "setup_logging",
    "configure_from_settings",
    "timed",
    "JSONFormatter",
    "ConsoleFormatter",
]
