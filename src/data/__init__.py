"""
Pulse Data Module
=================

Ingestion of review exports and stored analyses.

This module provides:
    - parse_csv / to_csv / read_csv_file: schema-flexible CSV handling
    - sniff_kind: classify an upload as raw reviews, analyses export or generic
    - Data models: Row, Dataset, DatasetKind, AnalysisRecord
    - Settings: environment-driven configuration

Quick Start:
    from src.data import read_csv_file, sniff_kind

    rows = read_csv_file("reviews.csv")
    kind = sniff_kind(rows)
"""

from .config import get_settings, Settings
from .data_models import (
    Row,
    Dataset,
    DatasetKind,
    Sentiment,
    AnalysisRecord,
    cell,
    parse_number,
    round_half_up,
)
from .csv_parser import parse_csv, to_csv, read_csv_file
from .schema_sniffer import sniff_kind, columns_of

__all__ = [
    # Configuration
    "get_settings",
    "Settings",
    # Data models
    "Row",
    "Dataset",
    "DatasetKind",
    "Sentiment",
    "AnalysisRecord",
    "cell",
    "parse_number",
    "round_half_up",
    # Parsing
    "parse_csv",
    "to_csv",
    "read_csv_file",
    "sniff_kind",
    "columns_of",
]
