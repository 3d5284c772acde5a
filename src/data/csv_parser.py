"""
CSV Parser
==========

Turns uploaded review spreadsheets into a Dataset (list of string rows).

Exports from review platforms are messy: comments contain commas, quotes
and line breaks, and line endings vary with the tool that produced the
file. Line endings are normalized (\\r\\n and \\r become \\n) before the
text goes through the standard csv reader, which handles quoted fields
with embedded commas / newlines and "" escapes. Records whose cells are
all blank are silently dropped.

Empty input is not exceptional: fewer than two non-empty records (no
header, or a header without data) returns an empty Dataset.

Usage:
    rows = parse_csv(text)
    text = to_csv(rows)
"""

import csv
import io
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .data_models import Dataset, Row

logger = logging.getLogger(__name__)


def _read_records(text: str) -> List[List[str]]:
    """Non-blank records of raw (untrimmed) fields."""
    reader = csv.reader(io.StringIO(text))
    return [record for record in reader if any(field.strip() for field in record)]


def parse_csv(text: str) -> Dataset:
    """
    Parse raw CSV text into a Dataset.

    The first non-empty record is the header; later records map
    positionally onto it. Missing trailing fields map to "", extra
    fields beyond the header are ignored. Header names and cell values
    are trimmed. No type coercion.

    Args:
        text: Raw file contents

    Returns:
        List of rows, empty when the input has no data rows
    """
    if not text:
        return []

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    records = _read_records(normalized)

    if len(records) < 2:
        logger.debug(f"CSV has {len(records)} non-empty record(s), no data rows")
        return []

    headers = [h.strip() for h in records[0]]
    rows: Dataset = []
    for values in records[1:]:
        row: Row = {}
        for idx, header in enumerate(headers):
            row[header] = values[idx].strip() if idx < len(values) else ""
        rows.append(row)

    logger.debug(f"Parsed {len(rows)} rows with {len(headers)} columns")
    return rows


def to_csv(dataset: Dataset, columns: Optional[Iterable[str]] = None) -> str:
    """
    Serialize a Dataset back to CSV text.

    Fields containing commas, quotes or line breaks are quoted, quotes are
    doubled. Columns default to the keys of the first row.
    """
    if not dataset:
        return ""

    header = list(columns) if columns is not None else list(dataset[0].keys())
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header)
    for row in dataset:
        writer.writerow([row.get(h, "") for h in header])
    return output.getvalue()


def read_csv_file(path: Union[str, Path]) -> Dataset:
    """Read a CSV file from disk (BOM tolerant) and parse it."""
    text = Path(path).read_text(encoding="utf-8-sig")
    rows = parse_csv(text)
    logger.info(f"Loaded {len(rows)} rows from {path}")
    return rows
