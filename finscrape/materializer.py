"""
Row Materializer.

Folds Field Maps into rectangular string rows under a fixed header list.

Pipeline position: Stage 3 (Loader → Extractor → Materializer → Coercion).
Input:  headers + Field Maps
Output: rows (header row first), or a Table wrapping them
"""

import json
from typing import Any, Iterable, Sequence

from .exceptions import UnsupportedValueTypeError
from .logger import get_module_logger
from .schemas import MISSING, NOT_A_NUMBER, ExtractionResult, Table

logger = get_module_logger("materializer")


def _is_structured(value: Any) -> bool:
    """A list of str -> str maps, e.g. a ticker's embedded news list."""
    return isinstance(value, list) and all(
        isinstance(item, dict)
        and all(isinstance(k, str) and isinstance(v, str) for k, v in item.items())
        for item in value
    )


def _record_label(index: int, record: dict) -> str:
    ticker = record.get("Ticker")
    if isinstance(ticker, str) and ticker:
        return f"record {index} (Ticker {ticker})"
    return f"record {index}"


def encode_cell(value: Any, record: str = "", field: str = "") -> str:
    """
    Render one raw Field Map value as a cell string.

    Raises:
        UnsupportedValueTypeError: for anything but str, None or a list of string maps
    """
    if value is None:
        return MISSING
    if isinstance(value, str):
        # Two spellings of "missing" end up as one
        return NOT_A_NUMBER if value == MISSING else value
    if _is_structured(value):
        return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    raise UnsupportedValueTypeError(
        f"Unexpected type for {record}: {field} -> {value!r}",
        record=record,
        field=field,
        details={"type": type(value).__name__}
    )


def materialize(headers: Sequence[str], field_maps: Iterable[dict]) -> list[list[str]]:
    """
    Build rows from Field Maps.

    Every row has one cell per header; keys outside `headers` are dropped,
    absent keys become "-". The header row is row zero.
    """
    rows: list[list[str]] = [list(headers)]
    for index, record in enumerate(field_maps):
        label = _record_label(index, record)
        rows.append([
            encode_cell(record.get(header), record=label, field=header)
            for header in headers
        ])
    return rows


def build_table(result: ExtractionResult, name: str = "") -> Table:
    """Materialize an ExtractionResult into a string Table."""
    rows = materialize(result.headers, result.records)
    logger.info(f"Materialized {len(rows) - 1} rows x {len(result.headers)} columns")
    return Table(name=name or result.view, rows=rows)
