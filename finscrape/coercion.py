"""
Type Coercion Engine.

Rewrites the cells of every column whose name is in the type lookup, one
column at a time, from display strings ("12.5%", "1.2B", "1,234,567") to
numbers. Columns are never reordered and unknown columns are left alone.

A cell that doesn't parse, or parses to zero, becomes "NaN". The two cases
can't be told apart afterwards: a 0% dividend yield reads the same as a
scrape failure.

Pipeline position: Stage 4 (Loader → Extractor → Materializer → Coercion).
Input:  string Table
Output: the same Table, typed in place
"""

import math
from typing import Any, Callable, Optional, Union

from .logger import get_module_logger
from .lookups import lookup_type
from .schemas import MISSING, NOT_A_NUMBER, SemanticType, Table

logger = get_module_logger("coercion")

Number = Union[int, float]

MAGNITUDE_SUFFIXES = {
    "B": 1_000_000_000.0,
    "M": 1_000_000.0,
    "K": 1_000.0,
}


def _parse_float(text: str) -> Optional[float]:
    # float() also takes "1_000", "nan" and "inf"; none of those are numbers here
    if "_" in text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def _parse_int(text: str) -> Optional[int]:
    if "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _or_nan(num: Optional[Number]) -> Union[Number, str]:
    """Zero and unparseable both collapse to the sentinel."""
    return num if num else NOT_A_NUMBER


def _percent(text: str) -> Union[Number, str]:
    num = _parse_float(text.split("%")[0])
    return _or_nan(num / 100.0 if num else None)


def _float(text: str) -> Union[Number, str]:
    return _or_nan(_parse_float(text))


def _magnitude_int(text: str) -> Union[Number, str]:
    multiple = 1.0
    if text and text[-1] in MAGNITUDE_SUFFIXES:
        multiple = MAGNITUDE_SUFFIXES[text[-1]]
        text = text[:-1]
    num = _parse_float(text)
    return _or_nan(int(num * multiple) if num else None)


def _grouped_int(text: str) -> Union[Number, str]:
    return _or_nan(_parse_int(text.replace(",", "")))


def _int(text: str) -> Union[Number, str]:
    return _or_nan(_parse_int(text))


def _string(text: str) -> str:
    return NOT_A_NUMBER if text == MISSING else text


RULES: dict[SemanticType, Callable[[str], Any]] = {
    SemanticType.PERCENT: _percent,
    SemanticType.FLOAT: _float,
    SemanticType.MAGNITUDE_INT: _magnitude_int,
    SemanticType.GROUPED_INT: _grouped_int,
    SemanticType.INT: _int,
    SemanticType.STRING: _string,
}


def coerce_value(value: Any, semantic_type: SemanticType) -> Any:
    """
    Convert one cell according to its column's semantic type.

    Values that are no longer strings were converted by an earlier pass and
    are returned as-is, so coercing a table twice changes nothing.
    """
    if not isinstance(value, str):
        return value
    return RULES[semantic_type](value)


def coerce_column(table: Table, index: int, semantic_type: SemanticType) -> int:
    """Convert column `index` in place; returns how many cells became "NaN"."""
    missing = 0
    for row in table.rows[1:]:
        row[index] = coerce_value(row[index], semantic_type)
        if row[index] == NOT_A_NUMBER:
            missing += 1
    table.types[index] = semantic_type.value
    return missing


def coerce(table: Table) -> Table:
    """Type every known column of `table` in place and return it."""
    if table.error is not None or not table.rows:
        return table

    if len(table.types) != table.ncols:
        table.types = [SemanticType.STRING.value] * table.ncols

    converted = 0
    for index, name in enumerate(table.headers):
        semantic_type = lookup_type(name)
        if semantic_type is None:
            logger.debug(f"Column '{name}' has no known type, left as text")
            continue
        missing = coerce_column(table, index, semantic_type)
        converted += 1
        if missing:
            logger.debug(f"Column '{name}' ({semantic_type.value}): {missing} cells set to {NOT_A_NUMBER}")

    logger.info(f"Coerced {converted} of {table.ncols} columns in '{table.name}'")
    return table
