"""
Flat CSV and JSON dumps of a Table.
"""

import csv
import json
from pathlib import Path
from typing import IO, Union

from .logger import get_module_logger
from .schemas import Table

logger = get_module_logger("export")

Target = Union[str, Path, IO[str]]


def _write(target: Target, write_fn) -> None:
    if isinstance(target, (str, Path)):
        # newline="" lets the csv module control line endings
        with open(target, "w", encoding="utf-8", newline="") as fh:
            write_fn(fh)
        logger.info(f"Saved to: {target}")
    else:
        write_fn(target)


def to_csv(table: Table, target: Target) -> None:
    """One comma-separated line per row, header first."""
    def write_fn(fh: IO[str]) -> None:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerows(table.rows)

    _write(target, write_fn)


def to_json(table: Table, target: Target, indent: int = 2) -> None:
    """An array of per-row objects keyed by header."""
    def write_fn(fh: IO[str]) -> None:
        # ensure_ascii=False keeps source names and titles readable
        fh.write(json.dumps(table.records(), indent=indent, ensure_ascii=False))
        fh.write("\n")

    _write(target, write_fn)
