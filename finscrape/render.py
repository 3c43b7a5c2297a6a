"""
Columnar Renderer.

Formats a Table as aligned text for a terminal:

    [2x2] news

        Ticker   Change
     0: AAPL     0.0125
     1: MSFT     NaN
        <string> <percent>

Widths are measured over every row (type row included) before any line is
written, so this is a two-pass render and can't stream.
"""

import json
import sys
from typing import Any, Optional, TextIO

from .schemas import Table


def escape_cell(value: Any) -> str:
    """Quote a cell once and drop the surrounding quotes, so a newline shows as backslash-n."""
    return json.dumps(str(value), ensure_ascii=False)[1:-1]


def render(table: Table) -> str:
    """Render `table` as aligned text; "" for empty or failed tables."""
    nrows, ncols = table.nrows, table.ncols
    if table.error is not None or nrows == 0 or ncols == 0:
        return ""

    types = table.types if len(table.types) == ncols else ["string"] * ncols

    # Row label column first: blank for the header and type rows, "i:" for data
    records: list[list[str]] = [[""] + [str(v) for v in table.rows[0]]]
    for i, row in enumerate(table.rows[1:]):
        records.append([f"{i}:"] + [str(v) for v in row])
    records.append([""] + [f"<{t}>" for t in types])

    # Pass 1: escape and measure
    widths = [0] * (ncols + 1)
    for record in records:
        for j in range(ncols + 1):
            record[j] = escape_cell(record[j])
            widths[j] = max(widths[j], len(record[j]))

    # Pass 2: pad and emit
    lines = [f"[{nrows}x{ncols}] {table.name}", ""]
    for record in records:
        cells = [record[0].rjust(widths[0] + 1)]
        cells.extend(record[j].ljust(widths[j]) for j in range(1, ncols + 1))
        lines.append(" ".join(cells))

    return "\n".join(lines) + "\n"


def print_table(table: Table, stream: Optional[TextIO] = None) -> None:
    """Write the rendering of `table` to `stream` (stdout by default)."""
    text = render(table)
    if text:
        (stream or sys.stdout).write(text)
