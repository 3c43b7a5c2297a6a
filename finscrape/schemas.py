"""
Pydantic schemas defining the contracts between pipeline stages.

ExtractionResult: Extractor → Materializer (headers + raw Field Maps)
Table: Materializer → Coercion Engine → Renderer / Exporters

Data flow through the pipeline:
  Loader → Document → Extractor → ExtractionResult
  ExtractionResult → Materializer → Table → coerce() → render() / to_csv() / to_json()
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


# A raw Field Map value: plain text, absent, or a nested list of string maps
# (e.g. the per-ticker news list of the screener snapshot views).
FieldValue = Union[str, None, list[dict[str, str]]]

MISSING = "-"     # written by the site (and by the materializer) for "no value"
NOT_A_NUMBER = "NaN"


class NewsType(str, Enum):
    """Discriminant attached to every news record."""
    NEWS = "news"
    BLOG = "blog"


class SemanticType(str, Enum):
    """Semantic type of a named column, drives the coercion rules."""
    PERCENT = "percent"
    FLOAT = "float"
    MAGNITUDE_INT = "magnitude-int"
    GROUPED_INT = "grouped-int"
    INT = "int"
    STRING = "string"


class Section(BaseModel):
    """A sibling sub-table and the discriminant its records carry."""
    model_config = {"frozen": True}

    index: int
    news_type: NewsType


# --- Extractor output ---

class ExtractionResult(BaseModel):
    """Output from an Extractor: the header contract plus one Field Map per record."""
    view: str
    headers: list[str]
    records: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)  # Non-fatal oddities met during traversal


# --- The table every later stage works on ---

class Table(BaseModel):
    """
    Rectangular data grid with the header as row zero.

    Before coercion every cell is a string. After coercion each column holds
    values of one type or the "NaN" sentinel, and `types` carries the column's
    semantic tag. A table with `error` set is the value-form of a failed run.
    """
    name: str = "DataFrame"
    rows: list[list[Any]] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    error: Optional[str] = None

    def model_post_init(self, __context: Any) -> None:
        # Every column starts out as a string column
        if not self.types and self.rows:
            self.types = [SemanticType.STRING.value] * len(self.rows[0])

    @property
    def headers(self) -> list[str]:
        return list(self.rows[0]) if self.rows else []

    @property
    def nrows(self) -> int:
        """Number of data rows (the header row is not counted)."""
        return max(len(self.rows) - 1, 0)

    @property
    def ncols(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def column_index(self, name: str) -> int:
        try:
            return self.headers.index(name)
        except ValueError:
            raise KeyError(name) from None

    def column(self, name: str) -> list[Any]:
        """All data values of one column, top to bottom."""
        idx = self.column_index(name)
        return [row[idx] for row in self.rows[1:]]

    def records(self) -> list[dict[str, Any]]:
        """Data rows as dicts keyed by header, in row order."""
        headers = self.headers
        return [dict(zip(headers, row)) for row in self.rows[1:]]
