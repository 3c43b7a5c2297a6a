"""
finscrape

Turns position-addressed HTML tables (news, earnings, economic calendar,
screener and quote pages) into typed tabular records.
- Loader: payload normalization and parsing into a read-only Document
- Extractor: layout-driven traversal into Field Maps
- Materializer: Field Maps to rectangular rows under a fixed header list
- Coercion: semantic typing of known columns
- Renderer / exporters: aligned text, CSV and JSON

Public API surface:
  Pipeline          — ScrapePipeline, scrape
  Stages            — load_document, get_extractor, materialize, build_table, coerce, render
  Data models       — Table, ExtractionResult, SemanticType, NewsType
  Error types       — ScrapeError and its subclasses
"""

# --- Pipeline stages ---
from .loader import Document, Loader, load_document
from .extractor import (
    EXTRACTORS,
    CalendarExtractor,
    EarningsExtractor,
    QuoteExtractor,
    ScreenerTableExtractor,
    SourceGroupedExtractor,
    TimeOrderedExtractor,
    get_extractor,
)
from .materializer import build_table, materialize
from .coercion import coerce, coerce_value
from .render import print_table, render
from .export import to_csv, to_json
from .pipeline import ScrapePipeline, scrape

# --- Data models ---
from .schemas import ExtractionResult, NewsType, SemanticType, Table

# --- Exceptions ---
from .exceptions import (
    ExtractionStructureError,
    ParseError,
    ScrapeError,
    UnknownViewError,
    UnsupportedValueTypeError,
)

__version__ = "0.1.0"
__all__ = [
    "Document",
    "Loader",
    "load_document",
    "EXTRACTORS",
    "CalendarExtractor",
    "EarningsExtractor",
    "QuoteExtractor",
    "ScreenerTableExtractor",
    "SourceGroupedExtractor",
    "TimeOrderedExtractor",
    "get_extractor",
    "build_table",
    "materialize",
    "coerce",
    "coerce_value",
    "print_table",
    "render",
    "to_csv",
    "to_json",
    "ScrapePipeline",
    "scrape",
    "ExtractionResult",
    "NewsType",
    "SemanticType",
    "Table",
    "ExtractionStructureError",
    "ParseError",
    "ScrapeError",
    "UnknownViewError",
    "UnsupportedValueTypeError",
]
