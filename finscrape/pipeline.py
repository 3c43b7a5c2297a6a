"""
Main orchestrator for finscrape.

Coordinates the pipeline: Loader → Extractor → Materializer → Coercion.
Each run builds its own Document and Table; nothing is shared between runs
except the read-only lookup tables, so runs can be issued from several
threads at once.
"""

from pathlib import Path
from typing import Any, Optional, Union

from .coercion import coerce as coerce_table
from .exceptions import ScrapeError
from .extractor import BaseExtractor, get_extractor
from .loader import Loader
from .logger import get_module_logger, setup_logger
from .materializer import build_table
from .schemas import Table

logger = get_module_logger("pipeline")


class ScrapePipeline:
    """
    Main orchestrator for table scraping.

    Coordinates the pipeline:
    1. Loader: normalizes and parses the payload
    2. Extractor: walks the view's layout into Field Maps
    3. Materializer: folds Field Maps into string rows
    4. Coercion: types known columns (optional)
    """

    def __init__(
        self,
        extractor: Union[BaseExtractor, str],
        coerce: bool = True,
        strict: bool = True,
        log_level: Optional[int] = None
    ):
        if log_level is not None:
            setup_logger(level=log_level)

        self.loader = Loader()
        self.extractor = get_extractor(extractor) if isinstance(extractor, str) else extractor
        self.coerce = coerce
        # strict=False turns a ScrapeError into a Table carrying the error
        self.strict = strict

    def run(self, payload: Any, name: Optional[str] = None) -> Table:
        """
        Scrape one payload into a Table.

        Args:
            payload: Raw HTML as str, bytes, or a readable object
            name: Table name shown by the renderer (defaults to the view name)

        Returns:
            Table, typed when `coerce` is set
        """
        name = name or self.extractor.view
        logger.info(f"Starting pipeline for '{name}'")

        try:
            # Stage 1: payload → Document
            document = self.loader.load(payload)

            # Stage 2: Document → headers + Field Maps
            result = self.extractor.extract(document)

            # Stage 3: Field Maps → rectangular string rows
            table = build_table(result, name=name)
        except ScrapeError as e:
            if self.strict:
                raise
            logger.error(f"Pipeline failed for '{name}': {e.message}")
            return Table(name=name, error=e.message)

        # Stage 4: string cells → typed cells
        if self.coerce:
            coerce_table(table)

        logger.info(f"Complete: {table.nrows} rows x {table.ncols} columns")
        return table

    def run_file(self, file_path: Union[str, Path], name: Optional[str] = None) -> Table:
        """Scrape a saved HTML file."""
        file_path = Path(file_path)
        # Raw bytes, so the Loader decodes with the charset the page declares
        return self.run(file_path.read_bytes(), name=name or file_path.stem)


def scrape(payload: Any, view: str, coerce: bool = True) -> Table:
    """Convenience function to scrape a payload for one view."""
    return ScrapePipeline(view, coerce=coerce).run(payload)
