#!/usr/bin/env python3
"""
CLI script to scrape saved HTML pages into tables.

Each file goes through the full pipeline for the chosen view and is printed
as an aligned table, or written as CSV / JSON.

Only the table or the CSV / JSON dump is written to stdout; progress lines
and log records go to stderr, so `run_scraper.py page.html -f json > out.json`
leaves a valid JSON file.

Settings come from FINSCRAPE_* environment variables (a .env file is read
first); command-line flags override them.
"""

import argparse
import sys
from pathlib import Path

from finscrape.config import load_settings
from finscrape.exceptions import ScrapeError
from finscrape.export import to_csv, to_json
from finscrape.extractor import EXTRACTORS
from finscrape.logger import setup_logger
from finscrape.pipeline import ScrapePipeline
from finscrape.render import print_table


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scrape saved HTML pages into tables")
    parser.add_argument("files", nargs="+", help="HTML files to process")
    parser.add_argument("--view", "-v", choices=sorted(EXTRACTORS), help="Page layout to extract")
    parser.add_argument("--format", "-f", dest="output_format", choices=["table", "csv", "json"])
    parser.add_argument("--output", "-o", help="Output directory for csv/json files")
    parser.add_argument("--raw", action="store_true", help="Skip type coercion")
    args = parser.parse_args(argv)

    settings = load_settings(
        view=args.view,
        output_format=args.output_format,
        coerce=False if args.raw else None,
    )
    setup_logger(level=settings.log_level, log_file=settings.log_file)

    pipeline = ScrapePipeline(settings.view, coerce=settings.coerce, strict=settings.strict)
    output_dir = Path(args.output) if args.output else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    failures = 0
    for filepath in args.files:
        path = Path(filepath)
        print(f"Scraping: {path.name}", file=sys.stderr)

        try:
            table = pipeline.run_file(path)
        except ScrapeError as e:
            failures += 1
            print(f"  ✗ {type(e).__name__}: {e.message}", file=sys.stderr)
            continue

        if table.error:
            failures += 1
            print(f"  ✗ {table.error}", file=sys.stderr)
            continue

        print(f"  ✓ {table.nrows} rows", file=sys.stderr)
        if settings.output_format == "table":
            print_table(table)
        elif settings.output_format == "csv":
            to_csv(table, output_dir / f"{path.stem}.csv" if output_dir else sys.stdout)
        else:
            to_json(table, output_dir / f"{path.stem}.json" if output_dir else sys.stdout)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
