"""
Table Extractor.

Each extractor turns a Document into an ordered list of Field Maps (one per
logical record) by walking fixed structural positions. Where those positions
are lives in a layout model made of TraversalPaths, so a site change means
editing one descriptor instead of hunting for index literals.

Pipeline position: Stage 2 (Loader → Extractor → Materializer → Coercion).
Input:  Document
Output: ExtractionResult (headers + Field Maps + warnings)
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional, Type

from bs4 import Tag
from pydantic import BaseModel

from .exceptions import ExtractionStructureError, UnknownViewError
from .loader import Document
from .logger import get_module_logger
from .lookups import lookup_source_label
from .paths import (
    TraversalPath,
    attr_of,
    child_at,
    children,
    element_children,
    eq,
    find,
    select,
    text_of,
    walk,
)
from .schemas import MISSING, ExtractionResult, FieldValue, NewsType, Section

logger = get_module_logger("extractor")

FieldMap = dict[str, FieldValue]

NEWS_HEADERS = ("Article Date", "Article Title", "Article URL", "Source Name", "News Type")
SOURCE_NEWS_HEADERS = (
    "Article Date", "Article Title", "Article URL", "Source Name", "Source URL", "News Type"
)
EARNINGS_HEADERS = ("Date", "Ticker")
CALENDAR_HEADERS = ("Date", "Release", "Impact", "For", "Actual", "Expected", "Prior")
QUOTE_HEADERS = (
    "Ticker", "Company", "Industry", "Sector", "Country", "Exchange", "Index",
    "Market Cap", "Price", "Change", "Volume", "Income", "Sales", "Book/sh",
    "Cash/sh", "Dividend", "Dividend %", "Employees", "Optionable", "Shortable",
    "Recom", "P/E", "Forward P/E", "PEG", "P/S", "P/B", "P/C", "P/FCF",
    "Quick Ratio", "Current Ratio", "Debt/Eq", "LT Debt/Eq", "EPS (ttm)",
    "EPS next Y", "EPS next Q", "EPS this Y", "EPS growth next Y", "EPS next 5Y",
    "EPS past 5Y", "Sales past 5Y", "Sales Q/Q", "EPS Q/Q", "Earnings",
    "Insider Own", "Insider Trans", "Inst Own", "Inst Trans", "ROA", "ROE", "ROI",
    "Gross Margin", "Oper. Margin", "Profit Margin", "Payout", "Shs Outstand",
    "Shs Float", "Short Float", "Short Ratio", "Target Price", "52W Range",
    "52W High", "52W Low", "RSI (14)", "SMA20", "SMA50", "SMA200", "Rel Volume",
    "Avg Volume", "Perf Week", "Perf Month", "Perf Quarter", "Perf Half Y",
    "Perf Year", "Perf YTD", "Beta", "ATR", "Volatility (Week)",
    "Volatility (Month)", "Prev Close", "Analyst Recommendations", "News",
    "Description", "Insider Trading",
)

# Calendar impact icons, by file name
IMPACT_LEVELS = {
    "impact_3.gif": "critical",
    "impact_2.gif": "moderate",
    "impact_1.gif": "low",
}
# The calendar prints times in US Eastern and labels them EST
EASTERN = timezone(timedelta(hours=-5), "EST")
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")


# --- Layouts ---
# Index conventions differ between pages (the "by time" view numbers its
# sub-tables 0..2, the "by source" view 2..4), so sections are always data.

class TimeOrderedLayout(BaseModel):
    """News page, "by time" view: news and blog sub-tables side by side."""
    model_config = {"frozen": True}

    # Lands on the sibling sub-table columns (news, spacer, blog)
    root: TraversalPath = TraversalPath.of(
        select("#news > div"), children(), eq(1),
        find("tbody"), eq(0), children(), eq(1), children(),
    )
    sections: tuple[Section, ...] = (
        Section(index=0, news_type=NewsType.NEWS),
        Section(index=2, news_type=NewsType.BLOG),
    )
    items: TraversalPath = TraversalPath.of(find("tbody"), eq(0), children())
    label_cell: int = 0   # icon cell, its class names the source
    date_cell: int = 1
    title_cell: int = 2   # first child is the article anchor


class SourceGroupedLayout(BaseModel):
    """News page, "by source" view: one block per publication."""
    model_config = {"frozen": True}

    root: TraversalPath = TraversalPath.of(select("#news > div"), children())
    sections: tuple[Section, ...] = (
        Section(index=2, news_type=NewsType.NEWS),
        Section(index=4, news_type=NewsType.BLOG),
    )
    columns: TraversalPath = TraversalPath.of(find("tr"), children())
    marker_attr: str = "align"  # only real column cells carry it
    rows: TraversalPath = TraversalPath.of(find("tbody"), eq(0), children())
    source_row: int = 1         # earlier rows are decoration, later rows are articles
    source_anchor: TraversalPath = TraversalPath.of(find("tr"), children(), eq(1), find("a"))
    date_cell: int = 0
    title_cell: int = 1


class EarningsLayout(BaseModel):
    """Home page earnings release calendar."""
    model_config = {"frozen": True}

    # Exact class match: a table carrying extra classes is not one of the
    # home-page blocks and must not shift the index
    root: TraversalPath = TraversalPath.of(
        select("#homepage_bottom"), find('table[class="t-home-table"] > tbody'), eq(5), children(),
    )
    caption_rows: int = 1
    date_cell: int = 0
    first_ticker_cell: int = 2
    marker_attr: str = "title"


class ScreenerTableLayout(BaseModel):
    """Screener results, default table view."""
    model_config = {"frozen": True}

    root: TraversalPath = TraversalPath.of(
        select("#screener-content"), find("tbody"), eq(3), children(),
    )


class QuoteLayout(BaseModel):
    """Single-ticker quote page: snapshot grid, title block and three nested lists."""
    model_config = {"frozen": True}

    # Snapshot grid cells, label and value alternating
    root: TraversalPath = TraversalPath.of(select('tr[class="table-dark-row"] > td'))
    ticker: TraversalPath = TraversalPath.of(select("#ticker"))
    title_rows: TraversalPath = TraversalPath.of(select(".fullview-title > tbody > tr"))
    company_row: int = 1
    classification_row: int = 2     # anchors: sector, industry, country
    ratings_rows: TraversalPath = TraversalPath.of(
        select(".fullview-ratings-outer"), find("tbody"), eq(0), children(),
    )
    rating_cells: TraversalPath = TraversalPath.of(find("tr"), children())
    news_rows: TraversalPath = TraversalPath.of(
        select("#news-table"), find("tbody"), eq(0), children(),
    )
    profile: TraversalPath = TraversalPath.of(select(".fullview-profile"))
    # Any insider row; its parent holds the whole table, header row first
    insider_row: TraversalPath = TraversalPath.of(select(".insider-sale-row-2"))


class CalendarLayout(BaseModel):
    """Economic calendar: one table per day, headed by a calendar-header row."""
    model_config = {"frozen": True}

    root: TraversalPath = TraversalPath.of(select("tr .calendar-header"))
    copyright_line: TraversalPath = TraversalPath.of(select(".copyright"))
    # Used when the copyright line carries no year; None means the current year
    fallback_year: Optional[int] = None
    min_cells: int = 9
    time_cell: int = 0
    release_cell: int = 2
    impact_cell: int = 3
    for_cell: int = 4
    actual_cell: int = 5
    expected_cell: int = 6
    prior_cell: int = 7


# --- Extractors ---

class BaseExtractor(ABC):
    """Walks a layout's root path, then hands the selection to `_extract`."""

    view: str = ""
    headers: tuple[str, ...] = ()
    layout_class: Type[BaseModel] = BaseModel

    def __init__(self, layout: Optional[BaseModel] = None):
        self.layout = layout if layout is not None else self.layout_class()

    def extract(self, document: Document) -> ExtractionResult:
        """
        Extract Field Maps from a Document.

        Raises:
            ExtractionStructureError: if the layout's root path selects nothing
        """
        logger.info(f"Starting {self.view} extraction")
        root_path: TraversalPath = self.layout.root
        root = document.walk(root_path)
        if not root:
            raise ExtractionStructureError(
                f"Expected section not found for view '{self.view}'",
                view=self.view,
                details={"path": str(root_path)}
            )

        warnings: list[str] = []
        headers, records = self._extract(document, root, warnings)
        for warning in warnings:
            logger.warning(warning)

        logger.info(f"Extracted {len(records)} {self.view} records")
        return ExtractionResult(view=self.view, headers=headers, records=records, warnings=warnings)

    @abstractmethod
    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        """
        Return (headers, records) for the nodes the root path selected.

        `document` is there for views that read more than one landmark.
        """
        pass

    def _section_node(self, root: list[Tag], section: Section, warnings: list[str]) -> Optional[Tag]:
        if 0 <= section.index < len(root):
            return root[section.index]
        warnings.append(
            f"{self.view}: {section.news_type.value} section at index {section.index} "
            f"not found ({len(root)} siblings)"
        )
        return None


class TimeOrderedExtractor(BaseExtractor):
    """News sorted by time; one 5-field record per item row."""

    view = "by_time"
    headers = NEWS_HEADERS
    layout_class = TimeOrderedLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        layout: TimeOrderedLayout = self.layout
        records: list[FieldMap] = []

        for section in layout.sections:
            column = self._section_node(root, section, warnings)
            if column is None:
                continue
            for row in walk([column], layout.items):
                record = self._read_item(row, section.news_type)
                if record is None:
                    logger.debug(f"Skipping spacer row in {section.news_type.value} section")
                    continue
                records.append(record)

        return list(self.headers), records

    def _read_item(self, row: Tag, news_type: NewsType) -> Optional[FieldMap]:
        layout: TimeOrderedLayout = self.layout
        title_cell = child_at(row, layout.title_cell)
        if title_cell is None:
            return None

        anchor = child_at(title_cell, 0)
        record: FieldMap = {
            "Article Date": text_of(child_at(row, layout.date_cell)),
            "Article Title": text_of(anchor),
            "Article URL": attr_of(anchor, "href"),
        }

        # No class attribute at all: leave the field out. A class with no
        # known token: the source is "Unknown".
        tokens = attr_of(child_at(row, layout.label_cell), "class").split()
        if tokens:
            record["Source Name"] = lookup_source_label(tokens)

        record["News Type"] = news_type.value
        return record


class SourceGroupedExtractor(BaseExtractor):
    """News grouped by publication; one 6-field record per article row."""

    view = "by_source"
    headers = SOURCE_NEWS_HEADERS
    layout_class = SourceGroupedLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        layout: SourceGroupedLayout = self.layout
        records: list[FieldMap] = []

        for section in layout.sections:
            container = self._section_node(root, section, warnings)
            if container is None:
                continue
            for cell in walk([container], layout.columns):
                if not attr_of(cell, layout.marker_attr):
                    continue
                for block in element_children(cell):
                    records.extend(self._read_block(block, section.news_type))

        return list(self.headers), records

    def _read_block(self, block: Tag, news_type: NewsType) -> list[FieldMap]:
        layout: SourceGroupedLayout = self.layout
        source_name = ""
        source_url = ""
        records: list[FieldMap] = []

        for k, row in enumerate(walk([block], layout.rows)):
            if k < layout.source_row:
                continue
            if k == layout.source_row:
                anchors = walk([row], layout.source_anchor)
                source_name = "".join(text_of(a) for a in anchors)
                source_url = attr_of(anchors[0], "href") if anchors else ""
                continue

            title_cell = child_at(row, layout.title_cell)
            title_anchors = title_cell.find_all("a") if title_cell is not None else []
            records.append({
                "Article Date": text_of(child_at(row, layout.date_cell)),
                "Article Title": "".join(text_of(a) for a in title_anchors),
                "Article URL": attr_of(child_at(title_cell, 0), "href"),
                "Source Name": source_name,
                "Source URL": source_url,
                "News Type": news_type.value,
            })

        return records


class EarningsExtractor(BaseExtractor):
    """Upcoming earnings releases; one {Date, Ticker} record per ticker cell."""

    view = "earnings"
    headers = EARNINGS_HEADERS
    layout_class = EarningsLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        layout: EarningsLayout = self.layout
        records: list[FieldMap] = []

        for row in root[layout.caption_rows:]:
            cells = element_children(row)
            if not cells:
                continue
            date = text_of(cells[layout.date_cell]) if layout.date_cell < len(cells) else ""
            for cell in cells[layout.first_ticker_cell:]:
                # Filler cells pad short days out to the full width
                if not attr_of(cell, layout.marker_attr):
                    continue
                records.append({"Date": date, "Ticker": text_of(cell)})

        return list(self.headers), records


class ScreenerTableExtractor(BaseExtractor):
    """Screener default view; the page's own first row is the header list."""

    view = "screener"
    layout_class = ScreenerTableLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        header_row, data_rows = root[0], root[1:]
        headers = [text_of(cell) for cell in element_children(header_row)]
        if not headers:
            raise ExtractionStructureError(
                "Screener table has no header cells", view=self.view
            )

        records: list[FieldMap] = []
        for row in data_rows:
            cells = element_children(row)
            if not cells:
                continue
            if len(cells) > len(headers):
                warnings.append(
                    f"screener: row has {len(cells)} cells for {len(headers)} headers, extra cells dropped"
                )
            records.append({h: text_of(c) for h, c in zip(headers, cells)})

        return headers, records


class QuoteExtractor(BaseExtractor):
    """
    Single-ticker quote page; the whole page is one record.

    Snapshot labels become keys as printed, with three exceptions: "Index"
    is rewritten to a comma list, the second "EPS next Y" cell is the growth
    figure, and "Volatility" holds the week and month values in one cell.
    Analyst recommendations, news and insider trades are nested lists of
    string maps; a block missing from the page reads as "".
    """

    view = "quote"
    headers = QUOTE_HEADERS
    layout_class = QuoteLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        record = self._read_snapshot(root, warnings)
        record.update(self._read_title(document))
        record["Analyst Recommendations"] = self._read_ratings(document)
        record["News"] = self._read_news(document)

        profiles = document.walk(self.layout.profile)
        record["Description"] = text_of(profiles[0]) if len(profiles) == 1 else ""

        record["Insider Trading"] = self._read_insiders(document)
        return list(self.headers), [record]

    def _read_snapshot(self, cells: list[Tag], warnings: list[str]) -> FieldMap:
        data: FieldMap = {}
        for i in range(0, len(cells), 2):
            label = text_of(cells[i])
            value = text_of(cells[i + 1]) if i + 1 < len(cells) else ""

            if label == "Index":
                data["Index"] = "S&P500" if value == "S&P 500" else value.replace(" ", ",")
            elif label == "EPS next Y":
                # The grid prints this label twice: estimate first, growth second
                key = "EPS growth next Y" if "EPS next Y" in data else "EPS next Y"
                data[key] = value
            elif label == "Volatility":
                parts = value.split()
                if len(parts) != 2:
                    warnings.append(f"quote: Volatility cell '{value}' is not 'week month'")
                    continue
                data["Volatility (Week)"], data["Volatility (Month)"] = parts
            else:
                data[label] = value
        return data

    def _read_title(self, document: Document) -> FieldMap:
        layout: QuoteLayout = self.layout
        data: FieldMap = {}

        tickers = document.walk(layout.ticker)
        if tickers:
            data["Ticker"] = text_of(tickers[0])
            # "[NASD]" right after the ticker
            data["Exchange"] = text_of(tickers[0].find_next_sibling()).strip("[]")

        rows = document.walk(layout.title_rows)
        company = rows[layout.company_row] if layout.company_row < len(rows) else None
        data["Company"] = text_of(company)
        if layout.classification_row < len(rows):
            anchors = rows[layout.classification_row].find_all("a")
            for key, anchor in zip(("Sector", "Industry", "Country"), anchors):
                data[key] = text_of(anchor)
        return data

    def _read_ratings(self, document: Document) -> FieldValue:
        layout: QuoteLayout = self.layout
        rows = document.walk(layout.ratings_rows)
        if not rows:
            return ""

        ratings = []
        for row in rows:
            # The row wraps a one-row table: date, action, brokerage, rating, target
            cells = walk([row], layout.rating_cells) + [None] * 5
            action = cells[1].find("b") if cells[1] is not None else None
            ratings.append({
                "Date": text_of(cells[0]),
                "Action": text_of(action),
                "Brokerage": text_of(cells[2]),
                "Rating": text_of(cells[3]),
                "Price Target": text_of(cells[4]),
            })
        return ratings

    def _read_news(self, document: Document) -> FieldValue:
        rows = document.walk(self.layout.news_rows)
        if not rows:
            return ""

        news = []
        date = ""
        for row in rows:
            stamp = text_of(child_at(row, 0)).split()
            # A styled first cell opens a new day: "Jan-02-21 08:00AM";
            # the rows after it only carry the time
            if attr_of(child_at(row, 0), "style") and stamp:
                date = stamp[0]
                stamp = stamp[1:]
            moment = stamp[0] if stamp else ""

            body = child_at(row, 1)
            anchor = body.find("a") if body is not None else None
            spans = body.find_all("span") if body is not None else []
            news.append({
                "Datetime": f"{date} {moment}".strip(),
                "Link": attr_of(anchor, "href"),
                "Source": text_of(spans[0]) if spans else "",
                "Title": text_of(anchor),
                "News Gain": text_of(spans[1]) if len(spans) >= 2 else "",
            })
        return news

    def _read_insiders(self, document: Document) -> FieldValue:
        marker = document.walk(self.layout.insider_row)
        if not marker:
            return ""

        trades = []
        for row in element_children(marker[0].parent)[1:]:
            cells = element_children(row) + [None] * 9
            owner = cells[0].find("a") if cells[0] is not None else None
            form = cells[8].find("a") if cells[8] is not None else None
            trades.append({
                "Owner": text_of(owner),
                "Relationship": text_of(cells[1]),
                "Date": text_of(cells[2]),
                "Transaction": text_of(cells[3]),
                "Cost": text_of(cells[4]),
                "#Shares": text_of(cells[5]),
                "Value ($)": text_of(cells[6]),
                "#Shares Total": text_of(cells[7]),
                "SEC Form 4 Datetime": text_of(form),
                "SEC Form 4 Link": attr_of(form, "href"),
            })
        return trades


class CalendarExtractor(BaseExtractor):
    """Economic calendar; one 7-field record per release row."""

    view = "calendar"
    headers = CALENDAR_HEADERS
    layout_class = CalendarLayout

    def _extract(
        self, document: Document, root: list[Tag], warnings: list[str]
    ) -> tuple[list[str], list[FieldMap]]:
        layout: CalendarLayout = self.layout
        year = self._year(document)
        records: list[FieldMap] = []

        for header in root:
            day = text_of(child_at(header, 0))
            for row in element_children(header.parent):
                if row is header:
                    continue
                cells = element_children(row)
                # "No releases" placeholders and notes span fewer cells
                if len(cells) < layout.min_cells:
                    logger.debug(f"Skipping {len(cells)}-cell row under '{day}'")
                    continue
                records.append({
                    "Date": self._timestamp(day, year, text_of(cells[layout.time_cell])),
                    "Release": text_of(cells[layout.release_cell]),
                    "Impact": self._impact(cells[layout.impact_cell]),
                    "For": text_of(cells[layout.for_cell]),
                    "Actual": text_of(cells[layout.actual_cell]),
                    "Expected": text_of(cells[layout.expected_cell]),
                    "Prior": text_of(cells[layout.prior_cell]),
                })

        return list(self.headers), records

    def _year(self, document: Document) -> int:
        """The page never prints the year next to a day; the copyright line does."""
        layout: CalendarLayout = self.layout
        lines = document.walk(layout.copyright_line)
        years = _YEAR.findall(text_of(lines[0])) if lines else []
        if years:
            return int(years[-1])
        return layout.fallback_year or datetime.now().year

    @staticmethod
    def _timestamp(day: str, year: int, time_of_day: str) -> str:
        """Day header plus time cell as ISO 8601 in Eastern; unparseable times stay as text."""
        try:
            moment = datetime.strptime(f"{day} {year} {time_of_day}", "%a %b %d %Y %I:%M %p")
        except ValueError:
            return time_of_day
        return moment.replace(tzinfo=EASTERN).isoformat()

    @staticmethod
    def _impact(cell: Tag) -> str:
        icon = cell.find("img")
        src = attr_of(icon, "src")
        return IMPACT_LEVELS.get(src.rsplit("/", 1)[-1], MISSING) if src else MISSING


EXTRACTORS: dict[str, Type[BaseExtractor]] = {
    TimeOrderedExtractor.view: TimeOrderedExtractor,
    SourceGroupedExtractor.view: SourceGroupedExtractor,
    EarningsExtractor.view: EarningsExtractor,
    ScreenerTableExtractor.view: ScreenerTableExtractor,
    QuoteExtractor.view: QuoteExtractor,
    CalendarExtractor.view: CalendarExtractor,
}


def get_extractor(view: str, layout: Optional[BaseModel] = None) -> BaseExtractor:
    """Instantiate the extractor registered for `view`."""
    try:
        extractor_class = EXTRACTORS[view]
    except KeyError:
        raise UnknownViewError(
            f"Error view '{view}' not found",
            view=view,
            details={"available": sorted(EXTRACTORS)}
        ) from None
    return extractor_class(layout)


def extract(document: Document, view: str) -> ExtractionResult:
    """Convenience function to extract records for one view."""
    return get_extractor(view).extract(document)
