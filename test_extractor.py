"""
Tests for the layout-driven extractors.
"""

import pytest

from conftest import (
    calendar_event,
    calendar_page,
    news_item,
    quote_page,
    source_block,
    source_grouped_page,
    time_ordered_page,
)
from finscrape.exceptions import ExtractionStructureError, UnknownViewError
from finscrape.extractor import (
    EXTRACTORS,
    CalendarExtractor,
    CalendarLayout,
    EarningsExtractor,
    QuoteExtractor,
    ScreenerTableExtractor,
    SourceGroupedExtractor,
    TimeOrderedExtractor,
    TimeOrderedLayout,
    get_extractor,
)
from finscrape.loader import load_document
from finscrape.paths import TraversalPath, children, eq, find, select
from finscrape.schemas import NewsType, Section


def test_time_ordered_layout_descriptor():
    layout = TimeOrderedLayout()
    assert layout.root == TraversalPath.of(
        select("#news > div"), children(), eq(1),
        find("tbody"), eq(0), children(), eq(1), children(),
    )
    assert [(s.index, s.news_type) for s in layout.sections] == [
        (0, NewsType.NEWS), (2, NewsType.BLOG)
    ]


def test_time_ordered_extracts_news_and_blog(by_time_html):
    result = TimeOrderedExtractor().extract(load_document(by_time_html))

    assert result.headers == [
        "Article Date", "Article Title", "Article URL", "Source Name", "News Type"
    ]
    assert result.records == [
        {
            "Article Date": "Jan-02",
            "Article Title": "Stocks Rally",
            "Article URL": "/x",
            "Source Name": "Bloomberg",
            "News Type": "news",
        },
        {
            "Article Date": "Jan-03",
            "Article Title": "Blog Post",
            "Article URL": "/y",
            "News Type": "blog",
        },
    ]


def test_absent_class_omits_source_but_unknown_token_is_labelled():
    html = time_ordered_page(
        news_rows=[
            news_item("Jan-02", "No class", "/a"),
            news_item("Jan-02", "Unrecognised", "/b", "nn-date is-999"),
            news_item("Jan-02", "Second token", "/c", "nn-date is-3"),
        ],
        blog_rows=[],
    )
    records = TimeOrderedExtractor().extract(load_document(html)).records

    assert "Source Name" not in records[0]
    assert records[1]["Source Name"] == "Unknown"
    assert records[2]["Source Name"] == "Reuters"


def test_time_ordered_skips_spacer_rows():
    html = time_ordered_page(
        news_rows=[
            '<tr><td colspan="3">&nbsp;</td></tr>',
            news_item("Jan-02", "Real item", "/r", "x is-1"),
        ],
        blog_rows=[],
    )
    records = TimeOrderedExtractor().extract(load_document(html)).records
    assert [r["Article Title"] for r in records] == ["Real item"]


def test_section_indices_are_parameterized(by_time_html):
    # Swapping the discriminants is a layout change, not a code change
    layout = TimeOrderedLayout(sections=(
        Section(index=0, news_type=NewsType.BLOG),
        Section(index=2, news_type=NewsType.NEWS),
    ))
    records = TimeOrderedExtractor(layout).extract(load_document(by_time_html)).records
    assert [r["News Type"] for r in records] == ["blog", "news"]


def test_missing_section_is_a_warning_not_an_error(by_time_html):
    layout = TimeOrderedLayout(sections=(Section(index=7, news_type=NewsType.NEWS),))
    result = TimeOrderedExtractor(layout).extract(load_document(by_time_html))
    assert result.records == []
    assert "index 7" in result.warnings[0]


def test_source_grouped_carries_source_into_each_article(by_source_html):
    result = SourceGroupedExtractor().extract(load_document(by_source_html))

    assert result.headers == [
        "Article Date", "Article Title", "Article URL", "Source Name", "Source URL", "News Type"
    ]
    assert result.records == [
        {
            "Article Date": "08:15AM",
            "Article Title": "Fed holds rates",
            "Article URL": "https://reuters.com/a1",
            "Source Name": "Reuters",
            "Source URL": "https://www.reuters.com",
            "News Type": "news",
        },
        {
            "Article Date": "07:50AM",
            "Article Title": "Oil slips",
            "Article URL": "https://reuters.com/a2",
            "Source Name": "Reuters",
            "Source URL": "https://www.reuters.com",
            "News Type": "news",
        },
        {
            "Article Date": "06:00AM",
            "Article Title": "Gold bid",
            "Article URL": "https://zerohedge.com/b1",
            "Source Name": "Zero Hedge",
            "Source URL": "https://www.zerohedge.com",
            "News Type": "blog",
        },
    ]


def test_source_grouped_ignores_cells_without_alignment_marker():
    block = source_block("CNBC", "https://cnbc.com", [("09:00AM", "Hidden", "/h")])
    html = source_grouped_page(news_blocks=[], blog_blocks=[]).replace(
        "<td>&nbsp;</td>", f"<td>{block}</td>", 1
    )
    assert SourceGroupedExtractor().extract(load_document(html)).records == []


def test_earnings_uses_title_attribute_as_data_marker(earnings_html):
    result = EarningsExtractor().extract(load_document(earnings_html))
    assert result.headers == ["Date", "Ticker"]
    assert result.records == [
        {"Date": "Jan 28", "Ticker": "AAPL"},
        {"Date": "Jan 28", "Ticker": "MSFT"},
        {"Date": "Jan 29", "Ticker": "TSLA"},
    ]


def test_screener_headers_come_from_the_page(screener_html):
    result = ScreenerTableExtractor().extract(load_document(screener_html))
    assert result.headers == ["No.", "Ticker", "Company", "Market Cap", "P/E", "Change", "Volume"]
    assert result.records[0]["Market Cap"] == "2.41B"
    assert result.records[1]["P/E"] == "-"


@pytest.mark.parametrize("view", sorted(EXTRACTORS))
def test_missing_root_raises_structure_error(view):
    doc = load_document("<html><body><p>Site redesigned</p></body></html>")
    with pytest.raises(ExtractionStructureError) as exc_info:
        get_extractor(view).extract(doc)
    assert exc_info.value.view == view


def test_unknown_view():
    with pytest.raises(UnknownViewError):
        get_extractor("by_sector")


def test_earnings_ignores_tables_with_extra_classes(earnings_html):
    decoy = '<table class="t-home-table is-promo"><tbody><tr><td>ad</td></tr></tbody></table>'
    html = earnings_html.replace('<div id="homepage_bottom">', f'<div id="homepage_bottom">{decoy}')
    records = EarningsExtractor().extract(load_document(html)).records
    assert [r["Ticker"] for r in records] == ["AAPL", "MSFT", "TSLA"]


def test_quote_snapshot_special_cases(quote_html):
    result = QuoteExtractor().extract(load_document(quote_html))

    assert result.headers[:7] == ["Ticker", "Company", "Industry", "Sector", "Country", "Exchange", "Index"]
    assert len(result.records) == 1
    record = result.records[0]
    assert record["Index"] == "DJIA,S&P500"
    assert record["EPS next Y"] == "5.60"
    assert record["EPS growth next Y"] == "8.50%"
    assert record["Volatility (Week)"] == "1.91%"
    assert record["Volatility (Month)"] == "2.05%"
    assert "Volatility" not in record
    assert record["Market Cap"] == "2.41B"


def test_quote_sp500_index_is_collapsed():
    html = quote_page(snapshot=[("Index", "S&amp;P 500"), ("P/E", "20.00")])
    record = QuoteExtractor().extract(load_document(html)).records[0]
    assert record["Index"] == "S&P500"


def test_quote_title_block(quote_html):
    record = QuoteExtractor().extract(load_document(quote_html)).records[0]
    assert record["Ticker"] == "AAPL"
    assert record["Exchange"] == "NASD"
    assert record["Company"] == "Apple Inc."
    assert (record["Sector"], record["Industry"], record["Country"]) == (
        "Technology", "Consumer Electronics", "USA"
    )
    assert record["Description"] == "Apple designs phones."


def test_quote_nested_lists(quote_html):
    record = QuoteExtractor().extract(load_document(quote_html)).records[0]

    assert record["Analyst Recommendations"] == [{
        "Date": "Jan-05-21",
        "Action": "Upgrade",
        "Brokerage": "Goldman",
        "Rating": "Neutral → Buy",
        "Price Target": "$150",
    }]
    assert record["News"] == [
        {"Datetime": "Jan-02-21 08:00AM", "Link": "/n/1", "Source": "Reuters",
         "Title": "Q1 beat", "News Gain": ""},
        {"Datetime": "Jan-02-21 07:30AM", "Link": "/n/2", "Source": "Bloomberg",
         "Title": "Q2 miss", "News Gain": "+2.1%"},
    ]
    trade = record["Insider Trading"][0]
    assert len(record["Insider Trading"]) == 1
    assert trade["Owner"] == "COOK TIMOTHY"
    assert trade["#Shares"] == "100,000"
    assert trade["SEC Form 4 Datetime"] == "Jan 06 06:30 PM"
    assert trade["SEC Form 4 Link"] == "https://www.sec.gov/f4"


def test_quote_without_ratings_or_insiders():
    record = QuoteExtractor().extract(load_document(quote_page(ratings=False, insiders=False))).records[0]
    assert record["Analyst Recommendations"] == ""
    assert record["Insider Trading"] == ""
    assert len(record["News"]) == 2


def test_quote_malformed_volatility_is_a_warning():
    html = quote_page(snapshot=[("Volatility", "1.91%"), ("P/E", "20.00")])
    result = QuoteExtractor().extract(load_document(html))
    assert "Volatility (Week)" not in result.records[0]
    assert "Volatility" in result.warnings[0]


def test_calendar_rows(calendar_html):
    result = CalendarExtractor().extract(load_document(calendar_html))

    assert result.headers == ["Date", "Release", "Impact", "For", "Actual", "Expected", "Prior"]
    assert result.records[0] == {
        "Date": "2022-01-03T08:30:00-05:00",
        "Release": "Jobless Claims",
        "Impact": "critical",
        "For": "Dec 25",
        "Actual": "198K",
        "Expected": "205K",
        "Prior": "206K",
    }
    # The one-cell "No more releases" row is skipped
    assert [r["Release"] for r in result.records] == ["Jobless Claims", "ISM Manufacturing", "Auto Sales"]


def test_calendar_impact_and_unparseable_time(calendar_html):
    records = CalendarExtractor().extract(load_document(calendar_html)).records
    assert records[1]["Impact"] == "-"
    assert records[1]["Date"] == "2022-01-03T10:00:00-05:00"
    assert records[2]["Impact"] == "low"
    assert records[2]["Date"] == "Tentative"


def test_calendar_year_falls_back_when_copyright_has_none():
    html = calendar_page([("Wed Jan 05", [calendar_event("2:00 PM", "FOMC Minutes")])], copyright_year=None)
    layout = CalendarLayout(fallback_year=2021)
    record = CalendarExtractor(layout).extract(load_document(html)).records[0]
    assert record["Date"] == "2021-01-05T14:00:00-05:00"
