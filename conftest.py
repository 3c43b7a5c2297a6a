"""
Shared fixtures: small synthetic pages shaped like the real layouts.

Every table carries an explicit <tbody> so all three parsers in the
Loader's fallback chain build the same tree.
"""

import pytest


def news_item(date: str, title: str, href: str, css_class=None) -> str:
    """One row of the "by time" news view; css_class=None leaves the attribute out."""
    icon = f'<td class="{css_class}"></td>' if css_class is not None else "<td></td>"
    return f'<tr>{icon}<td>{date}</td><td><a href="{href}">{title}</a></td></tr>'


def time_ordered_page(news_rows: list[str], blog_rows: list[str]) -> str:
    """News page, "by time" view: news column, spacer column, blog column."""
    return (
        "<html><body>"
        '<div id="news"><div>'
        "<div>Market News</div>"
        "<table><tbody>"
        '<tr><td colspan="3">header</td></tr>'
        "<tr>"
        f"<td><table><tbody>{''.join(news_rows)}</tbody></table></td>"
        "<td>&nbsp;</td>"
        f"<td><table><tbody>{''.join(blog_rows)}</tbody></table></td>"
        "</tr>"
        "</tbody></table>"
        "</div></div>"
        "</body></html>"
    )


def source_block(name: str, url: str, articles: list[tuple[str, str, str]]) -> str:
    """One publication block of the "by source" view."""
    rows = [
        "<tr><td>logo</td></tr>",
        "<tr><td><table><tbody><tr>"
        f'<td>icon</td><td><a href="{url}">{name}</a></td>'
        "</tr></tbody></table></td></tr>",
    ]
    rows.extend(
        f'<tr><td>{date}</td><td><a href="{href}">{title}</a></td></tr>'
        for date, title, href in articles
    )
    return f"<table><tbody>{''.join(rows)}</tbody></table>"


def source_grouped_page(news_blocks: list[str], blog_blocks: list[str]) -> str:
    """News page, "by source" view: sections at sibling indices 2 (news) and 4 (blogs)."""
    def section(blocks):
        cells = "".join(f'<td align="left">{b}</td>' for b in blocks)
        return f"<table><tbody><tr>{cells}<td>&nbsp;</td></tr></tbody></table>"

    return (
        "<html><body>"
        '<div id="news"><div>'
        "<div>tabs</div><div>title</div>"
        f"{section(news_blocks)}"
        "<div>spacer</div>"
        f"{section(blog_blocks)}"
        "</div></div>"
        "</body></html>"
    )


def earnings_page() -> str:
    filler = "".join(
        f'<table class="t-home-table"><tbody><tr><td>block {i}</td></tr></tbody></table>'
        for i in range(5)
    )
    calendar = (
        '<table class="t-home-table"><tbody>'
        "<tr><td>Earnings Release</td></tr>"
        '<tr><td>Jan 28</td><td>BMO</td><td title="Apple Inc.">AAPL</td>'
        '<td title="Microsoft">MSFT</td><td></td></tr>'
        '<tr><td>Jan 29</td><td>AMC</td><td title="Tesla">TSLA</td></tr>'
        "</tbody></table>"
    )
    return f'<html><body><div id="homepage_bottom">{filler}{calendar}</div></body></html>'


SCREENER_HEADERS = ["No.", "Ticker", "Company", "Market Cap", "P/E", "Change", "Volume"]


def screener_page(rows: list[list[str]]) -> str:
    """Screener results page; the data table is the fourth tbody under #screener-content."""
    def tr(cells):
        return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"

    body = tr(SCREENER_HEADERS) + "".join(tr(r) for r in rows)
    return (
        "<html><body>"
        '<div id="screener-content"><table><tbody><tr><td>'
        "<table><tbody><tr><td>filters</td></tr></tbody></table>"
        "<table><tbody><tr><td>tabs</td></tr></tbody></table>"
        f"<table><tbody>{body}</tbody></table>"
        "</td></tr></tbody></table></div>"
        "</body></html>"
    )


QUOTE_SNAPSHOT = [
    ("Index", "DJIA S&amp;P500"), ("P/E", "28.50"),
    ("Market Cap", "2.41B"), ("EPS next Y", "5.60"),
    ("Price", "150.00"), ("EPS next Y", "8.50%"),
    ("Change", "1.25%"), ("Volatility", "1.91% 2.05%"),
    ("Volume", "1,234,567"), ("Employees", "147000"),
]


def quote_page(snapshot=QUOTE_SNAPSHOT, ratings: bool = True, insiders: bool = True) -> str:
    """Single-ticker quote page; ratings/insiders=False leaves those blocks out."""
    title = (
        '<table class="fullview-title"><tbody>'
        '<tr><td><a id="ticker" href="/q">AAPL</a> <span>[NASD]</span></td></tr>'
        "<tr><td><b>Apple Inc.</b></td></tr>"
        "<tr><td><a>Technology</a> | <a>Consumer Electronics</a> | <a>USA</a></td></tr>"
        "</tbody></table>"
    )
    grid_rows = []
    for i in range(0, len(snapshot), 2):
        cells = "".join(f"<td>{label}</td><td><b>{value}</b></td>" for label, value in snapshot[i:i + 2])
        grid_rows.append(f'<tr class="table-dark-row">{cells}</tr>')
    grid = f'<table class="snapshot-table2"><tbody>{"".join(grid_rows)}</tbody></table>'

    recommendations = (
        '<table class="fullview-ratings-outer"><tbody>'
        "<tr><td><table><tbody><tr>"
        "<td>Jan-05-21</td><td><b>Upgrade</b></td><td>Goldman</td>"
        "<td>Neutral → Buy</td><td>$150</td>"
        "</tr></tbody></table></td></tr>"
        "</tbody></table>"
    ) if ratings else ""
    news = (
        '<table id="news-table"><tbody>'
        '<tr><td style="white-space:nowrap">Jan-02-21 08:00AM&nbsp;</td>'
        '<td><a href="/n/1">Q1 beat</a><span>&nbsp;Reuters</span></td></tr>'
        "<tr><td>07:30AM&nbsp;</td>"
        '<td><a href="/n/2">Q2 miss</a><span>&nbsp;Bloomberg</span><span>+2.1%</span></td></tr>'
        "</tbody></table>"
    )
    profile = '<div class="fullview-profile">Apple designs phones.</div>'
    insider_table = (
        "<table><tbody>"
        "<tr><td>Insider Trading</td><td>Relationship</td><td>Date</td></tr>"
        '<tr class="insider-sale-row-2">'
        "<td><a>COOK TIMOTHY</a></td><td>CEO</td><td>Jan 04</td><td>Sale</td>"
        "<td>130.50</td><td>100,000</td><td>13,050,000</td><td>3,000,000</td>"
        '<td><a href="https://www.sec.gov/f4">Jan 06 06:30 PM</a></td>'
        "</tr></tbody></table>"
    ) if insiders else ""
    return f"<html><body>{title}{grid}{recommendations}{news}{profile}{insider_table}</body></html>"


def calendar_event(time: str, release: str, impact: str = "impact_2.gif",
                   for_: str = "Dec", actual: str = "", expected: str = "", prior: str = "") -> str:
    """One 9-cell release row of the economic calendar."""
    icon = f'<img src="gfx/calendar/{impact}">' if impact else ""
    cells = [time, "", release, icon, for_, actual, expected, prior, '<a href="#">alert</a>']
    return "<tr>" + "".join(f"<td>{c}</td>" for c in cells) + "</tr>"


def calendar_page(days: list[tuple[str, list[str]]], copyright_year="2022") -> str:
    """Economic calendar: one nested table per day, inside the page layout table."""
    tables = "".join(
        "<table><tbody>"
        f'<tr class="calendar-header"><td>{day}</td><td>Time</td><td>Release</td></tr>'
        f"{''.join(rows)}"
        "</tbody></table>"
        for day, rows in days
    )
    notice = f"Copyright © 2007-{copyright_year} FINVIZ.com" if copyright_year else "FINVIZ.com"
    return (
        "<html><body>"
        f"<table><tbody><tr><td>{tables}</td></tr></tbody></table>"
        f'<div class="copyright">{notice}</div>'
        "</body></html>"
    )


@pytest.fixture
def quote_html() -> str:
    return quote_page()


@pytest.fixture
def calendar_html() -> str:
    return calendar_page([
        ("Mon Jan 03", [
            calendar_event("8:30 AM", "Jobless Claims", "impact_3.gif", "Dec 25", "198K", "205K", "206K"),
            '<tr><td colspan="9">No more releases</td></tr>',
            calendar_event("10:00 AM", "ISM Manufacturing", ""),
        ]),
        ("Tue Jan 04", [
            calendar_event("Tentative", "Auto Sales", "impact_1.gif"),
        ]),
    ])


@pytest.fixture
def by_time_html() -> str:
    return time_ordered_page(
        news_rows=[news_item("Jan-02", "Stocks Rally", "/x", "is-7 foo")],
        blog_rows=[news_item("Jan-03", "Blog Post", "/y")],
    )


@pytest.fixture
def by_source_html() -> str:
    return source_grouped_page(
        news_blocks=[
            source_block("Reuters", "https://www.reuters.com", [
                ("08:15AM", "Fed holds rates", "https://reuters.com/a1"),
                ("07:50AM", "Oil slips", "https://reuters.com/a2"),
            ]),
        ],
        blog_blocks=[
            source_block("Zero Hedge", "https://www.zerohedge.com", [
                ("06:00AM", "Gold bid", "https://zerohedge.com/b1"),
            ]),
        ],
    )


@pytest.fixture
def earnings_html() -> str:
    return earnings_page()


@pytest.fixture
def screener_html() -> str:
    return screener_page([
        ["1", "AAPL", "Apple Inc.", "2.41B", "28.50", "1.25%", "1,234,567"],
        ["2", "XYZ", "Xyz Corp", "500K", "-", "0.00%", "0"],
    ])
