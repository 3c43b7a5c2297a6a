"""
Process-wide, read-only lookup tables.

COLUMN_TYPES maps a normalized column-name synonym to the semantic type its
cells are coerced into; several synonyms share one type. NEWS_SOURCE_LABELS
maps the CSS class token the news page puts on an item's icon cell to the
publication it stands for.

Both tables are wrapped in MappingProxyType: they are built once at import
and shared by every pipeline run without locking.
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional

from .schemas import SemanticType

_WHITESPACE = re.compile(r"\s+")
# Spacing the site is inconsistent about: "P / E", "52 - Week High", "( Week )"
_JOINER_SPACING = re.compile(r"\s*([/-])\s*")
_OPEN_PAREN_SPACING = re.compile(r"\(\s+")
_CLOSE_PAREN_SPACING = re.compile(r"\s+\)")

UNKNOWN_SOURCE = "Unknown"


def normalize_column_name(name: str) -> str:
    """
    Canonical lookup key for a column name.

    Lower-cases, trims and collapses inner whitespace, then drops the spaces
    around "/" and "-" and inside parentheses, so " P / E " and "p/e" or
    "Volatility ( Week )" and "volatility (week)" share a key. The punctuation
    itself stays: "no." and "no", "p/e" and "pe" are separate synonyms in
    COLUMN_TYPES.
    """
    key = _WHITESPACE.sub(" ", name.strip().lower())
    key = _JOINER_SPACING.sub(r"\1", key)
    key = _OPEN_PAREN_SPACING.sub("(", key)
    return _CLOSE_PAREN_SPACING.sub(")", key)


COLUMN_TYPES: Mapping[str, SemanticType] = MappingProxyType({
    "no": SemanticType.INT,
    "no.": SemanticType.INT,
    "ticker": SemanticType.STRING,
    "company": SemanticType.STRING,
    "sector": SemanticType.STRING,
    "industry": SemanticType.STRING,
    "country": SemanticType.STRING,
    "market cap": SemanticType.MAGNITUDE_INT,
    "p/e": SemanticType.FLOAT,
    "pe": SemanticType.FLOAT,
    "forward p/e": SemanticType.FLOAT,
    "fwd p/e": SemanticType.FLOAT,
    "forward pe": SemanticType.FLOAT,
    "peg": SemanticType.FLOAT,
    "p/s": SemanticType.FLOAT,
    "ps": SemanticType.FLOAT,
    "p/b": SemanticType.FLOAT,
    "pb": SemanticType.FLOAT,
    "p/cash": SemanticType.FLOAT,
    "p/c": SemanticType.FLOAT,
    "pc": SemanticType.FLOAT,
    "p/free cash flow": SemanticType.FLOAT,
    "p/fcf": SemanticType.FLOAT,
    "pfcf": SemanticType.FLOAT,
    "dividend yield": SemanticType.PERCENT,
    "dividend": SemanticType.PERCENT,
    "payout ratio": SemanticType.PERCENT,
    "eps": SemanticType.FLOAT,
    "eps growth this year": SemanticType.PERCENT,
    "eps this y": SemanticType.PERCENT,
    "eps growth next year": SemanticType.PERCENT,
    "eps next y": SemanticType.PERCENT,
    "eps growth past 5 years": SemanticType.PERCENT,
    "eps past 5y": SemanticType.PERCENT,
    "eps growth next 5 years": SemanticType.PERCENT,
    "eps next 5y": SemanticType.PERCENT,
    "sales growth past 5 years": SemanticType.PERCENT,
    "sales past 5y": SemanticType.PERCENT,
    "eps growth qtr over qtr": SemanticType.PERCENT,
    "eps q/q": SemanticType.PERCENT,
    "eps growth quarter over quarter": SemanticType.PERCENT,
    "sales growth qtr over qtr": SemanticType.PERCENT,
    "sales q/q": SemanticType.PERCENT,
    "sales growth quarter over quarter": SemanticType.PERCENT,
    "shares outstanding": SemanticType.MAGNITUDE_INT,
    "outstanding": SemanticType.MAGNITUDE_INT,
    "so": SemanticType.MAGNITUDE_INT,
    "shares float": SemanticType.MAGNITUDE_INT,
    "float": SemanticType.MAGNITUDE_INT,
    "insider ownership": SemanticType.PERCENT,
    "insider own": SemanticType.PERCENT,
    "insider transactions": SemanticType.PERCENT,
    "insider trans": SemanticType.PERCENT,
    "institutional ownership": SemanticType.PERCENT,
    "inst own": SemanticType.PERCENT,
    "institutional transactions": SemanticType.PERCENT,
    "inst trans": SemanticType.PERCENT,
    "float short": SemanticType.PERCENT,
    "short selling": SemanticType.PERCENT,
    "short ratio": SemanticType.FLOAT,
    "return on assets": SemanticType.PERCENT,
    "roa": SemanticType.PERCENT,
    "return on equity": SemanticType.PERCENT,
    "roe": SemanticType.PERCENT,
    "return on investment": SemanticType.PERCENT,
    "roi": SemanticType.PERCENT,
    "current ratio": SemanticType.FLOAT,
    "curr r": SemanticType.FLOAT,
    "quick ratio": SemanticType.FLOAT,
    "quick r": SemanticType.FLOAT,
    "long term debt/equity": SemanticType.FLOAT,
    "long-term debt/equity": SemanticType.FLOAT,
    "lt debt/eq": SemanticType.FLOAT,
    "ltdebt/eq": SemanticType.FLOAT,
    "lt d/e": SemanticType.FLOAT,
    "lt de": SemanticType.FLOAT,
    "total debt/equity": SemanticType.FLOAT,
    "debt/equity": SemanticType.FLOAT,
    "debt/eq": SemanticType.FLOAT,
    "d/e": SemanticType.FLOAT,
    "de": SemanticType.FLOAT,
    "gross margin": SemanticType.PERCENT,
    "gross m": SemanticType.PERCENT,
    "gm": SemanticType.PERCENT,
    "operating margin": SemanticType.PERCENT,
    "oper m": SemanticType.PERCENT,
    "om": SemanticType.PERCENT,
    "net profit margin": SemanticType.PERCENT,
    "profit m": SemanticType.PERCENT,
    "npm": SemanticType.PERCENT,
    "performance (week)": SemanticType.PERCENT,
    "perf week": SemanticType.PERCENT,
    "performance (month)": SemanticType.PERCENT,
    "perf month": SemanticType.PERCENT,
    "performance (quarter)": SemanticType.PERCENT,
    "perf quart": SemanticType.PERCENT,
    "performance (half year)": SemanticType.PERCENT,
    "perf half": SemanticType.PERCENT,
    "performance (year)": SemanticType.PERCENT,
    "perf year": SemanticType.PERCENT,
    "performance (yeartodate)": SemanticType.PERCENT,
    "performance (ytd)": SemanticType.PERCENT,
    "perf ytd": SemanticType.PERCENT,
    "beta": SemanticType.FLOAT,
    "average true range": SemanticType.FLOAT,
    "atr": SemanticType.FLOAT,
    "volatility (week)": SemanticType.PERCENT,
    "volatility w": SemanticType.PERCENT,
    "volatility (month)": SemanticType.PERCENT,
    "volatility m": SemanticType.PERCENT,
    "20-day simple moving average": SemanticType.PERCENT,
    "sma20": SemanticType.PERCENT,
    "50-day simple moving average": SemanticType.PERCENT,
    "sma50": SemanticType.PERCENT,
    "200-day simple moving average": SemanticType.PERCENT,
    "sma200": SemanticType.PERCENT,
    "50-day high": SemanticType.PERCENT,
    "50d high": SemanticType.PERCENT,
    "50-day low": SemanticType.PERCENT,
    "50d low": SemanticType.PERCENT,
    "52w high": SemanticType.PERCENT,
    "52-week high": SemanticType.PERCENT,
    "52-week low": SemanticType.PERCENT,
    "52w low": SemanticType.PERCENT,
    "rsi": SemanticType.FLOAT,
    "relative strength index": SemanticType.FLOAT,
    "change from open": SemanticType.PERCENT,
    "from open": SemanticType.PERCENT,
    "gap": SemanticType.PERCENT,
    "analyst recommendation": SemanticType.FLOAT,
    "analyst recom": SemanticType.FLOAT,
    "recommendation": SemanticType.FLOAT,
    "recom": SemanticType.FLOAT,
    "average volume": SemanticType.MAGNITUDE_INT,
    "avg volume": SemanticType.MAGNITUDE_INT,
    "avgvol": SemanticType.MAGNITUDE_INT,
    "relative volume": SemanticType.FLOAT,
    "rel volume": SemanticType.FLOAT,
    "relvol": SemanticType.FLOAT,
    "price": SemanticType.FLOAT,
    "change": SemanticType.PERCENT,
    "volume": SemanticType.GROUPED_INT,
    "earnings date": SemanticType.STRING,
    "earnings": SemanticType.STRING,
    "target price": SemanticType.FLOAT,
    "ipo date": SemanticType.STRING,
})


NEWS_SOURCE_LABELS: Mapping[str, str] = MappingProxyType({
    "is-1": "MarketWatch",
    "is-2": "WSJ",
    "is-3": "Reuters",
    "is-4": "Yahoo Finance",
    "is-5": "CNN",
    "is-6": "The New York Times",
    "is-7": "Bloomberg",
    "is-9": "BBC",
    "is-10": "CNBC",
    "is-11": "Fox Business",
    "is-102": "Mish's Global Economic Trend Analysis",
    "is-105": "Trader Feed",
    "is-113": "Howard Lindzon",
    "is-114": "Seeking Alpha",
    "is-121": "The Disciplined Investor",
    "is-123": "Fallond Stock Picks",
    "is-132": "Zero Hedge",
    "is-133": "market folly",
    "is-136": "Daily Reckoning",
    "is-137": "Vantage Point Trading",
    "is-141": "Abnormal Returns",
    "is-142": "Calculated Risk",
})


def lookup_type(column_name: str) -> Optional[SemanticType]:
    """Semantic type for a column name, or None when the name is not in the table."""
    return COLUMN_TYPES.get(normalize_column_name(column_name))


def lookup_source_label(class_tokens: list[str]) -> str:
    """
    Resolve the news-source label from an icon cell's class tokens.

    The page puts the source token second ("nn-tab-link is-7"), so that one
    is tried first; any other known token is accepted after it. Tokens that
    match nothing give UNKNOWN_SOURCE.
    """
    if len(class_tokens) > 1 and class_tokens[1] in NEWS_SOURCE_LABELS:
        return NEWS_SOURCE_LABELS[class_tokens[1]]
    for token in class_tokens:
        if token in NEWS_SOURCE_LABELS:
            return NEWS_SOURCE_LABELS[token]
    return UNKNOWN_SOURCE
