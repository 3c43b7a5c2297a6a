"""
HTML Document Loader.

Turns a raw payload into a read-only Document:
- Decodes bytes with the charset the page declares (WHATWG browser mapping)
- Strips escape artifacts of double-encoded payloads (literal "\\r", "\\n", '\\"')
- Collapses real newlines and tabs to single spaces so cell text is stable
- Parses with BeautifulSoup, falling back html5lib → lxml → html.parser

Pipeline position: Stage 1 (Loader → Extractor → Materializer → Coercion).
Input:  str, bytes, or a readable object returning either
Output: Document
"""

import re
from typing import Any, Optional, Union

from bs4 import BeautifulSoup, Tag

from .exceptions import ParseError
from .logger import get_module_logger
from .paths import TraversalPath, walk

logger = get_module_logger("loader")

Payload = Union[str, bytes, bytearray]

# Parser fallback chain. html5lib implements the WHATWG tree builder, so its
# <tbody> insertion matches what the positional layouts were written against.
PARSERS = ("html5lib", "lxml", "html.parser")


class Document:
    """
    Immutable parsed HTML tree.

    Only read-only queries are exposed. The underlying soup is kept private
    and must not be mutated by extractors.
    """

    __slots__ = ("_soup", "_parser")

    def __init__(self, soup: BeautifulSoup, parser: str):
        self._soup = soup
        self._parser = parser

    @property
    def parser(self) -> str:
        """Name of the parser that built the tree."""
        return self._parser

    def select(self, css: str) -> list[Tag]:
        return list(self._soup.select(css))

    def walk(self, path: TraversalPath) -> list[Tag]:
        """Evaluate a traversal path starting from the document root."""
        return walk([self._soup], path)

    def text(self) -> str:
        return self._soup.get_text()

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_parser"):
            raise AttributeError("Document is read-only")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"Document(parser={self._parser!r})"


class Loader:
    """Payload normalizer and parser."""

    # WHATWG encoding spec: browsers silently remap these charsets.
    # https://encoding.spec.whatwg.org/#names-and-labels
    WHATWG_CHARSET_MAP = {
        'iso-8859-1': 'windows-1252',
        'iso8859-1': 'windows-1252',
        'iso88591': 'windows-1252',
        'latin-1': 'windows-1252',
        'latin1': 'windows-1252',
        'us-ascii': 'windows-1252',
        'ascii': 'windows-1252',
        'iso-8859-9': 'windows-1254',
        'iso-8859-11': 'windows-874',
    }

    # Escape sequences left behind when a payload was JSON/JS-encoded twice.
    # These are two-character sequences (backslash + letter), not control chars.
    ESCAPE_ARTIFACTS = (
        ('\\r', ''),
        ('\\n', ''),
        ('\\"', '"'),
    )

    _WHITESPACE_CONTROL = str.maketrans({'\n': ' ', '\t': ' '})

    @staticmethod
    def detect_charset_from_bytes(raw_bytes: bytes) -> str:
        """
        Detect charset from raw HTML bytes by scanning the first 2048 bytes
        for <meta charset=...> or <meta http-equiv="Content-Type" content="...; charset=...">.

        Returns the browser-equivalent charset or 'utf-8' as default.
        """
        head_str = bytes(raw_bytes[:2048]).decode('ascii', errors='ignore')

        charset = None

        m = re.search(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', head_str, re.IGNORECASE)
        if m:
            charset = m.group(1).strip().lower()

        if not charset:
            m = re.search(
                r'<meta[^>]+content=["\'][^"\']*charset=([^\s"\';>]+)',
                head_str, re.IGNORECASE
            )
            if m:
                charset = m.group(1).strip().lower()

        if not charset:
            return 'utf-8'

        return Loader.WHATWG_CHARSET_MAP.get(charset, charset)

    def decode(self, payload: Any) -> str:
        """
        Resolve a payload to text.

        Readable objects are read first. Bytes are decoded strictly with the
        declared charset: a stream that doesn't decode is malformed input.
        """
        if hasattr(payload, "read") and not isinstance(payload, (str, bytes, bytearray)):
            try:
                payload = payload.read()
            except OSError as e:
                raise ParseError(f"Failed to read payload: {e}") from e

        if isinstance(payload, str):
            return payload

        if isinstance(payload, (bytes, bytearray)):
            charset = self.detect_charset_from_bytes(payload)
            try:
                return bytes(payload).decode(charset)
            except LookupError as e:
                raise ParseError(
                    f"Unknown charset declared by document: {charset}",
                    details={"charset": charset}
                ) from e
            except UnicodeDecodeError as e:
                raise ParseError(
                    f"Malformed {charset} byte stream at offset {e.start}",
                    details={"charset": charset, "offset": e.start}
                ) from e

        raise ParseError(
            f"HTML payload type is not str, bytes or readable: {type(payload).__name__}",
            details={"type": type(payload).__name__}
        )

    def normalize(self, html: str) -> str:
        """Strip escape artifacts, then turn newlines and tabs into spaces."""
        normalized = html
        for artifact, replacement in self.ESCAPE_ARTIFACTS:
            if artifact in normalized:
                normalized = normalized.replace(artifact, replacement)
        return normalized.translate(self._WHITESPACE_CONTROL)

    def parse(self, html: str) -> Document:
        """
        Parse normalized HTML, walking the parser fallback chain.

        Raises:
            ParseError: if every parser rejected the markup
        """
        errors: dict[str, str] = {}
        for parser in PARSERS:
            try:
                soup = BeautifulSoup(html, parser)
            except Exception as e:
                # FeatureNotFound (parser not installed) and ParserRejectedMarkup
                # both land here; the next parser in the chain gets a try.
                logger.warning(f"{parser} parsing failed, trying next parser: {e}")
                errors[parser] = str(e)
                continue
            logger.debug(f"Parsed document with {parser}")
            return Document(soup, parser)

        raise ParseError("Markup could not be parsed by any parser", details=errors)

    def load(self, payload: Any) -> Document:
        """Decode, normalize and parse a payload into a Document."""
        html = self.decode(payload)
        document = self.parse(self.normalize(html))
        logger.info(f"Loaded document ({len(html)} chars, parser={document.parser})")
        return document


def load_document(payload: Any, source_encoding: Optional[str] = None) -> Document:
    """
    Convenience function to load a Document.

    Args:
        payload: Raw HTML as str, bytes, or a readable object
        source_encoding: Optional charset that overrides detection for bytes payloads

    Returns:
        Parsed read-only Document
    """
    loader = Loader()
    if source_encoding and isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode(source_encoding)
        except (LookupError, UnicodeDecodeError) as e:
            raise ParseError(f"Payload is not valid {source_encoding}: {e}") from e
    return loader.load(payload)
