"""Parsing and serialization shared by the extractor, mutator and bridge."""

import re

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter


# Minimal escaping, HTML void elements without the XML-style slash
DOCUMENT_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

# background-image: url(...) with the quote (None if unquoted) in group 1 and
# the URL in group 2. Quoted URLs may contain ")" and the other quote char.
BACKGROUND_IMAGE_RE = re.compile(
    r"background-image:\s*url\(\s*(['\"])?((?(1).*?|[^)]*?))(?(1)\1)\s*\)",
    re.IGNORECASE,
)


def parse_document(document: str) -> BeautifulSoup:
    """Parse a document with the lenient stdlib-backed parser."""
    return BeautifulSoup(document, "html.parser")


def serialize_document(soup: BeautifulSoup) -> str:
    """Serialize a whole parsed document back to HTML text."""
    return soup.decode(formatter=DOCUMENT_FORMATTER)
