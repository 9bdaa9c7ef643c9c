"""Conversion of extracted markup into the plain text every offset refers to."""

import re

from bs4 import BeautifulSoup

_MARKUP_PATTERN = re.compile(r"<\s*[a-zA-Z!/][^>]*>")
_NON_TEXT_TAGS = ("script", "style", "noscript", "template")


def looks_like_markup(content: str) -> bool:
    return bool(content) and bool(_MARKUP_PATTERN.search(content))


def extract_plain_text(content: str) -> str:
    """
    Return the text content of ``content``.

    Markup is flattened the way a DOM's textContent is: text nodes are
    concatenated in document order with no separator added, entities are
    decoded. Plain text is returned unchanged.
    """
    if not content:
        return ""
    if not looks_like_markup(content):
        return content

    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(_NON_TEXT_TAGS):
        tag.decompose()
    return soup.get_text()
