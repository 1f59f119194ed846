"""
Inline Markup Sanitizer
=======================

Reduces prose markup to a small set of inline tags before it is embedded in
a rendered page. Disallowed tags are unwrapped so their text stays readable;
executable and embedded content is removed together with its text.
"""

from typing import Dict, FrozenSet, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString

INLINE_TAGS: FrozenSet[str] = frozenset(
    {"a", "b", "strong", "em", "i", "code", "kbd", "sup", "sub", "br", "span"}
)

ALLOWED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "title"}),
    "code": frozenset({"class"}),
    "span": frozenset({"class"}),
}

# Removed with their content
DROPPED_TAGS: FrozenSet[str] = frozenset(
    {
        "script",
        "style",
        "iframe",
        "frame",
        "frameset",
        "object",
        "embed",
        "applet",
        "template",
        "noscript",
        "svg",
        "math",
        "textarea",
        "select",
        "head",
        "title",
        "meta",
        "link",
        "base",
    }
)

SAFE_URL_SCHEMES: FrozenSet[str] = frozenset({"", "http", "https"})


def is_safe_href(href: str) -> bool:
    """True for relative links and absolute http(s) links."""
    try:
        scheme = urlsplit(href.strip()).scheme
    except ValueError:
        return False
    return scheme.lower() in SAFE_URL_SCHEMES


def clean_fragment(fragment: Union[BeautifulSoup, Tag]) -> Union[BeautifulSoup, Tag]:
    """
    Sanitize the descendants of a fragment in place.

    The fragment element itself is left as is; only its content is cleaned.

    Args:
        fragment: Parsed markup or a detached element copy

    Returns:
        The same fragment
    """
    for node in list(fragment.descendants):
        if isinstance(node, PreformattedString):
            # Comments, doctypes, CDATA and processing instructions
            node.extract()

    for element in fragment.find_all(True):
        if element.decomposed:
            continue
        if element.name in DROPPED_TAGS:
            element.decompose()
        elif element.name not in INLINE_TAGS:
            element.unwrap()
        else:
            allowed = ALLOWED_ATTRIBUTES.get(element.name, frozenset())
            element.attrs = {
                name: value for name, value in element.attrs.items() if name in allowed
            }
            href = element.get("href")
            if href is not None and not is_safe_href(str(href)):
                del element["href"]

    return fragment


def sanitize_inline(markup: str) -> str:
    """Sanitize an inline markup string."""
    fragment = clean_fragment(BeautifulSoup(markup, "html.parser"))
    return "".join(str(child) for child in fragment.contents).strip()
