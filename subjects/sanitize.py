"""HTML allow-list for subject descriptions rendered from markdown.

Descriptions are shown inside the subject page under its own ``<h1>``, so
headings start at ``h2``. Images and raw HTML blocks are not part of a
description. Links open in a new tab and carry ``rel="nofollow"``.
"""
from __future__ import annotations

from functools import partial

from bleach.callbacks import nofollow, target_blank
from bleach.linkifier import LinkifyFilter
from bleach.sanitizer import Cleaner

# Tags produced by markdown "extra" (tables, definition lists, abbreviations,
# fenced code) plus the basic block and inline set.
DESCRIPTION_TAGS = frozenset(
    {
        "p",
        "br",
        "hr",
        "h2",
        "h3",
        "h4",
        "blockquote",
        "strong",
        "em",
        "code",
        "pre",
        "ul",
        "ol",
        "li",
        "dl",
        "dt",
        "dd",
        "abbr",
        "sup",
        "a",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
    }
)

DESCRIPTION_ATTRIBUTES = {
    "a": ["href", "title"],
    "abbr": ["title"],
    "code": ["class"],
}

DESCRIPTION_PROTOCOLS = frozenset({"http", "https", "mailto"})

_cleaner = Cleaner(
    tags=DESCRIPTION_TAGS,
    attributes=DESCRIPTION_ATTRIBUTES,
    protocols=DESCRIPTION_PROTOCOLS,
    strip=True,
    filters=[
        partial(LinkifyFilter, callbacks=[nofollow, target_blank], skip_tags=["pre", "code"]),
    ],
)


def sanitize_description_html(value: str) -> str:
    return _cleaner.clean(value)
