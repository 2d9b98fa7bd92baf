from __future__ import annotations

from django import template
from django.utils.safestring import mark_safe

import markdown

from subjects.sanitize import sanitize_description_html

register = template.Library()

_MARKDOWN_EXTENSIONS = [
    "markdown.extensions.extra",
    "markdown.extensions.sane_lists",
]


@register.filter(name="subject_markdown")
def subject_markdown(value: str | None) -> str:
    """Render a markdown description to sanitized HTML."""
    if not value:
        return ""

    html = markdown.markdown(
        value,
        extensions=_MARKDOWN_EXTENSIONS,
        output_format="html",
    )
    return mark_safe(sanitize_description_html(html))
