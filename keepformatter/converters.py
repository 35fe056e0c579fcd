"""Markdown pre-processing for Keep conversion."""

import logging
import re

import markdown

logger = logging.getLogger(__name__)

_LINE_ENDING_RE = re.compile(r"\r\n?")

# "extra" without md_in_html, which only matters when raw HTML is allowed
MARKDOWN_EXTENSIONS = [
    "abbr",
    "attr_list",
    "def_list",
    "fenced_code",
    "footnotes",
    "tables",
    "sane_lists",
    "smarty",
]


def _build_parser() -> markdown.Markdown:
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS)
    # Raw HTML in the source is shown as text, not passed through
    md.preprocessors.deregister("html_block", strict=False)
    md.inlinePatterns.deregister("html", strict=False)
    return md


def markdown_to_html(md_content: str) -> str:
    """Convert Markdown to HTML ready for ``convert()``.

    Empty or whitespace-only input yields an empty string. Line endings
    are normalized to ``\\n`` before rendering.
    """
    if not md_content or not md_content.strip():
        return ""

    normalized = _LINE_ENDING_RE.sub("\n", md_content)
    html = _build_parser().convert(normalized)
    logger.debug("Rendered %d characters of Markdown", len(normalized))
    return html
