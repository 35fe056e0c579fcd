"""Projections of cleaned Keep markup into clipboard HTML and plain text."""

import html
import re

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

# Inline styles Keep itself writes to the clipboard
KEEP_BLOCK_STYLE = "line-height:1.38;margin-top:0pt;margin-bottom:0pt;"
_KEEP_TEXT_TAIL = (
    "color:#000000;background-color:transparent;font-weight:400;font-style:normal;"
    "font-variant:normal;text-decoration:none;vertical-align:baseline;"
    "white-space:pre;white-space:pre-wrap;"
)
KEEP_TEXT_STYLE = "font-size:11pt;font-family:'Google Sans Text';" + _KEEP_TEXT_TAIL
KEEP_H1_STYLE = "font-size:15pt;font-family:'Google Sans';" + _KEEP_TEXT_TAIL
KEEP_H2_STYLE = "font-size:13.5pt;font-family:'Google Sans';" + _KEEP_TEXT_TAIL

SPAN_STYLES = {
    "p": KEEP_TEXT_STYLE,
    "h1": KEEP_H1_STYLE,
    "h2": KEEP_H2_STYLE,
}

_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_END_RE = re.compile(r"</(?:p|h1|h2)>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_HEADING_AFTER_BLOCK_RE = re.compile(r"(</(?:p|ol|ul)>)(\s*)(<h[12]\b[^>]*>)", re.IGNORECASE)
_BLANK_RUN_RE = re.compile(r"\n{2,}")

INDENT_PREFIX = "    "


def _substitute_entities(value: str) -> str:
    return EntitySubstitution.substitute_xml(value).replace("\u00a0", "&nbsp;")


# Keep entities and self-closing breaks as they appear in the display markup
CLIPBOARD_FORMATTER = HTMLFormatter(
    entity_substitution=_substitute_entities,
    void_element_close_prefix=" /",
)


def project_clipboard(cleaned_html: str) -> str:
    """Decorate each block with the inline styles of Keep's clipboard export.

    Every p/h1/h2 gets ``dir="ltr"`` plus the block style, and its children
    are moved into one span styled for the block kind. The result is only
    meaningful as a text/html clipboard payload.
    """
    if not cleaned_html:
        return ""

    soup = BeautifulSoup(cleaned_html, "html.parser")

    for block in soup.find_all(["p", "h1", "h2"]):
        block["dir"] = "ltr"
        block["style"] = KEEP_BLOCK_STYLE

        wrapper = soup.new_tag("span")
        wrapper["style"] = SPAN_STYLES[block.name]
        for child in list(block.contents):
            wrapper.append(child.extract())
        block.append(wrapper)

    return soup.decode_contents(formatter=CLIPBOARD_FORMATTER)


def project_plain_text(cleaned_html: str) -> str:
    """Derive newline-delimited plain text from cleaned Keep markup.

    Breaks and block ends become newlines, a heading that follows a
    paragraph is separated by a blank line, and blank-line runs collapse
    to one. Lines indented by four spaces (flattened lists) keep their
    indentation.
    """
    if not cleaned_html:
        return ""

    text = _HEADING_AFTER_BLOCK_RE.sub(r"\1\n\2\3", cleaned_html)
    text = _BREAK_RE.sub("\n", text)
    text = _BLOCK_END_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text).replace("\u00a0", " ")

    lines = [
        line if line.startswith(INDENT_PREFIX) else line.lstrip()
        for line in text.split("\n")
    ]
    text = _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))
    return text.lstrip("\n").rstrip()
