"""Rich text to Google Keep markup conversion.

Keep's editor accepts a small subset of HTML: bold, italic, underline,
two heading levels, paragraphs and line breaks. It has no list markup, so
lists are flattened into paragraphs carrying their own numbering, bullets
and non-breaking-space indentation.

Pipeline:
    raw markup -> parse -> serialize (flattening lists) -> clean
        -> clipboard HTML / plain text projections

Every lossy step is recorded as a diagnostic in document order.
"""

import copy
import enum
import html
import logging
import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .models import (
    ConvertedMarkup,
    Diagnostic,
    DowngradedHeading,
    ListFlattened,
    RemovedElement,
    UnsupportedTag,
)
from .projectors import project_clipboard, project_plain_text

logger = logging.getLogger(__name__)

# Source tag -> canonical Keep tag
INLINE_TAGS = {"b": "b", "strong": "b", "i": "i", "em": "i", "u": "u"}
HEADING_TAGS = {"h1": "h1", "h2": "h2", "h3": "h2", "h4": "h2", "h5": "h2", "h6": "h2"}

BLOCK_TAGS = {"p", "div", "section", "article", "header", "footer"}
LIST_TAGS = {"ol", "ul"}
REMOVED_TAGS = {"script", "style"}

# Unsupported elements that stay in the flow of the surrounding text
PHRASING_TAGS = {
    "a", "abbr", "bdi", "bdo", "big", "cite", "code", "data", "del", "dfn",
    "font", "img", "ins", "kbd", "label", "mark", "nobr", "q", "s", "samp",
    "small", "span", "strike", "sub", "sup", "time", "tt", "var",
}

INDENT_UNIT = "&nbsp;" * 4
EMPTY_ITEM = "&nbsp;"
SNIPPET_LIMIT = 80

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_LEADING_NBSP_RE = re.compile("^\u00a0+")
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_START_RE = re.compile(r"\s*([+-]?\d+)")

_EMPTY_BLOCK_RE = re.compile(r"<(p|h1|h2)>(.*?)</\1>", re.DOTALL)
_EMPTY_INLINE_RE = re.compile(r"(\s*)<(b|i|u)></\2>(\s*)")
_SPACE_IN_CLOSING_INLINE_RE = re.compile(r"\s+((?:</(?:b|i|u)>)+)\s*")
_OPEN_BLOCK_SPACE_RE = re.compile(r"(<(?:p|h1|h2)\b[^>]*>)\s+", re.IGNORECASE)
_BREAK_SPACE_RE = re.compile(r"(<br\s*/?>)\s+", re.IGNORECASE)
_SPACE_BEFORE_TAG_RE = re.compile(
    r"\s+(</(?:h1|h2|p)>|<(?:h1|h2|p|br)\b[^>]*>)", re.IGNORECASE
)


class NodeKind(enum.Enum):
    """Closed set of node classes the serializer dispatches on."""

    TEXT = "text"
    IGNORED = "ignored"
    REMOVED = "removed"
    INLINE = "inline"
    HEADING = "heading"
    BREAK = "break"
    LIST = "list"
    BLOCK = "block"
    PHRASING = "phrasing"
    UNKNOWN = "unknown"


# Kinds that never start a block of their own
_RUN_KINDS = {
    NodeKind.TEXT,
    NodeKind.INLINE,
    NodeKind.BREAK,
    NodeKind.PHRASING,
    NodeKind.IGNORED,
    NodeKind.REMOVED,
}

_BLOCK_KINDS = {NodeKind.BLOCK, NodeKind.HEADING, NodeKind.LIST}


def classify(node) -> NodeKind:
    """Return the node class used for dispatch."""
    # Comments, doctypes, CDATA and processing instructions
    if isinstance(node, PreformattedString):
        return NodeKind.IGNORED
    if isinstance(node, NavigableString):
        return NodeKind.TEXT
    if not isinstance(node, Tag):
        return NodeKind.IGNORED

    name = node.name
    if name in REMOVED_TAGS:
        return NodeKind.REMOVED
    if name in INLINE_TAGS:
        return NodeKind.INLINE
    if name in HEADING_TAGS:
        return NodeKind.HEADING
    if name == "br":
        return NodeKind.BREAK
    if name in LIST_TAGS:
        return NodeKind.LIST
    if name in BLOCK_TAGS:
        return NodeKind.BLOCK
    if name in PHRASING_TAGS:
        return NodeKind.PHRASING
    return NodeKind.UNKNOWN


def escape_html(value: str) -> str:
    """Escape text for the display markup, normalizing NBSP to a space."""
    return (
        value.replace("\u00a0", " ")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def is_effectively_empty(fragment: str) -> bool:
    """True when a fragment holds nothing but breaks, NBSPs, tags and whitespace."""
    stripped = _BREAK_RE.sub("", fragment)
    stripped = re.sub(r"&nbsp;", " ", stripped, flags=re.IGNORECASE)
    stripped = _TAG_RE.sub("", stripped)
    return not _WHITESPACE_RE.sub("", stripped)


def holds_blocks(element: Tag) -> bool:
    """True when a block container, heading or list sits anywhere below element."""
    return any(
        classify(descendant) in _BLOCK_KINDS
        for descendant in element.descendants
        if isinstance(descendant, Tag)
    )


def _is_run(node, kind: NodeKind) -> bool:
    if kind is NodeKind.PHRASING:
        return not holds_blocks(node)
    return kind in _RUN_KINDS


def wrap_paragraph(content: str) -> str:
    if not content or is_effectively_empty(content):
        return ""
    return f"<p>{content.strip()}</p>"


def _serialize_text(value: str) -> str:
    # A leading NBSP run is indentation and survives as entities.
    indent = ""
    match = _LEADING_NBSP_RE.match(value)
    if match:
        indent = "&nbsp;" * match.end()
        value = value[match.end():]
    return indent + escape_html(_WHITESPACE_RE.sub(" ", value))


def _snippet(element: Tag) -> str:
    markup = _WHITESPACE_RE.sub(" ", str(element)).strip()
    if len(markup) <= SNIPPET_LIMIT:
        return markup
    return markup[:SNIPPET_LIMIT] + "…"


def serialize_children(
    element: Tag, inline_context: bool, depth: int, diagnostics: list[Diagnostic]
) -> str:
    return "".join(
        serialize_node(child, inline_context, depth, diagnostics)
        for child in element.children
    )


def serialize_node(
    node, inline_context: bool, depth: int, diagnostics: list[Diagnostic]
) -> str:
    """Rewrite one parsed node into the restricted Keep grammar.

    Args:
        node: Text node or element from the parsed tree
        inline_context: Whether the node sits in a phrasing position, which
            suppresses paragraph wrapping
        depth: Current list nesting level
        diagnostics: Side list collecting lossy decisions, in document order

    Returns:
        Markup fragment, possibly empty
    """
    kind = classify(node)

    if kind is NodeKind.TEXT:
        return _serialize_text(str(node))
    if kind is NodeKind.IGNORED:
        return ""

    tag = node.name

    if kind is NodeKind.REMOVED:
        diagnostics.append(RemovedElement(tag=tag))
        return ""

    if kind is NodeKind.INLINE:
        canonical = INLINE_TAGS[tag]
        inner = serialize_children(node, True, depth, diagnostics)
        # Whitespace or breaks alone keep their place in the text, untagged
        if is_effectively_empty(inner):
            return inner
        return f"<{canonical}>{inner}</{canonical}>"

    if kind is NodeKind.HEADING:
        level = HEADING_TAGS[tag]
        if level != tag:
            diagnostics.append(DowngradedHeading(from_level=tag, to_level=level))
        inner = serialize_children(node, True, depth, diagnostics)
        if is_effectively_empty(inner):
            return ""
        return f"<{level}>{inner}</{level}>"

    if kind is NodeKind.BREAK:
        return "<br />"

    if kind is NodeKind.LIST:
        return flatten_list(node, tag == "ol", depth, diagnostics)

    if kind in (NodeKind.UNKNOWN, NodeKind.PHRASING):
        diagnostics.append(UnsupportedTag(tag=tag, snippet=_snippet(node)))

    # Transparent inside phrasing content, paragraphs everywhere else
    if inline_context or (kind is NodeKind.PHRASING and not holds_blocks(node)):
        return serialize_children(node, True, depth, diagnostics)
    return serialize_blocks(node, depth, diagnostics)


def _start_offset(list_element: Tag) -> int:
    match = _START_RE.match(list_element.get("start") or "")
    return int(match.group(1)) if match else 1


def _nested_lists(item: Tag) -> list[Tag]:
    """Outermost lists below an item, including ones inside wrapper elements."""
    found = []
    for child in item.children:
        kind = classify(child)
        if kind is NodeKind.LIST:
            found.append(child)
        elif isinstance(child, Tag) and kind is not NodeKind.REMOVED:
            found.extend(_nested_lists(child))
    return found


def flatten_list(
    list_element: Tag, is_ordered: bool, depth: int, diagnostics: list[Diagnostic]
) -> str:
    """Flatten an ol/ul subtree into indented, manually numbered paragraphs.

    Nested sublists are emitted right after the item that holds them, one
    level deeper. Only direct ``li`` children count as items.
    """
    items = [
        child
        for child in list_element.children
        if isinstance(child, Tag) and child.name == "li"
    ]
    if not items:
        return ""

    indent = INDENT_UNIT * depth
    counter = _start_offset(list_element) if is_ordered else 1
    fragments = []

    for item in items:
        if depth > 0:
            diagnostics.append(ListFlattened(depth=depth))

        nested = _nested_lists(item)
        # The item's own line is serialized from a copy without its sublists
        line = copy.copy(item)
        for sublist in _nested_lists(line):
            sublist.decompose()
        content = serialize_children(line, True, depth, diagnostics).strip()

        prefix = f"{counter}. " if is_ordered else "- "
        fragments.append(f"<p>{indent}{prefix}{content or EMPTY_ITEM}</p>")

        for sublist in nested:
            fragments.append(
                flatten_list(sublist, sublist.name == "ol", depth + 1, diagnostics)
            )

        counter += 1

    return "".join(fragments)


def serialize_blocks(element: Tag, depth: int, diagnostics: list[Diagnostic]) -> str:
    """Serialize a container's children outside phrasing context.

    Consecutive phrasing children are gathered into one paragraph; child
    blocks are emitted as they are, so paragraphs never nest.
    """
    fragments = []
    run = []

    for child in element.children:
        kind = classify(child)
        fragment = serialize_node(child, False, depth, diagnostics)
        if _is_run(child, kind):
            run.append(fragment)
            continue
        if run:
            fragments.append(wrap_paragraph("".join(run)))
            run = []
        fragments.append(fragment)

    if run:
        fragments.append(wrap_paragraph("".join(run)))

    return "".join(fragments)


def _drop_empty_block(match: re.Match) -> str:
    return "" if is_effectively_empty(match.group(2)) else match.group(0)


def _drop_empty_inline(match: re.Match) -> str:
    return " " if match.group(1) or match.group(3) else ""


def _tidy_inline(markup: str) -> str:
    # Trailing spaces move past closing b/i/u so words stay apart
    while True:
        tidied = _SPACE_IN_CLOSING_INLINE_RE.sub(r"\1 ", markup)
        tidied = _EMPTY_INLINE_RE.sub(_drop_empty_inline, tidied)
        if tidied == markup:
            return markup
        markup = tidied


def clean_output(markup: str) -> str:
    """Remove empty blocks and stray whitespace around tags.

    Idempotent: ``clean_output(clean_output(x)) == clean_output(x)``.
    """
    markup = _tidy_inline(markup)
    markup = _EMPTY_BLOCK_RE.sub(_drop_empty_block, markup)
    markup = _OPEN_BLOCK_SPACE_RE.sub(r"\1", markup)
    markup = _BREAK_SPACE_RE.sub(r"\1", markup)
    markup = _SPACE_BEFORE_TAG_RE.sub(r"\1", markup)
    return markup.strip()


def has_text_content(raw_html: str) -> bool:
    """Cheap check for any visible text, without building a tree."""
    text = html.unescape(_TAG_RE.sub("", raw_html))
    return bool(text.replace("\u00a0", " ").strip())


def convert(raw_html: str) -> ConvertedMarkup:
    """Convert arbitrary rich-text markup into Keep-friendly outputs.

    Never raises for string input: anything the Keep grammar cannot express
    is rewritten or dropped and reported through ``diagnostics``.

    Args:
        raw_html: HTML fragment, e.g. the contents of a rich-text editor

    Returns:
        ConvertedMarkup with display HTML, clipboard HTML, plain text and
        the ordered diagnostics
    """
    if not isinstance(raw_html, str):
        raise TypeError(f"convert() expects markup as str, not {type(raw_html).__name__}")

    if not has_text_content(raw_html):
        logger.debug("No text content in %d characters of input, skipping parse", len(raw_html))
        return ConvertedMarkup()

    # The BeautifulSoup object is the synthetic container for the fragment.
    soup = BeautifulSoup(raw_html, "html.parser")
    diagnostics: list[Diagnostic] = []
    cleaned = clean_output(serialize_blocks(soup, 0, diagnostics))

    result = ConvertedMarkup(
        html=cleaned,
        keep_html=project_clipboard(cleaned),
        plain_text=project_plain_text(cleaned),
        diagnostics=tuple(diagnostics),
    )
    logger.debug(
        "Converted %d characters into %d characters of Keep markup with %d diagnostics",
        len(raw_html),
        len(cleaned),
        len(diagnostics),
    )
    return result
