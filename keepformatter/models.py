"""Data models for Keep-friendly conversion results."""

from dataclasses import asdict, dataclass, field
from typing import ClassVar


@dataclass(frozen=True)
class Diagnostic:
    """Base class for a single lossy decision made during conversion."""

    kind: ClassVar[str] = ""

    @property
    def message(self) -> str:
        return self.kind

    def as_dict(self) -> dict:
        return {"kind": self.kind, **asdict(self)}


@dataclass(frozen=True)
class UnsupportedTag(Diagnostic):
    """An element with no Keep equivalent; its text content was kept."""

    kind: ClassVar[str] = "unsupported-tag"

    tag: str
    snippet: str

    @property
    def message(self) -> str:
        return f"Unsupported <{self.tag}> replaced by its text: {self.snippet}"


@dataclass(frozen=True)
class RemovedElement(Diagnostic):
    """A script or style sheet dropped together with its content."""

    kind: ClassVar[str] = "removed-element"

    tag: str

    @property
    def message(self) -> str:
        return f"Removed <{self.tag}> and its content"


@dataclass(frozen=True)
class DowngradedHeading(Diagnostic):
    """A heading deeper than Keep supports, clamped to h2."""

    kind: ClassVar[str] = "downgraded-heading"

    from_level: str
    to_level: str

    @property
    def message(self) -> str:
        return f"Heading <{self.from_level}> downgraded to <{self.to_level}>"

    def as_dict(self) -> dict:
        return {"kind": self.kind, "from": self.from_level, "to": self.to_level}


@dataclass(frozen=True)
class ListFlattened(Diagnostic):
    """A nested list item rewritten as an indented paragraph."""

    kind: ClassVar[str] = "list-flattened"

    depth: int

    @property
    def message(self) -> str:
        return f"Nested list item at depth {self.depth} flattened to an indented line"


@dataclass(frozen=True)
class ConvertedMarkup:
    """The three output projections of one conversion, plus its diagnostics."""

    html: str = ""
    keep_html: str = ""
    plain_text: str = ""
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.html

    def as_dict(self) -> dict:
        """Shape consumed by clipboard and preview collaborators."""
        return {
            "html": self.html,
            "keepHtml": self.keep_html,
            "plainText": self.plain_text,
            "diagnostics": [d.as_dict() for d in self.diagnostics],
        }
