"""Keep formatter - rich text to Google Keep friendly markup."""

__version__ = "0.1.0"

from .converters import markdown_to_html
from .formatter import convert
from .models import (
    ConvertedMarkup,
    Diagnostic,
    DowngradedHeading,
    ListFlattened,
    RemovedElement,
    UnsupportedTag,
)

__all__ = [
    "ConvertedMarkup",
    "Diagnostic",
    "DowngradedHeading",
    "ListFlattened",
    "RemovedElement",
    "UnsupportedTag",
    "convert",
    "markdown_to_html",
]
