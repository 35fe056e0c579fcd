"""CLI entry point for Keep formatter."""

import json
import logging
import sys

import click

from . import __version__
from .converters import markdown_to_html
from .formatter import convert
from .models import ConvertedMarkup

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("text", "html", "keep", "json")

SAMPLE_HTML = """
  <h1>Workshop Notes</h1>
  <p>Key takeaways from today's planning session:</p>
  <ol>
    <li><strong>Outline the release</strong> milestones</li>
    <li>Draft messaging for launch campaign</li>
    <li>
      Prepare QA checklist
      <ul>
        <li>Smoke tests</li>
        <li><em>Performance</em> runs</li>
      </ul>
    </li>
  </ol>
  <h2>Reminders</h2>
  <ul>
    <li>Send recap email</li>
    <li>Drop files in shared folder</li>
  </ul>
"""


def _configure_logging(verbosity: int) -> None:
    """Attach a stderr handler to the package logger.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("keepformatter")
    app_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    # Replace rather than stack handlers when the group runs more than once
    app_logger.handlers = [handler]


def render(result: ConvertedMarkup, output_format: str) -> str:
    """Pick the projection matching an output format name."""
    if output_format == "html":
        return result.html
    if output_format == "keep":
        return result.keep_html
    if output_format == "json":
        return json.dumps(result.as_dict(), indent=2, ensure_ascii=False)
    return result.plain_text


def _emit(result: ConvertedMarkup, output_format: str, show_diagnostics: bool) -> None:
    output = render(result, output_format)
    if output:
        click.echo(output)

    # JSON output already carries the diagnostics
    if show_diagnostics and output_format != "json":
        for diagnostic in result.diagnostics:
            click.echo(f"warning: {diagnostic.message}", err=True)


format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    show_default=True,
    help="Output projection: plain text, display HTML, Keep clipboard HTML or JSON",
)
diagnostics_option = click.option(
    "--diagnostics/--no-diagnostics",
    default=True,
    help="Report lossy conversions on stderr",
)


@click.group()
@click.version_option(version=__version__, prog_name="keepfmt")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)")
def cli(verbose: int):
    """Keep formatter - turn rich text into Google Keep friendly notes."""
    _configure_logging(verbose)


@cli.command("convert")
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--markdown", "-m", "is_markdown", is_flag=True, help="Input is Markdown")
@format_option
@diagnostics_option
def convert_command(source, is_markdown: bool, output_format: str, diagnostics: bool):
    """Convert HTML (or Markdown) from SOURCE, or stdin, for pasting into Keep.

    Lists become numbered or dashed lines with four-space indents, headings
    are limited to two levels and only bold, italic and underline survive.
    """
    try:
        raw = source.read()
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Could not read {source.name}: {e}")

    if is_markdown:
        raw = markdown_to_html(raw)

    result = convert(raw)
    logger.info("Conversion produced %d diagnostics", len(result.diagnostics))
    _emit(result, output_format, diagnostics)


@cli.command()
@format_option
@diagnostics_option
def sample(output_format: str, diagnostics: bool):
    """Convert a built-in sample note."""
    _emit(convert(SAMPLE_HTML), output_format, diagnostics)


if __name__ == "__main__":
    cli()
