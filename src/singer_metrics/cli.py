"""singer-metrics command-line entry point.

Commands:
    singer-metrics line-protocol [-i FILE]   Convert Singer METRIC lines to line protocol
    singer-metrics types                     List the known metric types
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import click
from rich.console import Console
from rich.logging import RichHandler

from .aggregators.counter import ResultCounter
from .config import get_settings
from .line_protocol import Precision
from .metric_types import default_registry
from .transcoder import LineResult, Transcoder

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# ── Helpers ─────────────────────────────────────────────────────────────────


def _configure_logging(level: str) -> None:
    """Send package diagnostics to stderr through rich."""
    pkg_logger = logging.getLogger("singer_metrics")
    pkg_logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(
            RichHandler(console=err_console, show_time=False, show_path=False)
        )


def _parse_tags(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    tags: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}")
        tags[key] = value
    return tags


def _read_sequential(path: Path, transcoder: Transcoder) -> Iterator[LineResult]:
    with click.open_file(str(path), "rb") as fh:
        yield from transcoder.transcode(fh)


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="0.1.0", prog_name="singer-metrics")
def main() -> None:
    """Convert Singer metric logs to InfluxDB line protocol."""


# ── line-protocol ────────────────────────────────────────────────────────────


@main.command("line-protocol")
@click.option(
    "--input", "-i", "input_path", default="-", show_default=True,
    type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path),
    help="Log file to read ('-' for stdin).",
)
@click.option(
    "--precision", "-p", default=None,
    type=click.Choice([p.value for p in Precision]),
    help="Timestamp precision.  [default: ns]",
)
@click.option(
    "--tag", "-t", "tags", multiple=True, metavar="KEY=VALUE", callback=_parse_tags,
    help="Extra tag added to every line (repeatable).",
)
@click.option(
    "--on-error", default=None,
    type=click.Choice(["skip", "report", "fail"], case_sensitive=False),
    help="skip: count silently; report: log a warning; fail: stop with exit code 1.  [default: report]",
)
@click.option(
    "--strict-types/--lenient-types", default=None,
    help="Reject unknown metric types, or render them with the generic rule.  [default: strict]",
)
@click.option("--workers", "-w", default=None, type=click.IntRange(min=0), help="Parallel workers (0 = auto, file input only).")
@click.option("--summary", is_flag=True, help="Print conversion counts to stderr.")
@click.option(
    "--log-level", default=None,
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    help="Diagnostics level on stderr.  [default: WARNING]",
)
@click.pass_context
def line_protocol(
    ctx: click.Context,
    input_path: Path,
    precision: str | None,
    tags: dict[str, str],
    on_error: str | None,
    strict_types: bool | None,
    workers: int | None,
    summary: bool,
    log_level: str | None,
) -> None:
    """Convert Singer METRIC log lines to InfluxDB line protocol.

    Lines that are not metric lines are ignored.  Line protocol goes to
    stdout; diagnostics go to stderr.

    \b
    Examples:
      singer-metrics line-protocol -i tap.log
      tap-github --config config.json 2>&1 | singer-metrics line-protocol -p ms
      singer-metrics line-protocol -i tap.log -t env=prod --on-error fail
      singer-metrics line-protocol -i huge.log --workers 0 --summary
    """
    settings = get_settings()
    _configure_logging(log_level or settings.log_level)
    on_error = (on_error or settings.on_error).lower()
    workers = settings.workers if workers is None else workers

    default_registry.discover()
    transcoder = Transcoder(
        precision=precision or settings.precision,
        extra_tags={**settings.extra_tags, **tags},
        strict_types=settings.strict_types if strict_types is None else strict_types,
    )

    if workers != 1 and str(input_path) != "-":
        from .perf.parallel import transcode_file_parallel
        results = transcode_file_parallel(str(input_path), transcoder, workers=workers or None)
    else:
        if workers != 1:
            logger.warning("--workers needs a file input; reading stdin sequentially")
        results = _read_sequential(input_path, transcoder)

    counter = ResultCounter()
    failed = False
    for result in results:
        counter.add(result)
        if result.output is not None:
            click.echo(result.output, nl=False)
        elif result.error is not None:
            if on_error == "fail":
                logger.error("%s", result.error)
                failed = True
                results.close()
                break
            if on_error == "report":
                logger.warning("%s", result.error)

    if summary:
        from .visualization.tables import print_summary_table
        print_summary_table(counter, console=err_console)

    if failed:
        ctx.exit(1)


# ── types ────────────────────────────────────────────────────────────────────


@main.command("types")
def list_types() -> None:
    """List the metric types this installation can convert."""
    default_registry.discover()
    for name in default_registry.names():
        rule = default_registry.get(name)
        console.print(f"[bold]{name}[/bold]  field=[cyan]{rule.field}[/cyan]  {rule.coerce.__name__}")


if __name__ == "__main__":
    main()
