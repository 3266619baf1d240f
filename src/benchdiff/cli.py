"""Command-line interface for benchdiff.

Usage::

    go test -run=NONE -bench=. -benchmem > old.txt
    # ... change code ...
    go test -run=NONE -bench=. -benchmem > new.txt
    benchdiff old.txt new.txt
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from benchdiff import __version__
from benchdiff.compare import ToleranceExceededError, correlate, select_best
from benchdiff.config import (
    DiffConfig,
    config_from_profile,
    load_profile,
    validate_config,
)
from benchdiff.display import build_report, format_report
from benchdiff.logging import setup_logging
from benchdiff.parse import BenchmarkSet, BenchParseError, parse_file

log = logging.getLogger("benchdiff")

_EPILOG = """\b
Each input file should be from:
    go test -run=NONE -bench=. > [old,new].txt

Add -benchmem to the "go test" command to also compare
memory allocations.
"""


def _load_set(path: Path, config: DiffConfig) -> BenchmarkSet:
    bench_set = parse_file(path)
    if config.best:
        select_best(bench_set)
    return bench_set


@click.command(epilog=_EPILOG)
@click.version_option(version=__version__)
@click.argument("old", type=click.Path(path_type=Path))
@click.argument("new", type=click.Path(path_type=Path))
@click.option("--changed", "changed_only", is_flag=True, help="Show only benchmarks that changed.")
@click.option("--mag", "sort_by_magnitude", is_flag=True, help="Sort by magnitude of change.")
@click.option("--best", is_flag=True, help="Compare best times of repeated runs.")
@click.option(
    "--errdelta",
    "fail_on_delta",
    is_flag=True,
    help="Exit with an error if a delta exceeds its tolerance.",
)
@click.option("--tnsop", "ns_per_op", type=float, default=None, help="Tolerance (%) for ns/op.")
@click.option("--tmbs", "mb_per_s", type=float, default=None, help="Tolerance (%) for MB/s.")
@click.option(
    "--tallocop", "allocs_per_op", type=float, default=None, help="Tolerance (%) for allocs/op."
)
@click.option(
    "--tbop", "bytes_per_op", type=float, default=None, help="Tolerance (%) for bytes/op."
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile with default options and tolerances.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def main(  # noqa: PLR0913
    old: Path,
    new: Path,
    changed_only: bool,
    sort_by_magnitude: bool,
    best: bool,
    fail_on_delta: bool,
    ns_per_op: float | None,
    mb_per_s: float | None,
    allocs_per_op: float | None,
    bytes_per_op: float | None,
    config_path: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Compare Go benchmark results in OLD and NEW.

    \b
    Examples:
        benchdiff old.txt new.txt
        benchdiff --changed --mag old.txt new.txt
        benchdiff --errdelta --tnsop 5 --tallocop 0 old.txt new.txt
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "changed_only": changed_only,
        "sort_by_magnitude": sort_by_magnitude,
        "best": best,
        "fail_on_delta": fail_on_delta,
        "ns_per_op": ns_per_op,
        "mb_per_s": mb_per_s,
        "allocs_per_op": allocs_per_op,
        "bytes_per_op": bytes_per_op,
    }

    try:
        profile_data = load_profile(config_path) if config_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    errors = [e for e in validate_config(config) if e.severity == "error"]
    if errors:
        raise click.UsageError("\n".join(e.message for e in errors))

    try:
        before = _load_set(old, config)
        after = _load_set(new, config)
    except BenchParseError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    diffs, warnings = correlate(before, after)
    for warn in warnings:
        click.echo(warn, err=True)

    if not diffs:
        click.echo("benchdiff: no repeated benchmarks", err=True)
        raise SystemExit(1)

    try:
        report = build_report(diffs, config)
    except ToleranceExceededError as exc:
        # Flush what was reported up to the failing benchmark.
        if exc.report is not None:
            click.echo(format_report(exc.report))
        click.echo(f"benchdiff: {exc}", err=True)
        raise SystemExit(1) from exc

    if not report.empty:
        click.echo(format_report(report))
    elif config.changed_only:
        log.info("No benchmarks changed.")
    else:
        log.info("No metric was measured in both reports.")

