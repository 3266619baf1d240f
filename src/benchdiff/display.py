"""Report building and terminal display for benchmark comparisons.

One table is produced per metric family (ns/op, MB/s, allocs/op,
bytes/op).  Each table filters, sorts, and gates its rows on its own,
so a benchmark may rank differently from one table to the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from benchdiff.compare import (
    METRICS,
    Delta,
    DiffRecord,
    Metric,
    ToleranceExceededError,
    ToleranceGate,
    sort_diffs,
)
from benchdiff.config import DiffConfig
from benchdiff.formatting import format_table

log = logging.getLogger("benchdiff")


# ---------------------------------------------------------------------------
# Report structures
# ---------------------------------------------------------------------------


@dataclass
class MetricTable:
    """Rows of one metric family, in display order."""

    metric: Metric
    rows: list[list[str]] = field(default_factory=list)

    @property
    def headers(self) -> list[str]:
        m = self.metric
        return ["benchmark", m.old_header, m.new_header, m.delta_header]


@dataclass
class DiffReport:
    """Everything rendered for one comparison."""

    tables: list[MetricTable] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not any(t.rows for t in self.tables)


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def _format_row(diff: DiffRecord, delta: Delta) -> list[str]:
    metric = delta.metric
    change = delta.multiple_str if metric.show_multiple else delta.percent_str
    return [
        diff.name,
        metric.format_value(delta.before),
        metric.format_value(delta.after),
        change,
    ]


def build_table(
    diffs: list[DiffRecord],
    metric: Metric,
    config: DiffConfig,
    gate: ToleranceGate,
    table: MetricTable,
) -> None:
    """Append *metric* rows for *diffs* to *table*.

    Rows are appended one at a time so that, when the gate trips, the
    table already holds the offending row.
    """
    for diff in sort_diffs(diffs, metric, by_magnitude=config.sort_by_magnitude):
        delta = diff.delta(metric)
        if delta is None:  # not measured on both sides
            continue
        if config.changed_only and not delta.changed:
            continue
        table.rows.append(_format_row(diff, delta))
        gate.check(diff, delta)


def build_report(diffs: list[DiffRecord], config: DiffConfig) -> DiffReport:
    """Build one table per metric family that has at least one row.

    Raises:
        ToleranceExceededError: When gating is enabled and a delta is
            over its tolerance.  ``exc.report`` holds the report up to
            and including the offending row.
    """
    gate = ToleranceGate(config.tolerances, enabled=config.fail_on_delta)
    report = DiffReport()

    for metric in METRICS:
        table = MetricTable(metric=metric)
        try:
            build_table(diffs, metric, config, gate, table)
        except ToleranceExceededError as exc:
            report.tables.append(table)
            exc.report = report
            raise
        if table.rows:
            report.tables.append(table)
        log.debug("%s: %d rows", metric.unit, len(table.rows))

    return report


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_metric_table(table: MetricTable) -> str:
    """Render one metric table with numeric columns right-aligned."""
    return format_table(table.headers, table.rows, alignments=["l", "r", "r", "r"])


def format_report(report: DiffReport) -> str:
    """Render all non-empty tables separated by blank lines."""
    return "\n\n".join(format_metric_table(t) for t in report.tables if t.rows)
