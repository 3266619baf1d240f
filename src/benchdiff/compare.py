"""Benchmark correlation and delta computation.

Pairs records from a "before" and an "after" :class:`BenchmarkSet`,
computes per-metric deltas, and orders or gates the resulting pairs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import TYPE_CHECKING, Callable

from benchdiff.config import Tolerances
from benchdiff.parse import BenchmarkRecord, BenchmarkSet

if TYPE_CHECKING:
    from benchdiff.display import DiffReport

log = logging.getLogger("benchdiff")


# ---------------------------------------------------------------------------
# Metric descriptors
# ---------------------------------------------------------------------------


def format_ns(ns: float) -> str:
    """Format ns/op with enough precision to be legible.

    Mirrors the precision rules of Go's ``testing.B`` output.  Rounds the
    value as printed in the report (half up), so ``7.345`` gives ``7.35``.
    """
    if not math.isfinite(ns):
        return str(ns)
    if ns < 10:
        prec = 2
    elif ns < 100:
        prec = 1
    else:
        prec = 0
    value = Decimal(repr(ns))
    with localcontext() as ctx:
        # quantize() needs room for every integer digit.
        ctx.prec = max(ctx.prec, value.adjusted() + prec + 2)
        return str(value.quantize(Decimal(1).scaleb(-prec), rounding=ROUND_HALF_UP))


def _format_mbs(value: float) -> str:
    return f"{value:.2f}"


def _format_count(value: float) -> str:
    return str(int(value))


@dataclass(frozen=True)
class Metric:
    """Describes one metric family and how its table is built."""

    key: str  # also the Tolerances field name
    unit: str
    attr: str  # BenchmarkRecord attribute
    higher_is_better: bool
    format_value: Callable[[float], str]
    old_header: str
    new_header: str
    delta_header: str = "delta"
    show_multiple: bool = False  # speedup column instead of percent

    def value(self, record: BenchmarkRecord) -> float | None:
        value = getattr(record, self.attr)
        return None if value is None else float(value)


NS_PER_OP = Metric(
    key="ns_per_op",
    unit="ns/op",
    attr="ns_per_op",
    higher_is_better=False,
    format_value=format_ns,
    old_header="old ns/op",
    new_header="new ns/op",
)
MB_PER_S = Metric(
    key="mb_per_s",
    unit="MB/s",
    attr="mb_per_s",
    higher_is_better=True,
    format_value=_format_mbs,
    old_header="old MB/s",
    new_header="new MB/s",
    delta_header="speedup",
    show_multiple=True,
)
ALLOCS_PER_OP = Metric(
    key="allocs_per_op",
    unit="allocs/op",
    attr="allocs_per_op",
    higher_is_better=False,
    format_value=_format_count,
    old_header="old allocs",
    new_header="new allocs",
)
BYTES_PER_OP = Metric(
    key="bytes_per_op",
    unit="bytes/op",
    attr="alloced_bytes_per_op",
    higher_is_better=False,
    format_value=_format_count,
    old_header="old bytes",
    new_header="new bytes",
)

# Report order.
METRICS: tuple[Metric, ...] = (NS_PER_OP, MB_PER_S, ALLOCS_PER_OP, BYTES_PER_OP)


# ---------------------------------------------------------------------------
# Deltas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Delta:
    """Change of one metric between a before and an after measurement."""

    metric: Metric
    before: float
    after: float

    @property
    def comparable(self) -> bool:
        """False when the baseline is zero and a ratio is undefined."""
        return self.before != 0

    @property
    def percent(self) -> float:
        """Signed percent change; 0.0 when not comparable."""
        if not self.comparable:
            return 0.0
        return (self.after - self.before) / self.before * 100

    @property
    def multiple(self) -> float:
        """after / before; 1.0 when not comparable."""
        if not self.comparable:
            return 1.0
        return self.after / self.before

    @property
    def percent_str(self) -> str:
        if not self.comparable and self.changed:
            return "n/a"
        return f"{self.percent:+.2f}%"

    @property
    def multiple_str(self) -> str:
        if not self.comparable and self.changed:
            return "n/a"
        return f"{self.multiple:.2f}x"

    @property
    def changed(self) -> bool:
        """True if the displayed percent is non-zero.

        A move away from a zero baseline has no percent but still counts
        as a change.
        """
        if not self.comparable:
            return self.after != self.before
        return float(f"{self.percent:.2f}") != 0

    @property
    def improved(self) -> bool:
        """True if the change is in the metric's better direction."""
        if self.metric.higher_is_better:
            return self.after > self.before
        return self.after < self.before

    def describe(self) -> str:
        """Short change description for messages, e.g. ``+12.50%``."""
        if not self.comparable and self.changed:
            fmt = self.metric.format_value
            return f"{fmt(self.before)} -> {fmt(self.after)}"
        return self.percent_str


@dataclass(frozen=True)
class DiffRecord:
    """A before/after pair believed to be the same benchmark."""

    before: BenchmarkRecord
    after: BenchmarkRecord

    def __post_init__(self) -> None:
        if self.before.name != self.after.name:
            raise ValueError(
                f"Cannot pair different benchmarks: {self.before.name!r} vs {self.after.name!r}"
            )

    @property
    def name(self) -> str:
        return self.before.name

    @property
    def ordinal(self) -> int:
        return self.before.ordinal

    def measured(self, metric: Metric) -> bool:
        """True if both sides report *metric*."""
        return metric.value(self.before) is not None and metric.value(self.after) is not None

    def delta(self, metric: Metric) -> Delta | None:
        """Delta for *metric*, or None if it is not measured on both sides."""
        before = metric.value(self.before)
        after = metric.value(self.after)
        if before is None or after is None:
            return None
        return Delta(metric=metric, before=before, after=after)


# ---------------------------------------------------------------------------
# Best-of-repeats
# ---------------------------------------------------------------------------


def select_best(bench_set: BenchmarkSet) -> None:
    """Collapse repeated runs to the one with the lowest ns/op, in place.

    The kept record carries the ordinal of the name's first run so that
    original ordering reflects first appearance.  Runs without ns/op are
    never preferred; if none has it, the first run is kept.
    """
    for name, bb in list(bench_set.items()):
        if len(bb) < 2:
            continue
        first = bb[0]
        best = first
        for b in bb[1:]:
            if b.ns_per_op is None:
                continue
            if best.ns_per_op is None or b.ns_per_op < best.ns_per_op:
                best = b
        if best is not first:
            best = replace(best, ordinal=first.ordinal)
        log.debug("Best of %d runs for %s: ns/op=%s", len(bb), name, best.ns_per_op)
        bench_set.replace(name, [best])


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


def correlate(
    before: BenchmarkSet,
    after: BenchmarkSet,
) -> tuple[list[DiffRecord], list[str]]:
    """Pair benchmarks present in both sets.

    Records sharing a name are paired by position up to the shorter
    sequence.  Names present on one side only, and count mismatches,
    produce warnings instead of diffs.

    Returns:
        Tuple of (diffs ordered by before ordinal, warnings).
    """
    diffs: list[DiffRecord] = []
    warnings: list[str] = []

    for name in sorted(before.names(), key=before.first_ordinal):
        before_bb = before[name]
        if name not in after:
            warnings.append(f"ignoring {name}: missing from new results")
            continue
        after_bb = after[name]
        if len(before_bb) != len(after_bb):
            n = min(len(before_bb), len(after_bb))
            warnings.append(
                f"{name}: before has {len(before_bb)} instances, "
                f"after has {len(after_bb)}; comparing the first {n}"
            )
        for b, a in zip(before_bb, after_bb):
            diffs.append(DiffRecord(before=b, after=a))

    new_names = [name for name in after.names() if name not in before]
    for name in sorted(new_names, key=after.first_ordinal):
        warnings.append(f"ignoring {name}: new benchmark, not in old results")

    diffs.sort(key=lambda d: d.ordinal)
    log.debug("Correlated %d pairs with %d warnings", len(diffs), len(warnings))
    return diffs, warnings


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _magnitude(diff: DiffRecord, metric: Metric) -> float:
    delta = diff.delta(metric)
    if delta is None:
        return 0.0
    if not delta.comparable and delta.changed:
        return math.inf
    return abs(delta.percent)


def sort_diffs(
    diffs: list[DiffRecord],
    metric: Metric,
    *,
    by_magnitude: bool = False,
) -> list[DiffRecord]:
    """Return *diffs* in display order for *metric*.

    Original order sorts by first appearance.  Magnitude order puts the
    largest absolute percent change first; ties keep original order.
    """
    ordered = sorted(diffs, key=lambda d: d.ordinal)
    if by_magnitude:
        ordered.sort(key=lambda d: _magnitude(d, metric), reverse=True)
    return ordered


# ---------------------------------------------------------------------------
# Tolerance gate
# ---------------------------------------------------------------------------


class ToleranceExceededError(Exception):
    """A delta exceeded its metric's tolerance while gating was enabled."""

    def __init__(self, benchmark: str, delta: Delta, tolerance: float) -> None:
        self.benchmark = benchmark
        self.delta = delta
        self.tolerance = tolerance
        # Filled in by the report builder with everything rendered so far.
        self.report: DiffReport | None = None
        direction = "improvement" if delta.improved else "regression"
        super().__init__(
            f"{benchmark}: {delta.describe()} {delta.metric.unit} {direction} "
            f"exceeds tolerance of {tolerance:g}%"
        )

    @property
    def metric(self) -> Metric:
        return self.delta.metric


class ToleranceGate:
    """Per-metric tolerance check, active only when *enabled*."""

    def __init__(self, tolerances: Tolerances, *, enabled: bool = False) -> None:
        self.tolerances = tolerances
        self.enabled = enabled

    def exceeded(self, delta: Delta) -> bool:
        """True if |percent| is above the tolerance for the delta's metric.

        Any move away from a zero baseline exceeds every tolerance.
        """
        if not delta.comparable:
            return delta.changed
        return abs(delta.percent) > self.tolerances.for_metric(delta.metric.key)

    def check(self, diff: DiffRecord, delta: Delta) -> None:
        """Raise ToleranceExceededError if gating is on and *delta* is too large."""
        if not self.enabled or not self.exceeded(delta):
            return
        tolerance = self.tolerances.for_metric(delta.metric.key)
        log.debug("Tolerance exceeded for %s (%s)", diff.name, delta.metric.unit)
        raise ToleranceExceededError(diff.name, delta, tolerance)
