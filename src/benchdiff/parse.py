"""Benchmark report parsing.

Reads the plain-text output of ``go test -bench`` into a
:class:`BenchmarkSet`.  A benchmark line looks like::

    BenchmarkSliceAppend-8   	20000000	        68.4 ns/op	     40 B/op	       1 allocs/op

Hierarchy::

    BenchmarkSet
      → name: str → list[BenchmarkRecord]  (first-seen order preserved)

Lines that are not benchmark lines (``PASS``, ``ok  pkg 1.2s``,
``goos: linux`` …) are skipped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from benchdiff.logging import get_logger

log = get_logger("parse")


class BenchParseError(ValueError):
    """A benchmark report could not be read or decoded."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkRecord:
    """One observation of one benchmark run."""

    name: str
    ordinal: int  # position among benchmark lines in the source report
    iterations: int = 0
    ns_per_op: float | None = None
    mb_per_s: float | None = None
    allocs_per_op: int | None = None
    alloced_bytes_per_op: int | None = None


class BenchmarkSet:
    """Benchmark records grouped by name.

    Each name maps to the ordered list of records sharing it (repeated
    runs via ``-count``, or sub-benchmarks that print the same label).
    Use :meth:`records` or the ``ordinal`` field when a global order is
    needed; the order of :meth:`names` is not meaningful.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, list[BenchmarkRecord]] = {}

    def add(self, record: BenchmarkRecord) -> None:
        self._by_name.setdefault(record.name, []).append(record)

    def replace(self, name: str, records: list[BenchmarkRecord]) -> None:
        """Replace every record stored under *name*."""
        if name not in self._by_name:
            raise KeyError(name)
        self._by_name[name] = list(records)

    def names(self) -> list[str]:
        return list(self._by_name)

    def items(self) -> Iterator[tuple[str, list[BenchmarkRecord]]]:
        return iter(self._by_name.items())

    def records(self) -> list[BenchmarkRecord]:
        """All records, ordered by ordinal."""
        flat = [r for bb in self._by_name.values() for r in bb]
        return sorted(flat, key=lambda r: r.ordinal)

    def first_ordinal(self, name: str) -> int:
        return min(r.ordinal for r in self._by_name[name])

    def __getitem__(self, name: str) -> list[BenchmarkRecord]:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        total = sum(len(bb) for bb in self._by_name.values())
        return f"BenchmarkSet({len(self._by_name)} names, {total} records)"


# ---------------------------------------------------------------------------
# Line parsing
# ---------------------------------------------------------------------------


def _parse_measurement(record: BenchmarkRecord, quant: str, unit: str) -> None:
    """Store one ``<value> <unit>`` pair on *record*, ignoring bad values."""
    try:
        if unit == "ns/op":
            record.ns_per_op = float(quant)
        elif unit == "MB/s":
            record.mb_per_s = float(quant)
        elif unit == "B/op":
            record.alloced_bytes_per_op = int(quant)
        elif unit == "allocs/op":
            record.allocs_per_op = int(quant)
    except ValueError:
        log.debug("Ignoring malformed %s value %r for %s", unit, quant, record.name)


def parse_line(line: str, ordinal: int = 0) -> BenchmarkRecord | None:
    """Parse a single report line.

    Returns:
        A BenchmarkRecord, or None if *line* is not a benchmark line.
    """
    fields = line.split()
    if len(fields) < 3 or not fields[0].startswith("Benchmark"):
        return None
    try:
        n = int(fields[1])
    except ValueError:
        return None

    record = BenchmarkRecord(name=fields[0], ordinal=ordinal, iterations=n)
    # Trailing unpaired field is ignored.
    for i in range(2, len(fields) - 1, 2):
        _parse_measurement(record, fields[i], fields[i + 1])
    return record


def parse_lines(lines: Iterable[str]) -> BenchmarkSet:
    """Parse report lines into a BenchmarkSet, numbering benchmarks in order."""
    bench_set = BenchmarkSet()
    ordinal = 0
    for line in lines:
        record = parse_line(line, ordinal)
        if record is None:
            continue
        bench_set.add(record)
        ordinal += 1
    return bench_set


def parse_file(path: Path) -> BenchmarkSet:
    """Read and parse a benchmark report file.

    Raises:
        BenchParseError: If the file cannot be read or is not UTF-8 text.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BenchParseError(f"cannot read {path}: {exc}") from exc

    bench_set = parse_lines(text.splitlines())
    log.debug("Parsed %s from %s", bench_set, path)
    return bench_set
