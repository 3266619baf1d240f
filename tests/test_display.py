"""Tests for benchdiff.display — report building and rendering."""

from __future__ import annotations

import unittest

from diff_test_helpers import make_diff

from benchdiff.compare import (
    ALLOCS_PER_OP,
    MB_PER_S,
    NS_PER_OP,
    DiffRecord,
    ToleranceExceededError,
)
from benchdiff.config import DiffConfig, Tolerances
from benchdiff.display import DiffReport, MetricTable, build_report, format_report


def _diffs() -> list[DiffRecord]:
    return [
        make_diff("BenchmarkA", 0, ns=(100.0, 80.0), allocs=(2, 2)),
        make_diff("BenchmarkB", 1, ns=(7.345, 7.345), mbs=(100.0, 180.0)),
        make_diff("BenchmarkC", 2, ns=(57.3, 573.0), allocs=(1, 3), bytes_=(64, 128)),
    ]


class TestBuildReport(unittest.TestCase):
    """Tests for build_report()."""

    def test_tables_per_measured_metric(self) -> None:
        report = build_report(_diffs(), DiffConfig())
        self.assertEqual(
            [t.metric.unit for t in report.tables],
            ["ns/op", "MB/s", "allocs/op", "bytes/op"],
        )

    def test_ns_rows(self) -> None:
        report = build_report(_diffs(), DiffConfig())
        ns = report.tables[0]
        self.assertEqual(
            ns.rows,
            [
                ["BenchmarkA", "100", "80.0", "-20.00%"],
                ["BenchmarkB", "7.35", "7.35", "+0.00%"],
                ["BenchmarkC", "57.3", "573", "+900.00%"],
            ],
        )

    def test_mbs_uses_multiple(self) -> None:
        report = build_report(_diffs(), DiffConfig())
        mbs = report.tables[1]
        self.assertIs(mbs.metric, MB_PER_S)
        self.assertEqual(mbs.rows, [["BenchmarkB", "100.00", "180.00", "1.80x"]])
        self.assertEqual(mbs.headers, ["benchmark", "old MB/s", "new MB/s", "speedup"])

    def test_unmeasured_metric_skipped(self) -> None:
        report = build_report(_diffs(), DiffConfig())
        allocs = report.tables[2]
        self.assertEqual([r[0] for r in allocs.rows], ["BenchmarkA", "BenchmarkC"])
        nbytes = report.tables[3]
        self.assertEqual(nbytes.rows, [["BenchmarkC", "64", "128", "+100.00%"]])

    def test_changed_only(self) -> None:
        report = build_report(_diffs(), DiffConfig(changed_only=True))
        ns = report.tables[0]
        self.assertEqual([r[0] for r in ns.rows], ["BenchmarkA", "BenchmarkC"])
        allocs = next(t for t in report.tables if t.metric is ALLOCS_PER_OP)
        self.assertEqual([r[0] for r in allocs.rows], ["BenchmarkC"])

    def test_changed_only_drops_empty_tables(self) -> None:
        diffs = [make_diff("BenchmarkA", 0, ns=(10.0, 10.0), allocs=(1, 2))]
        report = build_report(diffs, DiffConfig(changed_only=True))
        self.assertEqual([t.metric for t in report.tables], [ALLOCS_PER_OP])

    def test_sort_by_magnitude(self) -> None:
        report = build_report(_diffs(), DiffConfig(sort_by_magnitude=True))
        ns = report.tables[0]
        self.assertEqual([r[0] for r in ns.rows], ["BenchmarkC", "BenchmarkA", "BenchmarkB"])
        allocs = report.tables[2]
        self.assertEqual([r[0] for r in allocs.rows], ["BenchmarkC", "BenchmarkA"])

    def test_zero_baseline_rows(self) -> None:
        diffs = [make_diff("BenchmarkA", 0, mbs=(0.0, 500.0), allocs=(0, 0))]
        report = build_report(diffs, DiffConfig())
        mbs, allocs = report.tables
        self.assertEqual(mbs.rows, [["BenchmarkA", "0.00", "500.00", "n/a"]])
        self.assertEqual(allocs.rows, [["BenchmarkA", "0", "0", "+0.00%"]])

    def test_changed_only_keeps_zero_baseline_change(self) -> None:
        diffs = [make_diff("BenchmarkA", 0, allocs=(0, 5), bytes_=(0, 0))]
        report = build_report(diffs, DiffConfig(changed_only=True))
        self.assertEqual([t.metric for t in report.tables], [ALLOCS_PER_OP])
        self.assertEqual(report.tables[0].rows, [["BenchmarkA", "0", "5", "n/a"]])

    def test_all_absent_records(self) -> None:
        report = build_report([make_diff("BenchmarkA", 0)], DiffConfig())
        self.assertTrue(report.empty)
        self.assertEqual(report.tables, [])

    def test_gate_disabled_is_informational(self) -> None:
        report = build_report(_diffs(), DiffConfig(fail_on_delta=False))
        self.assertEqual(len(report.tables[0].rows), 3)

    def test_gate_flushes_partial_report(self) -> None:
        config = DiffConfig(fail_on_delta=True, tolerances=Tolerances(ns_per_op=25.0))
        with self.assertRaises(ToleranceExceededError) as ctx:
            build_report(_diffs(), config)
        exc = ctx.exception
        self.assertEqual(exc.benchmark, "BenchmarkC")
        self.assertIs(exc.metric, NS_PER_OP)
        assert exc.report is not None
        self.assertEqual(len(exc.report.tables), 1)
        # Rows up to and including the offending benchmark.
        self.assertEqual(
            [r[0] for r in exc.report.tables[0].rows],
            ["BenchmarkA", "BenchmarkB", "BenchmarkC"],
        )

    def test_gate_in_later_table(self) -> None:
        config = DiffConfig(
            fail_on_delta=True,
            tolerances=Tolerances(ns_per_op=1000.0, mb_per_s=1000.0, allocs_per_op=10.0),
        )
        with self.assertRaises(ToleranceExceededError) as ctx:
            build_report(_diffs(), config)
        exc = ctx.exception
        self.assertIs(exc.metric, ALLOCS_PER_OP)
        assert exc.report is not None
        self.assertEqual(
            [t.metric.unit for t in exc.report.tables],
            ["ns/op", "MB/s", "allocs/op"],
        )


class TestFormatReport(unittest.TestCase):
    """Tests for format_report()."""

    def test_headers_and_separation(self) -> None:
        text = format_report(build_report(_diffs(), DiffConfig()))
        blocks = text.split("\n\n")
        self.assertEqual(len(blocks), 4)
        self.assertTrue(blocks[0].startswith("benchmark"))
        self.assertIn("old ns/op", blocks[0])
        self.assertIn("speedup", blocks[1])
        self.assertIn("old allocs", blocks[2])
        self.assertIn("new bytes", blocks[3])

    def test_columns_aligned(self) -> None:
        text = format_report(build_report(_diffs(), DiffConfig()))
        ns_lines = text.split("\n\n")[0].splitlines()
        self.assertEqual(len(ns_lines), 4)
        self.assertEqual(len({len(line) for line in ns_lines}), 1)
        self.assertTrue(ns_lines[1].endswith("-20.00%"))

    def test_empty_report(self) -> None:
        self.assertEqual(format_report(DiffReport()), "")

    def test_empty_table_omitted(self) -> None:
        report = DiffReport(tables=[MetricTable(metric=NS_PER_OP)])
        self.assertEqual(format_report(report), "")


if __name__ == "__main__":
    unittest.main()
