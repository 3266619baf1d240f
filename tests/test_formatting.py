"""Tests for benchdiff.formatting — shared text formatting helpers."""

from __future__ import annotations

import unittest

from benchdiff.formatting import format_table


class TestFormatTable(unittest.TestCase):
    def test_basic(self) -> None:
        text = format_table(["Name", "Value"], [["alpha", "100"], ["beta", "200"]])
        lines = text.splitlines()
        self.assertEqual(len(lines), 3)  # header + 2 rows
        self.assertTrue(lines[0].startswith("Name "))
        self.assertIn("alpha", lines[1])

    def test_default_gap(self) -> None:
        text = format_table(["a", "b"], [["x", "y"]])
        self.assertEqual(text.splitlines()[1], "x     y")

    def test_right_alignment(self) -> None:
        text = format_table(["Name", "Value"], [["a", "1"], ["b", "1000"]], alignments=["l", "r"])
        lines = text.splitlines()
        self.assertTrue(lines[1].endswith("   1"))
        self.assertTrue(lines[2].endswith("1000"))

    def test_trailing_whitespace_stripped(self) -> None:
        text = format_table(["Name", "Value"], [["a_long_name", ""]])
        for line in text.splitlines():
            self.assertEqual(line, line.rstrip())

    def test_short_rows_padded(self) -> None:
        text = format_table(["A", "B", "C"], [["1"]])
        self.assertEqual(len(text.splitlines()), 2)

    def test_extra_cells_dropped(self) -> None:
        text = format_table(["A"], [["1", "2"]])
        self.assertNotIn("2", text)

    def test_indent(self) -> None:
        text = format_table(["A"], [["1"]], indent=2)
        for line in text.splitlines():
            self.assertTrue(line.startswith("  "))

    def test_empty_headers(self) -> None:
        self.assertEqual(format_table([], []), "")


if __name__ == "__main__":
    unittest.main()
