"""Shared text formatting helpers for benchdiff."""

from __future__ import annotations


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    gap: int = 5,
    indent: int = 0,
) -> str:
    """Format a list of rows as an aligned text table.

    Column widths come from the widest cell.  Columns marked ``'r'`` in
    *alignments* are right-aligned, all others left-aligned.  Trailing
    whitespace is stripped from every line.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.  Short rows are
            padded with empty cells; extra cells are dropped.
        alignments: Per-column alignment: ``'l'`` or ``'r'``.
        gap: Number of spaces between columns.
        indent: Number of leading spaces per line.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    aligns = list(alignments or [])
    aligns += ["l"] * (ncols - len(aligns))

    cells = [list(headers)]
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        cells.append(padded[:ncols])

    widths = [max(len(line[ci]) for line in cells) for ci in range(ncols)]
    prefix = " " * indent
    sep = " " * gap

    lines: list[str] = []
    for line in cells:
        parts = [
            cell.rjust(widths[ci]) if aligns[ci] == "r" else cell.ljust(widths[ci])
            for ci, cell in enumerate(line)
        ]
        lines.append((prefix + sep.join(parts)).rstrip())

    return "\n".join(lines)
