"""Markdown table generation helpers.

``md_table()`` builds a Markdown table from headers and rows;
``records_table()`` builds one from a list of dicts with a per-column
key and formatter, which is how the report renders curves and
threshold summaries.

Example::

    from lib.tables import md_table, records_table
    from lib.formatting import fmt_pct

    print(md_table(
        headers=["Checklists", "Richness", "% of Chao"],
        rows=[[1, "8.1", "21.3%"], [2, "13.0", "34.2%"]],
        alignments=["r", "r", "r"],
    ))

    print(records_table(points, [
        ("n", "sample_size", str),
        ("% of ref.", "cumulative_pct", fmt_pct),
    ]))
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

Column = tuple[str, str, Callable[[Any], str]]


def md_table(
    headers: Sequence[str],
    rows: Sequence[Sequence],
    alignments: Sequence[str] | None = None,
) -> str:
    """Build a Markdown table from headers and rows.

    Args:
        headers: Column header strings.
        rows: List of rows, where each row is a sequence of cell values.
            Non-string values are converted via ``str()``.
        alignments: Optional list of alignment codes, one per column:
            ``'l'`` for left (default), ``'r'`` for right, ``'c'`` for center.

    Returns:
        A Markdown-formatted table string, or ``""`` if *rows* is empty.
    """
    if not rows:
        return ""

    n_cols = len(headers)
    if alignments is None:
        alignments = ["l"] * n_cols

    seps = {"r": "---:", "c": ":---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(seps.get(a, "---") for a in alignments) + " |",
    ]

    for row in rows:
        cells = [str(c) for c in row][:n_cols]
        cells += [""] * (n_cols - len(cells))
        lines.append("| " + " | ".join(cells) + " |")

    return "\n".join(lines)


def records_table(
    records: Sequence[Mapping[str, Any]],
    columns: Sequence[Column],
    alignments: Sequence[str] | None = None,
) -> str:
    """Build a Markdown table from dict records.

    Args:
        records: Rows as mappings.
        columns: ``(header, key, formatter)`` triples; the formatter turns
            ``record[key]`` into the cell string.
        alignments: Optional alignment codes; defaults to left for the
            first column and right for the rest.

    Returns:
        A Markdown-formatted table string, or ``""`` if *records* is empty.
    """
    if alignments is None:
        alignments = ["l"] + ["r"] * (len(columns) - 1)
    rows = [[f(rec.get(key)) for _, key, f in columns] for rec in records]
    return md_table([h for h, _, _ in columns], rows, alignments)
