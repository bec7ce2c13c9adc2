"""Tests for lib.tables — Markdown table generation."""

from lib.tables import md_table, records_table


class TestMdTable:
    """Table layout for curve and threshold summaries."""

    def test_curve_rows(self):
        result = md_table(["n", "Richness"], [[1, "8.1"], [2, "13.0"]])
        lines = result.split("\n")
        assert len(lines) == 4
        assert lines[0] == "| n | Richness |"
        assert lines[1] == "| --- | --- |"
        assert lines[2] == "| 1 | 8.1 |"
        assert lines[3] == "| 2 | 13.0 |"

    def test_empty_rows_returns_empty(self):
        assert md_table(["n", "Richness"], []) == ""

    def test_none_cell_converted_to_string(self):
        assert "| None |" in md_table(["Seed"], [[None]])

    def test_alignments(self):
        result = md_table(["Stage", "Count", "Note"], [["a", "1", "x"]], alignments=["l", "r", "c"])
        parts = [p.strip() for p in result.split("\n")[1].split("|") if p.strip()]
        assert parts == ["---", "---:", ":---:"]

    def test_short_row_padded(self):
        data_line = md_table(["A", "B", "C"], [["1"]]).split("\n")[2]
        parts = [p.strip() for p in data_line.split("|")[1:-1]]
        assert parts == ["1", "", ""]

    def test_long_row_truncated(self):
        data_line = md_table(["A"], [["1", "2", "3"]]).split("\n")[2]
        assert data_line == "| 1 |"

    def test_every_line_is_a_table_row(self):
        rows = [[i, i * 2] for i in range(50)]
        lines = md_table(["n", "2n"], rows).split("\n")
        assert len(lines) == 52
        assert all(line.startswith("|") and line.endswith("|") for line in lines)


# ── records_table ────────────────────────────────────────────────────────

class TestRecordsTable:
    """Tables built from dict records with per-column formatters."""

    COLUMNS = [
        ("Threshold", "threshold", str),
        ("n", "sample_size", lambda v: "not reached" if v is None else str(v)),
    ]

    def test_formats_cells(self):
        result = records_table(
            [{"threshold": "70%", "sample_size": 3}, {"threshold": "95%", "sample_size": None}],
            self.COLUMNS,
        )
        lines = result.split("\n")
        assert lines[0] == "| Threshold | n |"
        assert lines[2] == "| 70% | 3 |"
        assert lines[3] == "| 95% | not reached |"

    def test_default_alignment_left_then_right(self):
        result = records_table([{"threshold": "70%", "sample_size": 3}], self.COLUMNS)
        assert result.split("\n")[1] == "| --- | ---: |"

    def test_missing_key_passed_as_none(self):
        result = records_table([{"threshold": "80%"}], self.COLUMNS)
        assert "| 80% | not reached |" in result

    def test_empty_records(self):
        assert records_table([], self.COLUMNS) == ""
