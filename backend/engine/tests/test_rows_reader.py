"""Tests for flat-row tabular input and export."""

from __future__ import annotations

import pandas as pd
import pytest

from engine.core.nodes import Interior, build_forest, find_node
from engine.io import forest_to_dataframe, read_rows_dataframe, read_rows_tabular
from engine.io.rows_reader import EXPORT_COLUMNS
from engine.services.hierarchy import initialize
from engine.tests.conftest import SAMPLE_FLAT_ROWS, make_rows_csv, make_rows_excel


def _df(rows=None) -> pd.DataFrame:
    return pd.DataFrame(rows if rows is not None else SAMPLE_FLAT_ROWS)


# ── DataFrame input ──────────────────────────────────────────────────────


class TestReadRowsDataframe:
    def test_nests_children_under_parents(self):
        specs = read_rows_dataframe(_df())
        assert [s["id"] for s in specs] == ["electronics", "furniture"]
        assert [c["id"] for c in specs[0]["children"]] == ["phones", "laptops"]

    def test_values_parsed_as_floats(self):
        specs = read_rows_dataframe(_df())
        phones = specs[0]["children"][0]
        assert phones["value"] == 800.0
        assert phones["originalValue"] == 800.0

    def test_blank_interior_value_is_omitted(self):
        specs = read_rows_dataframe(_df())
        assert "value" not in specs[0]
        assert specs[0]["originalValue"] == 1500.0

    def test_builds_initialized_forest(self):
        forest = initialize(build_forest(read_rows_dataframe(_df())))
        assert isinstance(forest[0], Interior)
        assert forest[0].value == 1500
        assert forest[1].value == 1000

    def test_header_normalisation(self):
        df = pd.DataFrame([
            {"ID": "root", "Label": "Root", "Parent ID": None, "Value": None},
            {"ID": "leaf", "Label": "Leaf", "Parent ID": "root", "Value": 5, "originalValue": 4},
        ])
        specs = read_rows_dataframe(df)
        assert specs[0]["children"][0]["originalValue"] == 4.0

    def test_integer_ids_with_blank_parents(self):
        # blank parents turn the parent_id column into float64
        df = pd.DataFrame([
            {"id": 1, "parent_id": None, "value": None},
            {"id": 2, "parent_id": 1, "value": 5},
            {"id": 3, "parent_id": 1, "value": 7},
        ])
        assert df["parent_id"].dtype == "float64"
        specs = read_rows_dataframe(df)
        assert [s["id"] for s in specs] == ["1"]
        assert [c["id"] for c in specs[0]["children"]] == ["2", "3"]
        assert initialize(build_forest(specs))[0].value == 12

    def test_only_id_and_value_required(self):
        specs = read_rows_dataframe(pd.DataFrame([{"id": "a", "value": 3}]))
        assert specs == [{"id": "a", "label": "a", "value": 3.0}]

    def test_missing_required_column(self):
        with pytest.raises(ValueError, match="Missing required columns"):
            read_rows_dataframe(pd.DataFrame([{"id": "a", "label": "A"}]))

    def test_duplicate_id(self):
        rows = SAMPLE_FLAT_ROWS + [{"id": "phones", "label": "Again", "parent_id": "", "value": "1"}]
        with pytest.raises(ValueError, match="Duplicate row id 'phones'"):
            read_rows_dataframe(_df(rows))

    def test_unknown_parent(self):
        rows = [{"id": "a", "label": "A", "parent_id": "missing", "value": "1"}]
        with pytest.raises(ValueError, match="unknown parent 'missing'"):
            read_rows_dataframe(_df(rows))

    def test_parent_cycle(self):
        rows = [
            {"id": "root", "label": "Root", "parent_id": "", "value": "1"},
            {"id": "a", "label": "A", "parent_id": "b", "value": "1"},
            {"id": "b", "label": "B", "parent_id": "a", "value": "1"},
        ]
        with pytest.raises(ValueError, match="not reachable"):
            read_rows_dataframe(_df(rows))

    def test_non_numeric_value(self):
        rows = [{"id": "a", "label": "A", "parent_id": "", "value": "abc"}]
        with pytest.raises(ValueError, match="Row 'a': value is not numeric"):
            read_rows_dataframe(_df(rows))

    def test_infinite_value(self):
        rows = [{"id": "a", "label": "A", "parent_id": "", "value": float("inf")}]
        with pytest.raises(ValueError, match="must be finite"):
            read_rows_dataframe(_df(rows))

    def test_leaf_without_value(self):
        rows = [{"id": "a", "label": "A", "parent_id": "", "value": ""}]
        with pytest.raises(ValueError, match="Leaf row 'a' has no value"):
            read_rows_dataframe(_df(rows))


# ── File input ───────────────────────────────────────────────────────────


class TestReadRowsTabular:
    def test_csv_buffer(self):
        specs = read_rows_tabular(make_rows_csv(), suffix=".csv")
        assert len(specs) == 2

    def test_excel_buffer(self):
        specs = read_rows_tabular(make_rows_excel(), suffix=".xlsx")
        assert [c["id"] for c in specs[1]["children"]] == ["tables", "chairs"]

    def test_csv_path(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_bytes(make_rows_csv().getvalue())
        specs = read_rows_tabular(path)
        assert specs[0]["label"] == "Electronics"

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text("[]")
        with pytest.raises(ValueError, match="Unsupported file type"):
            read_rows_tabular(path)

    def test_buffer_requires_suffix(self):
        with pytest.raises(ValueError, match="suffix is required"):
            read_rows_tabular(make_rows_csv())


# ── Export ───────────────────────────────────────────────────────────────


class TestForestToDataframe:
    def test_display_order_and_columns(self, electronics_forest):
        df = forest_to_dataframe(electronics_forest)
        assert list(df.columns) == EXPORT_COLUMNS
        assert df["id"].tolist() == ["electronics", "phones", "laptops"]
        assert df["level"].tolist() == [0, 1, 1]

    def test_export_reimports(self, electronics_forest):
        df = forest_to_dataframe(electronics_forest)
        rebuilt = initialize(build_forest(read_rows_dataframe(df)))
        assert find_node(rebuilt, "laptops").value == 700
        assert rebuilt[0].value == 1500
