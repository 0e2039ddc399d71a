import pytest

from json2sqlite.constants import SQL_INTEGER, SQL_REAL, SQL_TEXT
from json2sqlite.inference import TypeInferencer, infer_sql_type, merge_types
from json2sqlite.models import ColumnSpec


class TestInferSqlType:

    @pytest.mark.parametrize("value, expected", [
        (1, SQL_INTEGER),
        (-7, SQL_INTEGER),
        (2.0, SQL_INTEGER),
        (1.5, SQL_REAL),
        (True, SQL_INTEGER),
        (False, SQL_INTEGER),
        ("x", SQL_TEXT),
        ("12", SQL_TEXT),
        ('["a","b"]', SQL_TEXT),
        (None, SQL_TEXT),
    ])
    def test_type_from_value(self, value, expected):
        assert infer_sql_type(value) == expected


class TestMergeTypes:

    @pytest.mark.parametrize("old, new, expected", [
        (None, SQL_INTEGER, SQL_INTEGER),
        (SQL_REAL, None, SQL_REAL),
        (None, None, None),
        (SQL_INTEGER, SQL_INTEGER, SQL_INTEGER),
        (SQL_INTEGER, SQL_TEXT, SQL_TEXT),
        (SQL_TEXT, SQL_INTEGER, SQL_TEXT),
        # No numeric promotion: INTEGER/REAL conflicts collapse to TEXT
        (SQL_INTEGER, SQL_REAL, SQL_TEXT),
        (SQL_REAL, SQL_INTEGER, SQL_TEXT),
    ])
    def test_merge(self, old, new, expected):
        assert merge_types(old, new) == expected


class TestTypeInferencer:

    def test_integer_then_text_is_text(self):
        inferencer = TypeInferencer()
        inferencer.observe({"a": 1})
        inferencer.observe({"a": "x"})
        assert inferencer.finalize() == [ColumnSpec("a", SQL_TEXT)]

    def test_integer_then_real_is_text(self):
        inferencer = TypeInferencer()
        inferencer.observe({"a": 1})
        inferencer.observe({"a": 1.5})
        assert inferencer.finalize() == [ColumnSpec("a", SQL_TEXT)]

    def test_conflict_is_permanent(self):
        inferencer = TypeInferencer()
        for value in (1, "x", 2, 3):
            inferencer.observe({"a": value})
        assert inferencer.finalize() == [ColumnSpec("a", SQL_TEXT)]

    def test_null_defers_to_first_non_null(self):
        inferencer = TypeInferencer()
        inferencer.observe({"a": None})
        inferencer.observe({"a": 5})
        inferencer.observe({"a": None})
        assert inferencer.finalize() == [ColumnSpec("a", SQL_INTEGER)]

    def test_only_null_finalizes_as_text(self):
        inferencer = TypeInferencer()
        inferencer.observe({"a": None})
        assert inferencer.finalize() == [ColumnSpec("a", SQL_TEXT)]

    def test_booleans_and_integral_floats_are_integer(self):
        inferencer = TypeInferencer()
        inferencer.observe({"flag": True, "n": 3.0})
        inferencer.observe({"flag": False, "n": 4})
        assert inferencer.finalize() == [
            ColumnSpec("flag", SQL_INTEGER),
            ColumnSpec("n", SQL_INTEGER),
        ]

    def test_columns_in_first_seen_order(self):
        inferencer = TypeInferencer()
        inferencer.observe({"b": 1, "a": 1})
        inferencer.observe({"c": 1.5, "a": 2})
        assert inferencer.column_names == ["b", "a", "c"]
        assert [c.sql_type for c in inferencer.finalize()] == [SQL_INTEGER, SQL_INTEGER, SQL_REAL]

    def test_observed_count(self):
        inferencer = TypeInferencer()
        inferencer.observe({})
        inferencer.observe({"a": 1})
        assert inferencer.observed == 2

    def test_empty_sample(self):
        assert TypeInferencer().finalize() == []
