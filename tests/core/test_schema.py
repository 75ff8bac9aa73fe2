"""
Tests for watchspine.schema.
"""

import pytest

from watchspine.core.errors import MissingColumnError
from watchspine.schema import ColumnMap, dimension_columns, normalize_key, parse_number, split_tags
from watchspine.store.protocol import Table


class TestColumnMap:
    def setup_method(self):
        self.table = Table(name="Merged", header=["Anime ID", " Title ", "Genre ID"])

    def test_resolve(self):
        cols = ColumnMap.resolve(self.table, required=["Anime ID", "Title"], optional=["Notes"])

        assert cols["Anime ID"] == 0
        assert cols["Title"] == 1
        assert cols["Notes"] is None
        assert "Title" in cols
        assert "Notes" not in cols

    def test_missing_required(self):
        with pytest.raises(MissingColumnError) as exc:
            ColumnMap.resolve(self.table, required=["User Score"])

        assert exc.value.table == "Merged"
        assert exc.value.column == "User Score"


class TestDimensionColumns:
    def test_suffix_convention(self):
        table = Table(
            name="Merged",
            header=["Anime ID", "Title", "Genre ID", "Studio ID", "Genres", "Theme ID "],
        )

        assert dimension_columns(table) == {"Genre ID": 2, "Studio ID": 3, "Theme ID": 5}

    def test_first_duplicate_wins(self):
        table = Table(name="Merged", header=["Genre ID", "Genre ID"])

        assert dimension_columns(table) == {"Genre ID": 0}


class TestSplitTags:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("G1", ["G1"]),
            (" G1, G2 ", ["G1", "G2"]),
            ("G1,,G2,", ["G1", "G2"]),
            ("G1,G1", ["G1", "G1"]),
            ("", []),
            (None, []),
            (14, ["14"]),
            (7.0, ["7"]),
        ],
    )
    def test_split(self, value, expected):
        assert split_tags(value) == expected


class TestNormalizeKey:
    @pytest.mark.parametrize(
        "value,expected",
        [(" 101 ", "101"), (101, "101"), (101.0, "101"), (101.5, "101.5"), (None, ""), ("  ", "")],
    )
    def test_normalize(self, value, expected):
        assert normalize_key(value) == expected


class TestParseNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [(80, 80.0), ("80", 80.0), (" 7.5 ", 7.5), (0, 0.0), ("-3", -3.0)],
    )
    def test_numbers(self, value, expected):
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", True, "nan", "inf", float("nan"), [1]])
    def test_not_numbers(self, value):
        assert parse_number(value) is None
