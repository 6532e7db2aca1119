"""
Tests for utils/strings.py — numeric coercion and placeholder detection
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.strings import is_placeholder, parse_dollars, parse_money, parse_number, safe_float


class TestSafeFloat:
    @pytest.mark.parametrize("raw,expected", [
        ("42", 42.0), ("$1,250.5", 1250.5), (7, 7.0), (" 3 ", 3.0),
    ])
    def test_parses(self, raw, expected):
        assert safe_float(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "NaN", "nan", "inf", "-Infinity",
                                     float("nan"), float("inf")])
    def test_default(self, raw):
        assert safe_float(raw) == 0.0
        assert safe_float(raw, default=-1.0) == -1.0


class TestParseMoney:
    @pytest.mark.parametrize("raw,expected", [
        ("$10M", 10.0), ("1.5B", 1500.0), ("250k", 0.25), ("7", 7.0), (3, 3.0),
    ])
    def test_millions(self, raw, expected):
        assert parse_money(raw) == expected

    @pytest.mark.parametrize("raw", [None, "n/a", "NaN", float("nan"), float("-inf")])
    def test_unreadable(self, raw):
        assert parse_money(raw) is None


class TestParseDollars:
    @pytest.mark.parametrize("raw,expected", [
        ("$250,000", 0.25), ("$250K", 0.25), ("2M", 2.0), (50000, 0.05),
    ])
    def test_millions(self, raw, expected):
        assert parse_dollars(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "call us", float("inf")])
    def test_unreadable(self, raw):
        assert parse_dollars(raw) is None


class TestParseNumber:
    @pytest.mark.parametrize("raw,expected", [
        ("45%", 45.0), (" 120 % ", 120.0), ("1,200", 1200.0), (1985, 1985.0),
    ])
    def test_parses(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "n/a", "inf%"])
    def test_unreadable_is_none(self, raw):
        assert parse_number(raw) is None


class TestIsPlaceholder:
    @pytest.mark.parametrize("raw", [None, "", "  ", "null", "undefined", "-", "NULL"])
    def test_placeholders(self, raw):
        assert is_placeholder(raw)

    def test_real_value(self):
        assert not is_placeholder("Berlin")
