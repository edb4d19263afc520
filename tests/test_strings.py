"""Tests for utils/strings.py and utils/common.py helpers."""
import sys
import time
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from utils.common import elapsed_ms, format_bytes, sanitize_filename, stored_filename
from utils.strings import digits_only, normalize_whitespace, parse_date, parse_number


class TestParseNumber:
    @pytest.mark.parametrize("val,expected", [
        ("42", 42.0),
        (" 3.5 ", 3.5),
        ("$1,234.50", 1234.5),
        ("-7", -7.0),
        (12, 12.0),
        (2.5, 2.5),
    ])
    def test_numbers(self, val, expected):
        assert parse_number(val) == expected

    @pytest.mark.parametrize("val", [None, "", "  ", "CA", "$", "nan", "inf", True])
    def test_not_numbers(self, val):
        assert parse_number(val) is None


class TestParseDate:
    @pytest.mark.parametrize("val,expected", [
        ("03-14-24 09:15", date(2024, 3, 14)),
        ("3/14/2024", date(2024, 3, 14)),
        ("2024-03-14T09:15:00", date(2024, 3, 14)),
        ("03-14-2024", date(2024, 3, 14)),
    ])
    def test_formats(self, val, expected):
        assert parse_date(val) == expected

    @pytest.mark.parametrize("val", [None, "", "yesterday", "13-45-24"])
    def test_unparseable(self, val):
        assert parse_date(val) is None


class TestDigitsOnly:
    def test_phone(self):
        assert digits_only("(555) 123-4567") == "5551234567"

    def test_none(self):
        assert digits_only(None) == ""


class TestNormalizeWhitespace:
    def test_collapses(self):
        assert normalize_whitespace("  san   jose\n") == "san jose"


class TestCommon:
    def test_format_bytes(self):
        assert format_bytes(512 * 1024) == "512 KB"
        assert format_bytes(100 * 1024 * 1024) == "100.0 MB"

    def test_sanitize_filename(self):
        assert sanitize_filename("..\\dir/calls?.csv") == "calls_.csv"
        assert sanitize_filename("") == "upload"

    def test_stored_filename_keeps_extension(self):
        a = stored_filename("March Calls.TSV")
        assert a.endswith(".tsv")
        assert a != stored_filename("March Calls.TSV")

    def test_elapsed_ms(self):
        assert elapsed_ms(time.monotonic()) >= 0
