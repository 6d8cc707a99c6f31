"""
Unit tests for unit normalizers
Tests: rank numbers, game mode tokens, free-form dates, Sunday snapping
"""

from datetime import datetime

import pytest
from forum_parser.models import GameMode
from forum_parser.normalizer import (
    convert_rank_to_number,
    match_game_mode,
    normalize_game_mode,
    parse_date,
    snap_to_sunday,
    format_datetime,
)


REFERENCE = datetime(2025, 6, 1)


class TestRankConversion:
    """Test rank token to integer conversion"""

    def test_comma_grouped(self):
        """Comma-grouped numbers are literal integers"""
        assert convert_rank_to_number("#10,000") == 10000
        assert convert_rank_to_number("1,234,567") == 1234567
        assert convert_rank_to_number("#  2,500") == 2500

    def test_k_suffix(self):
        """Integer k suffix multiplies by 1000"""
        assert convert_rank_to_number("25k") == 25000
        assert convert_rank_to_number("100K") == 100000

    def test_decimal_k_suffix(self):
        """Decimal k suffix keeps the fractional thousands"""
        assert convert_rank_to_number("99.9k") == 99900
        assert convert_rank_to_number("1.5K") == 1500

    def test_multi_digit_decimal_k_suffix(self):
        """Every decimal digit is a fractional thousand, not a hundred"""
        assert convert_rank_to_number("99.95k") == 99950
        assert convert_rank_to_number("1.25k") == 1250
        assert convert_rank_to_number("#12.345k") == 12345

    def test_plain_digits(self):
        """Plain digits parse as integers"""
        assert convert_rank_to_number("500") == 500
        assert convert_rank_to_number("#750") == 750

    def test_unparseable(self):
        """Garbage and empty values resolve to None"""
        assert convert_rank_to_number("abc") is None
        assert convert_rank_to_number("") is None
        assert convert_rank_to_number(None) is None
        assert convert_rank_to_number("10m") is None


class TestGameModeNormalization:
    """Test game mode token normalization"""

    @pytest.mark.parametrize("token,expected", [
        ("std", GameMode.STD),
        ("Standard", GameMode.STD),
        ("Taiko", GameMode.TAIKO),
        ("태고", GameMode.TAIKO),
        ("CTB", GameMode.CATCH),
        ("[Taiko]", GameMode.TAIKO),
        ("Hybrid", GameMode.ETC),
    ])
    def test_known_aliases(self, token, expected):
        """Known aliases map case-insensitively"""
        assert normalize_game_mode(token) == expected

    def test_mania_key_counts(self):
        """Mania parses the embedded key count"""
        assert normalize_game_mode("mania 4k") == GameMode.MANIA4
        assert normalize_game_mode("7K mania") == GameMode.MANIA7
        assert normalize_game_mode("osu!mania 10k") == GameMode.MANIA0
        assert normalize_game_mode("mania") == GameMode.MANIA0

    def test_key_count_alone(self):
        """A bare key-count token counts as mania"""
        assert normalize_game_mode("4K") == GameMode.MANIA4
        assert normalize_game_mode("7k") == GameMode.MANIA7

    def test_unknown_token_is_etc(self):
        """Unrecognized non-empty tokens become ETC"""
        assert normalize_game_mode("weird mode") == GameMode.ETC

    def test_empty_token_is_none(self):
        """Absent tokens leave the default to the caller"""
        assert normalize_game_mode("") is None
        assert normalize_game_mode("   ") is None
        assert normalize_game_mode(None) is None

    def test_match_game_mode_only_recognizes_aliases(self):
        """match_game_mode never guesses ETC"""
        assert match_game_mode("OPEN") is None
        assert match_game_mode("std") == GameMode.STD


class TestDateParsing:
    """Test free-form date parsing"""

    def test_month_name_day_with_time(self):
        """'Sep. 1st 14:00' uses the reference year"""
        assert parse_date("Sep. 1st 14:00", REFERENCE) == datetime(2025, 9, 1, 14, 0)

    def test_month_name_day_with_year(self):
        """Explicit year wins over the reference year"""
        assert parse_date("August 30th, 2026 23:59", REFERENCE) == datetime(2026, 8, 30, 23, 59)

    def test_european_order(self):
        """Day before month name"""
        assert parse_date("1. September 2025 14:00", REFERENCE) == datetime(2025, 9, 1, 14, 0)
        assert parse_date("15th of March", REFERENCE) == datetime(2025, 3, 15)

    @pytest.mark.parametrize("text, expected", [
        ("14 September 18:00", datetime(2025, 9, 14, 18, 0)),
        ("3 Aug 10:00", datetime(2025, 8, 3, 10, 0)),
        ("3 August 10:00 UTC", datetime(2025, 8, 3, 10, 0)),
        ("15th March 12:30", datetime(2025, 3, 15, 12, 30)),
    ])
    def test_day_first_with_time(self, text, expected):
        """The hour after a day-first date is not read as the day"""
        assert parse_date(text, REFERENCE) == expected

    def test_earliest_date_wins(self):
        """A day-first date beats a later month-first reading of the same text"""
        assert parse_date("14 September 10 teams", REFERENCE) == datetime(2025, 9, 14)

    def test_iso(self):
        """ISO dates with '-' or '.' separators"""
        assert parse_date("2025-09-01 14:00", REFERENCE) == datetime(2025, 9, 1, 14, 0)
        assert parse_date("2025.09.01", REFERENCE) == datetime(2025, 9, 1)

    def test_numeric_month_first(self):
        """M/D/Y by default"""
        assert parse_date("09/01/2025", REFERENCE) == datetime(2025, 9, 1)

    def test_numeric_day_first_with_short_year(self):
        """D/M/Y when the first number cannot be a month; 2-digit years expand"""
        assert parse_date("25/12/25", REFERENCE) == datetime(2025, 12, 25)

    def test_korean(self):
        """Korean year/month/day markers"""
        assert parse_date("2025년 9월 1일 14:00", REFERENCE) == datetime(2025, 9, 1, 14, 0)
        assert parse_date("9월 1일", REFERENCE) == datetime(2025, 9, 1)

    def test_pm_time(self):
        """12-hour clock with pm"""
        assert parse_date("Sep 1st 3:00 pm", REFERENCE) == datetime(2025, 9, 1, 15, 0)

    def test_out_of_range_year(self):
        """Years outside 2020-2030 are rejected"""
        assert parse_date("1/5/99", REFERENCE) is None
        assert parse_date("Aug 12 2035", REFERENCE) is None

    def test_invalid_calendar_date(self):
        """Impossible dates resolve to None instead of raising"""
        assert parse_date("February 30th 2025", REFERENCE) is None

    def test_no_date(self):
        """Text without a date"""
        assert parse_date("not a date", REFERENCE) is None
        assert parse_date("", REFERENCE) is None
        assert parse_date(None, REFERENCE) is None

    def test_reference_year(self):
        """Missing year defaults to the reference year"""
        assert parse_date("March 5", datetime(2024, 1, 1)) == datetime(2024, 3, 5)


class TestSundaySnap:
    """Test end-date week snapping"""

    def test_saturday_moves_forward(self):
        assert snap_to_sunday(datetime(2025, 9, 13)) == datetime(2025, 9, 14)

    def test_monday_moves_to_end_of_week(self):
        assert snap_to_sunday(datetime(2025, 9, 8)) == datetime(2025, 9, 14)

    def test_sunday_stays(self):
        assert snap_to_sunday(datetime(2025, 9, 14, 18, 0)) == datetime(2025, 9, 14, 18, 0)


class TestFormatDatetime:
    """Test output date formatting"""

    def test_format(self):
        assert format_datetime(datetime(2025, 8, 30, 23, 59)) == "2025-08-30 23:59:00"

    def test_none(self):
        assert format_datetime(None) is None
