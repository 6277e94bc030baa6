"""Tests for the display helpers."""
import re
from datetime import datetime, timezone

from efile_legal.utils.formatting import format_datetime, format_file_size, generate_case_number


def test_format_file_size_zero():
    assert format_file_size(0) == '0 Bytes'


def test_format_file_size_units():
    assert format_file_size(500) == '500 Bytes'
    assert format_file_size(1024) == '1 KB'
    assert format_file_size(1536) == '1.5 KB'
    assert format_file_size(1024 * 1024) == '1 MB'
    assert format_file_size(10 * 1024 * 1024) == '10 MB'
    assert format_file_size(3 * 1024 ** 3) == '3 GB'


def test_format_file_size_rounds_to_two_decimals():
    # 1234567 / 1048576 = 1.1773...
    assert format_file_size(1234567) == '1.18 MB'


def test_generate_case_number_format():
    assert generate_case_number(now_ms=1718000000000, suffix=42) == 'CASE-1718000000000-42'
    generated = generate_case_number()
    match = re.fullmatch(r'CASE-(\d+)-(\d+)', generated)
    assert match
    assert 0 <= int(match.group(2)) <= 999


def test_format_datetime_converts_timezone():
    noon_utc = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    assert format_datetime(noon_utc, 'America/New_York', '%H:%M') == '07:00'
    assert format_datetime(datetime(2024, 1, 15, 12, 0), 'UTC', '%H:%M') == '12:00'


def test_format_datetime_handles_missing_and_unknown_zone():
    assert format_datetime(None) == ''
    noon_utc = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    assert format_datetime(noon_utc, 'Not/AZone', '%H:%M') == '12:00'
