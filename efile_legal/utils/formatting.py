"""
Display helpers shared by the wizard, the settings console and the templates.
"""

import math
import random
import time
from datetime import datetime
from typing import Optional

import pytz

_SIZE_UNITS = ('Bytes', 'KB', 'MB', 'GB')


def format_file_size(num_bytes: int) -> str:
    """Human readable size using 1024 steps, e.g. ``1.5 MB``.

    Values are rounded to at most two decimals and trailing zeros are dropped.
    """
    if not num_bytes or num_bytes <= 0:
        return '0 Bytes'
    k = 1024
    index = min(int(math.floor(math.log(num_bytes) / math.log(k))), len(_SIZE_UNITS) - 1)
    value = round(num_bytes / math.pow(k, index), 2)
    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {_SIZE_UNITS[index]}"


def generate_case_number(now_ms: Optional[int] = None, suffix: Optional[int] = None) -> str:
    """Case numbers look like ``CASE-1718000000000-42``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if suffix is None:
        suffix = random.randint(0, 999)
    return f"CASE-{now_ms}-{suffix}"


def format_datetime(value: Optional[datetime], tz_name: str = 'UTC', fmt: str = '%b %d, %Y %H:%M') -> str:
    """Render an aware datetime in the configured timezone; naive values are taken as UTC."""
    if value is None:
        return ''
    try:
        tz = pytz.timezone(tz_name or 'UTC')
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    if value.tzinfo is None:
        value = pytz.UTC.localize(value)
    return value.astimezone(tz).strftime(fmt)
