# Utils package for eFile Legal

from .formatting import (
    format_file_size,
    generate_case_number,
    format_datetime,
)
from .simple_cache import TTLCache

__all__ = [
    'format_file_size',
    'generate_case_number',
    'format_datetime',
    'TTLCache',
]
