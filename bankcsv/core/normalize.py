"""
Cell cleaning and heuristic value recognizers used during schema detection.
"""
import re
import calendar
from typing import List, Optional, Sequence

_BOM = '\ufeff'
_WHITESPACE = re.compile(r'\s+')
_NUMBER_SPACES = re.compile(r'[\s\u00a0]')
_THOUSANDS_DOT = re.compile(r'\.(?=\d{3}(?:\D|$))')
_NUMBER_SHAPE = re.compile(r'^[-+]?\d*(?:\.\d+)?$')
_BARE_DIGITS = re.compile(r'^\d{1,4}$')
_DAY_FIRST_DATE = re.compile(r'^(\d{1,2})[./-](\d{1,2})[./-](\d{2,4})$')
_ISO_DATE = re.compile(
    r'^(\d{4})[./-](\d{1,2})[./-](\d{1,2})'
    r'(?:[T ]\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$'
)
_PLACEHOLDER = re.compile(r'^\$(\d+)$')


def sanitize_cell(value: Optional[str]) -> str:
    """Strip byte-order marks and surrounding whitespace."""
    if value is None:
        return ""
    return str(value).replace(_BOM, '').strip()


def sanitize_row(row: Sequence[Optional[str]]) -> List[str]:
    return [sanitize_cell(cell) for cell in row]


def is_row_empty(row: Sequence[str]) -> bool:
    return all(not cell.strip() for cell in row)


def normalize_header_value(value: Optional[str]) -> str:
    """Collapse whitespace and lower-case a header cell for comparison."""
    if not value:
        return ""
    return _WHITESPACE.sub(' ', value).strip().lower()


def is_probably_number(value: str) -> bool:
    """
    Heuristically decide whether a cell holds a number.

    Dots followed by exactly three digits are read as thousands separators and
    commas as decimal separators, so "1.234,56" and "-2,45" qualify.
    """
    trimmed = value.strip() if value else ""
    if not trimmed:
        return False

    normalized = _NUMBER_SPACES.sub('', trimmed)
    normalized = _THOUSANDS_DOT.sub('', normalized)
    normalized = normalized.replace(',', '.')
    if normalized in ('', '.', '+', '-'):
        return False
    if not _NUMBER_SHAPE.match(normalized):
        return False
    return any(char.isdigit() for char in normalized)


def _is_calendar_day(year: int, month: int, day: int) -> bool:
    if year < 1 or not 1 <= month <= 12:
        return False
    return 1 <= day <= calendar.monthrange(year, month)[1]


def is_probably_date(value: str) -> bool:
    """
    Heuristically decide whether a cell holds a date.

    Accepts day-first dates (01.02.2024, 1/2/24, 01-02-2024) and year-first
    ISO-like dates with an optional time part. Bare numbers of up to four
    digits are never dates.

    Stricter than a lenient date parser: the day must exist in the calendar
    (31.02.2024 and 2024-02-30 are rejected), and longer bare numbers such as
    12345 match neither shape. Such columns are marked text or number, not date.
    """
    trimmed = value.strip() if value else ""
    if not trimmed:
        return False
    if not any(char.isdigit() for char in trimmed):
        return False
    if _BARE_DIGITS.match(trimmed):
        return False

    match = _DAY_FIRST_DATE.match(trimmed)
    if match:
        day, month, year = (int(group) for group in match.groups())
        if len(match.group(3)) == 2:
            year += 2000
        if _is_calendar_day(year, month, day):
            return True

    match = _ISO_DATE.match(trimmed)
    if match:
        year, month, day = (int(group) for group in match.groups())
        return _is_calendar_day(year, month, day)

    return False


def parse_placeholder(column: str) -> Optional[int]:
    """
    Parse a positional column specifier.

    Args:
        column: Specifier such as "$3"

    Returns:
        Zero-based column index, or None if not a valid placeholder
    """
    match = _PLACEHOLDER.match(column.strip()) if column else None
    if not match:
        return None
    index = int(match.group(1))
    if index <= 0:
        return None
    return index - 1


def find_first_placeholder_index(columns: Sequence[str]) -> Optional[int]:
    for column in columns:
        index = parse_placeholder(column)
        if index is not None:
            return index
    return None


def cell_at(row: Sequence[str], index: int) -> str:
    """Trimmed cell value, or "" when the row is too short."""
    if 0 <= index < len(row):
        return sanitize_cell(row[index])
    return ""
