"""
Date format mini-language: compile, parse and format.

Supported tokens are ``yyyy MM dd HH mm ss SSSSSS SSS``; any other text in a
format string is matched and rendered literally.
"""
import re
import logging
from datetime import datetime
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# SSSSSS must be tried before SSS
TOKEN_REGEX = re.compile(r'SSSSSS|SSS|yyyy|MM|dd|HH|mm|ss')

Parts = Dict[str, int]
Setter = Callable[[str, Parts], None]


def _set_field(name: str) -> Setter:
    def apply(segment: str, parts: Parts) -> None:
        parts[name] = int(segment)
    return apply


def _set_microseconds(segment: str, parts: Parts) -> None:
    parts['millisecond'] = int(segment) // 1000


TOKEN_PATTERNS: Dict[str, Tuple[str, Setter]] = {
    'yyyy': (r'\d{4}', _set_field('year')),
    'MM': (r'\d{2}', _set_field('month')),
    'dd': (r'\d{2}', _set_field('day')),
    'HH': (r'\d{2}', _set_field('hour')),
    'mm': (r'\d{2}', _set_field('minute')),
    'ss': (r'\d{2}', _set_field('second')),
    'SSSSSS': (r'\d{6}', _set_microseconds),
    'SSS': (r'\d{3}', _set_field('millisecond')),
}

TOKEN_FORMATTERS: Dict[str, Callable[[datetime], str]] = {
    'yyyy': lambda d: f"{d.year:04d}",
    'MM': lambda d: f"{d.month:02d}",
    'dd': lambda d: f"{d.day:02d}",
    'HH': lambda d: f"{d.hour:02d}",
    'mm': lambda d: f"{d.minute:02d}",
    'ss': lambda d: f"{d.second:02d}",
    'SSSSSS': lambda d: f"{(d.microsecond // 1000) * 1000:06d}",
    'SSS': lambda d: f"{d.microsecond // 1000:03d}",
}

FIELD_EXTRACTORS: Dict[str, Callable[[datetime], int]] = {
    'year': lambda d: d.year,
    'month': lambda d: d.month,
    'day': lambda d: d.day,
    'hour': lambda d: d.hour,
    'minute': lambda d: d.minute,
    'second': lambda d: d.second,
    'millisecond': lambda d: d.microsecond // 1000,
}

# A format must capture all of these to yield a date
CALENDAR_TOKENS = frozenset({'yyyy', 'MM', 'dd'})


class DateFormatProgram:
    """A format string compiled into one anchored regex and ordered setters."""
    def __init__(self, source: str, regex: re.Pattern, setters: List[Setter], tokens: List[str]):
        self.source = source
        self.regex = regex
        self.setters = setters
        self.tokens = tokens

    def __repr__(self):
        return f"DateFormatProgram('{self.source}', pattern={self.regex.pattern!r})"

    def extract(self, value: str) -> Optional[Parts]:
        """Match a value and replay the setters into a parts dict."""
        match = self.regex.match(value)
        if not match:
            return None
        parts: Parts = {}
        for setter, segment in zip(self.setters, match.groups()):
            setter(segment, parts)
        return parts

    def captures_calendar_date(self) -> bool:
        """True if the format captures year, month and day."""
        return CALENDAR_TOKENS.issubset(self.tokens)


@lru_cache(maxsize=256)
def compile_date_format(fmt: str) -> Optional[DateFormatProgram]:
    """
    Compile a format string into a DateFormatProgram.

    Args:
        fmt: Format string, e.g. "dd.MM.yyyy HH:mm"

    Returns:
        Compiled program, or None for a blank format
    """
    source = fmt.strip()
    if not source:
        return None

    pattern = ""
    setters: List[Setter] = []
    tokens: List[str] = []
    last_index = 0
    for match in TOKEN_REGEX.finditer(source):
        pattern += re.escape(source[last_index:match.start()])
        token_pattern, setter = TOKEN_PATTERNS[match.group()]
        pattern += f"({token_pattern})"
        setters.append(setter)
        tokens.append(match.group())
        last_index = match.end()
    pattern += re.escape(source[last_index:])

    logger.debug(f"Compiled date format '{source}' to {pattern!r}")
    return DateFormatProgram(source, re.compile(f"^{pattern}$"), setters, tokens)


def parse_date_with_format(value: str, fmt: str) -> Optional[datetime]:
    """
    Parse a date string with a format string.

    The constructed value is validated by re-reading every field the format
    specified, so calendar overflow (e.g. 31.02.) yields None.

    Args:
        value: Raw date string
        fmt: Format string

    Returns:
        Naive datetime, or None if the value does not match the format
    """
    if not value or not fmt:
        return None
    program = compile_date_format(fmt)
    if program is None:
        return None

    parts = program.extract(value.strip())
    if parts is None:
        return None
    if 'year' not in parts or 'month' not in parts or 'day' not in parts:
        return None

    try:
        parsed = datetime(
            parts['year'], parts['month'], parts['day'],
            parts.get('hour', 0), parts.get('minute', 0), parts.get('second', 0),
            parts.get('millisecond', 0) * 1000,
        )
    except ValueError:
        return None

    for name, expected in parts.items():
        if FIELD_EXTRACTORS[name](parsed) != expected:
            return None
    return parsed


def format_date_with_format(value: datetime, fmt: str) -> str:
    """
    Render a datetime through a format string.

    Args:
        value: Date to render
        fmt: Format string; blank renders the canonical ISO form

    Returns:
        Formatted string
    """
    source = fmt.strip() if fmt else ""
    if not source:
        return to_iso(value)
    return TOKEN_REGEX.sub(lambda m: TOKEN_FORMATTERS[m.group()](value), source)


def to_iso(value: datetime) -> str:
    """Canonical timezone-naive ISO-8601 representation (millisecond precision)."""
    return value.replace(tzinfo=None).isoformat(timespec='milliseconds')


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Inverse of to_iso; tolerates a trailing 'Z'. Returns None on failure."""
    if not value:
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1]
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)
