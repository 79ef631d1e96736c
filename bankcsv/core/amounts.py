"""
Locale-ambiguous amount parsing and pattern-driven number formatting.
"""
import math
import re
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_AMOUNT_NOISE = re.compile(r"[\s'\u00a0]")
_PLACEHOLDERS = "0#"


def parse_amount(value: str) -> Optional[float]:
    """
    Parse an amount written with either ',' or '.' as decimal separator.

    Whichever of ',' and '.' occurs last is the decimal separator; every other
    occurrence of either is treated as grouping and dropped.

    Args:
        value: Raw amount string, e.g. "1.234,56" or "-1,234.56"

    Returns:
        Float value, or None if no number remains
    """
    if not value or not value.strip():
        return None

    sanitized = _AMOUNT_NOISE.sub('', value.strip())
    last_comma = sanitized.rfind(',')
    last_dot = sanitized.rfind('.')
    decimal_index = max(last_comma, last_dot)

    result = []
    for index, char in enumerate(sanitized):
        if index == 0 and char in '+-':
            if char == '-':
                result.append('-')
            continue
        if char in ',.':
            if index == decimal_index:
                result.append('.')
            continue
        if char.isdigit():
            result.append(char)

    cleaned = ''.join(result)
    if cleaned in ('', '-', '.', '-.'):
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        logger.debug(f"Could not parse amount: {value}")
        return None
    return parsed if math.isfinite(parsed) else None


@dataclass(frozen=True)
class NumberPattern:
    """Decomposed digit-placeholder pattern such as '#.##0,00' or '€ #,##0.00'."""
    prefix: str
    suffix: str
    grouping_char: str
    grouping_size: int
    min_integer_digits: int
    min_fraction_digits: int
    max_fraction_digits: int
    decimal_char: str


def parse_number_pattern(pattern: str) -> Optional[NumberPattern]:
    """
    Decompose a number pattern.

    Args:
        pattern: Pattern string

    Returns:
        NumberPattern, or None if the pattern has no digit placeholders
    """
    source = pattern.strip() if pattern else ""
    positions = [i for i, char in enumerate(source) if char in _PLACEHOLDERS]
    if not positions:
        return None

    first, last = positions[0], positions[-1]
    core = source[first:last + 1]

    decimal_pos = max(core.rfind('.'), core.rfind(','))
    if decimal_pos >= 0:
        decimal_char = core[decimal_pos]
        integer_pattern = core[:decimal_pos]
        fraction_pattern = core[decimal_pos + 1:]
    else:
        decimal_char = ""
        integer_pattern = core
        fraction_pattern = ""

    grouping_char = ""
    for char in reversed(integer_pattern):
        if char not in _PLACEHOLDERS:
            grouping_char = char
            break

    grouping_size = 0
    if grouping_char:
        for char in reversed(integer_pattern):
            if char in _PLACEHOLDERS:
                grouping_size += 1
            elif char == grouping_char:
                break

    return NumberPattern(
        prefix=source[:first],
        suffix=source[last + 1:],
        grouping_char=grouping_char,
        grouping_size=grouping_size,
        min_integer_digits=integer_pattern.count('0'),
        min_fraction_digits=fraction_pattern.count('0'),
        max_fraction_digits=sum(1 for char in fraction_pattern if char in _PLACEHOLDERS),
        decimal_char=decimal_char,
    )


def _group(digits: str, separator: str, size: int) -> str:
    return re.sub(rf"\B(?=(\d{{{size}}})+(?!\d))", separator, digits)


def format_number_with_pattern(value: float, pattern: str) -> str:
    """
    Render a number through a digit-placeholder pattern.

    Args:
        value: Number to render
        pattern: Pattern such as "#.##0,00"

    Returns:
        Formatted string; str(value) when the pattern has no placeholders
    """
    layout = parse_number_pattern(pattern)
    if layout is None:
        return str(value)

    negative = value < 0 or math.copysign(1.0, value) < 0
    absolute = abs(value)

    fraction_part = ""
    if layout.max_fraction_digits > 0:
        fixed = f"{absolute:.{layout.max_fraction_digits}f}"
        integer_part, _, fraction_part = fixed.partition('.')
        while len(fraction_part) > layout.min_fraction_digits and fraction_part.endswith('0'):
            fraction_part = fraction_part[:-1]
    else:
        integer_part = str(int(math.floor(absolute + 0.5)))

    integer_part = integer_part.rjust(max(layout.min_integer_digits, 1), '0')
    if layout.grouping_char and layout.grouping_size > 0:
        integer_part = _group(integer_part, layout.grouping_char, layout.grouping_size)

    formatted = integer_part
    if fraction_part:
        formatted += f"{layout.decimal_char or '.'}{fraction_part}"

    sign = "-" if negative and absolute != 0 else ""
    return f"{sign}{layout.prefix}{formatted}{layout.suffix}"
