"""
Mapping-driven transformation of CSV rows into unified transactions.
"""
from typing import Dict, List, Optional, Sequence
import logging

from .date_format import format_date_with_format, parse_date_with_format, to_iso
from .normalize import cell_at, parse_placeholder
from ..models.schema import BankMapping, DisplaySettings, UnifiedTx

logger = logging.getLogger(__name__)


def build_index_map(header: Sequence[str]) -> Dict[str, int]:
    """Map header names to column indices; the first definition wins."""
    index_map: Dict[str, int] = {}
    for index, name in enumerate(header):
        index_map.setdefault(name, index)
    return index_map


def read_value(row: Sequence[str], column: str, index_map: Dict[str, int]) -> str:
    """
    Read one cell by column specifier.

    Args:
        row: Data row
        column: Header name, or "$N" for the N-th column (1-based)
        index_map: Header index map from build_index_map

    Returns:
        Trimmed cell value, "" when the column does not exist
    """
    position = parse_placeholder(column)
    if position is None:
        position = index_map.get(column)
    if position is None:
        return ""
    return cell_at(row, position)


def first_non_empty(values: Sequence[str]) -> str:
    for value in values:
        trimmed = value.strip()
        if trimmed:
            return trimmed
    return ""


def join_values(values: Sequence[str]) -> str:
    return " ".join(value.strip() for value in values if value.strip())


def is_transaction_empty(tx: UnifiedTx) -> bool:
    return not (
        tx.booking_date.strip()
        or tx.booking_text.strip()
        or tx.booking_type.strip()
        or tx.booking_amount.strip()
    )


def apply_mapping(rows: Sequence[Sequence[str]], header: Sequence[str], mapping: BankMapping,
                  bank_name: str, booking_account: str,
                  display_settings: Optional[DisplaySettings] = None) -> List[UnifiedTx]:
    """
    Transform data rows into unified transactions.

    For headerless mappings the detected "header" is the first data row and is
    processed ahead of the remaining rows.

    Args:
        rows: Data rows following the header
        header: Header row from detection
        mapping: Bank mapping to apply
        bank_name: Bank label stored on every transaction
        booking_account: Account label stored on every transaction
        display_settings: Date display format; defaults apply when omitted

    Returns:
        List of UnifiedTx; rows with all four target fields empty are dropped
    """
    settings = display_settings or DisplaySettings()
    effective_rows = [list(header), *rows] if mapping.without_header else list(rows)
    index_map = build_index_map(header)

    parse_format = mapping.booking_date_parse_format.strip()
    display_format = settings.booking_date_display_format.strip() or parse_format

    transactions = []
    unparsed_dates = 0
    for row in effective_rows:
        def read(columns: Sequence[str]) -> List[str]:
            return [read_value(row, column, index_map) for column in columns]

        date_raw = first_non_empty(read(mapping.booking_date))
        date_display = date_raw
        date_iso = None

        if parse_format and date_raw:
            parsed = parse_date_with_format(date_raw, parse_format)
            if parsed is not None:
                date_iso = to_iso(parsed)
                date_display = format_date_with_format(parsed, display_format)
            else:
                unparsed_dates += 1
                logger.debug(f"Could not parse date '{date_raw}' with format '{parse_format}'")

        tx = UnifiedTx(
            bank_name=bank_name,
            booking_date=date_display,
            booking_date_raw=date_raw,
            booking_date_iso=date_iso,
            booking_text=join_values(read(mapping.booking_text)),
            booking_type=first_non_empty(read(mapping.booking_type)),
            booking_amount=first_non_empty(read(mapping.booking_amount)),
            booking_account=booking_account,
        )

        if not is_transaction_empty(tx):
            transactions.append(tx)

    if unparsed_dates:
        logger.warning(f"{unparsed_dates} booking date(s) did not match format '{parse_format}'")
    logger.info(f"Mapped {len(transactions)} of {len(effective_rows)} rows for {bank_name}")
    return transactions


def create_default_mapping(header: Sequence[str], bank_name: str = "") -> BankMapping:
    """Starter mapping reading date, text, type and amount from the first four columns."""
    return BankMapping(
        bank_name=bank_name,
        booking_date=list(header[:1]),
        booking_text=list(header[1:2]),
        booking_type=list(header[2:3]),
        booking_amount=list(header[3:4]),
        booking_date_parse_format="",
        without_header=False,
    )
