"""
Display formatting of stored transactions.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import logging

from .amounts import format_number_with_pattern, parse_amount
from .date_format import format_date_with_format, from_iso, parse_date_with_format, to_iso
from ..models.schema import BankMapping, DisplaySettings, UnifiedTx

logger = logging.getLogger(__name__)


def sanitize_display_settings(value: Union[DisplaySettings, Dict[str, Any], None]) -> DisplaySettings:
    """Coerce settings from a model, a plain dict or None; blanks fall back to defaults."""
    if isinstance(value, DisplaySettings):
        return DisplaySettings(**value.model_dump())
    if isinstance(value, dict):
        return DisplaySettings(
            booking_date_display_format=value.get('booking_date_display_format'),
            booking_amount_display_format=value.get('booking_amount_display_format'),
        )
    return DisplaySettings()


def format_transaction_date(tx: UnifiedTx, settings: DisplaySettings) -> str:
    """Render the booking date from its ISO value, falling back to the raw text."""
    parsed = from_iso(tx.booking_date_iso)
    if parsed is not None:
        return format_date_with_format(parsed, settings.booking_date_display_format)
    return tx.booking_date_raw or tx.booking_date or ""


def format_booking_amount(value: str, settings: DisplaySettings) -> str:
    """
    Render an amount string through the configured number pattern.

    Args:
        value: Raw amount as imported
        settings: Display settings

    Returns:
        Formatted amount, or the input unchanged if it is not a number
    """
    parsed = parse_amount(value)
    if parsed is None:
        return value
    return format_number_with_pattern(parsed, settings.booking_amount_display_format)


def format_transactions_for_display(transactions: Iterable[UnifiedTx],
                                    settings: Optional[DisplaySettings] = None) -> List[UnifiedTx]:
    """Copies of the transactions with display-formatted date and amount."""
    settings = settings or DisplaySettings()
    return [
        tx.model_copy(update={
            'booking_date': format_transaction_date(tx, settings),
            'booking_amount': format_booking_amount(tx.booking_amount, settings),
        })
        for tx in transactions
    ]


def reformat_transactions_for_mapping(transactions: Iterable[UnifiedTx], mapping: BankMapping,
                                      settings: Optional[DisplaySettings] = None) -> Tuple[List[UnifiedTx], int]:
    """
    Re-derive dates of one bank's transactions after its parse format changed.

    Args:
        transactions: Stored transactions of any bank
        mapping: Updated mapping; only transactions of its bank are touched
        settings: Display settings

    Returns:
        Tuple of (transactions, number of transactions whose dates changed)
    """
    settings = settings or DisplaySettings()
    parse_format = mapping.booking_date_parse_format.strip()
    display_format = settings.booking_date_display_format.strip() or parse_format
    bank_key = mapping.bank_name.lower()

    result = []
    updated = 0
    for tx in transactions:
        if tx.bank_name.lower() != bank_key:
            result.append(tx)
            continue

        raw = tx.booking_date_raw or tx.booking_date or ""
        next_display = raw
        next_iso = None
        if parse_format and raw:
            parsed = parse_date_with_format(raw, parse_format)
            if parsed is not None:
                next_iso = to_iso(parsed)
                next_display = format_date_with_format(parsed, display_format)

        if next_iso != tx.booking_date_iso or next_display != tx.booking_date:
            updated += 1
            tx = tx.model_copy(update={
                'booking_date': next_display,
                'booking_date_raw': raw,
                'booking_date_iso': next_iso,
            })
        result.append(tx)

    logger.info(f"Reformatted {updated} transaction(s) for {mapping.bank_name}")
    return result, updated
