"""
Immutable catalog of known bank mappings.
"""
from typing import Dict, Iterable, Iterator, List, Optional
import logging

from .date_format import compile_date_format
from ..models.schema import BankMapping

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('booking_date', 'booking_text', 'booking_type', 'booking_amount')


def _bank_key(name: str) -> str:
    return name.strip().lower()


def _sort_key(mapping: BankMapping):
    return (mapping.bank_name.casefold(), mapping.bank_name)


def merge_bank_mappings(primary: Iterable[BankMapping], overrides: Iterable[BankMapping]) -> List[BankMapping]:
    """
    Merge two mapping lists by case-insensitive bank name.

    The first primary entry per name is kept unless an override replaces it.
    Entries with a blank bank name are skipped.
    """
    merged: Dict[str, BankMapping] = {}
    for mapping in primary:
        key = _bank_key(mapping.bank_name)
        if key and key not in merged:
            merged[key] = mapping
    for mapping in overrides:
        key = _bank_key(mapping.bank_name)
        if key:
            if key in merged:
                logger.debug(f"Overriding mapping for {mapping.bank_name}")
            merged[key] = mapping
    return sorted(merged.values(), key=_sort_key)


def validate_mapping(mapping: BankMapping) -> List[str]:
    """
    List the fields a mapping still needs before it can be applied.

    Args:
        mapping: Bank mapping

    Returns:
        Names of missing fields; empty when the mapping is complete
    """
    missing = [name for name in REQUIRED_FIELDS if not getattr(mapping, name)]
    program = compile_date_format(mapping.booking_date_parse_format)
    if program is None or not program.captures_calendar_date():
        # e.g. "dd.MM.yy": "yy" is literal text, so no year is ever captured
        missing.append('booking_date_parse_format')
    return missing


class MappingCatalog:
    """Snapshot of bank mappings; replace it rather than mutate it."""

    def __init__(self, mappings: Optional[Iterable[BankMapping]] = None):
        self._mappings = tuple(merge_bank_mappings(mappings or (), ()))

    def __iter__(self) -> Iterator[BankMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __repr__(self):
        return f"MappingCatalog({list(self.bank_names())})"

    def get(self, bank_name: str) -> Optional[BankMapping]:
        """Look up a mapping by case-insensitive bank name."""
        key = _bank_key(bank_name)
        for mapping in self._mappings:
            if _bank_key(mapping.bank_name) == key:
                return mapping
        return None

    def bank_names(self) -> List[str]:
        return [mapping.bank_name for mapping in self._mappings]

    def with_overrides(self, overrides: Iterable[BankMapping]) -> "MappingCatalog":
        """New catalog with the given mappings replacing same-named entries."""
        return MappingCatalog(merge_bank_mappings(self._mappings, overrides))
