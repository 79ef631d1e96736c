"""
End-to-end import orchestration: detect, map, hash and summarize.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Sequence
import logging

from pydantic import BaseModel, Field

from .catalog import MappingCatalog
from .detectors import HeaderDetector
from .hashing import compute_transaction_hash
from .transform import apply_mapping, create_default_mapping
from ..models.schema import (
    BankMapping,
    DisplaySettings,
    HeaderDetectionResult,
    TransactionImportSummary,
    UnifiedTx,
)

logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    """Everything produced by importing one statement file."""
    detection: HeaderDetectionResult
    mapping: BankMapping
    transactions: List[UnifiedTx] = Field(default_factory=list)
    summary: TransactionImportSummary
    warnings: List[str] = Field(default_factory=list)


def summarize_import(transactions: Sequence[UnifiedTx], bank_name: str, booking_account: str,
                     created_on: Optional[str] = None) -> TransactionImportSummary:
    """
    Summarize the booking date range covered by an import.

    Transactions with an ISO date are ordered chronologically; without any
    ISO dates the first and last rows in file order are used.
    """
    dated = sorted(
        (tx for tx in transactions if tx.booking_date_iso),
        key=lambda tx: tx.booking_date_iso,
    )
    if dated:
        first, last = dated[0].booking_date, dated[-1].booking_date
    elif transactions:
        first, last = transactions[0].booking_date, transactions[-1].booking_date
    else:
        first = last = ""

    return TransactionImportSummary(
        bank_name=bank_name,
        booking_account=booking_account,
        created_on=created_on,
        first_booking_date=first,
        last_booking_date=last,
    )


class StatementImporter:
    """Main importer class tying detection and mapping together."""

    def __init__(self, catalog: Optional[Iterable[BankMapping]] = None,
                 display_settings: Optional[DisplaySettings] = None):
        self.catalog = catalog if isinstance(catalog, MappingCatalog) else MappingCatalog(catalog)
        self.display_settings = display_settings or DisplaySettings()
        self.detector = HeaderDetector(self.catalog)

    def select_mapping(self, detection: HeaderDetectionResult, bank_name: Optional[str] = None,
                       mapping: Optional[BankMapping] = None) -> BankMapping:
        """
        Choose the mapping to apply.

        Precedence: explicit mapping, explicit bank name, detected mapping,
        then a default mapping built from the header.
        """
        if mapping is not None:
            return mapping
        if bank_name:
            known = self.catalog.get(bank_name)
            if known is not None:
                return known
            logger.warning(f"Unknown bank requested: {bank_name}")
        detected = detection.detected_mapping
        if detected is not None:
            return detected
        logger.info("No mapping detected, using default column mapping")
        return create_default_mapping(detection.header, bank_name or "")

    def import_rows(self, rows: Sequence[Sequence[str]], booking_account: str = "",
                    bank_name: Optional[str] = None,
                    mapping: Optional[BankMapping] = None) -> ImportResult:
        """
        Import a row matrix.

        Args:
            rows: Row matrix from the CSV reader
            booking_account: Account label stored on every transaction
            bank_name: Force a catalog mapping by bank name
            mapping: Force an explicit mapping

        Returns:
            ImportResult
        """
        detection = self.detector.detect(rows)
        chosen = self.select_mapping(detection, bank_name, mapping)
        label = bank_name or chosen.bank_name

        warnings = [detection.warning] if detection.warning else []
        if chosen.without_header and detection.has_header:
            warnings.append(f"Mapping {chosen.bank_name} expects no header, but a header row was detected")

        transactions = apply_mapping(
            detection.data_rows,
            detection.header,
            chosen,
            label,
            booking_account,
            self.display_settings,
        )
        transactions = [
            tx.model_copy(update={'booking_hash': compute_transaction_hash(tx)})
            for tx in transactions
        ]

        summary = summarize_import(
            transactions, label, booking_account, created_on=datetime.now().isoformat(timespec='seconds')
        )
        logger.info(f"Imported {len(transactions)} transactions for {label or 'unknown bank'}")

        return ImportResult(
            detection=detection,
            mapping=chosen,
            transactions=transactions,
            summary=summary,
            warnings=warnings,
        )


def import_statement(rows: Sequence[Sequence[str]], catalog: Optional[Iterable[BankMapping]] = None,
                     booking_account: str = "", bank_name: Optional[str] = None,
                     display_settings: Optional[DisplaySettings] = None) -> ImportResult:
    """
    Import a statement's row matrix.

    Args:
        rows: Row matrix
        catalog: Known bank mappings
        booking_account: Account label
        bank_name: Force a catalog mapping by bank name
        display_settings: Display settings

    Returns:
        ImportResult
    """
    importer = StatementImporter(catalog, display_settings)
    return importer.import_rows(rows, booking_account, bank_name)
