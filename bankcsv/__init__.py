"""
Bank statement CSV importer

Detects which known bank mapping a CSV export matches (with or without a
header row) and normalizes its rows into unified transaction records.
"""

__version__ = "1.0.0"
__author__ = "bankcsv Team"

from .core.detectors import detect_header, HeaderDetector
from .core.transform import apply_mapping
from .core.runner import import_statement, StatementImporter, ImportResult
from .core.date_format import parse_date_with_format, format_date_with_format
from .core.amounts import parse_amount, format_number_with_pattern
from .models.schema import (
    BankMapping,
    MappingDetection,
    HeaderlessStructure,
    DetectionCandidate,
    HeaderDetectionResult,
    UnifiedTx,
    DisplaySettings,
    TransactionImportSummary,
)

__all__ = [
    "detect_header",
    "HeaderDetector",
    "apply_mapping",
    "import_statement",
    "StatementImporter",
    "ImportResult",
    "parse_date_with_format",
    "format_date_with_format",
    "parse_amount",
    "format_number_with_pattern",
    "BankMapping",
    "MappingDetection",
    "HeaderlessStructure",
    "DetectionCandidate",
    "HeaderDetectionResult",
    "UnifiedTx",
    "DisplaySettings",
    "TransactionImportSummary",
]
