"""
Pydantic models for bank mappings, detection results and unified transactions.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_DATE_DISPLAY_FORMAT = "dd.MM.yyyy"
DEFAULT_AMOUNT_DISPLAY_FORMAT = "#.##0,00"


class ColumnMarker(str, Enum):
    """Coarse type of a column in a headerless export."""
    DATE = "date"
    NUMBER = "number"
    TEXT = "text"
    EMPTY = "empty"


class IssueCode(str, Enum):
    """Reasons a mapping candidate did not fully match."""
    HEADER_SIGNATURE_MISMATCH = "header_signature_mismatch"
    COLUMN_COUNT_MISMATCH = "column_count_mismatch"
    COLUMN_MARKERS_MISMATCH = "column_markers_mismatch"
    DATE_INCOMPATIBLE = "date_incompatible"
    AMOUNT_INCOMPATIBLE = "amount_incompatible"
    NO_DATA_ROWS = "no_data_rows"


def _clean_strings(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    cleaned = [value.strip() for value in values if isinstance(value, str)]
    cleaned = [value for value in cleaned if value]
    return cleaned or None


class HeaderlessStructure(BaseModel):
    """Structure hints for exports that carry no header row."""
    column_count: Optional[int] = Field(default=None, ge=0)
    column_markers: Optional[List[str]] = None

    @field_validator('column_markers')
    @classmethod
    def normalize_markers(cls, v):
        cleaned = _clean_strings(v)
        return [marker.lower() for marker in cleaned] if cleaned else None

    def is_empty(self) -> bool:
        return self.column_count is None and not self.column_markers


class MappingDetection(BaseModel):
    """Detection hints stored alongside a bank mapping."""
    header_signature: Optional[List[str]] = None
    without_header: Optional[HeaderlessStructure] = None

    @field_validator('header_signature')
    @classmethod
    def normalize_signature(cls, v):
        return _clean_strings(v)

    @field_validator('without_header')
    @classmethod
    def drop_empty_structure(cls, v):
        if v is not None and v.is_empty():
            return None
        return v


class BankMapping(BaseModel):
    """Learned schema describing how to read one bank's CSV export."""
    bank_name: str
    booking_date: List[str] = Field(default_factory=list)
    booking_text: List[str] = Field(default_factory=list)
    booking_type: List[str] = Field(default_factory=list)
    booking_amount: List[str] = Field(default_factory=list)
    booking_date_parse_format: str = ""
    without_header: bool = False
    detection: Optional[MappingDetection] = None

    @field_validator('booking_date_parse_format', mode='before')
    @classmethod
    def strip_parse_format(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator('detection')
    @classmethod
    def drop_empty_detection(cls, v):
        if v is not None and not v.header_signature and v.without_header is None:
            return None
        return v

    @property
    def header_signature(self) -> List[str]:
        if self.detection and self.detection.header_signature:
            return self.detection.header_signature
        return []

    @property
    def structure(self) -> Optional[HeaderlessStructure]:
        return self.detection.without_header if self.detection else None


class DetectionCandidate(BaseModel):
    """Score and diagnostics of one mapping evaluated against a row matrix."""
    mapping: BankMapping
    score: int = 0
    passed: bool = False
    matched_header_signature: bool = False
    matched_structure: bool = False
    header_row_index: Optional[int] = None
    data_start_index: Optional[int] = None
    issues: List[IssueCode] = Field(default_factory=list)
    header_similarity: Optional[float] = None  # diagnostics only

    @property
    def bank_name(self) -> str:
        return self.mapping.bank_name


class HeaderDetectionResult(BaseModel):
    """Resolved header, data rows and ranked candidates for one file."""
    header: List[str] = Field(default_factory=list)
    data_rows: List[List[str]] = Field(default_factory=list)
    candidates: List[DetectionCandidate] = Field(default_factory=list)
    has_header: bool = False
    skipped_rows: int = 0
    warning: Optional[str] = None

    @property
    def detected_mapping(self) -> Optional[BankMapping]:
        """Mapping of the first passing candidate, if any."""
        for candidate in self.candidates:
            if candidate.passed:
                return candidate.mapping
        return None


class UnifiedTx(BaseModel):
    """Canonical transaction record."""
    bank_name: str
    booking_date: str
    booking_date_raw: str
    booking_date_iso: Optional[str] = None
    booking_text: str
    booking_type: str
    booking_amount: str
    booking_account: str
    booking_hash: Optional[str] = None


class DisplaySettings(BaseModel):
    """User-facing rendering formats for dates and amounts."""
    booking_date_display_format: str = DEFAULT_DATE_DISPLAY_FORMAT
    booking_amount_display_format: str = DEFAULT_AMOUNT_DISPLAY_FORMAT

    @field_validator('booking_date_display_format', mode='before')
    @classmethod
    def default_date_format(cls, v):
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_DATE_DISPLAY_FORMAT
        return v.strip()

    @field_validator('booking_amount_display_format', mode='before')
    @classmethod
    def default_amount_format(cls, v):
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_AMOUNT_DISPLAY_FORMAT
        return v.strip()


class TransactionImportSummary(BaseModel):
    """Per-import bookkeeping of the covered booking date range."""
    bank_name: str
    booking_account: str
    created_on: Optional[str] = None
    first_booking_date: str = ""
    last_booking_date: str = ""
