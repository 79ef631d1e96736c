"""
Bank mapping detection and header resolution.
"""
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple
import logging

from rapidfuzz import fuzz

from .date_format import parse_date_with_format
from .normalize import (
    cell_at,
    find_first_placeholder_index,
    is_probably_date,
    is_probably_number,
    is_row_empty,
    normalize_header_value,
    sanitize_row,
)
from ..models.schema import (
    BankMapping,
    ColumnMarker,
    DetectionCandidate,
    HeaderDetectionResult,
    IssueCode,
)

logger = logging.getLogger(__name__)

# A signature match must outrank every structural combination (60+20+15+15).
HEADER_MATCH_SCORE = 200
COLUMN_COUNT_SCORE = 60
COLUMN_MARKER_SCORE = 20
DATE_COMPATIBILITY_SCORE = 15
AMOUNT_COMPATIBILITY_SCORE = 15
SAMPLE_ROW_LIMIT = 10
SIMILARITY_ROW_LIMIT = 20

EMPTY_INPUT_WARNING = "No header row detected. Please check the CSV file."
UNKNOWN_HEADER_WARNING = "Unknown header row detected. Please review the mapping."
MISSING_HEADER_WARNING = "No header row detected. Please review the mapping."


class StructureMatch(NamedTuple):
    """Outcome of the headerless-structure detector."""
    matched: bool
    score: int
    issues: List[IssueCode]
    data_start_index: Optional[int] = None


def compute_column_markers(rows: Sequence[Sequence[str]], column_count: int) -> List[str]:
    """
    Classify each column of a sample as date, number, text or empty.

    Args:
        rows: Sample rows
        column_count: Number of columns to classify

    Returns:
        One marker per column
    """
    markers = []
    for index in range(column_count):
        values = [cell_at(row, index) for row in rows]
        values = [value for value in values if value]
        if not values:
            markers.append(ColumnMarker.EMPTY.value)
        elif all(is_probably_date(value) for value in values):
            markers.append(ColumnMarker.DATE.value)
        elif all(is_probably_number(value) for value in values):
            markers.append(ColumnMarker.NUMBER.value)
        else:
            markers.append(ColumnMarker.TEXT.value)
    return markers


def find_header_signature_index(rows: Sequence[Sequence[str]], signature: Sequence[str]) -> Optional[int]:
    """
    Find the first row whose leading cells equal the signature, case-insensitively.

    Args:
        rows: Sanitized rows
        signature: Expected header cells in order

    Returns:
        Row index, or None if no row matches
    """
    expected = [normalize_header_value(entry) for entry in signature]
    expected = [entry for entry in expected if entry]
    if not expected:
        return None

    for index, row in enumerate(rows):
        if len(row) < len(expected):
            continue
        leading = [normalize_header_value(cell) for cell in row[:len(expected)]]
        if leading == expected:
            return index
    return None


def header_similarity(rows: Sequence[Sequence[str]], signature: Sequence[str]) -> float:
    """Best fuzzy similarity (0-100) between the signature and a leading row."""
    expected = " | ".join(normalize_header_value(entry) for entry in signature)
    best = 0.0
    checked = 0
    for row in rows:
        if is_row_empty(row):
            continue
        leading = " | ".join(normalize_header_value(cell) for cell in row[:len(signature)])
        best = max(best, fuzz.ratio(leading, expected))
        checked += 1
        if checked >= SIMILARITY_ROW_LIMIT:
            break
    return round(best, 1)


def _column_values(rows: Sequence[Sequence[str]], index: int) -> List[str]:
    values = [cell_at(row, index) for row in rows]
    return [value for value in values if value]


def evaluate_structure(mapping: BankMapping, rows: Sequence[Sequence[str]]) -> StructureMatch:
    """
    Score a headerless mapping against the shape of the first data rows.

    Partial score accrues even when a check fails; any failed check clears
    the match flag.
    """
    structure = mapping.structure
    expected_count = structure.column_count if structure else None
    expected_markers = list(structure.column_markers or []) if structure else []

    data_start_index = None
    for index, row in enumerate(rows):
        if is_row_empty(row):
            continue
        if expected_count is None or len(row) == expected_count:
            data_start_index = index
            break

    if data_start_index is None:
        data_start_index = next(
            (index for index, row in enumerate(rows) if not is_row_empty(row)), None
        )
        if data_start_index is None:
            return StructureMatch(False, 0, [IssueCode.NO_DATA_ROWS])

    sample = [row for row in rows[data_start_index:] if not is_row_empty(row)][:SAMPLE_ROW_LIMIT]
    if not sample:
        return StructureMatch(False, 0, [IssueCode.NO_DATA_ROWS])

    score = 0
    issues: List[IssueCode] = []
    matched = True
    actual_count = max(len(row) for row in sample)

    if expected_count is not None:
        if actual_count == expected_count:
            score += COLUMN_COUNT_SCORE
        else:
            matched = False
            issues.append(IssueCode.COLUMN_COUNT_MISMATCH)

    if expected_markers:
        actual_markers = compute_column_markers(sample, max(actual_count, len(expected_markers)))
        if actual_markers[:len(expected_markers)] == expected_markers:
            score += COLUMN_MARKER_SCORE
        else:
            matched = False
            issues.append(IssueCode.COLUMN_MARKERS_MISMATCH)
            logger.debug(
                f"{mapping.bank_name}: markers {actual_markers} != expected {expected_markers}"
            )

    date_index = find_first_placeholder_index(mapping.booking_date)
    if date_index is not None:
        values = _column_values(sample, date_index)
        if values:
            parse_format = mapping.booking_date_parse_format
            if parse_format:
                compatible = all(parse_date_with_format(value, parse_format) is not None for value in values)
            else:
                compatible = all(is_probably_date(value) for value in values)
            if compatible:
                score += DATE_COMPATIBILITY_SCORE
            else:
                matched = False
                issues.append(IssueCode.DATE_INCOMPATIBLE)

    amount_index = find_first_placeholder_index(mapping.booking_amount)
    if amount_index is not None:
        values = _column_values(sample, amount_index)
        if values:
            if all(is_probably_number(value) for value in values):
                score += AMOUNT_COMPATIBILITY_SCORE
            else:
                matched = False
                issues.append(IssueCode.AMOUNT_INCOMPATIBLE)

    return StructureMatch(matched, score, issues, data_start_index)


def evaluate_candidate(mapping: BankMapping, rows: Sequence[Sequence[str]]) -> DetectionCandidate:
    """
    Evaluate one mapping against sanitized rows.

    Args:
        mapping: Bank mapping to score
        rows: Sanitized row matrix

    Returns:
        DetectionCandidate with score, pass flag, row indices and issues
    """
    candidate = DetectionCandidate(mapping=mapping)

    signature = mapping.header_signature
    if signature:
        index = find_header_signature_index(rows, signature)
        if index is not None:
            candidate.matched_header_signature = True
            candidate.header_row_index = index
            candidate.data_start_index = index + 1
            candidate.score += HEADER_MATCH_SCORE + len(signature)
            candidate.header_similarity = 100.0
        else:
            candidate.issues.append(IssueCode.HEADER_SIGNATURE_MISMATCH)
            candidate.header_similarity = header_similarity(rows, signature)

    if mapping.without_header:
        structure = evaluate_structure(mapping, rows)
        candidate.matched_structure = structure.matched
        if structure.data_start_index is not None:
            candidate.data_start_index = structure.data_start_index
            if structure.matched and not candidate.matched_header_signature:
                candidate.header_row_index = structure.data_start_index
        candidate.score += structure.score
        candidate.issues.extend(structure.issues)

    candidate.passed = candidate.matched_header_signature or candidate.matched_structure
    logger.debug(
        f"Candidate {mapping.bank_name}: score={candidate.score} passed={candidate.passed} "
        f"issues={[issue.value for issue in candidate.issues]}"
    )
    return candidate


def rank_candidates(candidates: Iterable[DetectionCandidate]) -> List[DetectionCandidate]:
    """Sort by score descending, then bank name ascending."""
    return sorted(
        candidates,
        key=lambda c: (-c.score, c.bank_name.casefold(), c.bank_name),
    )


def _resolve_header_index(preferred: Optional[DetectionCandidate], first_non_empty: int) -> Tuple[int, bool]:
    if preferred is None:
        return first_non_empty, True

    if preferred.matched_header_signature and preferred.header_row_index is not None:
        return preferred.header_row_index, True

    if preferred.mapping.without_header:
        # headerless: the "header" is the first data row
        if preferred.data_start_index is not None:
            return preferred.data_start_index, False
        if preferred.header_row_index is not None:
            return preferred.header_row_index, False
        return first_non_empty, False

    if preferred.header_row_index is not None:
        return preferred.header_row_index, True
    return first_non_empty, True


class HeaderDetector:
    """Ranks a catalog of bank mappings against a CSV row matrix."""

    def __init__(self, mappings: Optional[Iterable[BankMapping]] = None):
        self.mappings = tuple(mappings or ())

    def evaluate(self, rows: Sequence[Sequence[str]]) -> List[DetectionCandidate]:
        """Evaluate and rank every mapping against already sanitized rows."""
        return rank_candidates(evaluate_candidate(mapping, rows) for mapping in self.mappings)

    def detect(self, rows: Sequence[Sequence[Optional[str]]]) -> HeaderDetectionResult:
        """
        Locate the header row (or the first data row of a headerless export).

        Never raises: unmatched or empty input yields a best-effort result with
        a warning, and the ranked candidates are always returned.

        Args:
            rows: Raw row matrix

        Returns:
            HeaderDetectionResult
        """
        sanitized = [sanitize_row(row) for row in rows]
        first_non_empty = next(
            (index for index, row in enumerate(sanitized) if not is_row_empty(row)), None
        )

        if first_non_empty is None:
            logger.warning("No non-empty rows found in input")
            return HeaderDetectionResult(
                skipped_rows=len(sanitized),
                warning=EMPTY_INPUT_WARNING,
            )

        candidates = self.evaluate(sanitized)
        preferred = next((c for c in candidates if c.passed), candidates[0] if candidates else None)

        header_index, has_header = _resolve_header_index(preferred, first_non_empty)
        if header_index < 0:
            header_index = first_non_empty

        warning = None
        if preferred is None or not preferred.passed:
            warning = UNKNOWN_HEADER_WARNING if has_header else MISSING_HEADER_WARNING
            logger.warning(f"No mapping matched; using row {header_index} as header")
        else:
            logger.info(
                f"Detected bank: {preferred.bank_name} "
                f"({'header' if has_header else 'headerless'}, row {header_index})"
            )

        return HeaderDetectionResult(
            header=sanitized[header_index],
            data_rows=[row for row in sanitized[header_index + 1:] if not is_row_empty(row)],
            candidates=candidates,
            has_header=has_header,
            skipped_rows=header_index,
            warning=warning,
        )


def detect_header(rows: Sequence[Sequence[Optional[str]]],
                  mappings: Optional[Iterable[BankMapping]] = None) -> HeaderDetectionResult:
    """
    Convenience function to detect the header of a row matrix.

    Args:
        rows: Raw row matrix
        mappings: Known bank mappings

    Returns:
        HeaderDetectionResult
    """
    detector = HeaderDetector(mappings)
    return detector.detect(rows)
