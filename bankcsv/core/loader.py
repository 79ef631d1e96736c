"""
File loading at the package edge: CSV row matrices and mapping catalogs.
"""
import csv
import io
import json
from pathlib import Path
from typing import Any, List, Optional
import logging

import yaml
from pydantic import ValidationError

from .catalog import MappingCatalog
from .normalize import sanitize_row
from ..models.schema import BankMapping

logger = logging.getLogger(__name__)

LEGACY_ENCODINGS = ('cp1252', 'latin-1')
CANDIDATE_DELIMITERS = ';,\t|'
DEFAULT_DELIMITER = ';'
SNIFF_LINE_LIMIT = 10
MOJIBAKE_MARKERS = ('Ã', 'Â')
MOJIBAKE_THRESHOLD = 0.01
MAPPING_SUFFIXES = ('.yaml', '.yml', '.json')


def decode_content(data: bytes, encoding: Optional[str] = None) -> str:
    """
    Decode CSV bytes, preferring UTF-8 and falling back to legacy encodings.

    UTF-8 text with a high density of typical mojibake characters is
    re-decoded as a legacy encoding.

    Args:
        data: Raw file content
        encoding: Forced encoding, skips detection when given

    Returns:
        Decoded text without byte-order mark
    """
    if encoding:
        return data.decode(encoding).lstrip('\ufeff')

    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError:
        logger.debug("Content is not valid UTF-8, trying legacy encodings")
        return _decode_legacy(data)

    suspicious = sum(text.count(marker) for marker in MOJIBAKE_MARKERS)
    if suspicious and suspicious / max(len(text), 1) > MOJIBAKE_THRESHOLD:
        logger.debug(f"Found {suspicious} mojibake characters, trying legacy encodings")
        return _decode_legacy(data)
    return text


def _decode_legacy(data: bytes) -> str:
    for encoding in LEGACY_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Unsupported encoding for CSV file")


def guess_delimiter(text: str) -> str:
    """
    Pick the delimiter that splits the leading lines into the most consistent
    number of fields (at least two per line on average).
    """
    lines = [line for line in text.splitlines() if line.strip()][:SNIFF_LINE_LIMIT]
    best = None
    for delimiter in CANDIDATE_DELIMITERS:
        counts = [len(row) for row in csv.reader(lines, delimiter=delimiter)]
        if not counts:
            continue
        average = sum(counts) / len(counts)
        if average < 2:
            continue
        delta = sum(abs(count - counts[0]) for count in counts)
        key = (delta, -average)
        if best is None or key < best[0]:
            best = (key, delimiter)
    return best[1] if best else DEFAULT_DELIMITER


def parse_csv_text(text: str) -> List[List[str]]:
    """Split CSV text into trimmed rows, guessing the delimiter."""
    delimiter = guess_delimiter(text)
    logger.debug(f"Using CSV delimiter {delimiter!r}")

    reader = csv.reader(io.StringIO(text, newline=''), delimiter=delimiter)
    return [sanitize_row(row) for row in reader]


def read_csv_rows(path: Path, encoding: Optional[str] = None) -> List[List[str]]:
    """
    Read a CSV export into a row matrix of trimmed strings.

    Args:
        path: CSV file path
        encoding: Optional forced encoding

    Returns:
        List of rows
    """
    try:
        data = Path(path).read_bytes()
        rows = parse_csv_text(decode_content(data, encoding))
        logger.info(f"Loaded {len(rows)} rows from {path}")
        return rows
    except Exception as e:
        logger.error(f"Error reading CSV {path}: {e}")
        raise


def _load_document(path: Path) -> Any:
    text = path.read_text(encoding='utf-8')
    if path.suffix == '.json':
        return json.loads(text)
    return yaml.safe_load(text)


def load_mapping_file(path: Path) -> List[BankMapping]:
    """
    Load one mapping file holding a single mapping or a list of mappings.

    Raises:
        ValidationError: if an entry is not a valid mapping
    """
    document = _load_document(Path(path))
    if document is None:
        return []
    entries = document if isinstance(document, list) else [document]
    return [BankMapping.model_validate(entry) for entry in entries]


def load_mapping_catalog(directory: Path) -> MappingCatalog:
    """
    Load every mapping file in a directory into a catalog.

    Unreadable or invalid files are logged and skipped.

    Args:
        directory: Directory containing *.yaml, *.yml or *.json mappings

    Returns:
        MappingCatalog
    """
    directory = Path(directory)
    if not directory.exists():
        logger.warning(f"Mappings directory not found: {directory}")
        return MappingCatalog()

    mappings: List[BankMapping] = []
    for path in sorted(directory.iterdir()):
        if path.suffix not in MAPPING_SUFFIXES:
            continue
        try:
            loaded = load_mapping_file(path)
            mappings.extend(loaded)
            logger.debug(f"Loaded {len(loaded)} mapping(s) from {path.name}")
        except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
            logger.error(f"Error loading mapping {path}: {e}")
    return MappingCatalog(mappings)
