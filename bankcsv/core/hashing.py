"""
Stable content hashes for unified transactions.
"""
import hashlib
import json

from ..models.schema import UnifiedTx

HASHED_FIELDS = (
    'bank_name',
    'booking_date',
    'booking_date_raw',
    'booking_date_iso',
    'booking_text',
    'booking_type',
    'booking_amount',
)


def serialize_for_hash(tx: UnifiedTx) -> str:
    """Compact JSON of the hashed fields, in fixed order."""
    payload = {name: getattr(tx, name) for name in HASHED_FIELDS}
    payload['booking_date_raw'] = tx.booking_date_raw or tx.booking_date
    return json.dumps(payload, ensure_ascii=False, separators=(',', ':'))


def compute_transaction_hash(tx: UnifiedTx) -> str:
    """SHA-256 hex digest of serialize_for_hash(tx)."""
    return hashlib.sha256(serialize_for_hash(tx).encode('utf-8')).hexdigest()
