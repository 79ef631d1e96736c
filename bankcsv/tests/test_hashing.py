"""
Tests for transaction content hashing.
"""
import hashlib

from ..models.schema import UnifiedTx
from ..core.hashing import compute_transaction_hash, serialize_for_hash


def make_tx(**overrides):
    values = dict(
        bank_name="Comdirect",
        booking_date="31.01.2024",
        booking_date_raw="31.01.2024",
        booking_date_iso=None,
        booking_text="Miete",
        booking_type="",
        booking_amount="-800,00",
        booking_account="Girokonto",
    )
    values.update(overrides)
    return UnifiedTx(**values)


class TestTransactionHash:
    """Stable duplicate-detection keys."""

    def test_serialization_is_compact_and_ordered(self):
        expected = (
            '{"bank_name":"Comdirect","booking_date":"31.01.2024","booking_date_raw":"31.01.2024",'
            '"booking_date_iso":null,"booking_text":"Miete","booking_type":"","booking_amount":"-800,00"}'
        )
        assert serialize_for_hash(make_tx()) == expected

    def test_hash_is_sha256_of_serialization(self):
        tx = make_tx()
        expected = hashlib.sha256(serialize_for_hash(tx).encode("utf-8")).hexdigest()
        assert compute_transaction_hash(tx) == expected
        assert len(compute_transaction_hash(tx)) == 64

    def test_raw_date_falls_back_to_display_date(self):
        assert '"booking_date_raw":"31.01.2024"' in serialize_for_hash(make_tx(booking_date_raw=""))
        assert compute_transaction_hash(make_tx(booking_date_raw="")) == compute_transaction_hash(make_tx())

    def test_account_and_existing_hash_are_ignored(self):
        base = compute_transaction_hash(make_tx())
        assert compute_transaction_hash(make_tx(booking_account="Tagesgeld")) == base
        assert compute_transaction_hash(make_tx(booking_hash="abc")) == base

    def test_content_changes_hash(self):
        base = compute_transaction_hash(make_tx())
        assert compute_transaction_hash(make_tx(booking_amount="-800,01")) != base
        assert compute_transaction_hash(make_tx(booking_text="Miete Februar")) != base

    def test_non_ascii_is_kept(self):
        assert "Bäcker" in serialize_for_hash(make_tx(booking_text="Bäcker"))
