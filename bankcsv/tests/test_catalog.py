"""
Tests for the mapping catalog and mapping model validation.
"""
import pytest
from pydantic import ValidationError

from ..models.schema import BankMapping, HeaderlessStructure
from ..core.catalog import MappingCatalog, merge_bank_mappings, validate_mapping


def mapping(bank_name, parse_format="dd.MM.yyyy"):
    return BankMapping(
        bank_name=bank_name,
        booking_date=["Datum"],
        booking_text=["Text"],
        booking_type=["Art"],
        booking_amount=["Betrag"],
        booking_date_parse_format=parse_format,
    )


class TestBankMappingModel:
    """Normalization applied when mappings are validated."""

    def test_empty_detection_is_dropped(self):
        model = BankMapping(bank_name="A", detection={"header_signature": ["", "  "]})
        assert model.detection is None
        assert model.header_signature == []
        assert model.structure is None

    def test_signature_is_trimmed(self):
        model = BankMapping(bank_name="A", detection={"header_signature": [" Datum ", "", "Betrag"]})
        assert model.header_signature == ["Datum", "Betrag"]

    def test_markers_are_lowercased(self):
        model = BankMapping(
            bank_name="A",
            without_header=True,
            detection={"without_header": {"column_count": 3, "column_markers": [" Date", "TEXT", ""]}},
        )
        assert model.structure.column_markers == ["date", "text"]
        assert model.structure.column_count == 3

    def test_empty_structure_is_dropped(self):
        model = BankMapping(bank_name="A", detection={
            "header_signature": ["Datum"],
            "without_header": {"column_markers": []},
        })
        assert model.structure is None
        assert model.header_signature == ["Datum"]

    def test_parse_format_is_stripped(self):
        assert BankMapping(bank_name="A", booking_date_parse_format=" dd.MM.yyyy ").booking_date_parse_format == "dd.MM.yyyy"
        assert BankMapping(bank_name="A", booking_date_parse_format=None).booking_date_parse_format == ""

    def test_negative_column_count_is_rejected(self):
        with pytest.raises(ValidationError):
            HeaderlessStructure(column_count=-1)


class TestMergeAndValidate:
    """Catalog merging and completeness checks."""

    def test_merge_prefers_overrides(self):
        merged = merge_bank_mappings(
            [mapping("DKB"), mapping("comdirect", "yyyy-MM-dd")],
            [mapping("Comdirect")],
        )
        assert [m.bank_name for m in merged] == ["Comdirect", "DKB"]
        assert merged[0].booking_date_parse_format == "dd.MM.yyyy"

    def test_merge_keeps_first_primary_entry(self):
        merged = merge_bank_mappings([mapping("DKB"), mapping("dkb", "yyyy-MM-dd")], [])
        assert len(merged) == 1
        assert merged[0].bank_name == "DKB"

    def test_merge_skips_blank_names(self):
        assert merge_bank_mappings([mapping("  ")], [mapping("")]) == []

    def test_validate_complete_mapping(self):
        assert validate_mapping(mapping("DKB")) == []

    def test_validate_reports_missing_fields(self):
        incomplete = BankMapping(bank_name="Neu", booking_date=["Datum"])
        assert validate_mapping(incomplete) == [
            "booking_text",
            "booking_type",
            "booking_amount",
            "booking_date_parse_format",
        ]

    @pytest.mark.parametrize("parse_format", ["dd.MM.yy", "MM/yyyy", "HH:mm", "Datum"])
    def test_validate_rejects_format_without_full_date(self, parse_format):
        assert validate_mapping(mapping("DKB", parse_format)) == ["booking_date_parse_format"]

    @pytest.mark.parametrize("parse_format", ["dd.MM.yyyy", "yyyy-MM-dd HH:mm:ss", "MM/dd/yyyy"])
    def test_validate_accepts_format_with_full_date(self, parse_format):
        assert validate_mapping(mapping("DKB", parse_format)) == []


class TestMappingCatalog:
    """Immutable catalog snapshot."""

    @pytest.fixture
    def catalog(self):
        return MappingCatalog([mapping("Sparkasse"), mapping("comdirect"), mapping("DKB")])

    def test_sorted_iteration(self, catalog):
        assert catalog.bank_names() == ["comdirect", "DKB", "Sparkasse"]
        assert len(catalog) == 3
        assert [m.bank_name for m in catalog] == catalog.bank_names()

    def test_get_is_case_insensitive(self, catalog):
        assert catalog.get("COMDIRECT").bank_name == "comdirect"
        assert catalog.get(" dkb ").bank_name == "DKB"
        assert catalog.get("Unbekannt") is None

    def test_with_overrides_returns_new_catalog(self, catalog):
        updated = catalog.with_overrides([mapping("DKB", "yyyy-MM-dd"), mapping("ING")])

        assert updated.get("DKB").booking_date_parse_format == "yyyy-MM-dd"
        assert len(updated) == 4
        assert catalog.get("DKB").booking_date_parse_format == "dd.MM.yyyy"
        assert len(catalog) == 3

    def test_repr(self, catalog):
        assert repr(catalog) == "MappingCatalog(['comdirect', 'DKB', 'Sparkasse'])"

    def test_empty_catalog(self):
        assert len(MappingCatalog()) == 0
        assert MappingCatalog().get("DKB") is None
