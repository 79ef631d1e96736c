"""
Tests for the command line interface and environment configuration.
"""
import json

import pytest
from typer.testing import CliRunner

from ..app import app
from ..config import PACKAGED_MAPPINGS_DIR, get_importer_config

runner = CliRunner()

COMDIRECT_CSV = (
    '"Umsätze Girokonto";"Zeitraum: 30 Tage";\n'
    '\n'
    '"Buchungstag";"Wertstellung (Valuta)";"Vorgang";"Buchungstext";"Umsatz in EUR";\n'
    '"05.01.2024";"05.01.2024";"Lastschrift";"Strom";"-45,00";\n'
    '"02.01.2024";"02.01.2024";"Kartenzahlung";"Supermarkt";"-1.210,50";\n'
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BANKCSV_MAPPINGS_DIR", "BANKCSV_DATE_DISPLAY_FORMAT",
                 "BANKCSV_AMOUNT_DISPLAY_FORMAT", "BANKCSV_CSV_ENCODING"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def comdirect_csv(tmp_path):
    path = tmp_path / "umsaetze.csv"
    path.write_bytes(COMDIRECT_CSV.encode("cp1252"))
    return path


class TestConfig:
    """Environment-driven importer configuration."""

    def test_defaults(self):
        config = get_importer_config()
        assert config.mappings_dir == PACKAGED_MAPPINGS_DIR
        assert config.csv_encoding is None
        assert config.display_settings().booking_date_display_format == "dd.MM.yyyy"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BANKCSV_MAPPINGS_DIR", str(tmp_path))
        monkeypatch.setenv("BANKCSV_DATE_DISPLAY_FORMAT", "yyyy-MM-dd")
        monkeypatch.setenv("BANKCSV_AMOUNT_DISPLAY_FORMAT", " ")
        monkeypatch.setenv("BANKCSV_CSV_ENCODING", "cp1252")

        config = get_importer_config()
        settings = config.display_settings()

        assert config.mappings_dir == tmp_path
        assert config.csv_encoding == "cp1252"
        assert settings.booking_date_display_format == "yyyy-MM-dd"
        assert settings.booking_amount_display_format == "#.##0,00"


class TestCli:
    """Commands of the bankcsv CLI."""

    def test_detect(self, comdirect_csv):
        result = runner.invoke(app, ["detect", str(comdirect_csv)])

        assert result.exit_code == 0
        assert "Detected bank: Comdirect" in result.stdout

    def test_detect_unknown_file(self, tmp_path):
        path = tmp_path / "unknown.csv"
        path.write_text("Datum;Betrag\n01.01.2024;1,00\n", encoding="utf-8")

        result = runner.invoke(app, ["detect", str(path)])

        assert result.exit_code == 1
        assert "No matching bank mapping" in result.stdout

    def test_missing_csv(self, tmp_path):
        result = runner.invoke(app, ["convert", str(tmp_path / "missing.csv")])

        assert result.exit_code == 1

    def test_convert(self, comdirect_csv, tmp_path):
        out = tmp_path / "out.json"

        result = runner.invoke(app, ["convert", str(comdirect_csv), "--out", str(out), "--account", "Giro"])

        assert result.exit_code == 0
        payload = json.loads(out.read_text(encoding="utf-8"))
        assert payload["bank_name"] == "Comdirect"
        assert payload["summary"]["booking_account"] == "Giro"
        assert payload["summary"]["first_booking_date"] == "02.01.2024"
        assert [tx["booking_text"] for tx in payload["transactions"]] == ["Strom", "Supermarkt"]
        assert payload["transactions"][1]["booking_amount"] == "-1.210,50"
        assert all(len(tx["booking_hash"]) == 64 for tx in payload["transactions"])

    def test_convert_with_display_formats(self, comdirect_csv, tmp_path):
        out = tmp_path / "out.json"

        result = runner.invoke(app, [
            "convert", str(comdirect_csv), "--out", str(out),
            "--date-format", "yyyy-MM-dd", "--amount-format", "#,##0.00",
        ])

        assert result.exit_code == 0
        transactions = json.loads(out.read_text(encoding="utf-8"))["transactions"]
        assert transactions[0]["booking_date"] == "2024-01-05"
        assert transactions[1]["booking_amount"] == "-1,210.50"

    def test_banks(self):
        result = runner.invoke(app, ["banks"])

        assert result.exit_code == 0
        assert "Comdirect (header)" in result.stdout
        assert "Sparkasse (ohne Kopfzeile) (headerless)" in result.stdout

    def test_banks_empty_directory(self, tmp_path):
        result = runner.invoke(app, ["banks", "--mappings", str(tmp_path)])

        assert result.exit_code == 0
        assert "No bank mappings found" in result.stdout

    def test_validate_packaged_mapping(self):
        result = runner.invoke(app, ["validate", str(PACKAGED_MAPPINGS_DIR / "comdirect.yaml")])

        assert result.exit_code == 0
        assert "Comdirect is valid" in result.stdout

    def test_validate_incomplete_mapping(self, tmp_path):
        path = tmp_path / "neu.yaml"
        path.write_text("bank_name: Neu\nbooking_date: [Datum]\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "missing" in result.stdout

    def test_validate_invalid_file(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("bank_name: [unclosed\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Validation failed" in result.stdout
