from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path

from .models.schema import DEFAULT_AMOUNT_DISPLAY_FORMAT, DEFAULT_DATE_DISPLAY_FORMAT, DisplaySettings

PACKAGED_MAPPINGS_DIR = Path(__file__).parent / "mappings"


@dataclass(frozen=True)
class ImporterConfig:
    mappings_dir: Path = PACKAGED_MAPPINGS_DIR
    date_display_format: str = DEFAULT_DATE_DISPLAY_FORMAT
    amount_display_format: str = DEFAULT_AMOUNT_DISPLAY_FORMAT
    csv_encoding: str | None = None

    def display_settings(self) -> DisplaySettings:
        return DisplaySettings(
            booking_date_display_format=self.date_display_format,
            booking_amount_display_format=self.amount_display_format,
        )


def get_importer_config() -> ImporterConfig:
    mappings_dir = os.getenv("BANKCSV_MAPPINGS_DIR")
    return ImporterConfig(
        mappings_dir=Path(mappings_dir) if mappings_dir else PACKAGED_MAPPINGS_DIR,
        date_display_format=os.getenv("BANKCSV_DATE_DISPLAY_FORMAT", DEFAULT_DATE_DISPLAY_FORMAT),
        amount_display_format=os.getenv("BANKCSV_AMOUNT_DISPLAY_FORMAT", DEFAULT_AMOUNT_DISPLAY_FORMAT),
        csv_encoding=os.getenv("BANKCSV_CSV_ENCODING") or None,
    )
