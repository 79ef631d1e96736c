#!/usr/bin/env python3
"""
CLI interface for the bank CSV importer.
"""
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from .config import get_importer_config
from .core.catalog import validate_mapping
from .core.detectors import HeaderDetector
from .core.display import format_transactions_for_display
from .core.loader import load_mapping_catalog, load_mapping_file, read_csv_rows
from .core.runner import StatementImporter
from .tools.diagnostics import print_detection_report

app = typer.Typer(help="Bank statement CSV importer")
console = Console()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


def _mappings_dir(mappings: Optional[Path]) -> Path:
    return mappings or get_importer_config().mappings_dir


@app.command()
def detect(
    csv_path: Path = typer.Argument(..., help="Path to CSV file"),
    mappings: Optional[Path] = typer.Option(None, "--mappings", "-m", help="Directory of bank mappings"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Detect which bank mapping matches a CSV export."""
    _configure_logging(verbose)
    if not csv_path.exists():
        console.print(f"[red]Error: CSV file not found: {csv_path}[/red]")
        raise typer.Exit(1)

    try:
        config = get_importer_config()
        rows = read_csv_rows(csv_path, config.csv_encoding)
        catalog = load_mapping_catalog(_mappings_dir(mappings))
        result = HeaderDetector(catalog).detect(rows)
    except Exception as e:
        console.print(f"[red]Error detecting mapping: {e}[/red]")
        raise typer.Exit(1)

    print_detection_report(result, console)
    if result.detected_mapping is None:
        raise typer.Exit(1)


@app.command()
def convert(
    csv_path: Path = typer.Argument(..., help="Path to CSV file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    account: str = typer.Option("", "--account", "-a", help="Booking account label"),
    bank: Optional[str] = typer.Option(None, "--bank", "-b", help="Bank mapping to use"),
    mappings: Optional[Path] = typer.Option(None, "--mappings", "-m", help="Directory of bank mappings"),
    date_format: Optional[str] = typer.Option(None, "--date-format", help="Date display format"),
    amount_format: Optional[str] = typer.Option(None, "--amount-format", help="Format amounts with this pattern"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Convert a CSV export into unified transactions (JSON)."""
    _configure_logging(verbose)
    if not csv_path.exists():
        console.print(f"[red]Error: CSV file not found: {csv_path}[/red]")
        raise typer.Exit(1)

    try:
        config = get_importer_config()
        if date_format:
            config = replace(config, date_display_format=date_format)
        if amount_format:
            config = replace(config, amount_display_format=amount_format)
        settings = config.display_settings()
        rows = read_csv_rows(csv_path, config.csv_encoding)
        catalog = load_mapping_catalog(_mappings_dir(mappings))
        result = StatementImporter(catalog, settings).import_rows(rows, account, bank)
    except Exception as e:
        console.print(f"[red]Error converting CSV: {e}[/red]")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]", highlight=False)

    transactions = result.transactions
    if amount_format:
        transactions = format_transactions_for_display(transactions, settings)

    payload = {
        "bank_name": result.summary.bank_name,
        "summary": result.summary.model_dump(),
        "transactions": [tx.model_dump() for tx in transactions],
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]✓ Converted {len(transactions)} transactions to: {output}[/green]")
    else:
        typer.echo(text)


@app.command()
def banks(
    mappings: Optional[Path] = typer.Option(None, "--mappings", "-m", help="Directory of bank mappings")
):
    """List the known bank mappings."""
    catalog = load_mapping_catalog(_mappings_dir(mappings))
    if not len(catalog):
        console.print("[yellow]No bank mappings found[/yellow]")
        return
    for mapping in catalog:
        kind = "headerless" if mapping.without_header else "header"
        typer.echo(f"{mapping.bank_name} ({kind})")


@app.command()
def validate(
    mapping_path: Path = typer.Argument(..., help="Path to mapping YAML/JSON file")
):
    """Validate a bank mapping file."""
    try:
        loaded = load_mapping_file(mapping_path)
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Validation failed: {e}[/red]")
        raise typer.Exit(1)

    incomplete = False
    for mapping in loaded:
        missing = validate_mapping(mapping)
        if missing:
            incomplete = True
            console.print(f"[red]{mapping.bank_name}: missing {', '.join(missing)}[/red]")
        else:
            console.print(f"[green]✓ {mapping.bank_name} is valid[/green]")
    if incomplete or not loaded:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
