"""
Diagnostic report of mapping detection for troubleshooting unknown exports.
"""
from typing import Optional
import logging

from rich.console import Console
from rich.table import Table

from ..models.schema import HeaderDetectionResult

logger = logging.getLogger(__name__)


def build_candidate_table(result: HeaderDetectionResult) -> Table:
    """
    Build a table of ranked candidates with their scores and issues.

    Args:
        result: Detection result

    Returns:
        rich Table
    """
    table = Table(title="Mapping candidates")
    table.add_column("#", justify="right")
    table.add_column("Bank")
    table.add_column("Score", justify="right")
    table.add_column("Passed")
    table.add_column("Header row", justify="right")
    table.add_column("Data start", justify="right")
    table.add_column("Similarity", justify="right")
    table.add_column("Issues")

    for rank, candidate in enumerate(result.candidates, 1):
        similarity = candidate.header_similarity
        table.add_row(
            str(rank),
            candidate.bank_name,
            str(candidate.score),
            "[green]yes[/green]" if candidate.passed else "[red]no[/red]",
            _index(candidate.header_row_index),
            _index(candidate.data_start_index),
            "-" if similarity is None else f"{similarity:.1f}",
            ", ".join(issue.value for issue in candidate.issues) or "-",
        )
    return table


def _index(value: Optional[int]) -> str:
    return "-" if value is None else str(value)


def print_detection_report(result: HeaderDetectionResult, console: Optional[Console] = None) -> None:
    """Print the resolved header, row counts, warning and candidate table."""
    console = console or Console()
    if result.warning:
        console.print(f"[yellow]Warning: {result.warning}[/yellow]")

    detected = result.detected_mapping
    if detected is not None:
        console.print(f"[green]Detected bank: {detected.bank_name}[/green]")
    else:
        console.print("[red]No matching bank mapping[/red]")

    label = "Header" if result.has_header else "First data row"
    console.print(f"{label}: {result.header}")
    console.print(f"Skipped rows: {result.skipped_rows}, data rows: {len(result.data_rows)}")

    if result.candidates:
        console.print(build_candidate_table(result))
    logger.debug(f"Printed report for {len(result.candidates)} candidates")
