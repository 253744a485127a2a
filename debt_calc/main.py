"""Command‑line interface for the debt calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Every command reads a JSON debt configuration, validates it and
reports on it: the full snapshot, the upcoming schedule, or a what-if payment
compared against the minimum payment. Results can be printed to the terminal
or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import DebtConfig, ScheduleEntry
from .engine import DEFAULT_UPCOMING_MONTHS
from .errors import DebtCalcError
from .formatter import (
    comparison_to_dict,
    print_comparison,
    print_schedule,
    print_snapshot,
    snapshot_to_dict,
)
from .ledger import compare_payment, snapshot as build_snapshot
from .utils import parse_amount
from .validator import validate_config

logger = logging.getLogger(__name__)


def amount_option(value: str) -> Decimal:
    """Parse a CLI amount such as "3149.17" or "5k" into a Decimal."""
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def load_config(path: Path) -> DebtConfig:
    """Read and validate a JSON debt configuration file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc}")
    try:
        config = validate_config(raw)
    except DebtCalcError as exc:
        raise click.ClickException(f"Invalid debt config: {exc}")
    logger.info("Loaded debt config for %s from %s", config.property.label, path)
    return config


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule entries to a CSV file."""
    header = [
        "Due_Date",
        "Starting_Balance",
        "Interest_Charged",
        "Payment",
        "Interest_Portion",
        "Principal_Portion",
        "Ending_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.due_date.isoformat(),
                    f"{e.starting_balance:.2f}",
                    f"{e.interest_charged:.2f}",
                    f"{e.payment_amount:.2f}",
                    f"{e.interest_portion:.2f}",
                    f"{e.principal_portion:.2f}",
                    f"{e.ending_balance:.2f}",
                ]
            )


def _run_snapshot(config_path: str, as_of: Optional[str], months: int, payment: Optional[str]):
    config = load_config(Path(config_path))
    override = amount_option(payment) if payment else None
    try:
        return build_snapshot(config, as_of, upcoming_months=months, payment_override=override)
    except DebtCalcError as exc:
        raise click.ClickException(str(exc))


config_argument = click.argument("config_path", type=click.Path(exists=True, dir_okay=False))
as_of_option = click.option(
    "--as-of", "as_of", help="Report as of this date (YYYY-MM-DD, end of day) or ISO timestamp; defaults to now"
)
months_option = click.option(
    "--months", "-m", "months", type=click.IntRange(min=0), default=DEFAULT_UPCOMING_MONTHS,
    show_default=True, help="Number of upcoming due dates to schedule",
)
payment_option = click.option(
    "--payment", "payment", help="What-if monthly payment instead of the minimum (e.g. 5000 or 5k)"
)


@click.group()
@click.option(
    "--log-level", "log_level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING", show_default=True, help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """A command‑line calculator for a variable-rate private debt."""
    logging.basicConfig(level=getattr(logging, log_level.upper()),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@cli.command()
@config_argument
@as_of_option
@months_option
@payment_option
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def snapshot(config_path: str, as_of: Optional[str], months: int, payment: Optional[str],
             output: Optional[str]) -> None:
    """Show balances, arrears and the payoff projection."""
    snap = _run_snapshot(config_path, as_of, months, payment)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, snapshot_to_dict(snap))
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, snap.upcoming_schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Snapshot exported to {path}")
        return
    print_snapshot(snap)
    if snap.upcoming_schedule:
        print_schedule(snap.upcoming_schedule)


@cli.command()
@config_argument
@as_of_option
@months_option
@payment_option
@click.option("--output", "output", type=str, help="Output file path (.csv)")
def schedule(config_path: str, as_of: Optional[str], months: int, payment: Optional[str],
             output: Optional[str]) -> None:
    """Print only the upcoming payment schedule."""
    snap = _run_snapshot(config_path, as_of, months, payment)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".csv":
            raise click.BadParameter("Schedule export must use .csv extension")
        export_to_csv(path, snap.upcoming_schedule)
        click.echo(f"Schedule exported to {path}")
        return
    if not snap.upcoming_schedule:
        click.echo("Nothing left to pay.")
        return
    print_schedule(snap.upcoming_schedule)


@cli.command()
@config_argument
@as_of_option
@click.option("--payment", "payment", required=True, help="Monthly payment to compare with the minimum")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def compare(config_path: str, as_of: Optional[str], payment: str, output: Optional[str]) -> None:
    """Compare paying a custom amount each month with paying the minimum."""
    config = load_config(Path(config_path))
    amount = amount_option(payment)
    try:
        comparison = compare_payment(config, amount, as_of)
    except DebtCalcError as exc:
        raise click.ClickException(str(exc))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Comparison export must use .json extension")
        export_to_json(path, {"comparison": comparison_to_dict(comparison)})
        click.echo(f"Comparison exported to {path}")
        return
    print_comparison(comparison)


if __name__ == "__main__":
    cli()
