"""Tape-measure conversion commands."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from sitebook.calculators.fractions import parse_measurement, to_fraction_string

app = typer.Typer(help="Imperial measurement helpers")
console = Console()


def _precision(value: int | None) -> int:
    from sitebook.main import get_app_context

    if value is not None:
        return value
    return get_app_context().config.calculator.precision


@app.command()
def parse(
    value: Annotated[str, typer.Argument(help='Measurement such as 3\'4-1/2" or 36.5')],
) -> None:
    """Convert a measurement to decimal inches."""
    parsed = parse_measurement(value)
    if parsed.value is None:
        console.print("[yellow]Empty measurement[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"{parsed.value:g}", markup=False)
    if parsed.partial:
        console.print("[yellow]Part of the input could not be read and was counted as 0[/yellow]")


@app.command("format")
def format_command(
    value: Annotated[float, typer.Argument(help="Decimal inches")],
    precision: Annotated[
        Optional[int], typer.Option("--precision", "-p", help="Fraction denominator")
    ] = None,
    feet: Annotated[bool, typer.Option("--feet", help="Always show feet")] = False,
    auto_feet: Annotated[
        bool, typer.Option("--auto-feet/--no-auto-feet", help="Feet at 12 inches and over")
    ] = True,
) -> None:
    """Format decimal inches as feet, inches and fractions."""
    denominator = _precision(precision)
    if denominator < 1:
        console.print(f"[red]Invalid precision:[/red] {denominator}")
        raise typer.Exit(code=1)
    console.print(
        to_fraction_string(value, show_feet=feet, auto_feet=auto_feet, precision=denominator),
        markup=False,
    )
