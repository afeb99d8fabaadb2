"""Framing calculator CLI commands.

Calculates a rough opening's cut list and manages the saved-openings list
kept in the local JSON store.
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from sitebook.calculators.framing import (
    build_cut_list,
    calculate_framing,
    render_cut_list_text,
    spec_from_inputs,
)
from sitebook.calculators.saved_openings import LocalStore, SavedOpeningsRepository

app = typer.Typer(help="Window and door framing calculator")
console = Console()


def _repository() -> SavedOpeningsRepository:
    from sitebook.main import get_app_context

    ctx = get_app_context()
    return SavedOpeningsRepository(LocalStore(ctx.config.calculator.store_path))


def _precision(value: int | None) -> int:
    from sitebook.main import get_app_context

    if value is not None:
        return value
    return get_app_context().config.calculator.precision


@app.command()
def calc(
    ro_width: Annotated[str, typer.Argument(help='Rough opening width, e.g. 36 or 3\'0"')],
    ro_height: Annotated[str, typer.Argument(help="Rough opening height")],
    opening_type: Annotated[
        str, typer.Option("--type", "-t", help="window, door, or pass-through")
    ] = "window",
    sill_height: Annotated[
        str, typer.Option("--sill", help="Floor to bottom of rough opening")
    ] = "36",
    wall_height: Annotated[
        str, typer.Option("--wall", "-w", help="Floor to top of plates")
    ] = "97 1/8",
    header_size: Annotated[str, typer.Option("--header", help="Header size")] = "2x10",
    header_type: Annotated[
        str, typer.Option("--header-type", help="built-up, solid, or lvl")
    ] = "built-up",
    top_plate: Annotated[
        str, typer.Option("--top-plate", help="single or double")
    ] = "double",
    stud_spacing: Annotated[int, typer.Option("--spacing", help="Stud spacing OC")] = 16,
    sill_style: Annotated[
        str, typer.Option("--sill-style", help="flat, double, or sloped")
    ] = "flat",
    sloped_sill_thickness: Annotated[
        str, typer.Option("--sloped-thickness", help="Sloped sill thickness")
    ] = "2",
    stud_material: Annotated[str, typer.Option("--studs", help="Stud size")] = "2x4",
    header_tight: Annotated[
        bool, typer.Option("--header-tight", help="Run header tight to top plate")
    ] = False,
    finish_floor: Annotated[
        str, typer.Option("--finish-floor", help="Finish floor thickness (doors)")
    ] = "0",
    tag: Annotated[str, typer.Option("--tag", help="Opening mark, e.g. W-101")] = "",
    precision: Annotated[
        Optional[int], typer.Option("--precision", help="Fraction denominator")
    ] = None,
    save: Annotated[bool, typer.Option("--save", help="Save the cut list")] = False,
    text: Annotated[
        bool, typer.Option("--text", help="Print the plain-text cut list")
    ] = False,
) -> None:
    """Calculate the cut list for a rough opening."""
    denominator = _precision(precision)
    try:
        spec, partial_fields = spec_from_inputs(
            opening_type=opening_type,
            ro_width=ro_width,
            ro_height=ro_height,
            sill_height=sill_height,
            wall_height=wall_height,
            header_size=header_size,
            header_type=header_type,
            top_plate_config=top_plate,
            stud_spacing=stud_spacing,
            sill_style=sill_style,
            sloped_sill_thickness=sloped_sill_thickness,
            stud_material=stud_material,
            header_tight=header_tight,
            finish_floor=finish_floor,
            opening_tag=tag,
        )
    except TypeError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        raise typer.Exit(code=1) from None

    for name in partial_fields:
        console.print(f"[yellow]Could not fully read {name}; unreadable parts counted as 0[/yellow]")

    result = calculate_framing(spec)
    if result is None:
        console.print("[red]Width, height and wall height are required.[/red]")
        raise typer.Exit(code=1)

    entries = build_cut_list(result, denominator)

    if text:
        console.print(render_cut_list_text(spec, entries, denominator), markup=False, end="")
    else:
        title = f"{spec.opening_tag} - " if spec.opening_tag else ""
        table = Table(title=f"{title}{spec.opening_type.upper()} Cut List")
        table.add_column("Member", style="bold")
        table.add_column("Length", justify="right")
        table.add_column("Qty", justify="right")
        table.add_column("Material")
        table.add_column("Note", style="dim")
        for entry in entries:
            length = f"[cyan]{entry.length}[/cyan]" if entry.highlight else entry.length
            table.add_row(entry.name, length, str(entry.qty), entry.material, entry.note or "")
        console.print(table)

    for warning in result.warnings:
        color = "yellow" if warning.type == "warning" else "blue"
        console.print(f"[{color}]{warning.type.title()}:[/{color}] {warning.message}")

    if save:
        saved = _repository().append(spec, entries, denominator)
        console.print(f"[green]Saved as {saved.tag}[/green]")


@app.command()
def saved() -> None:
    """List saved openings."""
    openings = _repository().list()
    if not openings:
        console.print("[yellow]No saved openings[/yellow]")
        return

    table = Table(title="Saved Openings")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Tag", style="bold")
    table.add_column("Type")
    table.add_column("RO")
    table.add_column("Members")
    for index, opening in enumerate(openings):
        members = ", ".join(
            f"{item.get('qty')}x {item.get('name')} @ {item.get('length')}" for item in opening.items
        )
        table.add_row(
            str(index),
            opening.tag,
            opening.type,
            f"{opening.roWidth} × {opening.roHeight}",
            members,
        )
    console.print(table)


@app.command()
def remove(
    index: Annotated[int, typer.Argument(help="Position shown by 'saved'")],
) -> None:
    """Remove one saved opening."""
    try:
        removed = _repository().remove(index)
    except IndexError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None
    console.print(f"[green]Removed {removed.tag}[/green]")


@app.command()
def clear() -> None:
    """Remove every saved opening."""
    count = _repository().clear()
    console.print(f"[green]Cleared {count} saved opening(s)[/green]")
