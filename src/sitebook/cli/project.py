"""Project management CLI commands.

This module provides CLI commands for creating, listing, and inspecting
projects and for moving them through the phase lifecycle.
"""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime
from typing import Annotated, Any, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sitebook.database.gateway import ProjectGateway, activity_to_dict, project_to_snapshot
from sitebook.database.queries.activity import list_project_activity
from sitebook.database.queries.project import create_project, get_project, list_projects
from sitebook.errors import UnknownPhaseError
from sitebook.orchestrator.phase_registry import PHASES, ProjectPhase, normalize_phase
from sitebook.orchestrator.state_machine import (
    InvalidTransitionError,
    get_available_transitions,
    require_valid_transition,
    validate_transition,
)
from sitebook.orchestrator.transition import PhaseTransitionOrchestrator

app = typer.Typer(help="Project management commands")
console = Console()

# Rich has no indigo or emerald
RICH_COLORS = {"indigo": "blue", "emerald": "green", "amber": "yellow", "gray": "dim"}


def _phase_markup(phase: ProjectPhase) -> str:
    info = PHASES[phase]
    color = RICH_COLORS.get(info.color, info.color)
    return f"[{color}]{info.label}[/{color}]"


def _parse_project_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Invalid project ID:[/red] {value}")
        raise typer.Exit(code=1) from None


def _load_snapshot(project_id: UUID) -> dict[str, Any]:
    from sitebook.main import get_app_context

    ctx = get_app_context()

    async def _get() -> dict[str, Any] | None:
        async with ctx.session_factory() as session:
            project = await get_project(session, project_id)
            return project_to_snapshot(project) if project is not None else None

    try:
        snapshot = asyncio.run(_get())
    except Exception as e:
        console.print(f"[red]Error loading project:[/red] {e}")
        raise typer.Exit(code=1)

    if snapshot is None:
        console.print(f"[red]Project not found:[/red] {project_id}")
        raise typer.Exit(code=1)
    return snapshot


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    client_name: Annotated[
        Optional[str], typer.Option("--client", help="Client name")
    ] = None,
    client_email: Annotated[
        Optional[str], typer.Option("--email", help="Client email")
    ] = None,
    client_phone: Annotated[
        Optional[str], typer.Option("--phone", help="Client phone")
    ] = None,
    address: Annotated[
        Optional[str], typer.Option("--address", "-a", help="Job site address")
    ] = None,
) -> None:
    """Create a new project in the intake phase."""
    from sitebook.main import get_app_context

    ctx = get_app_context()

    async def _create_project():
        async with ctx.session_factory() as session:
            async with session.begin():
                project = await create_project(
                    session=session,
                    name=name,
                    client_name=client_name,
                    client_email=client_email,
                    client_phone=client_phone,
                    address=address,
                )
                return project_to_snapshot(project)

    try:
        project = asyncio.run(_create_project())
    except Exception as e:
        console.print(f"[red]Error creating project:[/red] {e}")
        raise typer.Exit(code=1)

    panel = Panel(
        f"[green]Project created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {project['id']}\n"
        f"[bold]Name:[/bold] {project['name']}\n"
        f"[bold]Phase:[/bold] {_phase_markup(ProjectPhase(project['phase']))}",
        title="Project Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_command(
    phase: Annotated[
        Optional[str],
        typer.Option("--phase", "-p", help="Filter by phase (aliases accepted)"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List projects."""
    from sitebook.main import get_app_context

    ctx = get_app_context()

    phase_filter = None
    if phase is not None:
        try:
            phase_filter = normalize_phase(phase)
        except UnknownPhaseError:
            console.print(
                f"[red]Invalid phase:[/red] {phase}. "
                f"Valid values: {', '.join(p.value for p in ProjectPhase)}"
            )
            raise typer.Exit(code=1) from None

    async def _list_projects():
        async with ctx.session_factory() as session:
            projects = await list_projects(session, phase_filter=phase_filter)
            return [project_to_snapshot(p) for p in projects]

    try:
        projects = asyncio.run(_list_projects())
    except Exception as e:
        console.print(f"[red]Error listing projects:[/red] {e}")
        raise typer.Exit(code=1)

    if format == "json":
        console.print(json.dumps(projects, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Phase")
    table.add_column("Client")
    table.add_column("Contract", justify="right")

    for p in projects:
        contract = p["contract_value"]
        table.add_row(
            p["id"],
            p["name"],
            _phase_markup(ProjectPhase(p["phase"])),
            p["client_name"] or "",
            f"${contract:,.0f}" if contract else "",
        )

    console.print(table)


@app.command()
def show(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show one project."""
    snapshot = _load_snapshot(_parse_project_id(project_id))
    phase = ProjectPhase(snapshot["phase"])

    lines = [
        f"[bold]ID:[/bold] {snapshot['id']}",
        f"[bold]Phase:[/bold] {_phase_markup(phase)}  [dim]{PHASES[phase].description}[/dim]",
        f"[bold]Client:[/bold] {snapshot['client_name'] or '-'}",
        f"[bold]Address:[/bold] {snapshot['address'] or '-'}",
        f"[bold]Contract:[/bold] {snapshot['contract_value'] or '-'}",
        f"[bold]Progress:[/bold] {snapshot['progress']:g}%",
    ]
    for key in ("phase_changed_at", "contract_signed_at", "actual_start", "actual_completion"):
        if snapshot["intake_data"].get(key):
            lines.append(f"[bold]{key}:[/bold] {snapshot['intake_data'][key]}")

    console.print(Panel("\n".join(lines), title=snapshot["name"], border_style="cyan"))


@app.command()
def transitions(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """List the moves available from the project's current phase."""
    snapshot = _load_snapshot(_parse_project_id(project_id))
    options = get_available_transitions(snapshot["phase"])

    if not options:
        console.print("[yellow]No transitions available[/yellow]")
        return

    table = Table(title=f"Transitions from {PHASES[ProjectPhase(snapshot['phase'])].label}")
    table.add_column("To", style="bold")
    table.add_column("Action")
    table.add_column("Status")
    table.add_column("Notes")

    for option in options:
        validation = validate_transition(snapshot, option.from_phase, option.to_phase)
        if validation.blockers:
            status = "[red]blocked[/red]"
            notes = "; ".join(validation.blockers)
        elif validation.warnings:
            status = "[yellow]warnings[/yellow]"
            notes = "; ".join(validation.warnings)
        else:
            status = "[green]ready[/green]"
            notes = ""
        if option.requires_reason:
            notes = f"{notes}; reason required" if notes else "reason required"
        table.add_row(option.to_phase.value, option.action, status, notes)

    console.print(table)


@app.command()
def transition(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    to_phase: Annotated[str, typer.Argument(help="Target phase (aliases accepted)")],
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Notes for the activity log"),
    ] = None,
    on_date: Annotated[
        Optional[datetime],
        typer.Option("--date", "-d", formats=["%Y-%m-%d"], help="Date for gates that need one"),
    ] = None,
) -> None:
    """Move a project to another phase."""
    from sitebook.main import get_app_context

    ctx = get_app_context()
    snapshot = _load_snapshot(_parse_project_id(project_id))

    try:
        source, target = require_valid_transition(snapshot["phase"], to_phase, snapshot["id"])
    except (UnknownPhaseError, InvalidTransitionError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    validation = validate_transition(snapshot, source, target)
    gate = validation.gate
    if gate is not None and gate.requires_reason and not (notes or "").strip():
        console.print(f"[red]A reason is required to {gate.action.lower()}.[/red] Use --notes.")
        raise typer.Exit(code=1)

    for warning in validation.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    if not validation.can_proceed:
        console.print("[red]Transition blocked:[/red]")
        for blocker in validation.blockers:
            console.print(f"  - {blocker}")
        raise typer.Exit(code=1)

    gateway = ProjectGateway(
        ctx.session_factory,
        system_actor_name=ctx.config.phases.system_actor_name,
    )
    orchestrator = PhaseTransitionOrchestrator(
        snapshot,
        gateway,
        actor_name=ctx.config.phases.actor_name,
    )
    orchestrator.initiate_transition(target)
    transition_date: date | None = on_date.date() if on_date is not None else None

    outcome = asyncio.run(
        orchestrator.confirm_transition(
            from_phase=source, to_phase=target, notes=notes, date=transition_date
        )
    )

    if not outcome.success:
        console.print(f"[red]Error transitioning project:[/red] {outcome.error}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"[green]{_phase_markup(source)} → {_phase_markup(target)}[/green]",
            title=gate.action if gate else "Phase Changed",
            border_style="green",
        )
    )


@app.command()
def activity(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    limit: Annotated[int, typer.Option("--limit", "-l", help="Maximum entries")] = 20,
) -> None:
    """Show the project's activity log, newest first."""
    from sitebook.main import get_app_context

    ctx = get_app_context()
    project_uuid = _parse_project_id(project_id)

    async def _list():
        async with ctx.session_factory() as session:
            entries = await list_project_activity(session, project_uuid, limit=limit)
            return [activity_to_dict(entry) for entry in entries]

    try:
        entries = asyncio.run(_list())
    except Exception as e:
        console.print(f"[red]Error loading activity:[/red] {e}")
        raise typer.Exit(code=1)

    if not entries:
        console.print("[yellow]No activity recorded[/yellow]")
        return

    table = Table(title="Activity")
    table.add_column("When", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Actor")
    table.add_column("Details")
    for entry in entries:
        data = entry["event_data"]
        if entry["event_type"] == "phase.changed":
            details = f"{data.get('from_label')} → {data.get('to_label')}"
            if data.get("notes"):
                details += f" ({data['notes']})"
        else:
            details = ", ".join(f"{k}={v}" for k, v in data.items())
        table.add_row(entry["created_at"] or "", entry["event_type"], entry["actor_name"], details)

    console.print(table)
