"""Main CLI for Project Manager."""

import asyncio
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .context import AppContext
from .errors import TicketError
from .output import format_response, paginate, render_cli
from .output.render import (
    stats_table,
    stats_text,
    ticket_compact_text,
    ticket_detail_table,
    ticket_list_table,
    ticket_list_text,
    ticket_text,
)
from .pm_config import (
    RC_FILE,
    get_user_config_path,
    load_config,
    set_config_value,
    validate_config,
)
from .services import format_stats, format_ticket, format_ticket_summary

app = typer.Typer(
    name="pm",
    help="Project Manager - local-first ticket management for AI-assisted development",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

FORMAT_HELP = "Output format (table|json|text)"


@app.callback()
def main(
    ctx: typer.Context,
    storage: Optional[str] = typer.Option(None, "--storage", help="Tickets file to use (overrides PM_STORAGE_PATH)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
):
    """Manage local tickets stored in a JSON file."""
    config = load_config()
    if verbose:
        config.log_level = "DEBUG"
    ctx.obj = AppContext.create(config=config, storage_path=storage)


def _app(ctx: typer.Context) -> AppContext:
    return ctx.obj


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a service coroutine, turning ticket errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except TicketError as e:
        err_console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)


def _emit(
    ctx: typer.Context,
    payload: Any,
    output_format: Optional[str],
    text_renderer: Optional[Callable[[Any], str]] = None,
    table_renderer: Optional[Callable[[Any], Any]] = None,
) -> None:
    output_format = output_format or _app(ctx).config.default_output_format
    response = format_response(payload, output_format, text_renderer)
    rendered = render_cli(response, table_renderer)
    if isinstance(rendered, str):
        console.print(rendered, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(rendered)


def _emit_ticket(ctx: typer.Context, ticket, output_format: Optional[str]) -> None:
    _emit(ctx, {"ticket": format_ticket(ticket)}, output_format, ticket_text, ticket_detail_table)


# ============================================================================
# Ticket Commands
# ============================================================================


@app.command("create")
def create_ticket(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Ticket title"),
    description: str = typer.Option(..., "--description", "-d", help="Ticket description (or @file to read it from a file)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="high|medium|low"),
    ticket_type: Optional[str] = typer.Option(None, "--type", "-t", help="feature|bug|task"),
    privacy: Optional[str] = typer.Option(None, "--privacy", help="local-only|shareable|public"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Create a new ticket.

    Missing priority, type and privacy come from the config defaults.

    \b
    Examples:
        pm create "Fix login bug" -d "Users cannot login with email" -p high -t bug
        pm create "Write docs" -d @notes.md
    """
    context = _app(ctx)
    config = context.config

    # Support @filename syntax
    if description.startswith("@"):
        filepath = Path(description[1:])
        if not filepath.exists():
            err_console.print(f"[red]Error:[/red] File not found: {escape(str(filepath))}")
            raise typer.Exit(1)
        description = filepath.read_text(encoding="utf-8")

    ticket = _run(
        context.service.create_ticket(
            title=title,
            description=description,
            priority=priority or config.default_priority,
            type=ticket_type or config.default_type,
            privacy=privacy or config.default_privacy,
        )
    )
    _emit_ticket(ctx, ticket, output_format)


@app.command("list")
def list_tickets(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Filter by priority"),
    ticket_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by type"),
    privacy: Optional[str] = typer.Option(None, "--privacy", help="Filter by privacy"),
    limit: int = typer.Option(50, "--limit", help="Maximum tickets to show"),
    offset: int = typer.Option(0, "--offset", help="Skip first N tickets for pagination"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """List tickets, optionally filtered by status, priority, type or privacy."""
    context = _app(ctx)
    criteria = {"status": status, "priority": priority, "type": ticket_type, "privacy": privacy}
    tickets = _run(context.service.list_tickets(criteria))
    _emit_ticket_list(ctx, tickets, limit, offset, output_format)


@app.command("search")
def search_tickets(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for (case-insensitive)"),
    title_only: bool = typer.Option(False, "--title-only", help="Only match against titles"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Filter by priority"),
    ticket_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by type"),
    limit: int = typer.Option(50, "--limit", help="Maximum tickets to show"),
    offset: int = typer.Option(0, "--offset", help="Skip first N tickets for pagination"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Search ticket titles and descriptions."""
    context = _app(ctx)
    tickets = _run(
        context.service.search_tickets(
            query=query,
            status=status,
            priority=priority,
            type=ticket_type,
            title_only=title_only,
        )
    )
    _emit_ticket_list(ctx, tickets, limit, offset, output_format)


def _emit_ticket_list(ctx: typer.Context, tickets, limit: int, offset: int, output_format: Optional[str]) -> None:
    max_title = _app(ctx).config.max_title_length
    summaries = [format_ticket_summary(t, max_title) for t in tickets]
    page, pagination = paginate(summaries, limit, offset)
    _emit(ctx, {"tickets": page, "pagination": pagination}, output_format, ticket_list_text, ticket_list_table)


@app.command("show")
def show_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Show full ticket details."""
    ticket = _run(_app(ctx).service.get_ticket(ticket_id))
    _emit_ticket(ctx, ticket, output_format)


@app.command("update")
def update_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="New status"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="New priority"),
    ticket_type: Optional[str] = typer.Option(None, "--type", "-t", help="New type"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Update several fields at once.

    Nothing is saved unless every change is valid.

    \b
    Examples:
        pm update 0190a1b2c3d4e5f6a7b8c9d0 --status in_progress --priority high
        pm update 0190a1b2c3d4e5f6a7b8c9d0 --title "Fix login for SSO users"
    """
    if not any(value is not None for value in (title, description, status, priority, ticket_type)):
        err_console.print("[yellow]No updates specified.[/yellow]")
        err_console.print("Use --title, --description, --status, --priority or --type")
        raise typer.Exit(1)

    ticket = _run(
        _app(ctx).service.update_ticket(
            ticket_id,
            title=title,
            description=description,
            status=status,
            priority=priority,
            type=ticket_type,
        )
    )
    _emit_ticket(ctx, ticket, output_format)


@app.command("update-title")
def update_title(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    title: str = typer.Argument(..., help="New title"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Change a ticket's title."""
    ticket = _run(_app(ctx).service.update_ticket_title(ticket_id, title))
    _emit_ticket(ctx, ticket, output_format)


@app.command("update-description")
def update_description(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    description: str = typer.Argument(..., help="New description"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Change a ticket's description."""
    ticket = _run(_app(ctx).service.update_ticket_description(ticket_id, description))
    _emit_ticket(ctx, ticket, output_format)


@app.command("status")
def change_status(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    status: str = typer.Argument(..., help="pending|in_progress|completed|archived"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Move a ticket to a new status.

    Allowed: pending -> in_progress|archived, in_progress -> completed|archived.
    """
    ticket = _run(_app(ctx).service.update_ticket_status(ticket_id, status))
    _emit_ticket(ctx, ticket, output_format)


@app.command("priority")
def change_priority(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    priority: str = typer.Argument(..., help="high|medium|low"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Change a ticket's priority."""
    ticket = _run(_app(ctx).service.update_ticket_priority(ticket_id, priority))
    _emit_ticket(ctx, ticket, output_format)


@app.command("start")
def start_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Start work on a pending ticket."""
    ticket = _run(_app(ctx).service.start_ticket(ticket_id))
    _emit_ticket(ctx, ticket, output_format)


@app.command("complete")
def complete_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Mark an in-progress ticket as completed."""
    ticket = _run(_app(ctx).service.complete_ticket(ticket_id))
    _emit_ticket(ctx, ticket, output_format)


@app.command("archive")
def archive_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Archive a pending or in-progress ticket."""
    ticket = _run(_app(ctx).service.archive_ticket(ticket_id))
    _emit_ticket(ctx, ticket, output_format)


@app.command("delete")
def delete_ticket(
    ctx: typer.Context,
    ticket_id: str = typer.Argument(..., help="Ticket ID"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Delete a ticket permanently."""
    context = _app(ctx)
    ticket = _run(context.service.get_ticket(ticket_id))

    if context.config.confirm_deletion and not yes:
        if not typer.confirm(f"Delete ticket {ticket.id} ({ticket.title.to_display()})?"):
            raise typer.Exit(0)

    _run(context.service.delete_ticket(ticket_id))
    payload = {
        "success": True,
        "deleted_ticket_id": ticket.id.value,
        "deleted_title": ticket.title.value,
    }
    _emit(ctx, payload, output_format, lambda p: f"Deleted {p['deleted_ticket_id']}: {p['deleted_title']}")


@app.command("stats")
def show_stats(
    ctx: typer.Context,
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help=FORMAT_HELP),
):
    """Show ticket counts by status, priority and type."""
    stats = _run(_app(ctx).service.get_stats())
    _emit(ctx, {"stats": format_stats(stats)}, output_format, stats_text, stats_table)


# ============================================================================
# Quick Commands
# ============================================================================

quick_app = typer.Typer(help="Shortcuts for everyday ticket work")
app.add_typer(quick_app, name="quick")

PRIORITY_SHORTCUTS = {"h": "high", "m": "medium", "l": "low"}
TYPE_SHORTCUTS = {"f": "feature", "b": "bug", "t": "task"}


def _quick_list(
    ctx: typer.Context,
    status: Optional[str],
    compact: bool,
    heading: str,
    empty_message: str,
) -> None:
    context = _app(ctx)
    tickets = _run(context.service.list_tickets({"status": status}))
    if not tickets:
        console.print(empty_message)
        return

    summaries = [format_ticket_summary(t, context.config.max_title_length) for t in tickets]
    payload = {"tickets": summaries, "title": heading}
    if compact:
        console.print(ticket_compact_text(payload), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(ticket_list_table(payload))


@quick_app.command("todo")
def quick_todo(
    ctx: typer.Context,
    compact: bool = typer.Option(False, "--compact", "-c", help="One line per ticket"),
):
    """List pending tickets."""
    _quick_list(ctx, "pending", compact, "Pending Tickets", "No pending tickets found.")


@quick_app.command("wip")
def quick_wip(
    ctx: typer.Context,
    compact: bool = typer.Option(False, "--compact", "-c", help="One line per ticket"),
):
    """List tickets in progress."""
    _quick_list(ctx, "in_progress", compact, "Work-in-Progress Tickets", "No work-in-progress tickets found.")


@quick_app.command("all")
def quick_all(
    ctx: typer.Context,
    compact: bool = typer.Option(False, "--compact", "-c", help="One line per ticket"),
):
    """List every ticket."""
    _quick_list(ctx, None, compact, "Tickets", "No tickets found.")


@quick_app.command("new")
def quick_new(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Ticket title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Ticket description (defaults to the title)"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="h|m|l or high|medium|low"),
    ticket_type: Optional[str] = typer.Option(None, "--type", "-t", help="f|b|t or feature|bug|task"),
):
    """Create a ticket with single-letter priority and type.

    \b
    Examples:
        pm quick new "Fix login bug"
        pm quick new "Add dashboard" -d "Create user dashboard" -p h -t f
    """
    context = _app(ctx)
    config = context.config
    priority = priority or config.default_priority
    ticket_type = ticket_type or config.default_type

    ticket = _run(
        context.service.create_ticket(
            title=title,
            description=description if description is not None else title,
            priority=PRIORITY_SHORTCUTS.get(priority, priority),
            type=TYPE_SHORTCUTS.get(ticket_type, ticket_type),
            privacy=config.default_privacy,
        )
    )
    console.print(f"Ticket {ticket.id} created successfully.", markup=False, highlight=False)


# ============================================================================
# Config Commands
# ============================================================================

config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    output_format: str = typer.Option("json", "--format", "-f", help="Output format (json|text)"),
):
    """Show the resolved configuration and tickets file."""
    context = _app(ctx)
    payload = {
        "config": context.config.to_dict(),
        "storage_path": str(context.storage_path),
        "problems": validate_config(context.config),
    }
    _emit(ctx, payload, output_format)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key (e.g. defaultPriority)"),
    value: str = typer.Argument(..., help="New value"),
    global_: bool = typer.Option(False, "--global", "-g", help="Write the user config instead of ./.pmrc.json"),
):
    """Set a config value in ./.pmrc.json (or the user config with --global)."""
    target = get_user_config_path() if global_ else Path.cwd() / RC_FILE
    try:
        path = set_config_value(key, value, target)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Set {escape(key)} in {escape(str(path))}")


# ============================================================================
# MCP Server
# ============================================================================


@app.command("mcp")
def run_mcp():
    """Run the MCP server over stdio."""
    from .mcp_server import main as mcp_main

    mcp_main()


if __name__ == "__main__":
    app()
