"""MCP Server for Project Manager - local ticket management.

This MCP server exposes the local ticket store to AI assistants so they can
create, track and finish work items while they code.

The application context (config, repository, service) is built once in the
server lifespan and shared by every tool call.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import Context, FastMCP

from .context import AppContext
from .errors import TicketError, ValidationError
from .output import format_response, paginate
from .output.render import stats_text, ticket_list_text, ticket_text
from .pm_config import (
    RC_FILE,
    get_user_config_path,
    load_config,
    load_config_file,
    set_config_value,
    validate_config,
)
from .services import TicketService, format_error, format_stats, format_ticket, format_ticket_summary


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Build the application context for the lifetime of the server."""
    yield AppContext.create(log_to_file=True)


mcp = FastMCP(
    "project-manager",
    instructions="""Project Manager - local-first ticket tracking.

Tickets live in a JSON file on this machine. Each ticket has a title,
description, status, priority, type and privacy level.

## Status lifecycle
pending -> in_progress -> completed
pending or in_progress -> archived
completed and archived tickets are final.

## Workflow
1. create_ticket for each piece of work you plan
2. start_ticket when you begin, complete_ticket when done
3. list_tickets / search_tickets to find work; get_ticket_by_id for details

Errors come back as {"error": CODE, "message": ...} inside the response
content (codes: VALIDATION_ERROR, TICKET_NOT_FOUND, INVALID_TRANSITION,
STORAGE_ERROR).
""",
    lifespan=app_lifespan,
)


def _app(ctx: Context) -> AppContext:
    return ctx.request_context.lifespan_context


def _service(ctx: Context) -> TicketService:
    return _app(ctx).service


def _ticket_response(ticket, format: str) -> dict:
    return format_response({"ticket": format_ticket(ticket)}, format, ticket_text)


def _error_response(error: TicketError, format: str) -> dict:
    return format_response(format_error(error), format, lambda e: f"Error [{e['error']}]: {e['message']}")


# ============================================================================
# Ticket Tools
# ============================================================================


@mcp.tool()
async def create_ticket(
    ctx: Context,
    title: str,
    description: str,
    priority: Optional[str] = None,
    type: Optional[str] = None,
    privacy: Optional[str] = None,
    format: str = "json",
) -> dict:
    """Create a new ticket in pending status.

    Args:
        title: Short summary (max 200 characters)
        description: Full description (max 2000 characters)
        priority: high, medium or low (defaults to the configured default)
        type: feature, bug or task (defaults to the configured default)
        privacy: local-only, shareable or public (defaults to the configured default)

    Returns the created ticket with its generated id.
    """
    config = _app(ctx).config
    try:
        ticket = await _service(ctx).create_ticket(
            title=title,
            description=description,
            priority=priority or config.default_priority,
            type=type or config.default_type,
            privacy=privacy or config.default_privacy,
        )
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def get_ticket_by_id(ctx: Context, ticket_id: str, format: str = "json") -> dict:
    """Get full ticket details including description.

    Args:
        ticket_id: Ticket id as returned by create_ticket or list_tickets
    """
    try:
        ticket = await _service(ctx).get_ticket(ticket_id)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def list_tickets(
    ctx: Context,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    type: Optional[str] = None,
    privacy: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    format: str = "json",
) -> dict:
    """List tickets as compact summaries. No descriptions included.

    Args:
        status: Filter by status (pending, in_progress, completed, archived)
        priority: Filter by priority (high, medium, low)
        type: Filter by type (feature, bug, task)
        privacy: Filter by privacy (local-only, shareable, public)
        limit: Maximum tickets to return (default 20, max 100)
        offset: Skip first N tickets for pagination (default 0)

    Returns ticket summaries with pagination info.
    """
    criteria = {"status": status, "priority": priority, "type": type, "privacy": privacy}
    try:
        tickets = await _service(ctx).list_tickets(criteria)
    except TicketError as e:
        return _error_response(e, format)
    return _summary_page(ctx, tickets, limit, offset, format)


@mcp.tool()
async def search_tickets(
    ctx: Context,
    query: str,
    title_only: bool = False,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    type: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    format: str = "json",
) -> dict:
    """Search tickets by text (case-insensitive).

    Args:
        query: Text to find in titles and descriptions
        title_only: Only match against titles
        status: Filter by status
        priority: Filter by priority
        type: Filter by type
        limit: Maximum tickets to return (default 20, max 100)
        offset: Skip first N tickets for pagination (default 0)
    """
    try:
        tickets = await _service(ctx).search_tickets(
            query=query,
            status=status,
            priority=priority,
            type=type,
            title_only=title_only,
        )
    except TicketError as e:
        return _error_response(e, format)
    return _summary_page(ctx, tickets, limit, offset, format)


def _summary_page(ctx: Context, tickets, limit: int, offset: int, format: str) -> dict:
    max_title = _app(ctx).config.max_title_length
    summaries = [format_ticket_summary(t, max_title) for t in tickets]
    page, pagination = paginate(summaries, limit, offset)
    return format_response({"tickets": page, "pagination": pagination}, format, ticket_list_text)


@mcp.tool()
async def update_ticket_status(ctx: Context, ticket_id: str, status: str, format: str = "json") -> dict:
    """Move a ticket to a new status.

    Allowed transitions: pending -> in_progress or archived,
    in_progress -> completed or archived. Anything else returns
    INVALID_TRANSITION.

    Args:
        ticket_id: Ticket to update
        status: pending, in_progress, completed or archived
    """
    try:
        ticket = await _service(ctx).update_ticket_status(ticket_id, status)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def update_ticket_priority(ctx: Context, ticket_id: str, priority: str, format: str = "json") -> dict:
    """Change a ticket's priority.

    Args:
        ticket_id: Ticket to update
        priority: high, medium or low
    """
    try:
        ticket = await _service(ctx).update_ticket_priority(ticket_id, priority)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def update_ticket_content(
    ctx: Context,
    ticket_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    format: str = "json",
) -> dict:
    """Update a ticket's title and/or description.

    Args:
        ticket_id: Ticket to update
        title: New title (optional)
        description: New description (optional)

    At least one of title or description is required.
    """
    try:
        ticket = await _service(ctx).update_ticket_content(ticket_id, title=title, description=description)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def start_ticket(ctx: Context, ticket_id: str, format: str = "json") -> dict:
    """Start work on a pending ticket (pending -> in_progress)."""
    try:
        ticket = await _service(ctx).start_ticket(ticket_id)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def complete_ticket(ctx: Context, ticket_id: str, format: str = "json") -> dict:
    """Mark an in-progress ticket as completed."""
    try:
        ticket = await _service(ctx).complete_ticket(ticket_id)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def archive_ticket(ctx: Context, ticket_id: str, format: str = "json") -> dict:
    """Archive a pending or in-progress ticket."""
    try:
        ticket = await _service(ctx).archive_ticket(ticket_id)
    except TicketError as e:
        return _error_response(e, format)
    return _ticket_response(ticket, format)


@mcp.tool()
async def delete_ticket(ctx: Context, ticket_id: str, format: str = "json") -> dict:
    """Delete a ticket permanently.

    Args:
        ticket_id: Ticket to delete

    Returns the deleted ticket id and title.
    """
    service = _service(ctx)
    try:
        ticket = await service.get_ticket(ticket_id)
        await service.delete_ticket(ticket_id)
    except TicketError as e:
        return _error_response(e, format)

    result = {
        "success": True,
        "deleted_ticket_id": ticket.id.value,
        "deleted_title": ticket.title.value,
    }
    return format_response(result, format, lambda r: f"Deleted {r['deleted_ticket_id']}: {r['deleted_title']}")


@mcp.tool()
async def get_ticket_stats(ctx: Context, format: str = "json") -> dict:
    """Get ticket counts by status, priority and type."""
    try:
        stats = await _service(ctx).get_stats()
    except TicketError as e:
        return _error_response(e, format)
    return format_response({"stats": format_stats(stats)}, format, stats_text)


@mcp.tool()
async def get_project_config(ctx: Context, format: str = "json") -> dict:
    """Show the resolved configuration and the tickets file in use."""
    app = _app(ctx)
    result = {
        "config": app.config.to_dict(),
        "storage_path": str(app.storage_path),
        "problems": validate_config(app.config),
    }
    return format_response(result, format)


@mcp.tool()
async def set_project_config(
    ctx: Context,
    key: str,
    value: str,
    global_config: bool = False,
    format: str = "json",
) -> dict:
    """Set one configuration value.

    Writes ./.pmrc.json in the working directory, or the user config when
    global_config is true. Defaults such as defaultPriority apply to the
    next tool call; storagePath applies after a restart.

    Args:
        key: camelCase config key (e.g. defaultPriority, maxTitleLength)
        value: New value as a string
        global_config: Write the user config instead of the project one
        format: json or text
    """
    target = get_user_config_path() if global_config else Path.cwd() / RC_FILE
    try:
        path = set_config_value(key, value, target)
    except ValueError as e:
        return _error_response(ValidationError(str(e), field=key, value=value), format)

    _app(ctx).config = load_config()
    result = {
        "success": True,
        "key": key,
        "value": load_config_file(path)[key],
        "config_path": str(path),
    }
    return format_response(result, format, lambda r: f"Configuration updated: {r['key']} = {r['value']}")


def main():
    """Run the MCP server."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
