"""Table and plain-text renderers for ticket payloads."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

# Status display mapping: (icon, style)
STATUS_DISPLAY = {
    "pending": ("[ ]", "yellow"),
    "in_progress": ("[>]", "cyan"),
    "completed": ("[x]", "green"),
    "archived": ("[-]", "dim"),
}

PRIORITY_STYLE = {
    "high": "bold red",
    "medium": "yellow",
    "low": "dim",
}


def get_status_icon(status: str) -> str:
    return STATUS_DISPLAY.get(status, ("[?]", ""))[0]


def _status_cell(status: str) -> Text:
    icon, style = STATUS_DISPLAY.get(status, ("[?]", ""))
    return Text(f"{icon} {status}", style=style)


def _priority_cell(priority: str) -> Text:
    return Text(priority, style=PRIORITY_STYLE.get(priority, ""))


def ticket_list_table(payload: dict) -> Table:
    """Render ``{"tickets": [...], "pagination": {...}}`` as a table."""
    tickets = payload.get("tickets", [])
    pagination = payload.get("pagination") or {}
    caption = None
    if pagination.get("has_more"):
        caption = (
            f"Showing {len(tickets)} of {pagination['total_count']} "
            f"(next offset {pagination['next_offset']})"
        )

    heading = payload.get("title", "Tickets")
    table = Table(title=f"{heading} ({pagination.get('total_count', len(tickets))})", caption=caption)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status", no_wrap=True)
    table.add_column("Priority", no_wrap=True)
    table.add_column("Type", no_wrap=True)

    for ticket in tickets:
        table.add_row(
            Text(ticket["id"]),
            Text(ticket["title"]),
            _status_cell(ticket["status"]),
            _priority_cell(ticket["priority"]),
            Text(ticket["type"]),
        )
    return table


def ticket_detail_table(payload: dict) -> Table:
    """Render ``{"ticket": {...}}`` as a two-column field table."""
    ticket = payload["ticket"]
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key in ("id", "title", "description", "status", "priority", "type", "privacy", "createdAt", "updatedAt"):
        value = ticket.get(key, "")
        if key == "status":
            table.add_row(key, _status_cell(value))
        elif key == "priority":
            table.add_row(key, _priority_cell(value))
        else:
            table.add_row(key, Text(str(value)))
    return table


def stats_table(payload: dict) -> Table:
    """Render ``{"stats": {...}}`` grouped by dimension."""
    stats = payload["stats"]
    table = Table(title=f"Ticket statistics (total {stats['total']})")
    table.add_column("Group", style="bold")
    table.add_column("Value")
    table.add_column("Count", justify="right")
    for group, key in (("status", "byStatus"), ("priority", "byPriority"), ("type", "byType")):
        for value, count in stats[key].items():
            table.add_row(group, value, str(count))
    return table


def ticket_text(payload: dict) -> str:
    ticket = payload["ticket"]
    lines = [
        f"{ticket['id']}  {get_status_icon(ticket['status'])} {ticket['title']}",
        f"  status: {ticket['status']}  priority: {ticket['priority']}  "
        f"type: {ticket['type']}  privacy: {ticket['privacy']}",
        f"  created: {ticket['createdAt']}  updated: {ticket['updatedAt']}",
        "",
        ticket["description"],
    ]
    return "\n".join(lines)


def ticket_list_text(payload: dict) -> str:
    tickets = payload.get("tickets", [])
    if not tickets:
        return "No tickets found."
    lines = [
        f"{t['id']}  {get_status_icon(t['status'])} {t['title']}  ({t['priority']}, {t['type']})"
        for t in tickets
    ]
    pagination = payload.get("pagination") or {}
    if pagination.get("has_more"):
        lines.append(f"... more available (offset {pagination['next_offset']})")
    return "\n".join(lines)


def compact_flags(ticket: dict) -> str:
    """Priority, type and status initials, e.g. ``HBP`` or ``MTWIP``."""
    status = "WIP" if ticket["status"] == "in_progress" else ticket["status"][:1].upper()
    return f"{ticket['priority'][:1].upper()}{ticket['type'][:1].upper()}{status}"


def ticket_compact_text(payload: dict) -> str:
    """One ``<id> [<flags>] <title>`` line per ticket summary."""
    return "\n".join(
        f"{t['id']} [{compact_flags(t)}] {t['title']}" for t in payload.get("tickets", [])
    )


def stats_text(payload: dict) -> str:
    stats = payload["stats"]
    lines = [f"Total: {stats['total']}"]
    for label, key in (("Status", "byStatus"), ("Priority", "byPriority"), ("Type", "byType")):
        counts = ", ".join(f"{value}={count}" for value, count in stats[key].items())
        lines.append(f"{label}: {counts}")
    return "\n".join(lines)
