"""Dict projections of tickets for CLI and MCP output."""

from __future__ import annotations

from ..errors import TicketError
from ..models import Ticket
from ..models.ticket import format_timestamp
from ..models.values import TITLE_DISPLAY_MAX_LENGTH
from ..storage import TicketStatistics
from .tickets import TicketSummary


def format_ticket(ticket: Ticket) -> dict:
    return ticket.to_dict()


def format_ticket_summary(
    ticket: Ticket, max_title_length: int = TITLE_DISPLAY_MAX_LENGTH
) -> dict:
    summary = TicketSummary.from_ticket(ticket, max_title_length)
    return {
        "id": summary.id,
        "title": summary.title,
        "status": summary.status,
        "priority": summary.priority,
        "type": summary.type,
        "updatedAt": format_timestamp(summary.updated_at),
    }


def format_stats(stats: TicketStatistics) -> dict:
    return {
        "total": stats.total,
        "byStatus": dict(stats.by_status),
        "byPriority": dict(stats.by_priority),
        "byType": dict(stats.by_type),
    }


def format_error(error: TicketError) -> dict:
    return error.to_dict()
