"""Shared service layer for CLI and MCP."""

from .formatting import format_error, format_stats, format_ticket, format_ticket_summary
from .tickets import TicketService, TicketSummary

__all__ = [
    "TicketService",
    "TicketSummary",
    "format_error",
    "format_stats",
    "format_ticket",
    "format_ticket_summary",
]
