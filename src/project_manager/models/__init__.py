"""Domain models for Project Manager."""

from .ticket import Ticket
from .values import (
    TicketDescription,
    TicketId,
    TicketPriority,
    TicketPrivacy,
    TicketStateMachine,
    TicketStatus,
    TicketTitle,
    TicketType,
    generate_id,
)

__all__ = [
    "Ticket",
    "TicketDescription",
    "TicketId",
    "TicketPriority",
    "TicketPrivacy",
    "TicketStateMachine",
    "TicketStatus",
    "TicketTitle",
    "TicketType",
    "generate_id",
]
