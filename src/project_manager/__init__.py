"""Project Manager - local-first ticket tracking for humans and AI assistants."""

from .errors import (
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    TicketError,
    ValidationError,
)
from .models import Ticket, TicketPriority, TicketPrivacy, TicketStatus, TicketType
from .services import TicketService
from .storage import JsonTicketRepository, TicketSearchCriteria

__version__ = "0.1.0"

__all__ = [
    "InvalidTransitionError",
    "JsonTicketRepository",
    "NotFoundError",
    "StorageError",
    "Ticket",
    "TicketError",
    "TicketPriority",
    "TicketPrivacy",
    "TicketSearchCriteria",
    "TicketService",
    "TicketStatus",
    "TicketType",
    "ValidationError",
]
