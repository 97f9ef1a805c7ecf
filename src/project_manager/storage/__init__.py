"""Ticket persistence."""

from .base import TicketRepository, TicketSearchCriteria, TicketStatistics
from .json_repository import JsonTicketRepository
from .locks import FileLockRegistry, default_registry

__all__ = [
    "FileLockRegistry",
    "JsonTicketRepository",
    "TicketRepository",
    "TicketSearchCriteria",
    "TicketStatistics",
    "default_registry",
]
