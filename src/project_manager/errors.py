"""Error types raised by the ticket core.

Presentation layers (CLI, MCP) catch ``TicketError`` and turn it into exit
codes or error payloads; the core itself never swallows these.
"""

from __future__ import annotations

from typing import Any, Optional


class TicketError(Exception):
    """Base class for all ticket errors."""

    code = "TICKET_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationError(TicketError):
    """Malformed input: bad id, empty or oversized text, unknown enum value."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFoundError(TicketError):
    """The referenced ticket id is not in the store."""

    code = "TICKET_NOT_FOUND"

    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket not found: {ticket_id}")
        self.ticket_id = ticket_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["ticket_id"] = self.ticket_id
        return data


class StorageError(TicketError):
    """Underlying I/O failure while reading or writing the ticket file."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class InvalidTransitionError(TicketError):
    """Status change not allowed by the ticket state machine."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"Invalid status transition: {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["from"] = self.from_status
        data["to"] = self.to_status
        return data
