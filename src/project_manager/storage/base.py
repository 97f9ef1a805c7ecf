"""Repository contract and the query/aggregate types it works with."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Optional, Protocol, Union

from ..errors import ValidationError
from ..models import Ticket, TicketId, TicketPriority, TicketPrivacy, TicketStatus, TicketType


@dataclass
class TicketSearchCriteria:
    """Filters for ``search``; every field that is set must match.

    ``title`` is a case-insensitive substring of the title. ``search`` is a
    case-insensitive substring of the title or the description. The enum
    fields match exactly.
    """

    title: Optional[str] = None
    search: Optional[str] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    type: Optional[TicketType] = None
    privacy: Optional[TicketPrivacy] = None

    def __post_init__(self):
        if self.status is not None:
            self.status = TicketStatus.create(self.status)
        if self.priority is not None:
            self.priority = TicketPriority.create(self.priority)
        if self.type is not None:
            self.type = TicketType.create(self.type)
        if self.privacy is not None:
            self.privacy = TicketPrivacy.create(self.privacy)
        # Blank text filters match everything.
        if self.title is not None and not self.title.strip():
            self.title = None
        if self.search is not None and not self.search.strip():
            self.search = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "TicketSearchCriteria":
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(
                f"Unknown search criteria: {', '.join(unknown)}", field=unknown[0]
            )
        return cls(**{key: value for key, value in data.items() if value is not None})

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())

    def matches(self, record: dict) -> bool:
        """Check a persisted ticket record against every set filter."""
        title = str(record.get("title", "")).lower()
        if self.title is not None and self.title.strip().lower() not in title:
            return False
        if self.search is not None:
            needle = self.search.strip().lower()
            description = str(record.get("description", "")).lower()
            if needle not in title and needle not in description:
                return False
        if self.status is not None and record.get("status") != self.status.value:
            return False
        if self.priority is not None and record.get("priority") != self.priority.value:
            return False
        if self.type is not None and record.get("type") != self.type.value:
            return False
        if self.privacy is not None and record.get("privacy") != self.privacy.value:
            return False
        return True


def _zero_counts(enum_cls) -> dict[str, int]:
    return {member.value: 0 for member in enum_cls}


@dataclass
class TicketStatistics:
    """Ticket counts by status, priority and type."""

    total: int = 0
    by_status: dict[str, int] = field(default_factory=lambda: _zero_counts(TicketStatus))
    by_priority: dict[str, int] = field(default_factory=lambda: _zero_counts(TicketPriority))
    by_type: dict[str, int] = field(default_factory=lambda: _zero_counts(TicketType))

    @classmethod
    def from_tickets(cls, tickets: list[Ticket]) -> "TicketStatistics":
        stats = cls()
        for ticket in tickets:
            stats.total += 1
            stats.by_status[ticket.status.value] += 1
            stats.by_priority[ticket.priority.value] += 1
            stats.by_type[ticket.type.value] += 1
        return stats

    def to_dict(self) -> dict:
        return asdict(self)


TicketIdLike = Union[TicketId, str]


class TicketRepository(Protocol):
    """Persistence contract consumed by ``TicketService``."""

    async def save(self, ticket: Ticket) -> None: ...

    async def update(self, ticket: Ticket) -> None: ...

    async def find_by_id(self, ticket_id: TicketIdLike) -> Ticket: ...

    async def find_by_id_or_none(self, ticket_id: TicketIdLike) -> Optional[Ticket]: ...

    async def find_all(self) -> list[Ticket]: ...

    async def search(self, criteria: Union[TicketSearchCriteria, dict, None]) -> list[Ticket]: ...

    async def delete(self, ticket_id: TicketIdLike) -> None: ...

    async def exists(self, ticket_id: TicketIdLike) -> bool: ...

    async def count(self) -> int: ...

    async def clear(self) -> None: ...

    async def get_statistics(self) -> TicketStatistics: ...
