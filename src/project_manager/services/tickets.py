"""Ticket use cases shared by the CLI and the MCP server.

Each method loads what it needs through the repository, applies one domain
operation to the ticket and persists it. The service keeps no state of its
own; all rules live in ``Ticket`` and the repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from ..errors import ValidationError
from ..models import (
    Ticket,
    TicketPriority,
    TicketPrivacy,
    TicketStatus,
    TicketType,
)
from ..models.values import TITLE_DISPLAY_MAX_LENGTH
from ..storage import TicketRepository, TicketSearchCriteria, TicketStatistics

logger = logging.getLogger(__name__)


@dataclass
class TicketSummary:
    """Compact projection of a ticket for listings."""

    id: str
    title: str
    status: str
    priority: str
    type: str
    updated_at: datetime

    @classmethod
    def from_ticket(cls, ticket: Ticket, max_title_length: int = TITLE_DISPLAY_MAX_LENGTH) -> "TicketSummary":
        return cls(
            id=ticket.id.value,
            title=ticket.title.to_display(max_title_length),
            status=ticket.status.value,
            priority=ticket.priority.value,
            type=ticket.type.value,
            updated_at=ticket.updated_at,
        )


class TicketService:
    """Application operations on tickets."""

    def __init__(self, repository: TicketRepository):
        self.repository = repository

    async def create_ticket(
        self,
        title: str,
        description: str,
        priority: Union[TicketPriority, str] = TicketPriority.MEDIUM,
        type: Union[TicketType, str] = TicketType.TASK,
        privacy: Union[TicketPrivacy, str] = TicketPrivacy.LOCAL_ONLY,
    ) -> Ticket:
        ticket = Ticket.create(
            title=title,
            description=description,
            priority=priority,
            type=type,
            privacy=privacy,
        )
        await self.repository.save(ticket)
        logger.info("Created ticket %s (%s)", ticket.id, ticket.title.to_display())
        return ticket

    async def get_ticket(self, ticket_id: str) -> Ticket:
        return await self.repository.find_by_id(ticket_id)

    async def get_ticket_summary(
        self, ticket_id: str, max_title_length: int = TITLE_DISPLAY_MAX_LENGTH
    ) -> TicketSummary:
        ticket = await self.repository.find_by_id(ticket_id)
        return TicketSummary.from_ticket(ticket, max_title_length)

    async def list_tickets(
        self, criteria: Union[TicketSearchCriteria, dict, None] = None
    ) -> list[Ticket]:
        """All tickets, or those matching ``criteria`` when given."""
        if not isinstance(criteria, TicketSearchCriteria):
            criteria = TicketSearchCriteria.from_dict(criteria)
        if criteria.is_empty():
            return await self.repository.find_all()
        return await self.repository.search(criteria)

    async def search_tickets(
        self,
        query: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        type: Optional[str] = None,
        privacy: Optional[str] = None,
        title_only: bool = False,
    ) -> list[Ticket]:
        """Free-text search over title (and description unless ``title_only``)."""
        criteria = TicketSearchCriteria(
            title=query if title_only else None,
            search=None if title_only else query,
            status=status,
            priority=priority,
            type=type,
            privacy=privacy,
        )
        return await self.repository.search(criteria)

    async def update_ticket_title(self, ticket_id: str, title: str) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        ticket.update_title(title)
        await self.repository.update(ticket)
        logger.info("Updated title of ticket %s", ticket.id)
        return ticket

    async def update_ticket_description(self, ticket_id: str, description: str) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        ticket.update_description(description)
        await self.repository.update(ticket)
        logger.info("Updated description of ticket %s", ticket.id)
        return ticket

    async def update_ticket_content(
        self,
        ticket_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Ticket:
        if title is None and description is None:
            raise ValidationError("At least one of title or description must be provided")
        return await self.update_ticket(ticket_id, title=title, description=description)

    async def update_ticket_status(
        self, ticket_id: str, status: Union[TicketStatus, str]
    ) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        previous = ticket.status
        ticket.change_status(status)
        await self.repository.update(ticket)
        logger.info("Ticket %s status %s -> %s", ticket.id, previous, ticket.status)
        return ticket

    async def update_ticket_priority(
        self, ticket_id: str, priority: Union[TicketPriority, str]
    ) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        previous = ticket.priority
        ticket.change_priority(priority)
        await self.repository.update(ticket)
        logger.info("Ticket %s priority %s -> %s", ticket.id, previous, ticket.priority)
        return ticket

    async def update_ticket_type(self, ticket_id: str, type: Union[TicketType, str]) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        ticket.change_type(type)
        await self.repository.update(ticket)
        logger.info("Ticket %s type -> %s", ticket.id, ticket.type)
        return ticket

    async def update_ticket(
        self,
        ticket_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        type: Optional[str] = None,
    ) -> Ticket:
        """Apply any subset of field changes; nothing is saved if one fails.

        The ticket instance is private to this call, so a failure half way
        only discards the in-memory copy.
        """
        ticket = await self.repository.find_by_id(ticket_id)
        changed = []
        if title is not None:
            ticket.update_title(title)
            changed.append("title")
        if description is not None:
            ticket.update_description(description)
            changed.append("description")
        if priority is not None:
            ticket.change_priority(priority)
            changed.append("priority")
        if type is not None:
            ticket.change_type(type)
            changed.append("type")
        if status is not None:
            ticket.change_status(status)
            changed.append("status")

        if changed:
            await self.repository.update(ticket)
            logger.info("Updated ticket %s: %s", ticket.id, ", ".join(changed))
        return ticket

    async def start_ticket(self, ticket_id: str) -> Ticket:
        return await self._transition(ticket_id, Ticket.start_progress)

    async def complete_ticket(self, ticket_id: str) -> Ticket:
        return await self._transition(ticket_id, Ticket.complete)

    async def archive_ticket(self, ticket_id: str) -> Ticket:
        return await self._transition(ticket_id, Ticket.archive)

    async def _transition(self, ticket_id: str, operation: Callable[[Ticket], None]) -> Ticket:
        ticket = await self.repository.find_by_id(ticket_id)
        previous = ticket.status
        operation(ticket)
        await self.repository.update(ticket)
        logger.info("Ticket %s status %s -> %s", ticket.id, previous, ticket.status)
        return ticket

    async def delete_ticket(self, ticket_id: str) -> None:
        await self.repository.delete(ticket_id)
        logger.info("Deleted ticket %s", ticket_id)

    async def get_stats(self) -> TicketStatistics:
        return await self.repository.get_statistics()
