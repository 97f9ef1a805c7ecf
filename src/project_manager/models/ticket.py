"""Ticket aggregate for Project Manager."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Union

from ..errors import ValidationError
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

_TICK = timedelta(microseconds=1)

# Identity and creation time are fixed for the life of a ticket.
_WRITE_ONCE_FIELDS = frozenset({"id", "created_at"})

REQUIRED_FIELDS = (
    "id",
    "title",
    "description",
    "status",
    "priority",
    "type",
    "privacy",
    "createdAt",
    "updatedAt",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with microseconds and a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any, field: str) -> datetime:
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date format for {field}: {value!r}", field=field, value=value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid date format for {field}: {value!r}", field=field, value=value
        ) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Ticket:
    """A unit of work (feature, bug or task).

    Fields are only changed through the named operations below, each of
    which validates first and then bumps ``updated_at``. A failed operation
    leaves the ticket untouched. ``id`` and ``created_at`` are set once by
    the constructor; assigning them again raises AttributeError.
    """

    id: TicketId
    title: TicketTitle
    description: TicketDescription
    status: TicketStatus
    priority: TicketPriority
    type: TicketType
    privacy: TicketPrivacy
    created_at: datetime
    updated_at: datetime

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _WRITE_ONCE_FIELDS and name in self.__dict__:
            raise AttributeError(f"Ticket.{name} cannot be changed once set")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        title: str,
        description: str,
        priority: Union[TicketPriority, str] = TicketPriority.MEDIUM,
        type: Union[TicketType, str] = TicketType.TASK,
        privacy: Union[TicketPrivacy, str] = TicketPrivacy.LOCAL_ONLY,
        id_generator: Callable[[], str] = generate_id,
    ) -> "Ticket":
        """Create a new pending ticket with a freshly generated id."""
        now = _utcnow()
        return cls(
            id=TicketId.create(generator=id_generator),
            title=TicketTitle.create(title),
            description=TicketDescription.create(description),
            status=TicketStateMachine.initial_state(),
            priority=TicketPriority.create(priority),
            type=TicketType.create(type),
            privacy=TicketPrivacy.create(privacy),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstitute(cls, record: dict) -> "Ticket":
        """Rebuild a ticket from its persisted record, validating every field."""
        if not isinstance(record, dict):
            raise ValidationError("Ticket record must be an object", value=record)
        missing = [key for key in REQUIRED_FIELDS if key not in record]
        if missing:
            raise ValidationError(
                f"Ticket record is missing fields: {', '.join(missing)}",
                field=missing[0],
            )

        created_at = parse_timestamp(record["createdAt"], "createdAt")
        updated_at = parse_timestamp(record["updatedAt"], "updatedAt")
        if updated_at < created_at:
            raise ValidationError(
                "updatedAt cannot be earlier than createdAt", field="updatedAt"
            )

        return cls(
            id=TicketId.create(record["id"]),
            title=TicketTitle.create(record["title"]),
            description=TicketDescription.create(record["description"]),
            status=TicketStatus.create(record["status"]),
            priority=TicketPriority.create(record["priority"]),
            type=TicketType.create(record["type"]),
            privacy=TicketPrivacy.create(record["privacy"]),
            created_at=created_at,
            updated_at=updated_at,
        )

    from_dict = reconstitute

    def to_dict(self) -> dict:
        """Convert to the persisted JSON record."""
        return {
            "id": self.id.value,
            "title": self.title.value,
            "description": self.description.value,
            "status": self.status.value,
            "priority": self.priority.value,
            "type": self.type.value,
            "privacy": self.privacy.value,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    # Domain operations

    def update_title(self, new_title: str) -> None:
        self.title = TicketTitle.create(new_title)
        self._touch()

    def update_description(self, new_description: str) -> None:
        self.description = TicketDescription.create(new_description)
        self._touch()

    def change_status(self, new_status: Union[TicketStatus, str]) -> None:
        """Move to ``new_status`` if the state machine allows it.

        Raises:
            ValidationError: unknown status value
            InvalidTransitionError: transition not allowed from the current status
        """
        target = TicketStatus.create(new_status)
        TicketStateMachine.assert_transition(self.status, target)
        self.status = target
        self._touch()

    def change_priority(self, new_priority: Union[TicketPriority, str]) -> None:
        self.priority = TicketPriority.create(new_priority)
        self._touch()

    def change_type(self, new_type: Union[TicketType, str]) -> None:
        self.type = TicketType.create(new_type)
        self._touch()

    def start_progress(self) -> None:
        self.change_status(TicketStatus.IN_PROGRESS)

    def complete(self) -> None:
        self.change_status(TicketStatus.COMPLETED)

    def archive(self) -> None:
        self.change_status(TicketStatus.ARCHIVED)

    def is_finalized(self) -> bool:
        return self.status.is_final()

    def is_active(self) -> bool:
        return self.status.is_active()

    def _touch(self) -> None:
        # Strictly increasing even if the clock has not moved.
        self.updated_at = max(_utcnow(), self.updated_at + _TICK)
