"""Value objects for ticket fields.

Every value object validates on creation and compares by value. The enum
types double as the persisted string values (``TicketStatus.PENDING ==
"pending"``).
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Type, TypeVar, Union

from ..errors import InvalidTransitionError, ValidationError

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
TITLE_DISPLAY_MAX_LENGTH = 40
TICKET_ID_MIN_LENGTH = 1
TICKET_ID_MAX_LENGTH = 64

_TICKET_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

E = TypeVar("E", bound=Enum)


def _parse_enum(enum_cls: Type[E], value: Union[E, str], field: str) -> E:
    """Coerce a member or its string value, raising ValidationError otherwise."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid ticket {field}: {value!r} (expected one of: {allowed})",
            field=field,
            value=value,
        ) from None


class TicketStatus(str, Enum):
    """Lifecycle states of a ticket."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"

    @classmethod
    def create(cls, value: Union["TicketStatus", str]) -> "TicketStatus":
        return _parse_enum(cls, value, "status")

    def can_transition_to(self, new_status: "TicketStatus") -> bool:
        return TicketStateMachine.can_transition(self, new_status)

    def is_final(self) -> bool:
        """Completed and archived tickets accept no further status changes."""
        return self in (TicketStatus.COMPLETED, TicketStatus.ARCHIVED)

    def is_active(self) -> bool:
        return self is not TicketStatus.ARCHIVED

    def __str__(self) -> str:
        return self.value


class TicketStateMachine:
    """Validate ticket lifecycle transitions.

    Identity transitions (pending -> pending) are not in the table and are
    rejected like any other unlisted pair.
    """

    _TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
        TicketStatus.PENDING: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.ARCHIVED}),
        TicketStatus.IN_PROGRESS: frozenset({TicketStatus.COMPLETED, TicketStatus.ARCHIVED}),
        TicketStatus.COMPLETED: frozenset(),
        TicketStatus.ARCHIVED: frozenset(),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.PENDING

    @classmethod
    def allowed_transitions(cls, current: TicketStatus) -> frozenset[TicketStatus]:
        return cls._TRANSITIONS.get(current, frozenset())

    @classmethod
    def can_transition(cls, current: TicketStatus, new: TicketStatus) -> bool:
        return new in cls.allowed_transitions(current)

    @classmethod
    def assert_transition(cls, current: TicketStatus, new: TicketStatus) -> None:
        if not cls.can_transition(current, new):
            raise InvalidTransitionError(current.value, new.value)


_PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}


class TicketPriority(str, Enum):
    """Ticket priority levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def create(cls, value: Union["TicketPriority", str]) -> "TicketPriority":
        return _parse_enum(cls, value, "priority")

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self.value]

    def compare_to(self, other: "TicketPriority") -> int:
        """Positive if this priority is higher, negative if lower, 0 if equal."""
        return self.weight - other.weight

    def is_higher_than(self, other: "TicketPriority") -> bool:
        return self.compare_to(other) > 0

    def is_lower_than(self, other: "TicketPriority") -> bool:
        return self.compare_to(other) < 0

    def __str__(self) -> str:
        return self.value


class TicketType(str, Enum):
    """Kind of work a ticket tracks."""

    FEATURE = "feature"
    BUG = "bug"
    TASK = "task"

    @classmethod
    def create(cls, value: Union["TicketType", str]) -> "TicketType":
        return _parse_enum(cls, value, "type")

    def __str__(self) -> str:
        return self.value


class TicketPrivacy(str, Enum):
    """Who a ticket may be shared with."""

    LOCAL_ONLY = "local-only"
    SHAREABLE = "shareable"
    PUBLIC = "public"

    @classmethod
    def create(cls, value: Union["TicketPrivacy", str]) -> "TicketPrivacy":
        return _parse_enum(cls, value, "privacy")

    def __str__(self) -> str:
        return self.value


def generate_id() -> str:
    """Generate a sortable ticket id.

    12 hex digits of the millisecond clock followed by 12 random hex digits.
    """
    millis = int(time.time() * 1000)
    return f"{millis:012x}{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class TicketId:
    """Opaque, immutable ticket identifier."""

    value: str

    @classmethod
    def create(
        cls,
        value: Optional[str] = None,
        generator: Callable[[], str] = generate_id,
    ) -> "TicketId":
        """Validate ``value``, or generate a fresh id when it is None."""
        if value is None:
            value = generator()
        if not isinstance(value, str):
            raise ValidationError("Ticket ID must be a string", field="id", value=value)
        if len(value) < TICKET_ID_MIN_LENGTH:
            raise ValidationError("Ticket ID cannot be empty", field="id", value=value)
        if len(value) > TICKET_ID_MAX_LENGTH:
            raise ValidationError(
                f"Ticket ID cannot exceed {TICKET_ID_MAX_LENGTH} characters",
                field="id",
                value=value,
            )
        if not _TICKET_ID_PATTERN.match(value):
            raise ValidationError(
                f"Ticket ID must be alphanumeric: {value!r}", field="id", value=value
            )
        return cls(value)

    def __str__(self) -> str:
        return self.value


def _clean_text(value: str, field: str, label: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{label} is required", field=field, value=value)
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{label} cannot be empty or whitespace only", field=field)
    if len(trimmed) > max_length:
        raise ValidationError(
            f"{label} cannot exceed {max_length} characters", field=field
        )
    return trimmed


@dataclass(frozen=True)
class TicketTitle:
    """Trimmed, non-empty ticket title."""

    value: str

    @classmethod
    def create(cls, value: str) -> "TicketTitle":
        return cls(_clean_text(value, "title", "Title", TITLE_MAX_LENGTH))

    def to_display(self, max_length: int = TITLE_DISPLAY_MAX_LENGTH) -> str:
        """Truncate for display, ending in "..." when shortened.

        Lengths of 3 or less have no room for an ellipsis and return a bare
        prefix.
        """
        if max_length <= 0:
            return ""
        if len(self.value) <= max_length:
            return self.value
        if max_length <= 3:
            return self.value[:max_length]
        return self.value[: max_length - 3] + "..."

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TicketDescription:
    """Trimmed, non-empty ticket description."""

    value: str

    @classmethod
    def create(cls, value: str) -> "TicketDescription":
        return cls(_clean_text(value, "description", "Description", DESCRIPTION_MAX_LENGTH))

    def __str__(self) -> str:
        return self.value
