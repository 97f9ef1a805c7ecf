"""Tests for ticket value objects and enums."""

import re

import pytest

from project_manager.errors import InvalidTransitionError, ValidationError
from project_manager.models import (
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


class TestTicketId:
    """Tests for TicketId creation and validation."""

    def test_generates_id_when_none(self):
        """Should generate a 24-char lowercase hex id."""
        ticket_id = TicketId.create()
        assert re.fullmatch(r"[0-9a-f]{24}", ticket_id.value)

    def test_generated_ids_are_unique(self):
        """Should not repeat ids."""
        ids = {generate_id() for _ in range(200)}
        assert len(ids) == 200

    def test_accepts_alphanumeric(self):
        """Should keep a valid id as is."""
        assert TicketId.create("Abc123").value == "Abc123"

    def test_uses_custom_generator(self):
        """Should call the injected generator."""
        assert TicketId.create(generator=lambda: "fixed1").value == "fixed1"

    @pytest.mark.parametrize("value", ["", "has-dash", "has space", "x" * 65, "ümlaut"])
    def test_rejects_invalid(self, value):
        """Should raise ValidationError for malformed ids."""
        with pytest.raises(ValidationError):
            TicketId.create(value)

    def test_max_length_boundary(self):
        """64 characters is still valid."""
        assert TicketId.create("a" * 64).value == "a" * 64

    def test_equality_by_value(self):
        """Ids with the same value are equal and hash the same."""
        assert TicketId.create("abc") == TicketId.create("abc")
        assert len({TicketId.create("abc"), TicketId.create("abc")}) == 1


class TestTicketTitle:
    """Tests for TicketTitle."""

    def test_trims_whitespace(self):
        """Should strip surrounding whitespace."""
        assert TicketTitle.create("  Fix login bug  ").value == "Fix login bug"

    @pytest.mark.parametrize("value", ["", "   ", "\n\t"])
    def test_rejects_empty(self, value):
        """Empty titles fail with a message mentioning 'empty'."""
        with pytest.raises(ValidationError, match="empty"):
            TicketTitle.create(value)

    def test_rejects_too_long(self):
        """Titles over 200 characters fail."""
        with pytest.raises(ValidationError, match="200"):
            TicketTitle.create("x" * 201)

    def test_max_length_after_trim(self):
        """Length is checked after trimming."""
        assert len(TicketTitle.create("  " + "x" * 200 + "  ").value) == 200

    def test_to_display_fits(self):
        """Short titles are returned unchanged."""
        assert TicketTitle.create("Short").to_display() == "Short"

    def test_to_display_truncates_with_ellipsis(self):
        """Long titles end in '...' at exactly max_length."""
        title = TicketTitle.create("a" * 50)
        display = title.to_display(10)
        assert display == "aaaaaaa..."
        assert len(display) == 10

    def test_to_display_default_length(self):
        """Default display width is 40."""
        display = TicketTitle.create("b" * 100).to_display()
        assert len(display) == 40
        assert display.endswith("...")

    @pytest.mark.parametrize("max_length, expected", [(3, "abc"), (2, "ab"), (1, "a")])
    def test_to_display_tiny_widths(self, max_length, expected):
        """Widths of 3 or less return a bare prefix."""
        assert TicketTitle.create("abcdef").to_display(max_length) == expected

    @pytest.mark.parametrize("max_length", [0, -5])
    def test_to_display_non_positive(self, max_length):
        """Non-positive widths return an empty string."""
        assert TicketTitle.create("abcdef").to_display(max_length) == ""


class TestTicketDescription:
    """Tests for TicketDescription."""

    def test_trims_whitespace(self):
        assert TicketDescription.create("  details \n").value == "details"

    def test_rejects_empty(self):
        with pytest.raises(ValidationError, match="empty"):
            TicketDescription.create("  ")

    def test_length_boundary(self):
        """2000 characters pass, 2001 fail."""
        assert len(TicketDescription.create("d" * 2000).value) == 2000
        with pytest.raises(ValidationError):
            TicketDescription.create("d" * 2001)


class TestEnums:
    """Tests for the status, priority, type and privacy enums."""

    def test_create_from_string(self):
        assert TicketStatus.create("in_progress") is TicketStatus.IN_PROGRESS
        assert TicketPriority.create("high") is TicketPriority.HIGH
        assert TicketType.create("bug") is TicketType.BUG
        assert TicketPrivacy.create("local-only") is TicketPrivacy.LOCAL_ONLY

    def test_create_from_member(self):
        assert TicketStatus.create(TicketStatus.ARCHIVED) is TicketStatus.ARCHIVED

    @pytest.mark.parametrize(
        "enum_cls, value",
        [
            (TicketStatus, "done"),
            (TicketPriority, "urgent"),
            (TicketType, "epic"),
            (TicketPrivacy, "private"),
            (TicketPriority, "HIGH"),
        ],
    )
    def test_unknown_value_names_offender(self, enum_cls, value):
        """Unknown values raise ValidationError naming the value."""
        with pytest.raises(ValidationError, match=value):
            enum_cls.create(value)

    def test_string_value(self):
        """Members compare equal to their persisted strings."""
        assert TicketStatus.PENDING == "pending"
        assert str(TicketPrivacy.LOCAL_ONLY) == "local-only"

    def test_priority_ordering(self):
        assert TicketPriority.HIGH.is_higher_than(TicketPriority.MEDIUM)
        assert TicketPriority.LOW.is_lower_than(TicketPriority.MEDIUM)
        assert TicketPriority.MEDIUM.compare_to(TicketPriority.MEDIUM) == 0
        assert TicketPriority.HIGH.compare_to(TicketPriority.LOW) > 0

    def test_status_flags(self):
        assert TicketStatus.COMPLETED.is_final()
        assert TicketStatus.ARCHIVED.is_final()
        assert not TicketStatus.PENDING.is_final()
        assert TicketStatus.COMPLETED.is_active()
        assert not TicketStatus.ARCHIVED.is_active()


ALLOWED = {
    (TicketStatus.PENDING, TicketStatus.IN_PROGRESS),
    (TicketStatus.PENDING, TicketStatus.ARCHIVED),
    (TicketStatus.IN_PROGRESS, TicketStatus.COMPLETED),
    (TicketStatus.IN_PROGRESS, TicketStatus.ARCHIVED),
}


class TestTicketStateMachine:
    """Tests for the lifecycle transition table."""

    def test_initial_state(self):
        assert TicketStateMachine.initial_state() is TicketStatus.PENDING

    @pytest.mark.parametrize("current", list(TicketStatus))
    @pytest.mark.parametrize("new", list(TicketStatus))
    def test_every_pair(self, current, new):
        """Only the four listed transitions are allowed; identity is rejected."""
        allowed = (current, new) in ALLOWED
        assert TicketStateMachine.can_transition(current, new) is allowed
        assert current.can_transition_to(new) is allowed
        if allowed:
            TicketStateMachine.assert_transition(current, new)
        else:
            with pytest.raises(InvalidTransitionError):
                TicketStateMachine.assert_transition(current, new)

    def test_final_states_have_no_exits(self):
        assert TicketStateMachine.allowed_transitions(TicketStatus.COMPLETED) == frozenset()
        assert TicketStateMachine.allowed_transitions(TicketStatus.ARCHIVED) == frozenset()
