"""Tests for TicketService use cases."""

from pathlib import Path

import pytest

from project_manager.errors import InvalidTransitionError, NotFoundError, ValidationError
from project_manager.models import TicketPriority, TicketStatus, TicketType
from project_manager.services import TicketService, TicketSummary
from project_manager.storage import FileLockRegistry, JsonTicketRepository


@pytest.fixture
def repo(tmp_path: Path) -> JsonTicketRepository:
    return JsonTicketRepository(tmp_path / "tickets.json", lock_registry=FileLockRegistry())


@pytest.fixture
def service(repo: JsonTicketRepository) -> TicketService:
    return TicketService(repo)


class TestCreateAndGet:
    """Tests for creating and reading tickets."""

    @pytest.mark.asyncio
    async def test_create_persists(self, service: TicketService, repo: JsonTicketRepository):
        ticket = await service.create_ticket(
            title="Fix login bug",
            description="Users cannot login with email",
            priority="high",
            type="bug",
        )
        stored = await repo.find_by_id(ticket.id)
        assert stored == ticket
        assert stored.status is TicketStatus.PENDING

    @pytest.mark.asyncio
    async def test_create_invalid_saves_nothing(self, service: TicketService, repo: JsonTicketRepository):
        with pytest.raises(ValidationError):
            await service.create_ticket(title="  ", description="D")
        assert await repo.count() == 0

    @pytest.mark.asyncio
    async def test_get_missing(self, service: TicketService):
        with pytest.raises(NotFoundError):
            await service.get_ticket("missing1")

    @pytest.mark.asyncio
    async def test_get_summary(self, service: TicketService):
        ticket = await service.create_ticket(title="A" * 60, description="D")
        summary = await service.get_ticket_summary(ticket.id.value, max_title_length=20)
        assert isinstance(summary, TicketSummary)
        assert summary.id == ticket.id.value
        assert summary.title == "A" * 17 + "..."
        assert summary.status == "pending"


class TestListAndSearch:
    """Tests for listing and searching."""

    @pytest.mark.asyncio
    async def test_list_all_and_filtered(self, service: TicketService):
        await service.create_ticket(title="One", description="D", priority="high")
        await service.create_ticket(title="Two", description="D", priority="low")

        assert len(await service.list_tickets()) == 2
        high = await service.list_tickets({"priority": "high", "status": None})
        assert [t.title.value for t in high] == ["One"]

    @pytest.mark.asyncio
    async def test_search_title_only(self, service: TicketService):
        await service.create_ticket(title="Login page", description="Rework")
        await service.create_ticket(title="Docs", description="Explain login")

        both = await service.search_tickets("login")
        titles_only = await service.search_tickets("login", title_only=True)
        assert len(both) == 2
        assert [t.title.value for t in titles_only] == ["Login page"]


class TestUpdates:
    """Tests for update use cases."""

    @pytest.mark.asyncio
    async def test_update_title_and_description(self, service: TicketService, repo: JsonTicketRepository):
        ticket = await service.create_ticket(title="Old", description="Old desc")
        await service.update_ticket_title(ticket.id.value, "New")
        await service.update_ticket_description(ticket.id.value, "New desc")
        stored = await repo.find_by_id(ticket.id)
        assert stored.title.value == "New"
        assert stored.description.value == "New desc"
        assert stored.updated_at > ticket.updated_at

    @pytest.mark.asyncio
    async def test_update_content_requires_a_field(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        with pytest.raises(ValidationError):
            await service.update_ticket_content(ticket.id.value)

    @pytest.mark.asyncio
    async def test_update_content(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        updated = await service.update_ticket_content(ticket.id.value, description="More detail")
        assert updated.title.value == "T"
        assert updated.description.value == "More detail"

    @pytest.mark.asyncio
    async def test_status_priority_type(self, service: TicketService, repo: JsonTicketRepository):
        ticket = await service.create_ticket(title="T", description="D")
        await service.update_ticket_status(ticket.id.value, "in_progress")
        await service.update_ticket_priority(ticket.id.value, "high")
        await service.update_ticket_type(ticket.id.value, "feature")
        stored = await repo.find_by_id(ticket.id)
        assert stored.status is TicketStatus.IN_PROGRESS
        assert stored.priority is TicketPriority.HIGH
        assert stored.type is TicketType.FEATURE

    @pytest.mark.asyncio
    async def test_invalid_transition_not_persisted(self, service: TicketService, repo: JsonTicketRepository):
        ticket = await service.create_ticket(title="T", description="D")
        with pytest.raises(InvalidTransitionError):
            await service.update_ticket_status(ticket.id.value, "completed")
        assert (await repo.find_by_id(ticket.id)) == ticket

    @pytest.mark.asyncio
    async def test_update_ticket_all_or_nothing(self, service: TicketService, repo: JsonTicketRepository):
        """A bad field in a multi-field update leaves the stored ticket untouched."""
        ticket = await service.create_ticket(title="T", description="D")
        with pytest.raises(InvalidTransitionError):
            await service.update_ticket(ticket.id.value, title="Changed", status="completed")
        assert (await repo.find_by_id(ticket.id)).title.value == "T"

    @pytest.mark.asyncio
    async def test_update_ticket_many_fields(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        updated = await service.update_ticket(
            ticket.id.value, title="New", priority="low", type="bug", status="in_progress"
        )
        assert updated.title.value == "New"
        assert updated.priority is TicketPriority.LOW
        assert updated.type is TicketType.BUG
        assert updated.status is TicketStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_update_ticket_no_changes(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        same = await service.update_ticket(ticket.id.value)
        assert same == ticket

    @pytest.mark.asyncio
    async def test_update_missing_ticket(self, service: TicketService):
        with pytest.raises(NotFoundError):
            await service.update_ticket_title("missing1", "New")


class TestLifecycle:
    """Tests for start/complete/archive/delete."""

    @pytest.mark.asyncio
    async def test_start_then_complete(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        started = await service.start_ticket(ticket.id.value)
        assert started.status is TicketStatus.IN_PROGRESS
        completed = await service.complete_ticket(ticket.id.value)
        assert completed.status is TicketStatus.COMPLETED
        with pytest.raises(InvalidTransitionError):
            await service.archive_ticket(ticket.id.value)

    @pytest.mark.asyncio
    async def test_complete_pending_fails(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        with pytest.raises(InvalidTransitionError):
            await service.complete_ticket(ticket.id.value)

    @pytest.mark.asyncio
    async def test_archive(self, service: TicketService):
        ticket = await service.create_ticket(title="T", description="D")
        archived = await service.archive_ticket(ticket.id.value)
        assert archived.status is TicketStatus.ARCHIVED

    @pytest.mark.asyncio
    async def test_delete(self, service: TicketService, repo: JsonTicketRepository):
        ticket = await service.create_ticket(title="T", description="D")
        await service.delete_ticket(ticket.id.value)
        assert not await repo.exists(ticket.id)
        with pytest.raises(NotFoundError):
            await service.delete_ticket(ticket.id.value)

    @pytest.mark.asyncio
    async def test_stats(self, service: TicketService):
        await service.create_ticket(title="A", description="D", type="bug")
        second = await service.create_ticket(title="B", description="D")
        await service.start_ticket(second.id.value)

        stats = await service.get_stats()
        assert stats.total == 2
        assert stats.by_status["pending"] == 1
        assert stats.by_status["in_progress"] == 1
        assert stats.by_type["bug"] == 1
