"""Tests for MCP server tools."""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from project_manager.context import AppContext
from project_manager.mcp_server import (
    app_lifespan,
    archive_ticket,
    complete_ticket,
    create_ticket,
    delete_ticket,
    get_project_config,
    get_ticket_by_id,
    get_ticket_stats,
    list_tickets,
    mcp,
    search_tickets,
    set_project_config,
    start_ticket,
    update_ticket_content,
    update_ticket_priority,
    update_ticket_status,
)
from project_manager.pm_config import PMConfig


@pytest.fixture
def app_context(tmp_path: Path) -> AppContext:
    return AppContext.create(config=PMConfig(), storage_path=str(tmp_path / "tickets.json"))


@pytest.fixture
def ctx(app_context: AppContext) -> Mock:
    """Stub MCP context exposing the app context as the lifespan context."""
    mock_ctx = Mock()
    mock_ctx.request_context.lifespan_context = app_context
    return mock_ctx


async def new_ticket(ctx, title: str = "Fix login bug", **kwargs) -> dict:
    result = await create_ticket(ctx, title=title, description="Users cannot login with email", **kwargs)
    assert result["format"] == "json"
    return result["content"]["ticket"]


class TestTicketTools:
    """Tests for create/get/update tools."""

    @pytest.mark.asyncio
    async def test_create_ticket(self, ctx):
        ticket = await new_ticket(ctx, priority="high", type="bug")
        assert ticket["status"] == "pending"
        assert ticket["priority"] == "high"
        assert ticket["type"] == "bug"
        assert ticket["privacy"] == "local-only"

    @pytest.mark.asyncio
    async def test_create_uses_config_defaults(self, ctx, app_context: AppContext):
        app_context.config.default_priority = "low"
        ticket = await new_ticket(ctx)
        assert ticket["priority"] == "low"

    @pytest.mark.asyncio
    async def test_create_validation_error_payload(self, ctx):
        """Errors come back as payloads, not exceptions."""
        result = await create_ticket(ctx, title="", description="D")
        assert result["content"]["error"] == "VALIDATION_ERROR"
        assert "empty" in result["content"]["message"]

    @pytest.mark.asyncio
    async def test_get_ticket_by_id(self, ctx):
        created = await new_ticket(ctx)
        result = await get_ticket_by_id(ctx, created["id"])
        assert result["content"]["ticket"] == created

    @pytest.mark.asyncio
    async def test_get_missing(self, ctx):
        result = await get_ticket_by_id(ctx, "missing1")
        assert result["content"]["error"] == "TICKET_NOT_FOUND"
        assert result["content"]["ticket_id"] == "missing1"

    @pytest.mark.asyncio
    async def test_get_text_format(self, ctx):
        created = await new_ticket(ctx)
        result = await get_ticket_by_id(ctx, created["id"], format="text")
        assert result["format"] == "text"
        assert created["id"] in result["content"]

    @pytest.mark.asyncio
    async def test_error_text_format(self, ctx):
        result = await get_ticket_by_id(ctx, "bad-id", format="text")
        assert result["content"].startswith("Error [VALIDATION_ERROR]")

    @pytest.mark.asyncio
    async def test_update_content(self, ctx):
        created = await new_ticket(ctx)
        result = await update_ticket_content(ctx, created["id"], title="Renamed")
        assert result["content"]["ticket"]["title"] == "Renamed"
        assert result["content"]["ticket"]["description"] == created["description"]

    @pytest.mark.asyncio
    async def test_update_content_requires_field(self, ctx):
        created = await new_ticket(ctx)
        result = await update_ticket_content(ctx, created["id"])
        assert result["content"]["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_update_priority(self, ctx):
        created = await new_ticket(ctx)
        result = await update_ticket_priority(ctx, created["id"], "high")
        assert result["content"]["ticket"]["priority"] == "high"


class TestLifecycleTools:
    """Tests for status tools."""

    @pytest.mark.asyncio
    async def test_start_complete(self, ctx):
        created = await new_ticket(ctx)
        assert (await start_ticket(ctx, created["id"]))["content"]["ticket"]["status"] == "in_progress"
        assert (await complete_ticket(ctx, created["id"]))["content"]["ticket"]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_invalid_transition_payload(self, ctx):
        created = await new_ticket(ctx)
        result = await update_ticket_status(ctx, created["id"], "completed")
        content = result["content"]
        assert content["error"] == "INVALID_TRANSITION"
        assert content["from"] == "pending"
        assert content["to"] == "completed"

    @pytest.mark.asyncio
    async def test_archive(self, ctx):
        created = await new_ticket(ctx)
        result = await archive_ticket(ctx, created["id"])
        assert result["content"]["ticket"]["status"] == "archived"

    @pytest.mark.asyncio
    async def test_delete(self, ctx):
        created = await new_ticket(ctx)
        result = await delete_ticket(ctx, created["id"])
        assert result["content"] == {
            "success": True,
            "deleted_ticket_id": created["id"],
            "deleted_title": "Fix login bug",
        }
        again = await delete_ticket(ctx, created["id"])
        assert again["content"]["error"] == "TICKET_NOT_FOUND"


class TestListTools:
    """Tests for list/search/stats/config tools."""

    @pytest.mark.asyncio
    async def test_list_pagination(self, ctx):
        for i in range(5):
            await new_ticket(ctx, title=f"Ticket {i}")
        result = await list_tickets(ctx, limit=2, offset=2)
        content = result["content"]
        assert [t["title"] for t in content["tickets"]] == ["Ticket 2", "Ticket 3"]
        assert content["pagination"]["next_offset"] == 4
        assert "description" not in content["tickets"][0]

    @pytest.mark.asyncio
    async def test_list_filter(self, ctx):
        await new_ticket(ctx, title="High", priority="high")
        await new_ticket(ctx, title="Low", priority="low")
        result = await list_tickets(ctx, priority="high")
        assert [t["title"] for t in result["content"]["tickets"]] == ["High"]

    @pytest.mark.asyncio
    async def test_list_invalid_filter(self, ctx):
        result = await list_tickets(ctx, status="done")
        assert result["content"]["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_list_empty_text(self, ctx):
        result = await list_tickets(ctx, format="text")
        assert result["content"] == "No tickets found."

    @pytest.mark.asyncio
    async def test_search(self, ctx):
        await new_ticket(ctx, title="Login page")
        await new_ticket(ctx, title="Docs")
        result = await search_tickets(ctx, "LOGIN", title_only=True)
        assert [t["title"] for t in result["content"]["tickets"]] == ["Login page"]

    @pytest.mark.asyncio
    async def test_stats(self, ctx):
        created = await new_ticket(ctx)
        await start_ticket(ctx, created["id"])
        result = await get_ticket_stats(ctx)
        stats = result["content"]["stats"]
        assert stats["total"] == 1
        assert stats["byStatus"] == {"pending": 0, "in_progress": 1, "completed": 0, "archived": 0}

    @pytest.mark.asyncio
    async def test_project_config(self, ctx, app_context: AppContext):
        result = await get_project_config(ctx)
        assert result["content"]["storage_path"] == str(app_context.storage_path)
        assert result["content"]["problems"] == []


class TestSetProjectConfig:
    """Tests for the set_project_config tool."""

    @pytest.fixture
    def project_dir(self, tmp_path: Path, monkeypatch) -> Path:
        project = tmp_path / "project"
        project.mkdir()
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        for var in ("PM_MODE", "PM_DEFAULT_PRIORITY", "PM_DEFAULT_TYPE", "PM_MAX_TITLE_LENGTH"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.chdir(project)
        return project

    @pytest.mark.asyncio
    async def test_writes_project_config(self, ctx, project_dir: Path):
        result = await set_project_config(ctx, "defaultPriority", "high")
        content = result["content"]
        assert content["success"] is True
        assert content["value"] == "high"
        assert content["config_path"] == str(project_dir / ".pmrc.json")
        assert json.loads((project_dir / ".pmrc.json").read_text()) == {"defaultPriority": "high"}

    @pytest.mark.asyncio
    async def test_next_call_uses_new_default(self, ctx, project_dir: Path):
        await set_project_config(ctx, "defaultType", "bug")
        ticket = await new_ticket(ctx)
        assert ticket["type"] == "bug"

    @pytest.mark.asyncio
    async def test_int_value_stored_as_number(self, ctx, project_dir: Path, app_context: AppContext):
        result = await set_project_config(ctx, "maxTitleLength", "30")
        assert result["content"]["value"] == 30
        assert app_context.config.max_title_length == 30

    @pytest.mark.asyncio
    async def test_global_config(self, ctx, project_dir: Path, tmp_path: Path):
        result = await set_project_config(ctx, "defaultType", "feature", global_config=True)
        user_config = tmp_path / "xdg" / "project-manager" / "config.json"
        assert result["content"]["config_path"] == str(user_config)
        assert json.loads(user_config.read_text()) == {"defaultType": "feature"}
        assert not (project_dir / ".pmrc.json").exists()

    @pytest.mark.asyncio
    async def test_text_format(self, ctx, project_dir: Path):
        result = await set_project_config(ctx, "defaultPriority", "low", format="text")
        assert result["content"] == "Configuration updated: defaultPriority = low"

    @pytest.mark.asyncio
    async def test_unknown_key(self, ctx, project_dir: Path):
        result = await set_project_config(ctx, "colour", "blue")
        assert result["content"]["error"] == "VALIDATION_ERROR"
        assert "Unknown config key" in result["content"]["message"]
        assert not (project_dir / ".pmrc.json").exists()

    @pytest.mark.asyncio
    async def test_invalid_value(self, ctx, project_dir: Path, app_context: AppContext):
        result = await set_project_config(ctx, "defaultPriority", "urgent")
        assert result["content"]["error"] == "VALIDATION_ERROR"
        assert "urgent" in result["content"]["message"]
        assert app_context.config.default_priority == "medium"


class TestServer:
    """Tests for server wiring."""

    @pytest.mark.asyncio
    async def test_lifespan_yields_app_context(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
        monkeypatch.setenv("PM_STORAGE_PATH", str(tmp_path / "tickets.json"))
        monkeypatch.chdir(tmp_path)

        async with app_lifespan(mcp) as context:
            assert isinstance(context, AppContext)
            assert context.storage_path == tmp_path / "tickets.json"

    @pytest.mark.asyncio
    async def test_tools_registered(self):
        names = {tool.name for tool in await mcp.list_tools()}
        assert {
            "create_ticket",
            "get_ticket_by_id",
            "list_tickets",
            "search_tickets",
            "update_ticket_status",
            "update_ticket_priority",
            "update_ticket_content",
            "start_ticket",
            "complete_ticket",
            "archive_ticket",
            "delete_ticket",
            "get_ticket_stats",
            "get_project_config",
            "set_project_config",
        } <= names
