"""JSON-file ticket repository.

The whole collection lives in one JSON array. Every operation loads the
full array; mutations rewrite it under the per-file write lock.

Usage:
    repo = JsonTicketRepository(Path("~/.config/project-manager/tickets.json").expanduser())

    await repo.save(ticket)
    ticket = await repo.find_by_id(ticket.id)
    pending = await repo.search({"status": "pending"})
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..errors import NotFoundError, StorageError, ValidationError
from ..models import Ticket, TicketId
from .base import TicketIdLike, TicketSearchCriteria, TicketStatistics
from .locks import FileLockRegistry, default_registry

logger = logging.getLogger(__name__)

JSON_INDENT = 2


def _coerce_id(ticket_id: TicketIdLike) -> TicketId:
    """Validate an id argument before any file access."""
    if isinstance(ticket_id, TicketId):
        return ticket_id
    if ticket_id is None:
        raise ValidationError("Ticket ID is required", field="id")
    return TicketId.create(ticket_id)


class JsonTicketRepository:
    """Ticket storage backed by a single JSON file."""

    def __init__(
        self,
        file_path: Union[str, Path],
        lock_registry: Optional[FileLockRegistry] = None,
    ):
        """Initialize the repository.

        Args:
            file_path: Resolved path of the tickets file (need not exist yet)
            lock_registry: Write-lock table; defaults to the process-wide one
        """
        if not str(file_path).strip():
            raise ValueError("file_path is required for JsonTicketRepository")
        self.file_path = Path(str(file_path).strip())
        self._locks = lock_registry or default_registry

    # ------------------------------------------------------------------
    # Mutations (serialized per file)
    # ------------------------------------------------------------------

    async def save(self, ticket: Ticket) -> None:
        """Insert the ticket, or replace the stored record with the same id."""
        async with self._locks.hold(self.file_path):
            records = await self._load_records()
            record = ticket.to_dict()
            index = self._index_of(records, record["id"])
            if index is None:
                records.append(record)
            else:
                records[index] = record
            await self._write_records(records)
        logger.debug("Saved ticket %s to %s", record["id"], self.file_path)

    async def update(self, ticket: Ticket) -> None:
        """Replace an existing record; NotFoundError if the id is unknown."""
        async with self._locks.hold(self.file_path):
            records = await self._load_records()
            index = self._index_of(records, ticket.id.value)
            if index is None:
                raise NotFoundError(ticket.id.value)
            records[index] = ticket.to_dict()
            await self._write_records(records)
        logger.debug("Updated ticket %s in %s", ticket.id, self.file_path)

    async def delete(self, ticket_id: TicketIdLike) -> None:
        tid = _coerce_id(ticket_id)
        async with self._locks.hold(self.file_path):
            records = await self._load_records()
            remaining = [r for r in records if not self._has_id(r, tid.value)]
            if len(remaining) == len(records):
                raise NotFoundError(tid.value)
            await self._write_records(remaining)
        logger.debug("Deleted ticket %s from %s", tid, self.file_path)

    async def clear(self) -> None:
        """Remove every ticket (the file is left holding an empty array)."""
        async with self._locks.hold(self.file_path):
            await self._write_records([])
        logger.debug("Cleared %s", self.file_path)

    # ------------------------------------------------------------------
    # Reads (not serialized against writes)
    # ------------------------------------------------------------------

    async def find_by_id(self, ticket_id: TicketIdLike) -> Ticket:
        ticket = await self.find_by_id_or_none(ticket_id)
        if ticket is None:
            raise NotFoundError(_coerce_id(ticket_id).value)
        return ticket

    async def find_by_id_or_none(self, ticket_id: TicketIdLike) -> Optional[Ticket]:
        tid = _coerce_id(ticket_id)
        for record in await self._load_records():
            if self._has_id(record, tid.value):
                return Ticket.reconstitute(record)
        return None

    async def find_all(self) -> list[Ticket]:
        """All tickets in stored order."""
        return [Ticket.reconstitute(record) for record in await self._load_records()]

    async def search(
        self, criteria: Union[TicketSearchCriteria, dict, None] = None
    ) -> list[Ticket]:
        """Tickets matching every given filter; no filters returns everything."""
        if not isinstance(criteria, TicketSearchCriteria):
            criteria = TicketSearchCriteria.from_dict(criteria)
        records = await self._load_records()
        return [Ticket.reconstitute(r) for r in records if criteria.matches(r)]

    async def exists(self, ticket_id: TicketIdLike) -> bool:
        tid = _coerce_id(ticket_id)
        return any(self._has_id(r, tid.value) for r in await self._load_records())

    async def count(self) -> int:
        return len(await self._load_records())

    async def get_statistics(self) -> TicketStatistics:
        return TicketStatistics.from_tickets(await self.find_all())

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    @staticmethod
    def _has_id(record: dict, ticket_id: str) -> bool:
        return isinstance(record, dict) and record.get("id") == ticket_id

    def _index_of(self, records: list, ticket_id: str) -> Optional[int]:
        for index, record in enumerate(records):
            if self._has_id(record, ticket_id):
                return index
        return None

    def _read_text(self) -> str:
        return self.file_path.read_text(encoding="utf-8")

    async def _load_records(self) -> list:
        """Load the raw records, treating missing or corrupt storage as empty.

        A missing or blank file is the first-run case. Invalid JSON or a
        document that is not an array is logged and read as an empty
        collection so a damaged file never blocks the tool; entries that are
        not objects are logged and dropped. Any other read failure
        (permissions, I/O) raises StorageError.
        """
        try:
            content = await asyncio.to_thread(self._read_text)
        except FileNotFoundError:
            return []
        except UnicodeDecodeError:
            logger.warning("Tickets file %s is not valid UTF-8, treating as empty", self.file_path)
            return []
        except OSError as e:
            raise StorageError(f"Failed to read tickets file: {self.file_path}", e) from e

        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Corrupted tickets file %s (%s), treating as empty", self.file_path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Tickets file %s does not hold an array, treating as empty", self.file_path)
            return []

        records = [record for record in data if isinstance(record, dict)]
        if len(records) != len(data):
            logger.warning(
                "Tickets file %s has %d non-object entries, skipping them",
                self.file_path,
                len(data) - len(records),
            )

        logger.debug("Loaded %d ticket records from %s", len(records), self.file_path)
        return records

    def _write_text(self, content: str) -> None:
        """Write to a temp file in the target directory, then swap it in."""
        directory = self.file_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.file_path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self.file_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _write_records(self, records: list) -> None:
        content = json.dumps(records, indent=JSON_INDENT, ensure_ascii=False)
        try:
            await asyncio.to_thread(self._write_text, content)
        except OSError as e:
            raise StorageError(f"Failed to write tickets file: {self.file_path}", e) from e
