"""Application context wiring config, logging, storage and services.

The process entry point (CLI callback or MCP lifespan) builds one
``AppContext`` and passes it down; nothing looks it up globally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .logging_config import configure_logging
from .pm_config import PMConfig, get_logs_dir, load_config, resolve_storage_path, validate_config
from .services import TicketService
from .storage import JsonTicketRepository

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything a presentation layer needs for one process."""

    config: PMConfig
    storage_path: Path
    repository: JsonTicketRepository
    service: TicketService

    @classmethod
    def create(
        cls,
        config: Optional[PMConfig] = None,
        storage_path: Optional[str] = None,
        log_to_file: bool = False,
    ) -> "AppContext":
        """Build the context from config files and environment.

        Args:
            config: Pre-loaded config (loaded from disk when None)
            storage_path: Explicit tickets file, overriding config and env
            log_to_file: Also write logs under the user log directory
        """
        config = config or load_config()
        log_file = get_logs_dir() / "app.log" if log_to_file else None
        configure_logging(config.log_level, log_file)

        for problem in validate_config(config):
            logger.warning("Config: %s", problem)

        path = resolve_storage_path(storage_path or config.storage_path)
        repository = JsonTicketRepository(path)
        logger.debug("Using tickets file %s", path)
        return cls(
            config=config,
            storage_path=path,
            repository=repository,
            service=TicketService(repository),
        )
