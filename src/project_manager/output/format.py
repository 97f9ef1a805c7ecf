"""Output formatting utilities for CLI and MCP."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

OUTPUT_FORMATS = ("table", "json", "text")


def format_response(
    payload: Any,
    output_format: str = "json",
    text_renderer: Optional[Callable[[Any], str]] = None,
) -> dict:
    """Normalize response with format metadata and content.

    Args:
        payload: Data to serialize.
        output_format: "table", "json", or "text". Unknown values fall back to json.
        text_renderer: Optional renderer for text output.
    """
    output_format = (output_format or "json").lower()

    if output_format == "text":
        content = text_renderer(payload) if text_renderer else _dump(payload)
        return {"format": "text", "content": content}
    if output_format == "table":
        # Tables are built by the CLI at print time.
        return {"format": "table", "content": payload}

    return {"format": "json", "content": payload}


def render_cli(response: dict, table_renderer: Optional[Callable[[Any], Any]] = None) -> Any:
    """Render a formatted response into something ``Console.print`` accepts."""
    fmt = response.get("format")
    content = response.get("content")
    if fmt == "table" and table_renderer is not None:
        return table_renderer(content)
    if fmt == "text":
        return str(content)
    return _dump(content)


def _dump(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)
