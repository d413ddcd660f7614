"""MCP server exposing the responsive image transform as tools."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from .engine import responsify
from .presets import get_available_presets

logger = logging.getLogger("responsify.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="responsify")


def _resolve_config(config: Optional[str], preset: Optional[str]) -> Dict[str, Any]:
    if config:
        data = json.loads(config)
        if not isinstance(data, dict):
            raise ValueError("config must be a JSON object")
        return data
    if preset:
        return {"preset": preset}
    raise ValueError("Either config or preset is required")


@mcp.tool()
async def transform_html(
    html: str,
    config: Optional[str] = None,
    preset: Optional[str] = None,
) -> str:
    """Rewrite <img> tags using a JSON rule configuration or a built-in preset."""

    result = responsify(html, _resolve_config(config, preset))
    if not result.success:
        raise RuntimeError(f"Transformation failed: {result.error}")
    return result.html


@mcp.tool()
async def list_presets() -> List[str]:
    """List the names of the built-in presets."""

    return get_available_presets()


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
