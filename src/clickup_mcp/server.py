"""ClickUp MCP Server - Expose workspace spaces and views to AI assistants."""
import os
import sys
import asyncio
import logging
import traceback
from typing import Any, Optional

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    Tool,
    TextContent,
    ImageContent,
    EmbeddedResource,
)

from clickup_core.context import HierarchyContext
from clickup_core.errors import AmbiguousNameError, HierarchyError

from . import formatters
from . import tools
from . import handlers


# Configure logging to stderr (stdout carries the MCP protocol)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
    force=True
)
logger = logging.getLogger("clickup-mcp")


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


# API Configuration
API_BASE_URL = os.getenv("CLICKUP_API_BASE_URL", "https://api.clickup.com/api/v2")
CLICKUP_API_TOKEN = os.getenv("CLICKUP_API_TOKEN")
CLICKUP_TEAM_ID = os.getenv("CLICKUP_TEAM_ID", "")
HTTP_TIMEOUT = float(os.getenv("CLICKUP_HTTP_TIMEOUT", "30.0"))
# Seconds before a cached hierarchy level is refetched; unset = only on invalidation
HIERARCHY_MAX_AGE = _optional_float("CLICKUP_HIERARCHY_MAX_AGE")
NAME_FALLBACK = os.getenv("CLICKUP_NAME_FALLBACK", "true").lower() not in ("0", "false", "no")

logger.info(f"MCP Server starting with API_BASE_URL: {API_BASE_URL}")
if not CLICKUP_API_TOKEN:
    logger.warning("CLICKUP_API_TOKEN is not set; API calls will be rejected")
if not CLICKUP_TEAM_ID:
    logger.warning("CLICKUP_TEAM_ID is not set; workspace-level lookups will fail")


# MCP Server instance
app = Server("clickup-mcp")

# Process-wide state, created in main() and torn down on exit
_http_client: Optional[httpx.AsyncClient] = None
_hierarchy: Optional[HierarchyContext] = None


def create_http_client() -> httpx.AsyncClient:
    headers = {"Content-Type": "application/json"}
    if CLICKUP_API_TOKEN:
        headers["Authorization"] = CLICKUP_API_TOKEN
    return httpx.AsyncClient(base_url=API_BASE_URL, timeout=HTTP_TIMEOUT, headers=headers)


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools for spaces and views."""
    return tools.get_tools()


# ============================================================================
# Tool Handlers
# ============================================================================


async def dispatch(
    name: str,
    arguments: Any,
    client: httpx.AsyncClient,
    hierarchy: HierarchyContext
) -> list[TextContent]:
    """Run one tool call and turn every failure into a text response."""
    logger.info(f"Tool call: {name} with arguments: {arguments}")
    arguments = dict(arguments or {})

    handler = handlers.HANDLERS.get(name)
    if not handler:
        logger.warning(f"Unknown tool requested: {name}")
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        return await handler(arguments, client, hierarchy)

    except AmbiguousNameError as e:
        logger.warning(f"Ambiguous name during {name} call: {e.message}")
        return [TextContent(type="text", text=formatters.format_ambiguous(e))]

    except HierarchyError as e:
        # MissingParent, NotFound, InvalidScope and Upstream failures
        logger.warning(f"{type(e).__name__} during {name} call: {e.message}")
        return [TextContent(type="text", text=f"Error: {e.message}")]

    except httpx.HTTPStatusError as e:
        # Log detailed HTTP error information
        logger.error(f"HTTP error during {name} call:")
        logger.error(f"  Status: {e.response.status_code}")
        logger.error(f"  URL: {e.request.url}")
        try:
            response_body = e.response.json()
            logger.error(f"  Response body: {response_body}")
            error_detail = response_body.get("err") or response_body.get("detail") or str(e)
        except Exception:
            response_text = e.response.text
            logger.error(f"  Response text: {response_text}")
            error_detail = response_text or str(e)
        return [TextContent(type="text", text=f"Error: {error_detail}")]

    except httpx.RequestError as e:
        # Network/connection errors
        logger.error(f"Request error during {name} call:")
        logger.error(f"  Error type: {type(e).__name__}")
        logger.error(f"  Error message: {str(e)}")
        return [TextContent(type="text", text=f"Error: Connection failed - {str(e)}")]

    except Exception as e:
        # Catch-all for unexpected errors
        logger.error(f"Unexpected error during {name} call:")
        logger.error(f"  Error type: {type(e).__name__}")
        logger.error(f"  Error message: {str(e)}")
        logger.error(f"  Arguments: {arguments}")
        logger.error(f"  Traceback:\n{traceback.format_exc()}")
        return [TextContent(type="text", text=f"Error: {type(e).__name__}: {str(e)}")]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent | ImageContent | EmbeddedResource]:
    """Handle MCP tool calls by delegating to the shared handlers."""
    if _http_client is None or _hierarchy is None:
        return [TextContent(type="text", text="Error: server is not initialized")]
    return await dispatch(name, arguments, _http_client, _hierarchy)


async def main():
    """Run the MCP server."""
    global _http_client, _hierarchy

    async with create_http_client() as client:
        _http_client = client
        _hierarchy = HierarchyContext.create(
            client,
            CLICKUP_TEAM_ID,
            max_age=HIERARCHY_MAX_AGE,
            case_insensitive_fallback=NAME_FALLBACK,
        )
        try:
            async with stdio_server() as (read_stream, write_stream):
                await app.run(read_stream, write_stream, app.create_initialization_options())
        finally:
            _hierarchy.cache.invalidate_all()
            _hierarchy = None
            _http_client = None


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
