"""ClickUp MCP Server - Model Context Protocol integration.

This package exposes ClickUp spaces and views to AI assistants. Entities can
be addressed by id or by name; names are resolved through the cached
hierarchy in clickup_core.

Modules:
- server: stdio MCP server implementation
- formatters: Response formatting utilities
- tools: MCP tool definitions
- handlers: Tool implementation handlers
"""

__version__ = "1.0.0"

from . import formatters
from . import tools
from . import handlers

__all__ = ["formatters", "tools", "handlers", "__version__"]
