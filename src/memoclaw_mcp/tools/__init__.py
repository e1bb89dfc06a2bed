"""
MCP tool layer: the tool catalog and the handlers that execute it.
"""

from .catalog import TOOLS, TOOL_NAMES
from .handlers import ToolHandler, ToolResult, query_string, segment

__all__ = ["TOOLS", "TOOL_NAMES", "ToolHandler", "ToolResult", "query_string", "segment"]
