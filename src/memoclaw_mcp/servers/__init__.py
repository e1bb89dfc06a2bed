"""
MCP server for MemoClaw.
"""

from .app import SERVER_NAME, create_server, serve
from .completions import CompletionProvider
from .prompts import PROMPTS, PromptBuilder
from .resources import RESOURCES, read_resource

__all__ = [
    "SERVER_NAME",
    "create_server",
    "serve",
    "CompletionProvider",
    "PROMPTS",
    "PromptBuilder",
    "RESOURCES",
    "read_resource",
]
