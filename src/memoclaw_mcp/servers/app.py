"""
MCP stdio server exposing the MemoClaw tools, resources, prompts and
argument completions.
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Iterable, Optional

from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import (
    CallToolResult,
    Completion,
    CompletionArgument,
    GetPromptResult,
    Prompt,
    Resource,
    TextContent,
    Tool,
)

from ..clients.http_client import MemoClawClient
from ..config import ClientConfig
from ..tools import TOOLS, ToolHandler
from .completions import CompletionProvider
from .prompts import PROMPTS, PromptBuilder
from .resources import JSON_MIME_TYPE, RESOURCES, read_resource

logger = logging.getLogger(__name__)

SERVER_NAME = "memoclaw"


def server_version() -> str:
    try:
        return version("memoclaw-mcp")
    except PackageNotFoundError:
        return "0.0.0"


def create_server(handler: ToolHandler, completions: Optional[CompletionProvider] = None) -> Server:
    """
    Build the MCP server around a tool handler.

    Tool failures never escape to the transport: they are logged and reported
    to the MCP client as ``isError`` results with an ``Error: ...`` message.
    Resource and prompt failures are returned as protocol errors.
    """
    app = Server(SERVER_NAME)
    prompts = PromptBuilder(handler)
    completions = completions or CompletionProvider(handler)

    @app.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS

    @app.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> CallToolResult:
        try:
            content = await handler.call(name, arguments)
        except Exception as e:
            logger.warning("tool %s failed: %s", name, e)
            return CallToolResult(content=[TextContent(type="text", text=f"Error: {e}")], isError=True)
        return CallToolResult(content=content)

    @app.list_resources()
    async def list_resources() -> list[Resource]:
        return RESOURCES

    @app.read_resource()
    async def read(uri) -> Iterable[ReadResourceContents]:
        text = await read_resource(handler, str(uri))
        return [ReadResourceContents(content=text, mime_type=JSON_MIME_TYPE)]

    @app.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return PROMPTS

    @app.get_prompt()
    async def get_prompt(name: str, arguments: Optional[dict]) -> GetPromptResult:
        return await prompts.get(name, arguments)

    @app.completion()
    async def complete(ref, argument: CompletionArgument, context) -> Completion:
        return await completions.complete(argument.name, argument.value)

    return app


async def serve(config: ClientConfig) -> None:
    """Run the stdio server until the client disconnects."""
    async with MemoClawClient(config) as client:
        app = create_server(ToolHandler(client, config))
        logger.info(
            "MemoClaw MCP server running (wallet %s, api %s, config from %s)",
            client.address,
            config.api_url,
            config.config_source,
        )
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=server_version(),
                    capabilities=app.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )
