#!/usr/bin/env python3
"""
MCP server for Google Stitch.

Exposes the official Stitch MCP API (stitch.googleapis.com/mcp) as a stdio
MCP server, authenticating through gcloud application-default credentials,
and adds two local tools (fetch_screen_code, fetch_screen_image).

Usage:
    python -m stitch_mcp.server [--project=<id>] [--output-dir=<dir>]
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Iterable, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolRequest, CallToolResult, ServerResult, TextContent, Tool
from pydantic import ValidationError

from . import __version__
from .config import Settings
from .credentials import CredentialSource, GcloudCredentialSource, get_access_token, get_project_id
from .errors import StitchError
from .handlers import LOCAL_TOOLS, LocalTool
from .upstream import StitchClient

# ---------------------------------------------------------------------------
# Logging: stdout carries the MCP stdio transport, so everything goes to stderr
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=os.environ.get("STITCH_MCP_LOG_LEVEL", "INFO").upper(),
    format="[%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger("stitch_mcp")


# ---------------------------------------------------------------------------
# MCP response helpers
# ---------------------------------------------------------------------------

def ok(content: Iterable[Any]) -> CallToolResult:
    return CallToolResult(content=list(content), isError=False)


def err(msg: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=msg)], isError=True)


def dump(envelope: Any) -> CallToolResult:
    """Wrap a raw upstream envelope as pretty-printed JSON text."""
    return ok([TextContent(type="text", text=json.dumps(envelope, indent=2))])


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

class StitchRouter:
    """Merges the upstream catalog with local tools and dispatches calls.

    Names in the dispatch table go to their local handler; everything else is
    forwarded to Stitch as-is.
    """

    def __init__(self, client: StitchClient, local_tools: Iterable[LocalTool] = LOCAL_TOOLS):
        self.client = client
        self._local: Dict[str, LocalTool] = {t.name: t for t in local_tools}

    @property
    def local_tools(self) -> List[Tool]:
        return [t.tool for t in self._local.values()]

    async def list_tools(self) -> List[Tool]:
        """Upstream tools followed by the local ones; never raises."""
        try:
            envelope = await self.client.list_tools()
            upstream = self._parse_catalog(envelope.get("result"))
        except Exception as e:
            logger.error("tools/list failed: %s", e)
            return self.local_tools
        return upstream + self.local_tools

    def _parse_catalog(self, result: Any) -> List[Tool]:
        raw = result.get("tools") if isinstance(result, dict) else None
        tools: List[Tool] = []
        for entry in raw or []:
            try:
                tool = Tool.model_validate(entry)
            except ValidationError as e:
                logger.warning("Skipping malformed upstream tool: %s", e)
                continue
            if tool.name in self._local:
                logger.warning("Upstream tool %s shadowed by local tool", tool.name)
                continue
            tools.append(tool)
        return tools

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> CallToolResult:
        """Run a tool and always return a CallToolResult."""
        arguments = arguments or {}
        try:
            local = self._local.get(name)
            if local is not None:
                return ok(await local.handler(self.client, arguments))
            return await self._pass_through(name, arguments)
        except Exception as e:
            logger.error("Tool %s failed: %s", name, e)
            return err(f"Error calling {name}: {e}")

    async def _pass_through(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        envelope = await self.client.call_tool(name, arguments)
        result = envelope.get("result")
        if not result or not isinstance(result, dict):
            return dump(envelope)
        try:
            parsed = CallToolResult.model_validate(result)
        except ValidationError as e:
            logger.warning("Upstream result for %s is not a tool result: %s", name, e)
            return dump(envelope)
        if not parsed.content:
            return dump(envelope)
        return parsed


def build_server(router: StitchRouter) -> Server:
    server = Server("stitch", version=__version__)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return await router.list_tools()

    # Direct registration: the decorator runs list_tools before unknown names.
    async def call_tool(req: CallToolRequest) -> ServerResult:
        return ServerResult(await router.call_tool(req.params.name, req.params.arguments))

    server.request_handlers[CallToolRequest] = call_tool

    return server


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Google Stitch MCP server")
    parser.add_argument("--project", help="Billing project (default: env, then gcloud config)")
    parser.add_argument("--api-url", help="Stitch MCP endpoint")
    parser.add_argument("--timeout", type=float, help="Upstream timeout in seconds (default: 180)")
    parser.add_argument("--output-dir", help="Where screenshots are saved (default: cwd)")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    # parse_known_args so that launcher-specific flags don't cause errors
    args, _unknown = parser.parse_known_args(argv)
    return args


async def startup(args: argparse.Namespace, credentials: CredentialSource) -> Settings:
    """Resolve the billing project and check that a token can be minted."""
    logger.info("Starting Stitch MCP Server...")
    project_id = await asyncio.to_thread(get_project_id, credentials, None, args.project)
    logger.info("Project: %s", project_id)
    await asyncio.to_thread(get_access_token, credentials)
    logger.info("Auth verified")
    return Settings.from_env(
        project_id,
        api_url=args.api_url,
        timeout_s=args.timeout,
        output_dir=args.output_dir,
    )


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.log_level:
        logging.getLogger().setLevel(args.log_level.upper())

    credentials = GcloudCredentialSource()
    try:
        settings = await startup(args, credentials)
    except StitchError as e:
        logger.error("Startup failed: %s", e)
        return 1

    async with StitchClient(settings, credentials) as client:
        server = build_server(StitchRouter(client))
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Server ready (stdio)")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
