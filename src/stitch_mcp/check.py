#!/usr/bin/env python3
"""
Environment check for the Stitch MCP server.

Verifies the gcloud CLI, application-default credentials, the billing
project and a live tools/list call, one step at a time.

Usage:
    GOOGLE_CLOUD_PROJECT=your-project-id python -m stitch_mcp.check
"""

import asyncio
import sys
from typing import Optional

from .config import Settings
from .credentials import GcloudCredentialSource, get_access_token, get_project_id
from .errors import StitchError
from .upstream import StitchClient


def _pass(msg: str) -> None:
    print(f"   ✓ {msg}\n", flush=True)


def _fail(msg: str) -> int:
    print(f"   ✗ {msg}\n", flush=True)
    return 1


async def check(credentials: Optional[GcloudCredentialSource] = None) -> int:
    """Run each check in order; return 1 at the first failure."""
    credentials = credentials or GcloudCredentialSource()
    print("Testing stitch-mcp\n", flush=True)

    print("1. Checking gcloud CLI...", flush=True)
    try:
        credentials.run("--version")
    except StitchError as e:
        return _fail(f"gcloud not usable: {e}")
    _pass("gcloud installed")

    print("2. Checking ADC token...", flush=True)
    try:
        get_access_token(credentials)
    except StitchError as e:
        return _fail(f"ADC not configured ({e}). Run: gcloud auth application-default login")
    _pass("ADC token available")

    print("3. Checking project ID...", flush=True)
    try:
        project_id = get_project_id(credentials)
    except StitchError as e:
        return _fail(str(e))
    _pass(f"Project: {project_id}")

    print("4. Testing Stitch API connection...", flush=True)
    try:
        settings = Settings.from_env(project_id)
    except StitchError as e:
        return _fail(str(e))
    async with StitchClient(settings, credentials) as client:
        try:
            envelope = await client.list_tools()
        except StitchError as e:
            return _fail(f"Error: {e}")

    result = envelope.get("result")
    tools = result.get("tools") if isinstance(result, dict) else None
    if not isinstance(tools, list):
        return _fail(f"Unexpected response: {envelope}")
    _pass(f"Connected! {len(tools)} tools available")
    print("   Tools:", flush=True)
    for tool in tools:
        name = tool.get("name") if isinstance(tool, dict) else tool
        print(f"     - {name}", flush=True)

    print("\nAll checks passed!", flush=True)
    return 0


def run() -> None:
    sys.exit(asyncio.run(check()))


if __name__ == "__main__":
    run()
