"""
Locally implemented tools that wrap the upstream ``get_screen`` call.

Each handler is a fixed pipeline: get_screen -> locate URL -> download.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Tuple, Union

from mcp.types import ImageContent, TextContent, Tool

from . import locator
from .errors import ToolArgumentError, UpstreamDataError
from .locator import Role
from .upstream import StitchClient

logger = logging.getLogger(__name__)

Content = Union[TextContent, ImageContent]
Handler = Callable[[StitchClient, Dict[str, Any]], Awaitable[List[Content]]]

_SCREEN_SCHEMA = {
    "type": "object",
    "properties": {
        "projectId": {"type": "string", "description": "Stitch project ID"},
        "screenId": {"type": "string", "description": "Screen ID"},
    },
    "required": ["projectId", "screenId"],
}


@dataclass(frozen=True)
class LocalTool:
    tool: Tool
    handler: Handler

    @property
    def name(self) -> str:
        return self.tool.name


def _screen_args(arguments: Dict[str, Any]) -> Tuple[str, str]:
    project_id = arguments.get("projectId")
    screen_id = arguments.get("screenId")
    if not project_id or not screen_id:
        raise ToolArgumentError("projectId and screenId are required")
    return str(project_id), str(screen_id)


async def get_screen(client: StitchClient, project_id: str, screen_id: str) -> Any:
    """Return the ``result`` of an upstream get_screen call."""
    envelope = await client.call_tool(
        "get_screen", {"projectId": project_id, "screenId": screen_id}
    )
    result = envelope.get("result")
    if not result:
        raise UpstreamDataError("Could not fetch screen details")
    return result


def screenshot_path(output_dir: Path, screen_id: str) -> Path:
    file_name = f"screen_{screen_id}.png"
    if Path(file_name).name != file_name or "\\" in file_name:
        raise ToolArgumentError(f"screenId is not usable in a file name: {screen_id!r}")
    return output_dir / file_name


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------

async def fetch_screen_code(client: StitchClient, project_id: str, screen_id: str) -> str:
    """Download the HTML for a screen and return it unchanged."""
    result = await get_screen(client, project_id, screen_id)
    url = locator.require(result, Role.CODE)
    response = await client.download(url, "code")
    return response.text


async def fetch_screen_image(
    client: StitchClient, project_id: str, screen_id: str
) -> Dict[str, str]:
    """Download a screen's screenshot, save it as ``screen_<id>.png``.

    Returns ``filePath``, ``fileName`` and ``base64``. An existing file with
    the same name is overwritten.
    """
    path = screenshot_path(client.settings.resolve_output_dir(), screen_id)
    result = await get_screen(client, project_id, screen_id)
    url = locator.require(result, Role.IMAGE)

    logger.info("Downloading image...")
    response = await client.download(url, "image")
    data = response.content

    await asyncio.to_thread(path.write_bytes, data)
    logger.info("Saved: %s", path)

    return {
        "filePath": str(path),
        "fileName": path.name,
        "base64": base64.b64encode(data).decode("ascii"),
    }


# ---------------------------------------------------------------------------
# MCP adapters
# ---------------------------------------------------------------------------

async def _code_tool(client: StitchClient, arguments: Dict[str, Any]) -> List[Content]:
    code = await fetch_screen_code(client, *_screen_args(arguments))
    return [TextContent(type="text", text=code)]


async def _image_tool(client: StitchClient, arguments: Dict[str, Any]) -> List[Content]:
    saved = await fetch_screen_image(client, *_screen_args(arguments))
    return [
        TextContent(type="text", text=f"Image saved to {saved['fileName']}"),
        ImageContent(type="image", data=saved["base64"], mimeType="image/png"),
    ]


LOCAL_TOOLS: List[LocalTool] = [
    LocalTool(
        Tool(
            name="fetch_screen_code",
            description=(
                "Download the HTML code of a Stitch screen. "
                "Returns the complete HTML content."
            ),
            inputSchema=_SCREEN_SCHEMA,
        ),
        _code_tool,
    ),
    LocalTool(
        Tool(
            name="fetch_screen_image",
            description=(
                "Download the screenshot of a Stitch screen. Saves it as "
                "screen_<screenId>.png in the server's output directory (the "
                "working directory unless --output-dir is set) and returns it "
                "as base64."
            ),
            inputSchema=_SCREEN_SCHEMA,
        ),
        _image_tool,
    ),
]
