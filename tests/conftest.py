import json
from typing import Any, Callable, Dict, Optional

import httpx

from stitch_mcp.config import Settings
from stitch_mcp.upstream import StitchClient

API_URL = "https://stitch.test/mcp"


class StubCredentials:
    """CredentialSource that never shells out."""

    def __init__(self, token: str = "tok", project: Optional[str] = None):
        self.token = token
        self.project = project
        self.token_calls = 0

    def access_token(self) -> str:
        self.token_calls += 1
        return f"{self.token}-{self.token_calls}"

    def configured_project(self) -> Optional[str]:
        return self.project


def rpc_params(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)["params"]


def make_client(
    handler: Callable[[httpx.Request], Any],
    credentials: Optional[StubCredentials] = None,
    **settings: Any,
) -> StitchClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StitchClient(
        Settings(project_id="billing-1", api_url=API_URL, **settings),
        credentials or StubCredentials(),
        http_client=http,
    )


def assert_well_formed(result) -> None:
    """Success carries blocks; an error carries exactly one text block."""
    if result.isError:
        assert len(result.content) == 1
        assert result.content[0].type == "text"
    else:
        assert len(result.content) >= 1


