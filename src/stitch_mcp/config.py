"""Runtime settings for the Stitch bridge."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigurationError

STITCH_API_URL = "https://stitch.googleapis.com/mcp"
TIMEOUT_S = 180.0  # 3 minutes
GCLOUD_TIMEOUT_S = 10.0

BILLING_PROJECT_HEADER = "X-Goog-User-Project"

# Checked in order; the first non-empty value wins.
PROJECT_ENV_VARS = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")
GCLOUD_UNSET = "(unset)"


@dataclass(frozen=True)
class Settings:
    """Immutable configuration handed to the client and router at startup."""

    project_id: str
    api_url: str = STITCH_API_URL
    timeout_s: float = TIMEOUT_S
    output_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, project_id: str, **overrides: Any) -> "Settings":
        """Build settings from defaults, then environment, then *overrides*.

        ``None`` values in *overrides* are ignored so argparse results can be
        passed straight through.
        """
        values: dict = {}
        api_url = os.environ.get("STITCH_API_URL")
        if api_url:
            values["api_url"] = api_url
        timeout = os.environ.get("STITCH_TIMEOUT_S")
        if timeout:
            try:
                values["timeout_s"] = float(timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"STITCH_TIMEOUT_S must be a number of seconds, got {timeout!r}"
                ) from exc
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "output_dir" in values:
            values["output_dir"] = Path(values["output_dir"])
        return cls(project_id=project_id, **values)

    def resolve_output_dir(self) -> Path:
        return self.output_dir if self.output_dir is not None else Path.cwd()
