"""
Credential and billing-project resolution via the gcloud CLI.

Tokens are never cached: every upstream call asks gcloud for a fresh
application-default access token.
"""

import logging
import os
import platform
import subprocess
from typing import List, Mapping, Optional, Protocol

from .config import GCLOUD_TIMEOUT_S, GCLOUD_UNSET, PROJECT_ENV_VARS
from .errors import (
    AuthExpiredError,
    CommandError,
    ConfigurationError,
    DependencyMissingError,
    StitchError,
)

logger = logging.getLogger(__name__)

INSTALL_HINT = "gcloud CLI not found. Install: https://cloud.google.com/sdk/docs/install"
LOGIN_HINT = "Auth expired. Run: gcloud auth application-default login"
PROJECT_HINT = (
    "Project ID not found. Set GOOGLE_CLOUD_PROJECT or run: "
    "gcloud config set project YOUR_PROJECT"
)


class CredentialSource(Protocol):
    """The two things the bridge needs from the host environment."""

    def access_token(self) -> str:
        ...

    def configured_project(self) -> Optional[str]:
        ...


def gcloud_command() -> str:
    return "gcloud.cmd" if platform.system() == "Windows" else "gcloud"


class GcloudCredentialSource:
    """CredentialSource backed by synchronous gcloud subprocess calls."""

    def __init__(self, timeout_s: float = GCLOUD_TIMEOUT_S):
        self.timeout_s = timeout_s

    def run(self, *args: str) -> str:
        cmd: List[str] = [gcloud_command(), *args]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout_s,
                check=True,
            )
        except FileNotFoundError as exc:
            raise DependencyMissingError(INSTALL_HINT) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                f"'{' '.join(cmd)}' timed out after {self.timeout_s:g}s"
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            if "Reauthentication" in stderr:
                raise AuthExpiredError(LOGIN_HINT) from exc
            raise CommandError(
                f"'{' '.join(cmd)}' exited with {exc.returncode}: {stderr}",
                returncode=exc.returncode,
                stderr=stderr,
            ) from exc
        return proc.stdout.strip()

    def access_token(self) -> str:
        return self.run("auth", "application-default", "print-access-token")

    def configured_project(self) -> Optional[str]:
        project = self.run("config", "get-value", "project")
        if not project or project == GCLOUD_UNSET:
            return None
        return project


def get_access_token(source: CredentialSource) -> str:
    return source.access_token()


def get_project_id(
    source: CredentialSource,
    environ: Optional[Mapping[str, str]] = None,
    explicit: Optional[str] = None,
) -> str:
    """Resolve the billing project.

    Order: *explicit* (``--project``), ``GOOGLE_CLOUD_PROJECT``,
    ``GCLOUD_PROJECT``, then ``gcloud config get-value project``.
    gcloud failures in the last step only mean "not configured".
    """
    if explicit:
        return explicit

    env = os.environ if environ is None else environ
    for name in PROJECT_ENV_VARS:
        value = env.get(name)
        if value:
            return value

    try:
        project = source.configured_project()
    except StitchError as exc:
        logger.debug("gcloud project lookup failed: %s", exc)
        project = None
    if project:
        return project

    raise ConfigurationError(PROJECT_HINT)
