from pathlib import Path

import pytest

from stitch_mcp.config import STITCH_API_URL, TIMEOUT_S, Settings
from stitch_mcp.errors import ConfigurationError
from stitch_mcp.server import parse_args


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STITCH_API_URL", raising=False)
    monkeypatch.delenv("STITCH_TIMEOUT_S", raising=False)

    settings = Settings.from_env("p")

    assert settings.api_url == STITCH_API_URL
    assert settings.timeout_s == TIMEOUT_S == 180.0
    assert settings.output_dir is None


def test_environment_then_explicit_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STITCH_API_URL", "https://env.test/mcp")
    monkeypatch.setenv("STITCH_TIMEOUT_S", "30")

    settings = Settings.from_env("p", api_url=None, timeout_s=5.0, output_dir="out")

    assert settings.api_url == "https://env.test/mcp"
    assert settings.timeout_s == 5.0
    assert settings.output_dir == Path("out")


def test_output_dir_defaults_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert Settings(project_id="p").resolve_output_dir() == tmp_path


def test_parse_args_ignores_unknown_flags() -> None:
    args = parse_args(["--project", "billing", "--timeout", "12", "--stdio"])

    assert args.project == "billing"
    assert args.timeout == 12.0
    assert args.api_url is None


def test_bad_timeout_env_is_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STITCH_TIMEOUT_S", "three minutes")

    with pytest.raises(ConfigurationError, match="STITCH_TIMEOUT_S"):
        Settings.from_env("p")
