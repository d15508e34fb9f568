"""Runtime settings and API client configuration for rdcall."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from rdcall import __version__

DEFAULT_API_VERSION = 41
CONFIG_FILENAME = "config.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(RuntimeError):
    """Raised when client configuration is missing or malformed."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    cli_version: str = __version__

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILENAME


@dataclass(frozen=True)
class ClientConfig:
    """Connection parameters for the orchestration server."""

    url: str | None = None
    token: str | None = None
    api_version: int = DEFAULT_API_VERSION
    project: str | None = None
    ansi: bool = False

    def require_connection(self) -> "ClientConfig":
        if not self.url:
            raise ConfigError("server url missing: set RD_URL or 'url' in config.yaml")
        if not self.token:
            raise ConfigError("auth token missing: set RD_TOKEN or 'token' in config.yaml")
        return self

    def base_api_url(self) -> str:
        if not self.url:
            raise ConfigError("server url missing: set RD_URL or 'url' in config.yaml")
        return f"{self.url.rstrip('/')}/api/{self.api_version}"


def _default_home_dir() -> Path:
    override = os.environ.get("RDCALL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".rdcall"


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    return RuntimeSettings(home_dir=base, log_dir=base / "logs")


def _parse_bool(raw: Any, *, key: str) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _parse_api_version(raw: Any, *, key: str) -> int:
    try:
        version = int(str(raw).strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
    if version < 1:
        raise ConfigError(f"{key} must be positive, got {version}")
    return version


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"config file {path} is not valid YAML: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return raw


def load_client_config(
    settings: RuntimeSettings,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Build the client config from ``config.yaml`` overlaid with ``RD_*`` variables."""

    env = os.environ if environ is None else environ
    file_values = _read_config_file(settings.config_file)
    config = ClientConfig()

    if file_values.get("url"):
        config = replace(config, url=str(file_values["url"]))
    if file_values.get("token"):
        config = replace(config, token=str(file_values["token"]))
    if file_values.get("api_version") is not None:
        config = replace(config, api_version=_parse_api_version(file_values["api_version"], key="api_version"))
    if file_values.get("project"):
        config = replace(config, project=str(file_values["project"]))
    if file_values.get("color") is not None:
        config = replace(config, ansi=_parse_bool(file_values["color"], key="color"))

    if env.get("RD_URL"):
        config = replace(config, url=env["RD_URL"])
    token_env = env.get("RD_TOKEN_ENV")
    if token_env:
        token = env.get(token_env)
        if not token:
            raise ConfigError(f"auth token missing in environment variable '{token_env}'")
        config = replace(config, token=token)
    elif env.get("RD_TOKEN"):
        config = replace(config, token=env["RD_TOKEN"])
    if env.get("RD_API_VERSION"):
        config = replace(config, api_version=_parse_api_version(env["RD_API_VERSION"], key="RD_API_VERSION"))
    if env.get("RD_PROJECT"):
        config = replace(config, project=env["RD_PROJECT"])
    if env.get("RD_COLOR"):
        config = replace(config, ansi=_parse_bool(env["RD_COLOR"], key="RD_COLOR"))
    return config


SETTINGS = load_settings()
