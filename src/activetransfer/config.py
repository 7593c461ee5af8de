"""Environment descriptors and configuration loading."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from activetransfer.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Hosts containing this marker speak the legacy SaaS protocol
SAAS_HOST_MARKER = "ipaas.automation.ibm.com"

DEFAULT_CONFIG_PATH = Path("config.json")

ENV_PREFIX = "ACTIVETRANSFER_"


@dataclass(frozen=True)
class Environment:
    """Connection details for one Active Transfer server."""

    host: str
    username: str
    password: str = ""
    protocol: str = "https"
    port: int | None = None
    name: str = "default"
    default_upload_path: str = "/"
    default_download_path: str = "."
    # On-prem uploads do not follow redirects unless asked to
    upload_follow_redirects: bool = False

    @property
    def effective_port(self) -> int:
        if self.port:
            return self.port
        return 80 if self.protocol == "http" else 443

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.effective_port}"

    @property
    def is_saas(self) -> bool:
        """Whether this host uses the SaaS (cookie session) protocol."""
        return SAAS_HOST_MARKER in self.host

    @property
    def mode(self) -> str:
        return "SaaS" if self.is_saas else "On-Premises"

    def with_password(self, password: str) -> Environment:
        return replace(self, password=password)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        name: str = "default",
        defaults: dict[str, Any] | None = None,
    ) -> Environment:
        """Build an environment from the nested config file shape.

        Args:
            data: Mapping with ``server``, ``auth`` and optional ``defaults``
            name: Key of the environment in the config file
            defaults: Shared defaults, overridden by ``data["defaults"]``

        Raises:
            ConfigError: If host or username is missing
        """
        server = data.get("server") or {}
        auth = data.get("auth") or {}
        merged = {**(defaults or {}), **(data.get("defaults") or {})}

        host = server.get("host")
        username = auth.get("username")
        if not host:
            raise ConfigError(f"Environment '{name}' is missing server.host")
        if not username:
            raise ConfigError(f"Environment '{name}' is missing auth.username")

        port = server.get("port")
        try:
            port = int(port) if port not in (None, "") else None
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Environment '{name}' has an invalid port: {port!r}") from e

        follow_redirects = server.get("uploadFollowRedirects", False)
        if not isinstance(follow_redirects, bool):
            raise ConfigError(
                f"Environment '{name}' has a non-boolean server.uploadFollowRedirects: "
                f"{follow_redirects!r}"
            )

        return cls(
            host=str(host),
            username=str(username),
            password=str(auth.get("password") or ""),
            protocol=str(server.get("protocol") or "https"),
            port=port,
            name=str(data.get("name") or name),
            default_upload_path=str(merged.get("uploadPath") or "/"),
            default_download_path=str(merged.get("downloadPath") or "."),
            upload_follow_redirects=follow_redirects,
        )


@dataclass
class ClientConfig:
    """A set of named environments with an optional default."""

    environments: dict[str, Environment] = field(default_factory=dict)
    default_environment: str | None = None

    def get(self, name: str | None = None) -> Environment:
        """Return the named environment, else the default one.

        Raises:
            ConfigError: If the name is unknown or no environment can be chosen
        """
        key = name or self.default_environment
        if key is None:
            if len(self.environments) == 1:
                return next(iter(self.environments.values()))
            raise ConfigError("No environment selected and no defaultEnvironment configured")
        try:
            return self.environments[key]
        except KeyError:
            known = ", ".join(sorted(self.environments)) or "(none)"
            raise ConfigError(f"Unknown environment '{key}'. Known: {known}") from None


def _apply_env_password(environment: Environment) -> Environment:
    if environment.password:
        return environment
    password = os.getenv(f"{ENV_PREFIX}PASSWORD")
    return environment.with_password(password) if password else environment


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> ClientConfig:
    """Load a JSON config file.

    Two shapes are accepted: a single environment with ``server``/``auth``
    at the top level, or ``environments`` keyed by name together with
    ``defaultEnvironment`` and shared ``defaults``. A password left empty in
    the file is taken from ``ACTIVETRANSFER_PASSWORD``.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    load_dotenv()
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        data = json.loads(config_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")

    shared_defaults = data.get("defaults") or {}

    if "environments" in data:
        raw_envs = data["environments"]
        if not isinstance(raw_envs, dict) or not raw_envs:
            raise ConfigError("'environments' must be a non-empty object")
        environments = {
            key: _apply_env_password(
                Environment.from_dict(value, name=key, defaults=shared_defaults)
            )
            for key, value in raw_envs.items()
        }
        default = data.get("defaultEnvironment")
        if default is not None and default not in environments:
            raise ConfigError(f"defaultEnvironment '{default}' is not defined")
        logger.debug(f"Loaded {len(environments)} environment(s) from {config_path}")
        return ClientConfig(environments=environments, default_environment=default)

    environment = _apply_env_password(Environment.from_dict(data, name="default"))
    return ClientConfig(environments={"default": environment}, default_environment="default")


def environment_from_env() -> Environment | None:
    """Build an environment from ``ACTIVETRANSFER_*`` variables.

    Variables are read after loading a ``.env`` file, if present.

    Returns:
        The environment, or None when ``ACTIVETRANSFER_HOST`` is not set
    """
    load_dotenv()
    host = os.getenv(f"{ENV_PREFIX}HOST")
    if not host:
        return None
    return Environment.from_dict(
        {
            "name": "env",
            "server": {
                "protocol": os.getenv(f"{ENV_PREFIX}PROTOCOL", "https"),
                "host": host,
                "port": os.getenv(f"{ENV_PREFIX}PORT"),
            },
            "auth": {
                "username": os.getenv(f"{ENV_PREFIX}USERNAME"),
                "password": os.getenv(f"{ENV_PREFIX}PASSWORD", ""),
            },
            "defaults": {
                "uploadPath": os.getenv(f"{ENV_PREFIX}UPLOAD_PATH"),
                "downloadPath": os.getenv(f"{ENV_PREFIX}DOWNLOAD_PATH"),
            },
        },
        name="env",
    )
