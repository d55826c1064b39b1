"""Per-invocation configuration for kintone-gateway.

The target prefix and log level have their own readers: classification and
logging both happen before the kintone credentials are validated.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from kintone_gateway.errors import ConfigError

DEFAULT_TARGET_PREFIX = "kintone-target"
DEFAULT_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"


class BasicAuth(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr


class KintoneConfig(BaseModel):
    """Connection settings for the remote kintone environment.

    Built fresh for every invocation and passed down explicitly; nothing below
    the handler reads the process environment.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str
    username: str
    password: SecretStr
    basic_auth: BasicAuth | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KintoneConfig:
        """Resolve configuration from ``KINTONE_*`` environment variables."""
        env = os.environ if environ is None else environ

        base_url = env.get("KINTONE_BASE_URL", "").strip()
        if not base_url:
            raise ConfigError("KINTONE_BASE_URL is not set", code="E1001")

        username = env.get("KINTONE_USERNAME", "")
        password = env.get("KINTONE_PASSWORD", "")
        if not (username and password):
            raise ConfigError(
                "kintone credentials are not set (KINTONE_USERNAME/KINTONE_PASSWORD are required)",
                code="E1002",
            )

        basic_auth = None
        basic_user = env.get("KINTONE_BASIC_AUTH_USERNAME", "")
        basic_password = env.get("KINTONE_BASIC_AUTH_PASSWORD", "")
        if basic_user and basic_password:
            basic_auth = BasicAuth(username=basic_user, password=SecretStr(basic_password))

        raw_timeout = env.get("KINTONE_TIMEOUT", "").strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as exc:
            raise ConfigError("KINTONE_TIMEOUT must be a number of seconds", code="E1003") from exc
        if timeout <= 0:
            raise ConfigError("KINTONE_TIMEOUT must be positive", code="E1003")

        return cls(
            base_url=base_url.rstrip("/"),
            username=username,
            password=SecretStr(password),
            basic_auth=basic_auth,
            timeout=timeout,
        )


def target_prefix_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Gateway-target prefix used by classification, readable without credentials."""
    env = os.environ if environ is None else environ
    return env.get("KINTONE_GATEWAY_TARGET_PREFIX", "") or DEFAULT_TARGET_PREFIX


def log_level_from_env(environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return (env.get("KINTONE_GATEWAY_LOG_LEVEL", "") or DEFAULT_LOG_LEVEL).upper()
