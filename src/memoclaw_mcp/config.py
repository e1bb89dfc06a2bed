"""
Process configuration.

Resolution order for each setting: environment variable (a local ``.env`` is
loaded first without overriding the real environment), then
``~/.memoclaw/config.json``, then the built-in default. A private key is
mandatory; without one the process must not start.
"""

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .engine.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.memoclaw.com"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_RETRIES = 3

CONFIG_FILE_SOURCE = "config file (~/.memoclaw/config.json)"


def default_config_path() -> Path:
    return Path.home() / ".memoclaw" / "config.json"


class ClientConfig(BaseModel):
    """
    Immutable client settings, created once at startup.

    Attributes:
        private_key: EVM wallet private key (hex). Excluded from repr.
        api_url: Backend origin, without trailing slash.
        timeout_ms: Deadline for each individual HTTP attempt.
        max_retries: Retries allowed after the first attempt for transient failures.
        config_source: Where the private key came from, for diagnostics.
    """

    model_config = ConfigDict(frozen=True)

    private_key: str = Field(..., repr=False)
    api_url: str = DEFAULT_API_URL
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    config_source: str = "env"

    @field_validator("api_url")
    @classmethod
    def _normalize_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"api_url must start with http:// or https://, got {v!r}")
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


def _read_config_file(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _int_setting(raw: Optional[str], default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
    use_dotenv: bool = True,
) -> ClientConfig:
    """
    Resolve the client configuration.

    Args:
        environ: Variables to read instead of ``os.environ``.
        config_path: Config file location (default ``~/.memoclaw/config.json``).
        use_dotenv: Load ``.env`` into ``os.environ`` first (only when
            ``environ`` is not given).

    Raises:
        ConfigurationError: If no private key is found or a value is invalid.
    """
    if environ is None:
        if use_dotenv:
            load_dotenv(override=False)
        environ = os.environ

    private_key = environ.get("MEMOCLAW_PRIVATE_KEY", "").strip()
    api_url = environ.get("MEMOCLAW_URL", "").strip()
    config_source = "env"

    if not private_key or not api_url:
        file_config = _read_config_file(config_path or default_config_path())
        if not private_key and file_config.get("privateKey"):
            private_key = str(file_config["privateKey"]).strip()
            config_source = CONFIG_FILE_SOURCE
        if not api_url and file_config.get("url"):
            api_url = str(file_config["url"]).strip()

    if not private_key:
        raise ConfigurationError(
            "No private key found. Set MEMOCLAW_PRIVATE_KEY env var or run `memoclaw init`."
        )

    try:
        return ClientConfig(
            private_key=private_key,
            api_url=api_url or DEFAULT_API_URL,
            timeout_ms=_int_setting(environ.get("MEMOCLAW_TIMEOUT"), DEFAULT_TIMEOUT_MS),
            max_retries=_int_setting(environ.get("MEMOCLAW_MAX_RETRIES"), DEFAULT_MAX_RETRIES),
            config_source=config_source,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
