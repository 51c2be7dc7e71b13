"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag / PRENATAL_CHAT_CONFIG_PATH
2. ./prenatal_chat.yaml (working directory)
3. ~/.prenatal_chat/config.yaml (user home)

Environment variables override YAML: PRENATAL_CHAT_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
With no config file at all, defaults plus env overrides are returned.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "PRENATAL_CHAT_"
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

_DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Args:
        value: String potentially containing ${VAR} references.

    Returns:
        String with all ${VAR} references replaced by their env values.
        Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


def _default_allowed_origins() -> list[str]:
    origins = list(_DEFAULT_ORIGINS)
    frontend_url = os.environ.get("FRONTEND_URL", "").strip()
    if frontend_url:
        origins.append(frontend_url)
    return origins


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 3001
    log_level: str = "info"
    debug: bool = False
    log_requests: bool = False
    allowed_origins: list[str] = Field(default_factory=_default_allowed_origins)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, value: Any) -> Any:
        """Accept a comma-separated string (env override) as well as a list."""
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value


class DatabaseConfig(BaseModel):
    """Persistence store settings.

    ``url`` falls back to DATABASE_URL, then a local SQLite file.
    """

    url: str = Field(
        default_factory=lambda: os.environ.get("DATABASE_URL", "").strip()
        or "sqlite:///./prenatal_chat.db"
    )
    echo: bool = False


class GatewayConfig(BaseModel):
    """External AI service settings.

    ``url`` falls back to FASTAPI_URL (the AI service's historical name).
    """

    url: str = Field(
        default_factory=lambda: os.environ.get("FASTAPI_URL", "").strip()
        or "http://localhost:8001"
    )
    timeout_seconds: float = 30.0
    health_timeout_seconds: float = 5.0
    model_name: str = "gpt-4o-mini"


class RateLimitConfig(BaseModel):
    """Per-IP request limits for /api/* routes."""

    enabled: bool = True
    max_requests: int = 200
    window_seconds: int = 15 * 60
    trust_proxy: bool = False


class ClientConfig(BaseModel):
    """Defaults for the command-line client."""

    base_url: str = "http://127.0.0.1:3001"
    user_id: str = "default-user"


class PrenatalChatConfig(BaseModel):
    """Top-level configuration for the backend and its CLI."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def _find_config_file() -> Path | None:
    candidates = [
        Path.cwd() / "prenatal_chat.yaml",
        Path.cwd() / "prenatal_chat.yml",
        Path.home() / ".prenatal_chat" / "config.yaml",
        Path.home() / ".prenatal_chat" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply PRENATAL_CHAT_<SECTION>_<KEY> env var overrides to config data.

    Matches section names by longest prefix so ``rate_limit`` wins over a
    hypothetical ``rate`` section. For example,
    ``PRENATAL_CHAT_RATE_LIMIT_MAX_REQUESTS`` maps to section
    ``rate_limit``, field ``max_requests``.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    known_sections = sorted(
        PrenatalChatConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        suffix = key[len(ENV_PREFIX):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if not isinstance(data.get(matched_section), dict):
            data[matched_section] = {}
        # Pydantic coerces the raw string to the field's declared type.
        data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> PrenatalChatConfig:
    """Load configuration from YAML (if any) with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, uses
            PRENATAL_CHAT_CONFIG_PATH or searches standard locations.

    Returns:
        Validated PrenatalChatConfig. Defaults apply when no file exists.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
    """
    config_path = config_path or os.environ.get("PRENATAL_CHAT_CONFIG_PATH") or None
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return PrenatalChatConfig(**data)
