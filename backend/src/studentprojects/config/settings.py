"""
Service configuration.

Values come from environment variables, optionally seeded from a ``.env``
file in the working directory.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS: float = 30.0
DEFAULT_CRAWL_INTERVAL_SECONDS: int = 60 * 60
DEFAULT_LANGUAGE: str = "en"
DEFAULT_LOG_LEVEL: str = "INFO"

_TRUTHY = {"1", "true", "yes", "on"}


class SettingsError(Exception):
    """Raised when required configuration is missing."""


def _parse_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}'. Falling back to {default}.")
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, got '{raw}'. Falling back to {default}.")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    homeserver_base_url: str
    access_token: str
    root_context_space_id: str
    user_id: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    crawl_interval_seconds: int = DEFAULT_CRAWL_INTERVAL_SECONDS
    crawl_run_on_start: bool = True
    default_language: str = DEFAULT_LANGUAGE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the process environment.

        Args:
            env: Mapping to read instead of ``os.environ``. When omitted, a
                 ``.env`` file is loaded first.

        Raises:
            SettingsError: If the homeserver URL, access token or root space
                           id is not configured.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        missing = [
            name
            for name in (
                "MATRIX_HOMESERVER_BASE_URL",
                "MATRIX_ACCESS_TOKEN",
                "MATRIX_ROOT_CONTEXT_SPACE_ID",
            )
            if not env.get(name)
        ]
        if missing:
            raise SettingsError(f"Missing required configuration: {', '.join(missing)}")

        run_on_start = env.get("CRAWL_RUN_ON_START", "true").strip().lower() in _TRUTHY

        return cls(
            homeserver_base_url=env["MATRIX_HOMESERVER_BASE_URL"].rstrip("/"),
            access_token=env["MATRIX_ACCESS_TOKEN"],
            root_context_space_id=env["MATRIX_ROOT_CONTEXT_SPACE_ID"],
            user_id=env.get("MATRIX_USER_ID", ""),
            timeout_seconds=_parse_number(env, "MATRIX_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float),
            crawl_interval_seconds=_parse_number(
                env, "CRAWL_INTERVAL_SECONDS", DEFAULT_CRAWL_INTERVAL_SECONDS, int
            ),
            crawl_run_on_start=run_on_start,
            default_language=env.get("DEFAULT_LANGUAGE") or DEFAULT_LANGUAGE,
            log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )
