"""
Gateway configuration.
Reads environment variables (and a local .env file) into a Settings object.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

TEST_ENV = "test"
REQUIRED_PRODUCTION_VARS = ("GOOGLE_CLOUD_PROJECT", "GOOGLE_APPLICATION_CREDENTIALS")


class ConfigurationError(RuntimeError):
    """Raised when the process cannot be wired with the given environment."""


@dataclass(frozen=True)
class Settings:
    app_env: str = "production"
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    google_cloud_location: str = "us-central1"
    gemini_model: str = "gemini-2.0-flash-lite-001"
    description_language: str = "Spanish"
    host: str = "0.0.0.0"
    port: int = 3000
    max_upload_mb: int = 10
    ai_timeout_seconds: int = 60
    cors_origins: Tuple[str, ...] = ("*",)

    @property
    def is_test(self) -> bool:
        return self.app_env == TEST_ENV

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def _int_var(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ (Mapping, optional): Variables to read instead of os.environ.
            When omitted, .env is loaded into os.environ first.

    Returns:
        Settings: The parsed configuration.

    Raises:
        ConfigurationError: If a production-only variable is missing or a
            numeric variable does not parse.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    app_env = environ.get("APP_ENV", "production").strip().lower() or "production"

    if app_env != TEST_ENV:
        missing = [name for name in REQUIRED_PRODUCTION_VARS if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

    origins = tuple(
        o.strip() for o in environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
    ) or ("*",)

    return Settings(
        app_env=app_env,
        google_cloud_project=environ.get("GOOGLE_CLOUD_PROJECT"),
        google_application_credentials=environ.get("GOOGLE_APPLICATION_CREDENTIALS"),
        google_cloud_location=environ.get("GOOGLE_CLOUD_LOCATION", "us-central1"),
        gemini_model=environ.get("GEMINI_MODEL", "gemini-2.0-flash-lite-001"),
        description_language=environ.get("DESCRIPTION_LANGUAGE", "Spanish"),
        host=environ.get("HOST", "0.0.0.0"),
        port=_int_var(environ, "PORT", 3000),
        max_upload_mb=_int_var(environ, "MAX_UPLOAD_MB", 10),
        ai_timeout_seconds=_int_var(environ, "AI_TIMEOUT_SECONDS", 60),
        cors_origins=origins,
    )
