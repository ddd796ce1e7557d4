"""
Environment configuration.

Secrets and deployment values come from the environment; everything else
lives in rules.yaml. Validation is eager: the API refuses to start when a
required value is missing or malformed.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel

from src.components.subscriptions.models import ConfigurationError

DEFAULT_SITE_URL = "https://regpulss.com"


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _first(environ: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


class Settings(BaseModel):
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    site_url: str = DEFAULT_SITE_URL
    analytics_id: str | None = None
    environment: Literal["development", "production", "test"] = "development"
    store_backend: Literal["supabase", "memory"] = "supabase"
    rules_path: Path = Path("rules.yaml")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Read settings from the environment.

        Unknown values for APP_ENV / STORE_BACKEND raise pydantic's
        ValidationError; missing or malformed URLs and keys are reported by
        validate_settings instead so they can be listed together.
        """
        env = os.environ if environ is None else environ
        return cls(
            supabase_url=_first(env, "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
            supabase_anon_key=_first(env, "SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
            site_url=_first(env, "SITE_URL", "NEXT_PUBLIC_SITE_URL") or DEFAULT_SITE_URL,
            analytics_id=_first(env, "ANALYTICS_ID", "NEXT_PUBLIC_VERCEL_ANALYTICS_ID"),
            environment=env.get("APP_ENV", "development"),
            store_backend=env.get("STORE_BACKEND", "supabase"),
            rules_path=Path(env.get("RULES_PATH", "rules.yaml")),
        )

    @property
    def store_configured(self) -> bool:
        if self.store_backend == "memory":
            return True
        return bool(
            self.supabase_url and _is_http_url(self.supabase_url) and self.supabase_anon_key
        )


def validate_settings(settings: Settings) -> list[str]:
    """List every configuration problem; empty when the settings are usable."""
    problems: list[str] = []

    if settings.store_backend == "supabase":
        if not settings.supabase_url:
            problems.append("SUPABASE_URL is required")
        elif not _is_http_url(settings.supabase_url):
            problems.append("SUPABASE_URL must be a valid URL")
        if not settings.supabase_anon_key:
            problems.append("SUPABASE_ANON_KEY is required")

    if not _is_http_url(settings.site_url):
        problems.append("SITE_URL must be a valid URL")

    if settings.store_backend == "memory" and settings.environment == "production":
        problems.append("STORE_BACKEND=memory is not allowed in production")

    return problems


def require_valid_settings(settings: Settings) -> Settings:
    """
    Validate operational requirements before startup.

    Raises:
        ConfigurationError: listing every problem found
    """
    problems = validate_settings(settings)
    if problems:
        raise ConfigurationError(problems)
    return settings
