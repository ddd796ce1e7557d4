"""
Unit tests for environment settings and the rules file loader.
"""

from pathlib import Path

import pydantic
import pytest

from src.app_shell.config import (
    DEFAULT_SITE_URL,
    Settings,
    require_valid_settings,
    validate_settings,
)
from src.components.subscriptions import ConfigurationError
from src.rules.loader import load_rules
from src.rules.models import Rules


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})

        assert settings.site_url == DEFAULT_SITE_URL
        assert settings.store_backend == "supabase"
        assert settings.environment == "development"
        assert settings.rules_path == Path("rules.yaml")
        assert not settings.store_configured

    def test_public_names_are_fallbacks(self) -> None:
        settings = Settings.from_env(
            {
                "NEXT_PUBLIC_SUPABASE_URL": "https://public.supabase.co",
                "SUPABASE_URL": "https://server.supabase.co",
                "NEXT_PUBLIC_SUPABASE_ANON_KEY": "anon",
            }
        )

        assert settings.supabase_url == "https://server.supabase.co"
        assert settings.supabase_anon_key == "anon"
        assert settings.store_configured

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            Settings.from_env({"STORE_BACKEND": "mysql"})

    def test_memory_backend_needs_no_credentials(self, memory_settings: Settings) -> None:
        assert memory_settings.store_configured
        assert validate_settings(memory_settings) == []


class TestValidateSettings:
    def test_missing_credentials_listed_together(self) -> None:
        problems = validate_settings(Settings())
        assert problems == ["SUPABASE_URL is required", "SUPABASE_ANON_KEY is required"]

    def test_malformed_urls(self) -> None:
        settings = Settings(
            supabase_url="project.supabase.co",
            supabase_anon_key="key",
            site_url="regpulss",
        )

        assert validate_settings(settings) == [
            "SUPABASE_URL must be a valid URL",
            "SITE_URL must be a valid URL",
        ]
        assert not settings.store_configured

    def test_memory_backend_forbidden_in_production(self) -> None:
        settings = Settings(store_backend="memory", environment="production")
        assert validate_settings(settings) == [
            "STORE_BACKEND=memory is not allowed in production"
        ]

    def test_require_valid_settings(self, supabase_settings: Settings) -> None:
        assert require_valid_settings(supabase_settings) is supabase_settings

        with pytest.raises(ConfigurationError) as exc:
            require_valid_settings(Settings())
        assert "SUPABASE_URL is required" in exc.value.problems


class TestRulesLoader:
    def test_project_rules_file(self, rules: Rules) -> None:
        assert rules.project.slug == "regpulse-landing"
        assert rules.intake.case_insensitive_emails is True
        assert rules.store.subscriptions_table == "email_subscriptions"
        assert rules.duplicates.retention_days == 90
        assert rules.notifier.function_name == "send-confirmation-email"

    def test_minimal_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("project:\n  slug: x\n  rules_version: '1'\n")

        rules = load_rules(path)

        assert rules.intake.store_timeout_seconds == 10.0
        assert rules.duplicates.default_reason == "Already subscribed"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "content",
        [
            "project: [unclosed",
            "- just\n- a list\n",
            "intake:\n  store_timeout_seconds: 1\n",
            "project:\n  slug: x\n  rules_version: '1'\nduplicates:\n  retention_days: -5\n",
        ],
    )
    def test_invalid_file(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(content)

        with pytest.raises(ValueError):
            load_rules(path)
