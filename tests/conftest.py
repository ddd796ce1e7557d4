from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.clock import FixedClock
from src.adapters.dev_notifier import DevNotifierAdapter
from src.adapters.memory_store import InMemorySubscriptionStore
from src.app_shell.config import Settings
from src.rules.loader import load_rules
from src.rules.models import Rules

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


@pytest.fixture
def memory_store(clock: FixedClock) -> InMemorySubscriptionStore:
    return InMemorySubscriptionStore(clock)


@pytest.fixture
def dev_notifier() -> DevNotifierAdapter:
    return DevNotifierAdapter()


@pytest.fixture
def memory_settings() -> Settings:
    """Settings for the in-process dev backend."""
    return Settings(environment="test", store_backend="memory")


@pytest.fixture
def supabase_settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
        environment="test",
    )
