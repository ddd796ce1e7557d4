from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.app_shell import context
from src.app_shell.config import Settings
from src.components.subscriptions import (
    ClockPort,
    ConfigurationError,
    ConfirmationNotifierPort,
    SubscriptionStorePort,
)
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


# --- Rules ---
@lru_cache
def _load_rules(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    try:
        return _load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        raise ConfigurationError([str(e)]) from e


# --- Adapters ---
def get_subscription_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SubscriptionStorePort | None:
    """Configured store, or None when credentials are missing."""
    return context.build_store(settings, rules)


def get_notifier_port(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> ConfirmationNotifierPort | None:
    return context.build_notifier_port(settings, rules)


def get_clock() -> ClockPort:
    return context.get_clock()
