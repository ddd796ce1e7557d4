from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from src.adapters.clock import SystemClock
from src.adapters.dev_notifier import DevNotifierAdapter
from src.adapters.memory_store import InMemorySubscriptionStore
from src.adapters.supabase_notifier import SupabaseFunctionNotifier
from src.adapters.supabase_store import SupabaseClientProvider, SupabaseSubscriptionStore
from src.app_shell.config import Settings, validate_settings
from src.components.subscriptions import (
    ClockPort,
    ConfigurationError,
    ConfirmationNotifier,
    ConfirmationNotifierPort,
    SubscriptionGateway,
    SubscriptionStorePort,
)
from src.rules.models import Rules

# Process-wide dev backends, shared by every request
_memory_store: InMemorySubscriptionStore | None = None
_dev_notifier: DevNotifierAdapter | None = None
_clock = SystemClock()


def get_memory_store() -> InMemorySubscriptionStore:
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemorySubscriptionStore(_clock)
    return _memory_store


def get_dev_notifier() -> DevNotifierAdapter:
    global _dev_notifier
    if _dev_notifier is None:
        _dev_notifier = DevNotifierAdapter()
    return _dev_notifier


def get_clock() -> ClockPort:
    return _clock


@lru_cache
def get_supabase_provider(url: str, key: str) -> SupabaseClientProvider:
    return SupabaseClientProvider(url, key)


def _supabase_provider(settings: Settings) -> SupabaseClientProvider:
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise ConfigurationError(validate_settings(settings))
    return get_supabase_provider(settings.supabase_url, settings.supabase_anon_key)


def build_store(settings: Settings, rules: Rules) -> SubscriptionStorePort | None:
    """Store for the configured backend, or None when credentials are missing."""
    if not settings.store_configured:
        return None
    if settings.store_backend == "memory":
        return get_memory_store()
    return SupabaseSubscriptionStore(
        _supabase_provider(settings),
        subscriptions_table=rules.store.subscriptions_table,
        duplicates_table=rules.store.duplicates_table,
        duplicate_stats_view=rules.store.duplicate_stats_view,
    )


def build_notifier_port(settings: Settings, rules: Rules) -> ConfirmationNotifierPort | None:
    """Notifier for the configured backend; None when disabled or unconfigured."""
    if not rules.notifier.enabled or not settings.store_configured:
        return None
    if settings.store_backend == "memory":
        return get_dev_notifier()
    return SupabaseFunctionNotifier(
        _supabase_provider(settings),
        function_name=rules.notifier.function_name,
    )


def build_gateway(
    store: SubscriptionStorePort,
    rules: Rules,
    clock: ClockPort | None = None,
) -> SubscriptionGateway:
    return SubscriptionGateway(
        store,
        clock or get_clock(),
        default_reason=rules.duplicates.default_reason,
        unknown_user_agent=rules.duplicates.unknown_user_agent,
        retention_days=rules.duplicates.retention_days,
        case_insensitive=rules.intake.case_insensitive_emails,
        timeout_seconds=rules.intake.store_timeout_seconds,
    )


def build_notifier(port: ConfirmationNotifierPort | None, rules: Rules) -> ConfirmationNotifier | None:
    if port is None:
        return None
    return ConfirmationNotifier(port, timeout_seconds=rules.intake.notifier_timeout_seconds)


@dataclass
class ServiceContext:
    gateway: SubscriptionGateway
    notifier: ConfirmationNotifier | None
    settings: Settings
    rules: Rules

    @classmethod
    def create(cls, settings: Settings, rules: Rules) -> ServiceContext:
        """
        Wire the component for the configured backend.

        Raises:
            ConfigurationError: the store cannot be built from these settings
        """
        store = build_store(settings, rules)
        if store is None:
            raise ConfigurationError(validate_settings(settings) or ["store is not configured"])
        return cls(
            gateway=build_gateway(store, rules),
            notifier=build_notifier(build_notifier_port(settings, rules), rules),
            settings=settings,
            rules=rules,
        )
