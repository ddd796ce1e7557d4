"""
Unit tests for the public subscribe endpoint.

Covers the status/body mapping of POST /api/subscribe against the
in-memory store and the dev notifier.
"""

import asyncio
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.adapters.clock import FixedClock
from src.adapters.dev_notifier import DevNotifierAdapter
from src.adapters.memory_store import InMemorySubscriptionStore, MemoryStoreError
from src.api.deps import (
    get_clock,
    get_notifier_port,
    get_rules,
    get_settings,
    get_subscription_store,
)
from src.api.main import app
from src.app_shell.config import Settings
from src.components.subscriptions import (
    MSG_CONFIGURATION,
    MSG_DUPLICATE,
    MSG_EMAIL_REQUIRED,
    MSG_INVALID_EMAIL,
    MSG_STORE_FAILED,
    MSG_SUCCESS,
    MSG_UNEXPECTED,
    SubscriptionRecord,
)
from src.rules.models import Rules

# --- Test Fixtures ---


class UnavailableStore(InMemorySubscriptionStore):
    """Store whose inserts fail with a non-duplicate error."""

    async def insert_subscription(self, email: str) -> SubscriptionRecord:
        raise MemoryStoreError("42P01", 'relation "email_subscriptions" does not exist')


@pytest.fixture
def client(
    memory_settings: Settings,
    rules: Rules,
    memory_store: InMemorySubscriptionStore,
    dev_notifier: DevNotifierAdapter,
    clock: FixedClock,
) -> Generator[TestClient, None, None]:
    """Test client wired to the in-memory store."""
    app.dependency_overrides[get_settings] = lambda: memory_settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_subscription_store] = lambda: memory_store
    app.dependency_overrides[get_notifier_port] = lambda: dev_notifier
    app.dependency_overrides[get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()


def subscribe(client: TestClient, email: object, **kwargs):
    return client.post("/api/subscribe", json={"email": email}, **kwargs)


# --- Success ---


class TestSubscribeSuccess:
    def test_new_email_is_created(
        self,
        client: TestClient,
        memory_store: InMemorySubscriptionStore,
        dev_notifier: DevNotifierAdapter,
    ) -> None:
        response = subscribe(client, "legal@firm.com")

        assert response.status_code == 201
        assert response.json() == {"success": True, "message": MSG_SUCCESS}
        record = asyncio.run(memory_store.find_subscription("legal@firm.com"))
        assert record is not None
        assert dev_notifier.count == 1
        assert dev_notifier.get_last().confirmation_token == record.confirmation_token

    def test_mixed_case_email_is_stored_lower_case(
        self, client: TestClient, memory_store: InMemorySubscriptionStore
    ) -> None:
        assert subscribe(client, "Legal@Firm.com").status_code == 201
        assert asyncio.run(memory_store.find_subscription("legal@firm.com")) is not None

    def test_notifier_failure_still_succeeds(
        self,
        client: TestClient,
        memory_store: InMemorySubscriptionStore,
        dev_notifier: DevNotifierAdapter,
    ) -> None:
        dev_notifier.fail_with = RuntimeError("edge function returned 502")

        response = subscribe(client, "legal@firm.com")

        assert response.status_code == 201
        assert response.json()["success"] is True
        assert asyncio.run(memory_store.find_subscription("legal@firm.com")) is not None

    def test_notifier_disabled(
        self, client: TestClient, dev_notifier: DevNotifierAdapter
    ) -> None:
        app.dependency_overrides[get_notifier_port] = lambda: None

        assert subscribe(client, "legal@firm.com").status_code == 201
        assert dev_notifier.count == 0


# --- Client Errors ---


class TestSubscribeClientErrors:
    @pytest.mark.parametrize("body", [{}, {"email": ""}, {"email": None}, {"email": 12}, [], "x"])
    def test_missing_email(self, client: TestClient, body: object) -> None:
        response = client.post("/api/subscribe", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": MSG_EMAIL_REQUIRED}

    @pytest.mark.parametrize(
        "email", ["not-an-email", "user@domain", " user@domain.com", "a@@b.com"]
    )
    def test_malformed_email(
        self, client: TestClient, memory_store: InMemorySubscriptionStore, email: str
    ) -> None:
        response = subscribe(client, email)

        assert response.status_code == 400
        assert response.json() == {"error": MSG_INVALID_EMAIL}
        assert asyncio.run(memory_store.list_duplicate_attempts()) == []

    def test_duplicate_is_conflict(
        self, client: TestClient, memory_store: InMemorySubscriptionStore
    ) -> None:
        assert subscribe(client, "legal@firm.com").status_code == 201

        response = subscribe(client, "legal@firm.com", headers={"User-Agent": "Mozilla/5.0"})

        assert response.status_code == 409
        assert response.json() == {"error": MSG_DUPLICATE}
        attempts = asyncio.run(memory_store.list_duplicate_attempts(email="legal@firm.com"))
        assert len(attempts) == 1
        assert attempts[0].reason == "Already subscribed"
        assert attempts[0].user_agent == "Mozilla/5.0"

    def test_duplicate_stays_conflict(self, client: TestClient) -> None:
        statuses = [subscribe(client, "legal@firm.com").status_code for _ in range(3)]
        assert statuses == [201, 409, 409]

    def test_duplicate_differing_only_in_case(self, client: TestClient) -> None:
        assert subscribe(client, "legal@firm.com").status_code == 201
        assert subscribe(client, "LEGAL@firm.com").status_code == 409


# --- Server Errors ---


class TestSubscribeServerErrors:
    def test_store_not_configured(self, client: TestClient) -> None:
        app.dependency_overrides[get_subscription_store] = lambda: None

        response = subscribe(client, "legal@firm.com")

        assert response.status_code == 500
        assert response.json() == {"error": MSG_CONFIGURATION}

    def test_validation_runs_before_configuration_check(self, client: TestClient) -> None:
        app.dependency_overrides[get_subscription_store] = lambda: None

        response = subscribe(client, "bad")

        assert response.status_code == 400
        assert response.json() == {"error": MSG_INVALID_EMAIL}

    def test_missing_rules_file(self, client: TestClient, tmp_path) -> None:
        del app.dependency_overrides[get_rules]
        del app.dependency_overrides[get_subscription_store]
        del app.dependency_overrides[get_notifier_port]
        settings = Settings(
            environment="test",
            store_backend="memory",
            rules_path=tmp_path / "missing.yaml",
        )
        app.dependency_overrides[get_settings] = lambda: settings

        response = subscribe(client, "legal@firm.com")

        assert response.status_code == 500
        assert response.json() == {"error": MSG_CONFIGURATION}

    def test_store_failure_is_generic(
        self, client: TestClient, clock: FixedClock
    ) -> None:
        app.dependency_overrides[get_subscription_store] = lambda: UnavailableStore(clock)

        response = subscribe(client, "legal@firm.com")

        assert response.status_code == 500
        assert response.json() == {"error": MSG_STORE_FAILED}
        assert "email_subscriptions" not in response.text

    def test_malformed_json_body(self, client: TestClient) -> None:
        response = client.post(
            "/api/subscribe",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": MSG_UNEXPECTED}


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "api"}
