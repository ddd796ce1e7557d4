"""
In-memory subscription store.

Local development backend (STORE_BACKEND=memory) that mimics the hosted
table service: it assigns confirmation tokens and timestamps, and rejects a
second row for the same email with a unique-violation error code.

Not shared between processes; contents are lost on restart.
"""

from __future__ import annotations

import secrets
from collections import Counter
from datetime import datetime
from uuid import uuid4

from src.adapters.clock import SystemClock
from src.components.subscriptions.models import (
    DuplicateAttempt,
    DuplicateStat,
    StoreErrorKind,
    SubscriptionRecord,
)
from src.components.subscriptions.ports import ClockPort

UNIQUE_VIOLATION = "23505"


class MemoryStoreError(Exception):
    """Error raised by the in-memory store, carrying a SQLSTATE-like code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class InMemorySubscriptionStore:
    """
    Implements SubscriptionStorePort.

    Methods never await between check and write, so each call is atomic on
    the event loop.
    """

    def __init__(self, clock: ClockPort | None = None) -> None:
        self.clock = clock or SystemClock()
        self._subscriptions: dict[str, SubscriptionRecord] = {}
        self._duplicates: list[DuplicateAttempt] = []

    async def insert_subscription(self, email: str) -> SubscriptionRecord:
        if email in self._subscriptions:
            raise MemoryStoreError(
                UNIQUE_VIOLATION,
                'duplicate key value violates unique constraint "email_subscriptions_email_key"',
            )
        record = SubscriptionRecord(
            id=str(uuid4()),
            email=email,
            confirmation_token=secrets.token_urlsafe(32),
            created_at=self.clock.now_utc(),
        )
        self._subscriptions[email] = record
        return record

    async def find_subscription(self, email: str) -> SubscriptionRecord | None:
        return self._subscriptions.get(email)

    async def delete_subscription(self, email: str) -> int:
        return 1 if self._subscriptions.pop(email, None) is not None else 0

    async def insert_duplicate_attempt(
        self,
        email: str,
        reason: str,
        user_agent: str,
    ) -> DuplicateAttempt:
        attempt = DuplicateAttempt(
            id=str(uuid4()),
            email=email,
            reason=reason,
            user_agent=user_agent,
            attempted_at=self.clock.now_utc(),
        )
        self._duplicates.append(attempt)
        return attempt

    async def list_duplicate_attempts(
        self,
        *,
        email: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DuplicateAttempt]:
        matches = [
            a
            for a in self._duplicates
            if (email is None or a.email == email)
            and (start is None or a.attempted_at >= start)
            and (end is None or a.attempted_at <= end)
        ]
        return sorted(matches, key=lambda a: a.attempted_at, reverse=True)

    async def list_duplicate_stats(self) -> list[DuplicateStat]:
        counts = Counter(a.email for a in self._duplicates)
        stats = []
        for email, count in counts.items():
            times = [a.attempted_at for a in self._duplicates if a.email == email]
            stats.append(
                DuplicateStat(
                    email=email,
                    duplicate_count=count,
                    first_attempted_at=min(times),
                    last_attempted_at=max(times),
                )
            )
        return sorted(stats, key=lambda s: s.duplicate_count, reverse=True)

    async def delete_duplicate_attempts_before(self, cutoff: datetime) -> int:
        kept = [a for a in self._duplicates if a.attempted_at >= cutoff]
        removed = len(self._duplicates) - len(kept)
        self._duplicates = kept
        return removed

    def classify_error(self, error: Exception) -> StoreErrorKind:
        if getattr(error, "code", None) == UNIQUE_VIOLATION:
            return StoreErrorKind.DUPLICATE
        return StoreErrorKind.UNAVAILABLE
