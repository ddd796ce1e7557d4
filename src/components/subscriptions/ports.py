"""
Subscriptions component ports.

Protocol interfaces for the hosted table service, the remote notification
trigger and the clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.subscriptions.models import (
    DuplicateAttempt,
    DuplicateStat,
    StoreErrorKind,
    SubscriptionRecord,
)


class SubscriptionStorePort(Protocol):
    """
    Hosted table service holding subscription and duplicate-attempt rows.

    Implementations raise their native exceptions; callers pass them to
    `classify_error` to decide between a uniqueness violation and anything else.
    """

    async def insert_subscription(self, email: str) -> SubscriptionRecord:
        """
        Insert one subscription row.

        The store assigns the confirmation token and creation time and
        enforces uniqueness of `email`.
        """
        ...

    async def find_subscription(self, email: str) -> SubscriptionRecord | None:
        """Get subscription by email, None when absent."""
        ...

    async def delete_subscription(self, email: str) -> int:
        """Delete subscription rows for email. Returns rows removed."""
        ...

    async def insert_duplicate_attempt(
        self,
        email: str,
        reason: str,
        user_agent: str,
    ) -> DuplicateAttempt:
        """Insert one duplicate-attempt row. The store assigns `attempted_at`."""
        ...

    async def list_duplicate_attempts(
        self,
        *,
        email: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DuplicateAttempt]:
        """
        List duplicate attempts, newest first.

        Args:
            email: Only attempts for this email
            start: Only attempts at or after this time
            end: Only attempts at or before this time
        """
        ...

    async def list_duplicate_stats(self) -> list[DuplicateStat]:
        """Per-email duplicate counts, highest count first."""
        ...

    async def delete_duplicate_attempts_before(self, cutoff: datetime) -> int:
        """Delete attempts strictly older than cutoff. Returns rows removed."""
        ...

    def classify_error(self, error: Exception) -> StoreErrorKind:
        """Map a backend exception to DUPLICATE or UNAVAILABLE."""
        ...


class ConfirmationNotifierPort(Protocol):
    """
    Remote trigger for the confirmation email.

    Raises on a non-success response or transport error.
    """

    async def notify(self, record: SubscriptionRecord) -> None:
        """Send one notification request carrying the record."""
        ...


class ClockPort(Protocol):
    """Time source (UTC)."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
