"""
Subscription Store Gateway.

Sole owner of subscription and duplicate-attempt records. Wraps a
SubscriptionStorePort and turns backend exceptions into the component's
error types or explicit result values.

Key behaviors:
- insert_subscription raises ConflictError / StoreUnavailable
- is_subscribed answers False when the lookup fails (advisory only)
- log_duplicate_attempt never raises
- reporting queries return QueryResult / DeleteResult instead of raising
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime, timedelta
from typing import TypeVar

from src.components.subscriptions.models import (
    ConflictError,
    DeleteResult,
    DuplicateAttempt,
    DuplicateStat,
    QueryResult,
    StoreErrorKind,
    StoreUnavailable,
    SubscriptionRecord,
)
from src.components.subscriptions.ports import ClockPort, SubscriptionStorePort
from src.components.subscriptions.validation import normalize_email

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REASON = "Already subscribed"
UNKNOWN_USER_AGENT = "unknown"
DEFAULT_RETENTION_DAYS = 90


class SubscriptionGateway:
    """
    Store gateway for the subscriptions component.

    Args:
        store: Backend store port
        clock: Time source for retention cutoffs
        default_reason: Reason recorded when a duplicate is logged without one
        unknown_user_agent: Sentinel recorded when no user agent is known
        retention_days: Default age threshold for clear_old_duplicates
        case_insensitive: Lower-case emails before they reach the store
        timeout_seconds: Upper bound for each store call (None = transport default)
    """

    def __init__(
        self,
        store: SubscriptionStorePort,
        clock: ClockPort,
        *,
        default_reason: str = DEFAULT_REASON,
        unknown_user_agent: str = UNKNOWN_USER_AGENT,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        case_insensitive: bool = True,
        timeout_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.default_reason = default_reason
        self.unknown_user_agent = unknown_user_agent
        self.retention_days = retention_days
        self.case_insensitive = case_insensitive
        self.timeout_seconds = timeout_seconds

    def _normalize(self, email: str) -> str:
        return normalize_email(email, self.case_insensitive)

    async def _call(self, awaitable: Awaitable[T]) -> T:
        if self.timeout_seconds is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)

    # --- Subscriptions ---

    async def insert_subscription(self, email: str) -> SubscriptionRecord:
        """
        Insert a subscription for an already-validated email.

        Uniqueness is enforced by the store, never by a pre-check here.

        Raises:
            ConflictError: The store rejected the row as a duplicate
            StoreUnavailable: Any other failure, including timeouts
        """
        normalized = self._normalize(email)
        try:
            return await self._call(self.store.insert_subscription(normalized))
        except TimeoutError as e:
            logger.error("Subscription insert timed out after %ss", self.timeout_seconds)
            raise StoreUnavailable("insert_subscription", e) from e
        except Exception as e:
            if self.store.classify_error(e) is StoreErrorKind.DUPLICATE:
                raise ConflictError(normalized) from e
            logger.error("Subscription insert failed: %s", e)
            raise StoreUnavailable("insert_subscription", e) from e

    async def is_subscribed(self, email: str) -> bool:
        """
        Advisory lookup.

        Returns False when absent and also when the lookup fails.
        """
        try:
            record = await self._call(self.store.find_subscription(self._normalize(email)))
        except Exception as e:
            logger.error("Error checking subscription: %s", e)
            return False
        return record is not None

    async def delete_subscription(self, email: str) -> bool:
        """Remove a subscription. False when nothing was removed or on error."""
        try:
            removed = await self._call(self.store.delete_subscription(self._normalize(email)))
        except Exception as e:
            logger.error("Error deleting subscription: %s", e)
            return False
        return removed > 0

    # --- Duplicate attempts ---

    async def log_duplicate_attempt(
        self,
        email: str,
        reason: str | None = None,
        user_agent: str | None = None,
    ) -> bool:
        """Record a rejected attempt. Best-effort; never raises."""
        try:
            await self._call(
                self.store.insert_duplicate_attempt(
                    self._normalize(email),
                    reason or self.default_reason,
                    user_agent or self.unknown_user_agent,
                )
            )
        except Exception as e:
            logger.error("Failed to log duplicate: %s", e)
            return False
        return True

    async def get_duplicate_count(self, email: str) -> int:
        """Number of duplicate attempts recorded for email; 0 on error."""
        result = await self.get_duplicates_for_email(email)
        return len(result.items)

    async def get_duplicate_stats(self) -> QueryResult[DuplicateStat]:
        try:
            stats = await self._call(self.store.list_duplicate_stats())
        except Exception as e:
            logger.error("Error fetching duplicate stats: %s", e)
            return QueryResult(error=str(e) or type(e).__name__)
        return QueryResult(items=list(stats))

    async def get_duplicates_for_email(self, email: str) -> QueryResult[DuplicateAttempt]:
        try:
            attempts = await self._call(
                self.store.list_duplicate_attempts(email=self._normalize(email))
            )
        except Exception as e:
            logger.error("Error fetching duplicates: %s", e)
            return QueryResult(error=str(e) or type(e).__name__)
        return QueryResult(items=list(attempts))

    async def get_duplicates_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> QueryResult[DuplicateAttempt]:
        """Attempts with start <= attempted_at <= end, newest first."""
        if start > end:
            return QueryResult(error="start must not be after end")
        try:
            attempts = await self._call(self.store.list_duplicate_attempts(start=start, end=end))
        except Exception as e:
            logger.error("Error fetching duplicates by date: %s", e)
            return QueryResult(error=str(e) or type(e).__name__)
        return QueryResult(items=list(attempts))

    async def clear_old_duplicates(self, days_old: int | None = None) -> DeleteResult:
        """
        Retention job: delete attempts older than now minus days_old.

        Args:
            days_old: Age threshold in days (defaults to retention_days)
        """
        days = self.retention_days if days_old is None else days_old
        if days < 0:
            return DeleteResult(error="days_old must not be negative")

        cutoff = self.clock.now_utc() - timedelta(days=days)
        try:
            removed = await self._call(self.store.delete_duplicate_attempts_before(cutoff))
        except Exception as e:
            logger.error("Error clearing old duplicates: %s", e)
            return DeleteResult(error=str(e) or type(e).__name__)

        logger.info("Cleared %d duplicate attempts older than %s", removed, cutoff.isoformat())
        return DeleteResult(count=removed)
