"""
Supabase subscription store.

Implements SubscriptionStorePort against Supabase (PostgREST) tables:
- email_subscriptions: email (unique), confirmation_token, created_at
- email_duplicates: email, reason, user_agent, attempted_at
- duplicate_statistics: per-email view ordered by duplicate_count

Uniqueness is enforced by the table's unique constraint; PostgREST reports it
as SQLSTATE 23505, which classify_error maps to DUPLICATE.

Required grants for the key in use: INSERT and SELECT on email_subscriptions
(inserts read the row back for its confirmation token; an insert-only RLS
policy makes every insert fail), INSERT/SELECT/DELETE on email_duplicates and
SELECT on duplicate_statistics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from src.components.subscriptions.models import (
    DuplicateAttempt,
    DuplicateStat,
    StoreErrorKind,
    SubscriptionRecord,
)

UNIQUE_VIOLATION = "23505"


class SupabaseClientProvider:
    """Creates the async Supabase client on first use and reuses it."""

    def __init__(self, url: str, key: str, client: AsyncClient | None = None) -> None:
        self.url = url
        self.key = key
        self._client = client

    async def get(self) -> AsyncClient:
        if self._client is None:
            self._client = await acreate_client(self.url, self.key)
        return self._client


def _parse_ts(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _to_record(row: dict[str, Any]) -> SubscriptionRecord:
    created_at = _parse_ts(row.get("created_at"))
    if created_at is None:
        raise ValueError("subscription row has no created_at")
    return SubscriptionRecord(
        id=str(row["id"]) if row.get("id") is not None else None,
        email=row["email"],
        confirmation_token=row.get("confirmation_token") or "",
        created_at=created_at,
    )


def _to_attempt(row: dict[str, Any]) -> DuplicateAttempt:
    attempted_at = _parse_ts(row.get("attempted_at"))
    if attempted_at is None:
        raise ValueError("duplicate row has no attempted_at")
    return DuplicateAttempt(
        id=str(row["id"]) if row.get("id") is not None else None,
        email=row["email"],
        reason=row.get("reason") or "",
        user_agent=row.get("user_agent") or "",
        attempted_at=attempted_at,
    )


def _to_stat(row: dict[str, Any]) -> DuplicateStat:
    return DuplicateStat(
        email=row["email"],
        duplicate_count=int(row.get("duplicate_count") or 0),
        first_attempted_at=_parse_ts(row.get("first_attempt")),
        last_attempted_at=_parse_ts(row.get("last_attempt")),
    )


class SupabaseSubscriptionStore:
    def __init__(
        self,
        provider: SupabaseClientProvider,
        *,
        subscriptions_table: str = "email_subscriptions",
        duplicates_table: str = "email_duplicates",
        duplicate_stats_view: str = "duplicate_statistics",
    ) -> None:
        self.provider = provider
        self.subscriptions_table = subscriptions_table
        self.duplicates_table = duplicates_table
        self.duplicate_stats_view = duplicate_stats_view

    async def insert_subscription(self, email: str) -> SubscriptionRecord:
        """Insert and return the stored row (needs SELECT on the table)."""
        client = await self.provider.get()
        response = await client.table(self.subscriptions_table).insert({"email": email}).execute()
        if not response.data:
            raise RuntimeError("insert returned no row")
        return _to_record(response.data[0])

    async def find_subscription(self, email: str) -> SubscriptionRecord | None:
        client = await self.provider.get()
        response = await (
            client.table(self.subscriptions_table).select("*").eq("email", email).limit(1).execute()
        )
        return _to_record(response.data[0]) if response.data else None

    async def delete_subscription(self, email: str) -> int:
        client = await self.provider.get()
        response = await client.table(self.subscriptions_table).delete().eq("email", email).execute()
        return len(response.data or [])

    async def insert_duplicate_attempt(
        self,
        email: str,
        reason: str,
        user_agent: str,
    ) -> DuplicateAttempt:
        client = await self.provider.get()
        row = {"email": email, "reason": reason, "user_agent": user_agent}
        response = await client.table(self.duplicates_table).insert(row).execute()
        if not response.data:
            raise RuntimeError("insert returned no row")
        return _to_attempt(response.data[0])

    async def list_duplicate_attempts(
        self,
        *,
        email: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DuplicateAttempt]:
        client = await self.provider.get()
        query = client.table(self.duplicates_table).select("*")
        if email is not None:
            query = query.eq("email", email)
        if start is not None:
            query = query.gte("attempted_at", start.isoformat())
        if end is not None:
            query = query.lte("attempted_at", end.isoformat())
        response = await query.order("attempted_at", desc=True).execute()
        return [_to_attempt(row) for row in response.data or []]

    async def list_duplicate_stats(self) -> list[DuplicateStat]:
        client = await self.provider.get()
        response = await (
            client.table(self.duplicate_stats_view)
            .select("*")
            .order("duplicate_count", desc=True)
            .execute()
        )
        return [_to_stat(row) for row in response.data or []]

    async def delete_duplicate_attempts_before(self, cutoff: datetime) -> int:
        client = await self.provider.get()
        response = await (
            client.table(self.duplicates_table)
            .delete()
            .lt("attempted_at", cutoff.isoformat())
            .execute()
        )
        return len(response.data or [])

    def classify_error(self, error: Exception) -> StoreErrorKind:
        if isinstance(error, APIError) and error.code == UNIQUE_VIOLATION:
            return StoreErrorKind.DUPLICATE
        return StoreErrorKind.UNAVAILABLE
