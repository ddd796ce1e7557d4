"""
Dev Notifier Adapter.

Logs confirmation triggers instead of invoking the remote function.
Used for local development (STORE_BACKEND=memory) and tests.

Key behaviors:
- Logs the record (email and token prefix) at the configured level
- Stores triggered records in memory for test assertions
- Can be told to fail, to exercise the swallow-and-log path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.components.subscriptions.models import SubscriptionRecord

logger = logging.getLogger(__name__)


@dataclass
class TriggeredNotification:
    """Record of a logged trigger for test assertions."""

    email: str
    confirmation_token: str
    logged_at: datetime


@dataclass
class DevNotifierAdapter:
    """
    Dev notifier that logs instead of calling out.

    Implements ConfirmationNotifierPort.
    """

    triggered: list[TriggeredNotification] = field(default_factory=list)

    log_level: int = logging.INFO
    token_preview_length: int = 6
    fail_with: Exception | None = None  # raised from notify() when set

    async def notify(self, record: SubscriptionRecord) -> None:
        if self.fail_with is not None:
            raise self.fail_with

        self.triggered.append(
            TriggeredNotification(
                email=record.email,
                confirmation_token=record.confirmation_token,
                logged_at=datetime.now(UTC),
            )
        )
        preview = record.confirmation_token[: self.token_preview_length]
        logger.log(
            self.log_level,
            f"CONFIRMATION (dev): To={record.email}, Token={preview}...",
        )

    # --- Test Helper Methods ---

    def get_last(self) -> TriggeredNotification | None:
        """Get the most recent trigger."""
        return self.triggered[-1] if self.triggered else None

    def clear(self) -> None:
        self.triggered.clear()

    @property
    def count(self) -> int:
        return len(self.triggered)
