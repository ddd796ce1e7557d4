"""
Confirmation Notifier.

Fire-and-forget wrapper around a ConfirmationNotifierPort: one outbound call
per persisted record; every failure is logged and swallowed.
"""

from __future__ import annotations

import asyncio
import logging

from src.components.subscriptions.models import NotifierFailure, SubscriptionRecord
from src.components.subscriptions.ports import ConfirmationNotifierPort

logger = logging.getLogger(__name__)


class ConfirmationNotifier:
    def __init__(
        self,
        port: ConfirmationNotifierPort,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self.port = port
        self.timeout_seconds = timeout_seconds

    async def notify_confirmation(self, record: SubscriptionRecord) -> bool:
        """
        Trigger the confirmation message for a just-inserted record.

        Returns True when the trigger succeeded. Never raises.
        """
        try:
            if not record.confirmation_token:
                raise NotifierFailure("record has no confirmation token")
            if self.timeout_seconds is None:
                await self.port.notify(record)
            else:
                await asyncio.wait_for(self.port.notify(record), timeout=self.timeout_seconds)
        except TimeoutError:
            logger.warning(
                "Confirmation notification timed out after %ss", self.timeout_seconds
            )
            return False
        except Exception as e:
            logger.warning("Confirmation notification failed: %s", e)
            return False
        return True
