"""
Subscriptions component - intake flow.

Orchestrates Validator → Store Gateway → Notifier → user-facing result.
Used per request by the HTTP endpoint and by the CLI.

Key behaviors:
- Format check happens before any store access
- Uniqueness is decided by the store's constraint (ConflictError), never a pre-check
- A notifier failure never turns a committed insert into a failure
- Duplicate-attempt logging can be handed to a scheduler so it runs after the response
- A submission arriving while one is inserting/notifying is ignored
- Store diagnostics are logged, never returned to the caller
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from src.components.subscriptions.gateway import SubscriptionGateway
from src.components.subscriptions.models import (
    IN_FLIGHT_STATES,
    MSG_DUPLICATE,
    MSG_EMAIL_REQUIRED,
    MSG_INVALID_EMAIL,
    MSG_STORE_FAILED,
    MSG_SUCCESS,
    TERMINAL_STATES,
    ConflictError,
    IntakeOutcome,
    IntakeResult,
    IntakeState,
    IntakeStateError,
    StoreUnavailable,
    ValidationError,
    can_transition,
)
from src.components.subscriptions.notifier import ConfirmationNotifier
from src.components.subscriptions.validation import is_valid_email

logger = logging.getLogger(__name__)

# Receives a coroutine function and its arguments, runs it after the response
# (FastAPI BackgroundTasks.add_task has this shape)
ScheduleFn = Callable[..., None]


def validate_submission(payload: Any) -> str:
    """
    Extract and check the email from a decoded request body.

    Raises:
        ValidationError: "Email is required" for a missing/empty/non-string
            email, the format message for a malformed one
    """
    email = payload.get("email") if isinstance(payload, dict) else None
    if not email or not isinstance(email, str):
        raise ValidationError(MSG_EMAIL_REQUIRED)
    if not is_valid_email(email):
        raise ValidationError(MSG_INVALID_EMAIL)
    return email


class IntakeFlow:
    """
    Intake state machine for one submission origin.

    Args:
        gateway: Store gateway (required)
        notifier: Confirmation notifier; None skips the notifying step
        log_duplicates: Record duplicate attempts on the conflict path
        schedule: Runs the duplicate-attempt insert after the result is
            returned; None awaits it inline
    """

    def __init__(
        self,
        gateway: SubscriptionGateway,
        notifier: ConfirmationNotifier | None = None,
        *,
        log_duplicates: bool = True,
        schedule: ScheduleFn | None = None,
    ) -> None:
        self.gateway = gateway
        self.notifier = notifier
        self.log_duplicates = log_duplicates
        self.schedule = schedule
        self.state = IntakeState.IDLE
        self.history: list[IntakeState] = [IntakeState.IDLE]

    @property
    def in_flight(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    def _transition(self, to_state: IntakeState) -> None:
        if not can_transition(self.state, to_state):
            raise IntakeStateError(self.state, to_state)
        self.state = to_state
        self.history.append(to_state)

    def _abort(self) -> None:
        # Unexpected error mid-flow; release the in-flight guard
        self.state = IntakeState.IDLE
        self.history.append(IntakeState.IDLE)

    async def _record_duplicate(self, email: str, user_agent: str | None) -> None:
        if not self.log_duplicates:
            return
        if self.schedule is not None:
            self.schedule(self.gateway.log_duplicate_attempt, email, user_agent=user_agent)
        else:
            await self.gateway.log_duplicate_attempt(email, user_agent=user_agent)

    async def submit(self, email: Any, *, user_agent: str | None = None) -> IntakeResult | None:
        """
        Run one submission through the flow.

        Returns:
            The final IntakeResult, or None when the submission was ignored
            because another one is still in flight.
        """
        if self.in_flight:
            logger.debug("Submission ignored: previous submission still %s", self.state.value)
            return None
        return await self._process(email, user_agent)

    async def _process(self, email: Any, user_agent: str | None) -> IntakeResult:
        if self.state in TERMINAL_STATES:
            self._transition(IntakeState.IDLE)

        self._transition(IntakeState.VALIDATING)
        if not is_valid_email(email):
            self._transition(IntakeState.REJECTED)
            return IntakeResult(IntakeOutcome.INVALID, MSG_INVALID_EMAIL)

        self._transition(IntakeState.INSERTING)
        try:
            record = await self.gateway.insert_subscription(email)
        except ConflictError as e:
            self._transition(IntakeState.DUPLICATE)
            logger.info("Duplicate subscription attempt for %s", e.email)
            await self._record_duplicate(email, user_agent)
            return IntakeResult(IntakeOutcome.DUPLICATE, MSG_DUPLICATE)
        except StoreUnavailable as e:
            self._transition(IntakeState.STORE_FAILED)
            logger.error("Subscription failed: %s", e)
            return IntakeResult(IntakeOutcome.FAILED, MSG_STORE_FAILED)
        except BaseException:
            self._abort()
            raise

        self._transition(IntakeState.INSERTED)
        if self.notifier is not None:
            self._transition(IntakeState.NOTIFYING)
            try:
                await self.notifier.notify_confirmation(record)
            except BaseException:
                self._abort()
                raise

        self._transition(IntakeState.DONE)
        return IntakeResult(IntakeOutcome.SUBSCRIBED, MSG_SUCCESS, record=record)


async def run_intake(
    email: Any,
    *,
    gateway: SubscriptionGateway,
    notifier: ConfirmationNotifier | None = None,
    log_duplicates: bool = True,
    user_agent: str | None = None,
    schedule: ScheduleFn | None = None,
) -> IntakeResult:
    """
    Main component entry point: one fresh flow per request.

    Each request is its own origin, so there is no in-flight guard here;
    concurrent requests for the same email are settled by the store.
    """
    flow = IntakeFlow(gateway, notifier, log_duplicates=log_duplicates, schedule=schedule)
    return await flow._process(email, user_agent)
