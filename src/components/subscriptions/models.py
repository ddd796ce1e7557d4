"""
Subscriptions component models.

Data models for email subscription intake and duplicate-attempt bookkeeping.

State machine: Intake (idle → validating → rejected | inserting →
duplicate | store_failed | inserted → notifying → done)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

# --- User-facing messages ---

MSG_SUCCESS = "Successfully subscribed to regulatory updates"
MSG_EMAIL_REQUIRED = "Email is required"
MSG_INVALID_EMAIL = "Please enter a valid email address."
MSG_DUPLICATE = "This email is already subscribed."
MSG_STORE_FAILED = "Failed to subscribe. Please try again."
MSG_CONFIGURATION = "Server configuration error"
MSG_UNEXPECTED = "An error occurred during subscription. Please try again."


# --- Intake State Machine ---


class IntakeState(Enum):
    """
    Intake flow state.

    Terminal states: rejected, duplicate, store_failed, done.
    A terminal flow may be reset to idle for the next submission.
    """

    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    INSERTING = "inserting"
    DUPLICATE = "duplicate"
    STORE_FAILED = "store_failed"
    INSERTED = "inserted"
    NOTIFYING = "notifying"
    DONE = "done"


TERMINAL_STATES: frozenset[IntakeState] = frozenset(
    {
        IntakeState.REJECTED,
        IntakeState.DUPLICATE,
        IntakeState.STORE_FAILED,
        IntakeState.DONE,
    }
)

# Submissions arriving in these states are ignored
IN_FLIGHT_STATES: frozenset[IntakeState] = frozenset(
    {IntakeState.INSERTING, IntakeState.NOTIFYING}
)

VALID_TRANSITIONS: dict[IntakeState, set[IntakeState]] = {
    IntakeState.IDLE: {IntakeState.VALIDATING},
    IntakeState.VALIDATING: {IntakeState.REJECTED, IntakeState.INSERTING},
    IntakeState.INSERTING: {
        IntakeState.DUPLICATE,
        IntakeState.STORE_FAILED,
        IntakeState.INSERTED,
    },
    IntakeState.INSERTED: {IntakeState.NOTIFYING, IntakeState.DONE},
    IntakeState.NOTIFYING: {IntakeState.DONE},
    IntakeState.REJECTED: {IntakeState.IDLE},
    IntakeState.DUPLICATE: {IntakeState.IDLE},
    IntakeState.STORE_FAILED: {IntakeState.IDLE},
    IntakeState.DONE: {IntakeState.IDLE},
}


def can_transition(from_state: IntakeState, to_state: IntakeState) -> bool:
    """Check if an intake state transition is valid."""
    return to_state in VALID_TRANSITIONS.get(from_state, set())


class IntakeOutcome(Enum):
    """Final user-visible outcome of one submission."""

    SUBSCRIBED = "subscribed"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    FAILED = "failed"


OUTCOME_STATUS: dict[IntakeOutcome, int] = {
    IntakeOutcome.SUBSCRIBED: 201,
    IntakeOutcome.INVALID: 400,
    IntakeOutcome.DUPLICATE: 409,
    IntakeOutcome.FAILED: 500,
}


class StoreErrorKind(Enum):
    """Classification of a backend store error."""

    DUPLICATE = "duplicate"
    UNAVAILABLE = "unavailable"


# --- Entities ---


@dataclass(frozen=True)
class SubscriptionRecord:
    """
    A persisted subscription.

    The confirmation token and creation time are assigned by the store.
    """

    email: str
    confirmation_token: str
    created_at: datetime
    id: str | None = None


@dataclass(frozen=True)
class DuplicateAttempt:
    """A rejected subscription attempt. Never mutated once stored."""

    email: str
    reason: str
    user_agent: str
    attempted_at: datetime
    id: str | None = None


@dataclass(frozen=True)
class DuplicateStat:
    """Aggregated duplicate attempts for one email."""

    email: str
    duplicate_count: int
    first_attempted_at: datetime | None = None
    last_attempted_at: datetime | None = None


# --- Results ---

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """
    Result of a read-only reporting query.

    `items` is empty when the query failed; `error` tells the two cases apart.
    """

    items: list[T] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DeleteResult:
    """Result of a bulk delete. `count` is 0 when the delete failed."""

    count: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class IntakeResult:
    """Outcome of one pass through the intake flow."""

    outcome: IntakeOutcome
    message: str
    record: SubscriptionRecord | None = None

    @property
    def success(self) -> bool:
        return self.outcome is IntakeOutcome.SUBSCRIBED

    @property
    def status_code(self) -> int:
        return OUTCOME_STATUS[self.outcome]


# --- Error Types ---


class SubscriptionError(Exception):
    """Base subscriptions error."""

    pass


class ValidationError(SubscriptionError):
    """Missing or malformed input (400)."""

    def __init__(self, message: str = MSG_INVALID_EMAIL) -> None:
        self.message = message
        super().__init__(message)


class ConflictError(SubscriptionError):
    """The email is already subscribed (409)."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Subscription already exists for '{email}'")


class ConfigurationError(SubscriptionError):
    """Deployment misconfiguration (500). Never shown to end users."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class StoreUnavailable(SubscriptionError):
    """The store failed for a reason other than a uniqueness violation (500)."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Store unavailable during {operation}{detail}")


class NotifierFailure(SubscriptionError):
    """The confirmation notification could not be triggered. Always swallowed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Confirmation notification failed: {reason}")


class IntakeStateError(SubscriptionError):
    """Illegal intake state transition."""

    def __init__(self, from_state: IntakeState, to_state: IntakeState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid intake transition {from_state.value} -> {to_state.value}")
