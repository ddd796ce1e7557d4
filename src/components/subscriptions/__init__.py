"""
Subscriptions component.

Email capture for regulatory updates: validation, storage with duplicate
bookkeeping, and a best-effort confirmation trigger.
"""

from src.components.subscriptions.component import (
    IntakeFlow,
    run_intake,
    validate_submission,
)
from src.components.subscriptions.gateway import (
    DEFAULT_REASON,
    DEFAULT_RETENTION_DAYS,
    UNKNOWN_USER_AGENT,
    SubscriptionGateway,
)
from src.components.subscriptions.models import (
    IN_FLIGHT_STATES,
    MSG_CONFIGURATION,
    MSG_DUPLICATE,
    MSG_EMAIL_REQUIRED,
    MSG_INVALID_EMAIL,
    MSG_STORE_FAILED,
    MSG_SUCCESS,
    MSG_UNEXPECTED,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ConfigurationError,
    ConflictError,
    DeleteResult,
    DuplicateAttempt,
    DuplicateStat,
    IntakeOutcome,
    IntakeResult,
    IntakeState,
    IntakeStateError,
    NotifierFailure,
    QueryResult,
    StoreErrorKind,
    StoreUnavailable,
    SubscriptionError,
    SubscriptionRecord,
    ValidationError,
    can_transition,
)
from src.components.subscriptions.notifier import ConfirmationNotifier
from src.components.subscriptions.ports import (
    ClockPort,
    ConfirmationNotifierPort,
    SubscriptionStorePort,
)
from src.components.subscriptions.validation import (
    EMAIL_REGEX,
    is_valid_email,
    normalize_email,
)

__all__ = [
    # Component
    "IntakeFlow",
    "run_intake",
    "validate_submission",
    "SubscriptionGateway",
    "ConfirmationNotifier",
    # Pure functions
    "is_valid_email",
    "normalize_email",
    "can_transition",
    # Constants
    "EMAIL_REGEX",
    "DEFAULT_REASON",
    "DEFAULT_RETENTION_DAYS",
    "UNKNOWN_USER_AGENT",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "IN_FLIGHT_STATES",
    "MSG_SUCCESS",
    "MSG_EMAIL_REQUIRED",
    "MSG_INVALID_EMAIL",
    "MSG_DUPLICATE",
    "MSG_STORE_FAILED",
    "MSG_CONFIGURATION",
    "MSG_UNEXPECTED",
    # Models
    "SubscriptionRecord",
    "DuplicateAttempt",
    "DuplicateStat",
    "IntakeState",
    "IntakeOutcome",
    "IntakeResult",
    "StoreErrorKind",
    "QueryResult",
    "DeleteResult",
    # Errors
    "SubscriptionError",
    "ValidationError",
    "ConflictError",
    "ConfigurationError",
    "StoreUnavailable",
    "NotifierFailure",
    "IntakeStateError",
    # Ports
    "SubscriptionStorePort",
    "ConfirmationNotifierPort",
    "ClockPort",
]
