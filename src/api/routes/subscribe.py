"""
Public subscription endpoint.

Endpoints:
- POST /api/subscribe - Subscribe an email to regulatory updates

Responses carry exactly one of {success, message} or {error}:
- 201 subscribed
- 400 missing or malformed email
- 409 already subscribed
- 500 configuration, store or unexpected failure (generic message only)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.api.deps import (
    get_clock,
    get_notifier_port,
    get_rules,
    get_settings,
    get_subscription_store,
)
from src.app_shell.config import Settings, validate_settings
from src.app_shell.context import build_gateway, build_notifier
from src.components.subscriptions import (
    MSG_CONFIGURATION,
    MSG_UNEXPECTED,
    ClockPort,
    ConfirmationNotifierPort,
    SubscriptionStorePort,
    ValidationError,
    run_intake,
    validate_submission,
)
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---


class SubscribeResponse(BaseModel):
    """Response for a successful subscription."""

    success: bool = Field(..., description="Always true")
    message: str = Field(..., description="Human-readable message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# --- Subscribe Endpoint ---


@router.post(
    "/subscribe",
    status_code=status.HTTP_201_CREATED,
    response_model=SubscribeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid email"},
        409: {"model": ErrorResponse, "description": "Email already subscribed"},
        500: {"model": ErrorResponse, "description": "Configuration or store failure"},
    },
    summary="Subscribe to regulatory updates",
)
async def subscribe(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    store: SubscriptionStorePort | None = Depends(get_subscription_store),
    notifier_port: ConfirmationNotifierPort | None = Depends(get_notifier_port),
    clock: ClockPort = Depends(get_clock),
) -> SubscribeResponse | JSONResponse:
    """
    Subscribe an email address.

    1. Check the body carries a well-formed email (400)
    2. Check the store is configured (500)
    3. Run the intake flow: insert (409 on duplicate, 500 on store failure),
       then trigger the confirmation email best-effort
    4. Duplicate attempts are recorded in a background task after the 409 is sent
    """
    try:
        payload = await request.json()

        try:
            email = validate_submission(payload)
        except ValidationError as e:
            return error_response(status.HTTP_400_BAD_REQUEST, e.message)

        if store is None:
            logger.error(
                "Missing store configuration: %s",
                "; ".join(validate_settings(settings)) or "unknown",
            )
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_CONFIGURATION)

        result = await run_intake(
            email,
            gateway=build_gateway(store, rules, clock),
            notifier=build_notifier(notifier_port, rules),
            log_duplicates=rules.intake.log_duplicate_attempts,
            user_agent=request.headers.get("user-agent"),
            schedule=background_tasks.add_task,
        )
    except Exception:
        logger.exception("Subscription endpoint error")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_UNEXPECTED)

    if not result.success:
        return error_response(result.status_code, result.message)

    return SubscribeResponse(success=True, message=result.message)
