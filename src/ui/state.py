import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.components.subscriptions import (
    IN_FLIGHT_STATES,
    MSG_INVALID_EMAIL,
    IntakeState,
    is_valid_email,
)
from src.ui.api_client import SubmitResponse, SubscribeRequestError

logger = logging.getLogger(__name__)

MSG_REQUEST_FAILED = "An error occurred. Please try again."
MSG_FALLBACK = "Error subscribing. Please try again."

Submitter = Callable[[str], Awaitable[SubmitResponse]]


@dataclass
class SubscribeFormState:
    """
    Client-side intake flow for one form instance.

    The format check here is advisory; the endpoint re-checks. A submit while
    a request is in flight is ignored.
    """

    email: str = ""
    state: IntakeState = IntakeState.IDLE
    error: str | None = None
    show_modal: bool = False
    on_change: Callable[[], None] | None = None

    @property
    def loading(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    def _set(self, state: IntakeState) -> None:
        self.state = state
        if self.on_change is not None:
            self.on_change()

    async def submit(self, submitter: Submitter) -> bool:
        """
        Submit the current email.

        Returns:
            False if ignored because a submission is in flight, else True
        """
        if self.loading:
            return False

        self.error = None
        self._set(IntakeState.VALIDATING)
        if not is_valid_email(self.email):
            self.error = MSG_INVALID_EMAIL
            self._set(IntakeState.REJECTED)
            return True

        self._set(IntakeState.INSERTING)
        try:
            response = await submitter(self.email)
        except SubscribeRequestError as e:
            logger.error("Subscription error: %s", e)
            self.error = MSG_REQUEST_FAILED
            self._set(IntakeState.STORE_FAILED)
            return True
        except Exception:
            logger.exception("Subscription error")
            self.error = MSG_REQUEST_FAILED
            self._set(IntakeState.STORE_FAILED)
            return True
        except BaseException:
            # Cancelled mid-request; release the in-flight guard
            self._set(IntakeState.IDLE)
            raise

        if not response.ok:
            error = response.body.get("error")
            self.error = error if isinstance(error, str) and error else MSG_FALLBACK
            self._set(
                IntakeState.DUPLICATE if response.status_code == 409 else IntakeState.STORE_FAILED
            )
            return True

        self.show_modal = True
        self.email = ""
        self._set(IntakeState.DONE)
        return True

    def close_modal(self) -> None:
        self.show_modal = False
        if self.on_change is not None:
            self.on_change()
