"""
Unit tests for the subscribe form state and its HTTP client.
"""

import asyncio
import json

import httpx
import pytest

from src.components.subscriptions import MSG_DUPLICATE, MSG_INVALID_EMAIL, IntakeState
from src.ui.api_client import SubmitResponse, SubscribeApiClient, SubscribeRequestError
from src.ui.state import MSG_FALLBACK, MSG_REQUEST_FAILED, SubscribeFormState


def responding(status_code: int, body: dict):
    calls: list[str] = []

    async def submitter(email: str) -> SubmitResponse:
        calls.append(email)
        return SubmitResponse(status_code, body)

    submitter.calls = calls  # type: ignore[attr-defined]
    return submitter


# --- Form State ---


class TestSubscribeFormState:
    def test_invalid_email_never_submits(self) -> None:
        form = SubscribeFormState(email="user@domain")
        submitter = responding(201, {})

        asyncio.run(form.submit(submitter))

        assert form.state is IntakeState.REJECTED
        assert form.error == MSG_INVALID_EMAIL
        assert submitter.calls == []

    def test_success_opens_modal_and_clears_input(self) -> None:
        form = SubscribeFormState(email="legal@firm.com")
        submitter = responding(201, {"success": True, "message": "ok"})

        asyncio.run(form.submit(submitter))

        assert form.state is IntakeState.DONE
        assert form.show_modal
        assert form.email == ""
        assert form.error is None
        assert submitter.calls == ["legal@firm.com"]

        form.close_modal()
        assert not form.show_modal

    def test_server_error_is_shown(self) -> None:
        form = SubscribeFormState(email="legal@firm.com")

        asyncio.run(form.submit(responding(409, {"error": MSG_DUPLICATE})))

        assert form.state is IntakeState.DUPLICATE
        assert form.error == MSG_DUPLICATE
        assert form.email == "legal@firm.com"
        assert not form.show_modal

    def test_error_without_message_uses_fallback(self) -> None:
        form = SubscribeFormState(email="legal@firm.com")

        asyncio.run(form.submit(responding(500, {})))

        assert form.state is IntakeState.STORE_FAILED
        assert form.error == MSG_FALLBACK

    def test_request_failure(self) -> None:
        form = SubscribeFormState(email="legal@firm.com")

        async def submitter(email: str) -> SubmitResponse:
            raise SubscribeRequestError("connection refused")

        asyncio.run(form.submit(submitter))

        assert form.error == MSG_REQUEST_FAILED
        assert not form.loading

    def test_unexpected_submitter_error_releases_form(self) -> None:
        form = SubscribeFormState(email="legal@firm.com")

        async def broken(email: str) -> SubmitResponse:
            raise RuntimeError("boom")

        asyncio.run(form.submit(broken))

        assert form.state is IntakeState.STORE_FAILED
        assert form.error == MSG_REQUEST_FAILED
        assert not form.loading

        submitter = responding(201, {"success": True})
        assert asyncio.run(form.submit(submitter)) is True
        assert submitter.calls == ["legal@firm.com"]
        assert form.state is IntakeState.DONE

    def test_cancelled_submit_releases_form(self) -> None:
        async def scenario():
            async def hanging(email: str) -> SubmitResponse:
                await asyncio.sleep(10)
                return SubmitResponse(201, {})

            form = SubscribeFormState(email="legal@firm.com")
            task = asyncio.create_task(form.submit(hanging))
            await asyncio.sleep(0)
            assert form.loading
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return form

        form = asyncio.run(scenario())

        assert form.state is IntakeState.IDLE
        assert not form.loading

    def test_error_cleared_on_next_submit(self) -> None:
        form = SubscribeFormState(email="bad")
        asyncio.run(form.submit(responding(201, {})))
        assert form.error

        form.email = "legal@firm.com"
        asyncio.run(form.submit(responding(201, {})))
        assert form.error is None

    def test_submit_while_in_flight_is_ignored(self) -> None:
        async def scenario():
            gate = asyncio.Event()
            calls: list[str] = []

            async def submitter(email: str) -> SubmitResponse:
                calls.append(email)
                await gate.wait()
                return SubmitResponse(201, {"success": True})

            form = SubscribeFormState(email="legal@firm.com")
            first = asyncio.create_task(form.submit(submitter))
            await asyncio.sleep(0)
            assert form.loading
            accepted = await form.submit(submitter)
            gate.set()
            await first
            return accepted, calls, form

        accepted, calls, form = asyncio.run(scenario())

        assert accepted is False
        assert calls == ["legal@firm.com"]
        assert form.state is IntakeState.DONE

    def test_on_change_fires_per_state(self) -> None:
        seen: list[IntakeState] = []
        form = SubscribeFormState(email="legal@firm.com")
        form.on_change = lambda: seen.append(form.state)

        asyncio.run(form.submit(responding(201, {})))

        assert seen == [IntakeState.VALIDATING, IntakeState.INSERTING, IntakeState.DONE]


# --- API Client ---


class TestSubscribeApiClient:
    def _client(self, handler) -> SubscribeApiClient:
        return SubscribeApiClient("http://api.test/", transport=httpx.MockTransport(handler))

    def test_posts_email(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"success": True, "message": "ok"})

        response = asyncio.run(self._client(handler).submit("legal@firm.com"))

        assert response.ok
        assert response.body["success"] is True
        assert seen[0].url == "http://api.test/api/subscribe"
        assert json.loads(seen[0].content) == {"email": "legal@firm.com"}

    def test_error_status_is_returned(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"error": MSG_DUPLICATE})

        response = asyncio.run(self._client(handler).submit("legal@firm.com"))

        assert not response.ok
        assert response.body == {"error": MSG_DUPLICATE}

    def test_non_json_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with pytest.raises(SubscribeRequestError):
            asyncio.run(self._client(handler).submit("legal@firm.com"))

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        with pytest.raises(SubscribeRequestError):
            asyncio.run(self._client(handler).submit("legal@firm.com"))

    def test_non_object_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json=["unexpected"])

        response = asyncio.run(self._client(handler).submit("legal@firm.com"))
        assert response.body == {}
