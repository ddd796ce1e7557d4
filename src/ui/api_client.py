"""HTTP client the form uses to reach POST /api/subscribe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(frozen=True)
class SubmitResponse:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SubscribeRequestError(Exception):
    """The request never produced a readable response."""

    pass


class SubscribeApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def submit(self, email: str) -> SubmitResponse:
        """
        Post one email.

        Raises:
            SubscribeRequestError: transport failure or a non-JSON body
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.post("/api/subscribe", json={"email": email})
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SubscribeRequestError(str(e)) from e

        return SubmitResponse(response.status_code, body if isinstance(body, dict) else {})
