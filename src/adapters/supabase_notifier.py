"""
Supabase Edge Function notifier.

Invokes the confirmation-email function with the persisted record as JSON
body. The client sends the project key as bearer token.
"""

from __future__ import annotations

from src.adapters.supabase_store import SupabaseClientProvider
from src.components.subscriptions.models import SubscriptionRecord


class SupabaseFunctionNotifier:
    def __init__(
        self,
        provider: SupabaseClientProvider,
        function_name: str = "send-confirmation-email",
    ) -> None:
        self.provider = provider
        self.function_name = function_name

    async def notify(self, record: SubscriptionRecord) -> None:
        client = await self.provider.get()
        # raises FunctionsHttpError / FunctionsRelayError on failure
        await client.functions.invoke(
            self.function_name,
            invoke_options={"body": build_payload(record)},
        )


def build_payload(record: SubscriptionRecord) -> dict[str, object]:
    return {
        "record": {
            "id": record.id,
            "email": record.email,
            "confirmation_token": record.confirmation_token,
            "created_at": record.created_at.isoformat(),
        }
    }
