import flet as ft

from src.ui.api_client import SubscribeApiClient
from src.ui.state import SubscribeFormState
from src.ui.theme import AppTheme


class SubscribeFormView(ft.Column):  # type: ignore
    def __init__(self, api: SubscribeApiClient) -> None:
        super().__init__()
        self.api = api
        self.form = SubscribeFormState(on_change=self.render)

        self.email = ft.TextField(
            hint_text="Enter your work email",
            keyboard_type=ft.KeyboardType.EMAIL,
            width=320,
            on_submit=self.submit_click,
        )
        self.button = ft.ElevatedButton("Subscribe", on_click=self.submit_click)
        self.error_text = ft.Text(color=AppTheme.error, size=14, visible=False)
        self.dialog = ft.AlertDialog(
            title=ft.Text("You're subscribed!"),
            content=ft.Text(
                "Thank you for subscribing. "
                "You'll receive regulatory updates directly to your inbox."
            ),
            actions=[ft.TextButton("Close", on_click=self.close_click)],
            on_dismiss=lambda e: self.form.close_modal(),
        )

        self.horizontal_alignment = ft.CrossAxisAlignment.CENTER
        self.controls = [
            ft.Row([self.email, self.button], alignment=ft.MainAxisAlignment.CENTER),
            self.error_text,
        ]

    async def submit_click(self, e: ft.ControlEvent) -> None:
        self.form.email = self.email.value or ""
        await self.form.submit(self.api.submit)

    def close_click(self, e: ft.ControlEvent) -> None:
        self.form.close_modal()

    def render(self) -> None:
        form = self.form
        self.button.disabled = form.loading
        self.button.text = "Subscribing..." if form.loading else "Subscribe"
        self.error_text.value = form.error or ""
        self.error_text.visible = form.error is not None
        if not form.loading:
            self.email.value = form.email

        if self.page is None:
            return
        if form.show_modal and not self.dialog.open:
            self.page.open(self.dialog)
        elif not form.show_modal and self.dialog.open:
            self.page.close(self.dialog)
        self.update()
