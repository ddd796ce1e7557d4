import logging
import os

import flet as ft

from src.ui.api_client import SubscribeApiClient
from src.ui.theme import AppTheme
from src.ui.views.subscribe import SubscribeFormView

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000")


def main(page: ft.Page) -> None:
    page.title = "RegPulse - Regulatory updates for legal teams"
    page.theme = AppTheme.light_theme()
    page.theme_mode = ft.ThemeMode.LIGHT
    page.horizontal_alignment = ft.CrossAxisAlignment.CENTER

    logger.info(f"Subscription API: {API_BASE_URL}")
    api = SubscribeApiClient(API_BASE_URL)

    page.add(
        ft.Column(
            [
                ft.Text("Regulatory changes, delivered.", style=ft.TextThemeStyle.HEADLINE_LARGE),
                ft.Text(
                    "Get the updates that matter to your practice, straight to your inbox.",
                    text_align=ft.TextAlign.CENTER,
                ),
                SubscribeFormView(api),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            spacing=16,
        )
    )


if __name__ == "__main__":
    ft.app(target=main)
