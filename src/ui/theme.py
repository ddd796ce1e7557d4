import flet as ft


class AppTheme:
    """
    Centralized theme configuration for the landing page.
    Dark slate with a regulatory red accent.
    """

    font_family = "Inter"

    primary = "#dc2626"  # Regulatory red
    on_primary = "#ffffff"
    secondary = "#1f2937"  # Slate
    surface = "#ffffff"
    error = "#DC2626"

    @classmethod
    def light_theme(cls) -> ft.Theme:
        return ft.Theme(
            color_scheme=ft.ColorScheme(
                primary=cls.primary,
                on_primary=cls.on_primary,
                secondary=cls.secondary,
                surface=cls.surface,
                error=cls.error,
            ),
            font_family=cls.font_family,
            use_material3=True,
        )
