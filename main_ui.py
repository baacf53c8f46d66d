"""
FlashQuiz: Vocabulary Flashcards
--------------------------------

Flet interface for studying flashcards and generating definitions with AI.
"""

import flet as ft
from typing import Callable, List, NamedTuple

from flashquiz import __version__
from flashquiz.config import Config, SettingsManager
from flashquiz.services import AIService, CardService
from flashquiz.ui import CardListView, SettingsView, StudyView
from flashquiz.utils import setup_logger

logger = setup_logger("flashquiz")


class Destination(NamedTuple):
    """One entry of the sidebar."""
    label: str
    icon: str
    selected_icon: str
    container: ft.Container


# =============================================================================
# SIDEBAR
# =============================================================================

def build_sidebar(destinations: List[Destination], on_select: Callable[[int], None]) -> ft.Container:
    """
    Build the branded sidebar with one rail entry per destination.

    Args:
        destinations: Views reachable from the rail, in display order
        on_select: Called with the index of the chosen destination

    Returns:
        Sidebar container
    """
    rail = ft.NavigationRail(
        selected_index=0,
        label_type=ft.NavigationRailLabelType.ALL,
        min_width=100,
        min_extended_width=200,
        extended=True,
        group_alignment=-0.9,
        destinations=[
            ft.NavigationRailDestination(
                icon=dest.icon,
                selected_icon=dest.selected_icon,
                label=dest.label,
                padding=ft.Padding.symmetric(vertical=8),
            )
            for dest in destinations
        ],
        on_change=lambda e: on_select(e.control.selected_index),
        bgcolor="transparent",
    )

    brand = ft.Row(
        controls=[
            ft.Icon(ft.Icons.STYLE_ROUNDED, color=ft.Colors.INDIGO_200, size=28),
            ft.Text("FlashQuiz", size=20, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
        ],
        alignment=ft.MainAxisAlignment.CENTER,
        spacing=10,
    )

    return ft.Container(
        content=ft.Column(
            controls=[
                ft.Container(content=brand, padding=ft.Padding.only(top=20, bottom=10)),
                ft.Divider(height=1, color=ft.Colors.WHITE10),
                ft.Container(content=rail, expand=True),
                ft.Container(
                    content=ft.Text(f"v{__version__}", size=11, color=ft.Colors.WHITE24),
                    padding=ft.Padding.only(bottom=20),
                    alignment=ft.Alignment(0, 0),
                ),
            ],
            spacing=0,
        ),
        width=220,
        bgcolor="#161617",
    )


# =============================================================================
# APPLICATION
# =============================================================================

class FlashQuizApp:
    """
    Wires storage, the AI service and the three views onto one page.

    The AI service is rebuilt whenever settings are saved so a provider
    change applies to the next card form.
    """

    def __init__(self, page: ft.Page) -> None:
        self.page = page
        self.settings = SettingsManager()
        self.card_service = CardService(db_path=self.settings.get("DB_FILE"))
        self.ai_service = AIService()

        self._configure_page()

        self.study = StudyView(page, self.card_service, self.ai_service)
        self.card_list = CardListView(page, self.card_service, self.ai_service)
        self.settings_view = SettingsView(page, self.card_service, on_saved=self._on_settings_saved)
        self.destinations = [
            Destination("Study", ft.Icons.SCHOOL_OUTLINED, ft.Icons.SCHOOL_ROUNDED, self.study.container),
            Destination("Cards", ft.Icons.STYLE_OUTLINED, ft.Icons.STYLE_ROUNDED, self.card_list.container),
            Destination("Settings", ft.Icons.SETTINGS_OUTLINED, ft.Icons.SETTINGS_ROUNDED,
                        self.settings_view.container),
        ]
        self.selected: int = 0

        self._layout()

        if not self.card_service.load():
            logger.error("Card storage could not be opened")
        self.study.refresh()
        self.card_list.refresh()

    def _configure_page(self) -> None:
        self.page.title = Config.APP_NAME
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.bgcolor = "#121212"
        self.page.theme = ft.Theme(
            color_scheme_seed="#5C6BC0",
            font_family="Inter, Roboto, Segoe UI, sans-serif",
        )
        self.page.padding = 0
        self.page.spacing = 0
        self.page.window.min_width = 900
        self.page.window.min_height = 650
        self.page.window.width = 1100
        self.page.window.height = 800

    def _layout(self) -> None:
        self.content_area = ft.Container(
            content=self.destinations[0].container,
            expand=True,
            padding=24,
            border_radius=ft.BorderRadius.only(top_left=16, bottom_left=16),
            bgcolor="#1A1A1B",
            shadow=ft.BoxShadow(
                spread_radius=-2,
                blur_radius=24,
                color=ft.Colors.with_opacity(0.2, ft.Colors.BLACK),
                offset=ft.Offset(-6, 0),
            ),
        )

        self.page.add(
            ft.Row(
                controls=[
                    build_sidebar(self.destinations, self.select),
                    ft.VerticalDivider(width=1, color=ft.Colors.WHITE10),
                    self.content_area,
                ],
                spacing=0,
                expand=True,
            )
        )

    def select(self, index: int) -> None:
        """Show the destination at index."""
        if index == self.selected or not 0 <= index < len(self.destinations):
            return
        self.selected = index
        self.content_area.content = self.destinations[index].container
        self.page.update()

    def _on_settings_saved(self) -> None:
        previous = self.ai_service
        self.ai_service = AIService()
        self.study.ai_service = self.ai_service
        self.card_list.ai_service = self.ai_service
        self.page.run_task(previous.close)
        # Flip speed is read when a card is shown
        self.study.refresh()
        logger.info("Settings saved, AI provider is now %s", self.ai_service.config.provider.value)


def main(page: ft.Page) -> None:
    """Flet entry point. Start-up errors are shown on the page."""
    try:
        FlashQuizApp(page)
    except Exception:
        logger.exception("UI failed to start")
        import traceback
        page.add(
            ft.Container(
                content=ft.Column(
                    controls=[
                        ft.Text("FlashQuiz failed to start", size=20, weight=ft.FontWeight.BOLD,
                                color=ft.Colors.RED_400),
                        ft.Container(
                            content=ft.Text(traceback.format_exc(), size=11, selectable=True,
                                            color=ft.Colors.WHITE70),
                            padding=10,
                            bgcolor=ft.Colors.with_opacity(0.08, ft.Colors.WHITE),
                            border_radius=8,
                        ),
                    ],
                    spacing=10,
                ),
                padding=20,
            )
        )
        page.update()


if __name__ == "__main__":
    ft.run(main)
