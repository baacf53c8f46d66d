"""
Card List - every card, newest first, with edit and delete.
"""

from typing import List, Optional

import flet as ft

from ..config import SettingsManager
from ..models.card import Card
from ..services.ai_service import AIService
from ..services.card_service import CardService
from .card_form import CardFormDialog
from .feedback import show_confirm_dialog, show_snackbar
from .flashcard_view import word_type_badge


class CardListView:
    """Scrollable list of cards with a search box."""

    def __init__(self, page: ft.Page, service: CardService, ai_service: AIService) -> None:
        self.page = page
        self.service = service
        self.ai_service = ai_service
        self.settings = SettingsManager()

        self._search_field: Optional[ft.TextField] = None
        self._list: Optional[ft.ListView] = None
        self._count_text: Optional[ft.Text] = None

        self._container = self._build_view()
        self.service.on_change(self.refresh)

    @property
    def container(self) -> ft.Container:
        return self._container

    def _build_view(self) -> ft.Container:
        self._search_field = ft.TextField(
            hint_text="Search words and definitions",
            prefix_icon=ft.Icons.SEARCH_ROUNDED,
            border_color=ft.Colors.WHITE24,
            focused_border_color=ft.Colors.INDIGO_200,
            text_style=ft.TextStyle(color=ft.Colors.WHITE),
            on_change=lambda _: self.refresh(),
            width=320,
        )
        self._count_text = ft.Text("", size=14, color=ft.Colors.WHITE54)
        self._list = ft.ListView(spacing=8, expand=True)

        header = ft.Row(
            controls=[
                ft.Icon(ft.Icons.STYLE_ROUNDED, size=32, color=ft.Colors.INDIGO_200),
                ft.Column(
                    controls=[
                        ft.Text("Cards", size=28, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                        self._count_text,
                    ],
                    spacing=2,
                ),
                ft.Container(expand=True),
                self._search_field,
            ],
            spacing=15,
        )

        return ft.Container(
            content=ft.Column(
                controls=[
                    ft.Container(content=header, padding=ft.Padding.only(bottom=20)),
                    self._list,
                ],
                expand=True,
            ),
            expand=True,
            padding=10,
        )

    def _visible_cards(self) -> List[Card]:
        query = self._search_field.value if self._search_field else ""
        if query and query.strip():
            return self.service.search(query)
        return self.service.list_order()

    def _build_row(self, card: Card) -> ft.Container:
        return ft.Container(
            content=ft.Row(
                controls=[
                    ft.Column(
                        controls=[
                            ft.Text(card.word, size=16, weight=ft.FontWeight.W_600, color=ft.Colors.WHITE),
                            ft.Text(
                                card.definition,
                                size=13,
                                color=ft.Colors.WHITE54,
                                max_lines=2,
                                overflow=ft.TextOverflow.ELLIPSIS,
                            ),
                        ],
                        spacing=4,
                        expand=True,
                    ),
                    word_type_badge(card.word_type, abbreviated=True),
                    ft.IconButton(
                        icon=ft.Icons.EDIT_ROUNDED,
                        tooltip="Edit",
                        on_click=lambda _, c=card: self._open_form(c),
                    ),
                    ft.IconButton(
                        icon=ft.Icons.DELETE_OUTLINE_ROUNDED,
                        icon_color=ft.Colors.RED_300,
                        tooltip="Delete",
                        on_click=lambda _, c=card: self._confirm_delete(c),
                    ),
                ],
                spacing=12,
            ),
            padding=ft.Padding.symmetric(horizontal=16, vertical=12),
            border_radius=12,
            bgcolor="#1A1A1A",
        )

    def refresh(self) -> None:
        """Rebuild the list from storage."""
        cards = self._visible_cards()
        self._list.controls = [self._build_row(card) for card in cards]
        total = self.service.count
        self._count_text.value = f"{total} card" + ("" if total == 1 else "s")
        self.page.update()

    def _open_form(self, card: Card) -> None:
        CardFormDialog(
            self.page,
            self.service,
            self.ai_service,
            card=card,
            on_saved=lambda saved: show_snackbar(self.page, f"Saved '{saved.word}'"),
            timeout=self.settings.generation_timeout(),
        ).open()

    def _confirm_delete(self, card: Card) -> None:
        show_confirm_dialog(
            self.page,
            "Delete Card",
            f"Delete '{card.word}'? This cannot be undone.",
            on_confirm=lambda: self._delete(card),
        )

    def _delete(self, card: Card) -> None:
        if self.service.delete_card(card):
            show_snackbar(self.page, f"Deleted '{card.word}'")
        else:
            show_snackbar(self.page, "Could not delete card", error=True)
