"""
Study View - one card at a time, oldest first.
-----------------------------------------------

Tap the card to flip it. Previous/next step through the deck; each new
card starts on its front face.
"""

from typing import List, Optional

import flet as ft

from ..config import SettingsManager
from ..models.card import Card
from ..services.ai_service import AIService
from ..services.card_service import CardService
from .card_form import CardFormDialog
from .feedback import show_confirm_dialog, show_snackbar
from .flashcard_view import FlashcardView, word_type_badge


class StudyView:
    """Single-card study screen."""

    def __init__(self, page: ft.Page, service: CardService, ai_service: AIService) -> None:
        self.page = page
        self.service = service
        self.ai_service = ai_service
        self.settings = SettingsManager()

        self._cards: List[Card] = []
        self._index: int = 0
        self._flashcard: Optional[FlashcardView] = None

        self._position_text: Optional[ft.Text] = None
        self._badge_slot: Optional[ft.Container] = None
        self._card_slot: Optional[ft.Container] = None
        self._prev_button: Optional[ft.IconButton] = None
        self._next_button: Optional[ft.IconButton] = None
        self._edit_button: Optional[ft.IconButton] = None
        self._delete_button: Optional[ft.IconButton] = None

        self._container = self._build_view()
        self.service.on_change(self.refresh)

    @property
    def container(self) -> ft.Container:
        return self._container

    @property
    def current_card(self) -> Optional[Card]:
        if not self._cards:
            return None
        return self._cards[self._index]

    def _build_view(self) -> ft.Container:
        self._position_text = ft.Text("", size=14, color=ft.Colors.WHITE54)
        self._badge_slot = ft.Container()
        self._card_slot = ft.Container(alignment=ft.Alignment(0, 0), expand=True)

        self._prev_button = ft.IconButton(
            icon=ft.Icons.CHEVRON_LEFT_ROUNDED,
            icon_size=32,
            tooltip="Previous card",
            on_click=lambda _: self._step(-1),
        )
        self._next_button = ft.IconButton(
            icon=ft.Icons.CHEVRON_RIGHT_ROUNDED,
            icon_size=32,
            tooltip="Next card",
            on_click=lambda _: self._step(1),
        )
        self._edit_button = ft.IconButton(
            icon=ft.Icons.EDIT_ROUNDED,
            tooltip="Edit card",
            on_click=lambda _: self._open_form(self.current_card),
        )
        self._delete_button = ft.IconButton(
            icon=ft.Icons.DELETE_OUTLINE_ROUNDED,
            icon_color=ft.Colors.RED_300,
            tooltip="Delete card",
            on_click=lambda _: self._confirm_delete(),
        )

        header = ft.Row(
            controls=[
                ft.Icon(ft.Icons.SCHOOL_ROUNDED, size=32, color=ft.Colors.INDIGO_200),
                ft.Column(
                    controls=[
                        ft.Text("Study", size=28, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                        ft.Text("Tap a card to reveal its definition", size=14, color=ft.Colors.WHITE54),
                    ],
                    spacing=2,
                ),
                ft.Container(expand=True),
                ft.ElevatedButton(
                    content=ft.Row(
                        controls=[ft.Icon(ft.Icons.ADD_ROUNDED, size=20), ft.Text("New Card")],
                        spacing=8,
                    ),
                    style=ft.ButtonStyle(
                        color=ft.Colors.WHITE,
                        bgcolor=ft.Colors.INDIGO_600,
                        shape=ft.RoundedRectangleBorder(radius=10),
                        padding=ft.Padding.symmetric(horizontal=20, vertical=12),
                    ),
                    on_click=lambda _: self._open_form(None),
                ),
            ],
            spacing=15,
        )

        return ft.Container(
            content=ft.Column(
                controls=[
                    ft.Container(content=header, padding=ft.Padding.only(bottom=20)),
                    ft.Row(
                        controls=[self._position_text, self._badge_slot],
                        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                    ),
                    self._card_slot,
                    ft.Row(
                        controls=[
                            self._prev_button,
                            self._edit_button,
                            self._delete_button,
                            self._next_button,
                        ],
                        alignment=ft.MainAxisAlignment.CENTER,
                        spacing=20,
                    ),
                ],
                expand=True,
            ),
            expand=True,
            padding=10,
        )

    def _empty_state(self) -> ft.Control:
        return ft.Column(
            controls=[
                ft.Icon(ft.Icons.STYLE_OUTLINED, size=64, color=ft.Colors.WHITE24),
                ft.Text("No cards yet", size=18, weight=ft.FontWeight.W_600, color=ft.Colors.WHITE70),
                ft.Text("Add your first card to start studying.", size=13, color=ft.Colors.WHITE38),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            alignment=ft.MainAxisAlignment.CENTER,
        )

    def refresh(self) -> None:
        """Reload cards from storage and redraw the current one."""
        current = self.current_card
        self._cards = self.service.study_order()
        if current is not None:
            ids = [card.id for card in self._cards]
            self._index = ids.index(current.id) if current.id in ids else self._index
        self._index = max(0, min(self._index, len(self._cards) - 1))
        self._show_current()

    def _show_current(self) -> None:
        card = self.current_card
        has_cards = card is not None

        if has_cards:
            self._flashcard = FlashcardView(
                self.page,
                card,
                duration_ms=int(self.settings.get("FLIP_DURATION_MS", 400)),
            )
            self._card_slot.content = self._flashcard.container
            self._position_text.value = f"Card {self._index + 1} of {len(self._cards)}"
            self._badge_slot.content = word_type_badge(card.word_type)
        else:
            self._flashcard = None
            self._card_slot.content = self._empty_state()
            self._position_text.value = ""
            self._badge_slot.content = None

        self._prev_button.disabled = not has_cards or self._index == 0
        self._next_button.disabled = not has_cards or self._index >= len(self._cards) - 1
        self._edit_button.disabled = not has_cards
        self._delete_button.disabled = not has_cards
        self.page.update()

    def _step(self, delta: int) -> None:
        target = self._index + delta
        if 0 <= target < len(self._cards):
            self._index = target
            self._show_current()

    def _open_form(self, card: Optional[Card]) -> None:
        CardFormDialog(
            self.page,
            self.service,
            self.ai_service,
            card=card,
            on_saved=lambda saved: show_snackbar(self.page, f"Saved '{saved.word}'"),
            timeout=self.settings.generation_timeout(),
        ).open()

    def _confirm_delete(self) -> None:
        card = self.current_card
        if card is None:
            return
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
