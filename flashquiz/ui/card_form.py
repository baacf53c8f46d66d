"""
Card Form - add or edit a card, with AI generation.

The form owns one GenerationOrchestrator for as long as it is open. The
generate button runs definition and word type generation together; the
definition field follows the streamed text as it arrives.
"""

from typing import Callable, Optional

import flet as ft

from ..models.card import Card, CardValidationError, WordType
from ..services.ai_service import AIService
from ..services.card_service import CardService
from ..services.generation import GenerationOrchestrator
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from .flashcard_view import word_type_badge

logger = setup_logger(__name__)


class CardFormDialog:
    """
    Modal dialog for creating or editing a card.

    Usage:
        CardFormDialog(page, service, ai_service, on_saved=refresh).open()
    """

    def __init__(
        self,
        page: ft.Page,
        service: CardService,
        ai_service: AIService,
        card: Optional[Card] = None,
        on_saved: Optional[Callable[[Card], None]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.page = page
        self.service = service
        self.card = card
        self._on_saved = on_saved

        self.orchestrator = GenerationOrchestrator(service=ai_service, timeout=timeout)
        self.orchestrator.on_update(lambda _: self._on_generation_update())

        self._word_type: Optional[WordType] = card.word_type if card else None

        self._word_field: Optional[ft.TextField] = None
        self._definition_field: Optional[ft.TextField] = None
        self._badge_row: Optional[ft.Row] = None
        self._generate_button: Optional[ft.ElevatedButton] = None
        self._save_button: Optional[ft.TextButton] = None
        self._error_text: Optional[ft.Text] = None
        self._dialog = self._build_dialog()

    @property
    def is_editing(self) -> bool:
        return self.card is not None

    def _trimmed_word(self) -> str:
        return TextParser.clean_field(self._word_field.value)

    def _trimmed_definition(self) -> str:
        return TextParser.clean_field(self._definition_field.value)

    def _build_dialog(self) -> ft.AlertDialog:
        self._word_field = ft.TextField(
            label="Word",
            hint_text="Enter a word",
            value=self.card.word if self.card else "",
            autofocus=True,
            on_change=lambda _: self._refresh_controls(),
        )
        self._definition_field = ft.TextField(
            label="Definition",
            value=self.card.definition if self.card else "",
            multiline=True,
            min_lines=3,
            max_lines=6,
            on_change=lambda _: self._refresh_controls(),
        )
        self._badge_row = ft.Row(alignment=ft.MainAxisAlignment.CENTER, spacing=8)
        self._error_text = ft.Text("", size=12, color=ft.Colors.RED_400, visible=False)

        self._generate_button = ft.ElevatedButton(
            content=ft.Row(
                controls=[
                    ft.Icon(ft.Icons.AUTO_AWESOME, size=18),
                    ft.Text("AI Generate", weight=ft.FontWeight.W_600),
                ],
                spacing=8,
                alignment=ft.MainAxisAlignment.CENTER,
            ),
            style=ft.ButtonStyle(
                color=ft.Colors.WHITE,
                bgcolor=ft.Colors.BLUE_600,
                shape=ft.RoundedRectangleBorder(radius=12),
                padding=ft.Padding.symmetric(vertical=14),
            ),
            on_click=lambda _: self._on_generate_click(),
        )
        self._save_button = ft.TextButton("Save", on_click=lambda _: self._on_save_click())

        footer = "Edit manually or regenerate with AI." if self.is_editing else \
            "Type a definition manually or use AI to generate one."

        dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text("Edit Card" if self.is_editing else "New Card", weight=ft.FontWeight.W_600),
            content=ft.Container(
                content=ft.Column(
                    controls=[
                        self._word_field,
                        self._badge_row,
                        self._definition_field,
                        self._generate_button,
                        self._error_text,
                        ft.Text(footer, size=11, color=ft.Colors.WHITE38),
                    ],
                    spacing=12,
                    tight=True,
                ),
                width=420,
            ),
            actions=[
                ft.TextButton("Cancel", on_click=lambda _: self.close()),
                self._save_button,
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )
        self._refresh_controls()
        return dialog

    def open(self) -> None:
        self.page.overlay.append(self._dialog)
        self._dialog.open = True
        self.page.update()
        self.page.run_task(self.orchestrator.prewarm)

    def close(self) -> None:
        self._dialog.open = False
        self.page.update()
        if self._dialog in self.page.overlay:
            self.page.overlay.remove(self._dialog)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _refresh_controls(self) -> None:
        generating = self.orchestrator.is_generating
        can_save = bool(self._trimmed_word()) and bool(self._trimmed_definition())

        self._generate_button.disabled = not self.orchestrator.can_generate(self._word_field.value)
        self._generate_button.content.controls[1].value = "Generating..." if generating else "AI Generate"
        self._save_button.disabled = not can_save or generating

        self._badge_row.controls.clear()
        if generating and self._word_type is None:
            self._badge_row.controls.extend([
                ft.ProgressRing(width=16, height=16, stroke_width=2),
                ft.Text("Classifying...", size=13, color=ft.Colors.WHITE54),
            ])
        elif self._word_type is not None:
            self._badge_row.controls.extend([
                word_type_badge(self._word_type, abbreviated=True),
                ft.Text(self._word_type.label, size=13, color=ft.Colors.WHITE54),
            ])
        self._badge_row.visible = bool(self._badge_row.controls)

        error = self.orchestrator.last_error
        self._error_text.value = error.description if error else ""
        self._error_text.visible = error is not None

    def _on_generation_update(self) -> None:
        result = self.orchestrator.latest_result
        if result is not None:
            if result.definition is not None:
                self._definition_field.value = result.definition
            if result.word_type is not None:
                self._word_type = result.word_type
        self._refresh_controls()
        self.page.update()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _on_generate_click(self) -> None:
        word = self._trimmed_word()
        if not self.orchestrator.can_generate(word):
            return
        self.page.run_task(self.orchestrator.generate_card, word)

    def _on_save_click(self) -> None:
        try:
            if self.card is None:
                saved = self.service.add_card(
                    self._trimmed_word(),
                    self._trimmed_definition(),
                    self._word_type,
                )
            else:
                self.service.update_card(
                    self.card,
                    word=self._trimmed_word(),
                    definition=self._trimmed_definition(),
                    word_type=self._word_type,
                )
                saved = self.card
        except CardValidationError as e:
            self._error_text.value = str(e)
            self._error_text.visible = True
            self.page.update()
            return

        self.close()
        if self._on_saved:
            self._on_saved(saved)
