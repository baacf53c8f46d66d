"""
Flashcard View - a two-sided card that flips on tap.

The orientation lives in a FlipController; this module owns the animation
loop that walks it toward the target and redraws each frame.
"""

import asyncio
from typing import Optional

import flet as ft

from ..config import Config
from ..models.card import Card, WordType
from ..models.flip import FlipController


CARD_WIDTH = 340
CARD_HEIGHT = 400


def word_type_badge(word_type: Optional[WordType], abbreviated: bool = False) -> ft.Container:
    """Pill showing a card's word type, or N/A when unclassified."""
    if word_type is None:
        return ft.Container(
            content=ft.Text("N/A", size=13, weight=ft.FontWeight.W_500, color=ft.Colors.WHITE54),
            padding=ft.Padding.symmetric(horizontal=12, vertical=6),
            bgcolor=ft.Colors.with_opacity(0.2, ft.Colors.GREY),
            border_radius=20,
        )

    text = word_type.abbreviation.upper() if abbreviated else word_type.label
    return ft.Container(
        content=ft.Text(text, size=13, weight=ft.FontWeight.W_600, color=ft.Colors.WHITE),
        padding=ft.Padding.symmetric(horizontal=12, vertical=6),
        bgcolor=word_type.color,
        border_radius=20,
    )


class FlashcardView:
    """
    Tap-to-flip card.

    Front shows the word, back shows the definition. The back face is
    mirrored once up front, so when the whole card is mirrored past the
    midpoint the definition reads normally.
    """

    def __init__(
        self,
        page: ft.Page,
        card: Card,
        flipped: bool = False,
        duration_ms: int = Config.FLIP_DURATION_MS,
    ) -> None:
        self.page = page
        self.card = card
        self.flip = FlipController(flipped=flipped)
        self.duration_ms = max(1, int(duration_ms))
        self._animating: bool = False

        self._front: Optional[ft.Container] = None
        self._back: Optional[ft.Container] = None
        self._container = self._build_view()
        self._render()

    @property
    def container(self) -> ft.Container:
        return self._container

    def _build_view(self) -> ft.Container:
        self._front = ft.Container(
            content=ft.Text(
                self.card.word,
                size=28,
                weight=ft.FontWeight.W_600,
                color=ft.Colors.WHITE,
                text_align=ft.TextAlign.CENTER,
            ),
            alignment=ft.Alignment(0, 0),
            padding=24,
            border_radius=16,
            gradient=ft.LinearGradient(
                begin=ft.Alignment(-1, -1),
                end=ft.Alignment(1, 1),
                colors=[ft.Colors.INDIGO_400, ft.Colors.INDIGO_700],
            ),
            width=CARD_WIDTH,
            height=CARD_HEIGHT,
        )

        self._back = ft.Container(
            content=ft.Text(
                self.card.definition,
                size=18,
                color=ft.Colors.WHITE,
                text_align=ft.TextAlign.CENTER,
            ),
            alignment=ft.Alignment(0, 0),
            padding=24,
            border_radius=16,
            gradient=ft.LinearGradient(
                begin=ft.Alignment(-1, -1),
                end=ft.Alignment(1, 1),
                colors=[ft.Colors.BLUE_400, ft.Colors.BLUE_700],
            ),
            width=CARD_WIDTH,
            height=CARD_HEIGHT,
            # Pre-mirrored counterpart of FlipController.BACK_FACE_ROTATION
            scale=ft.Scale(scale_x=-1),
        )

        return ft.Container(
            content=ft.Stack(controls=[self._front, self._back]),
            width=CARD_WIDTH,
            height=CARD_HEIGHT,
            shadow=ft.BoxShadow(
                spread_radius=0,
                blur_radius=10,
                color=ft.Colors.with_opacity(0.3, ft.Colors.BLACK),
                offset=ft.Offset(0, 4),
            ),
            border_radius=16,
            on_click=lambda _: self.toggle(),
        )

    def _render(self) -> None:
        """Apply the controller's current orientation to the controls."""
        self._front.opacity = self.flip.front_opacity
        self._back.opacity = self.flip.back_opacity
        self._container.scale = ft.Scale(scale_x=self.flip.horizontal_scale)

    def toggle(self) -> None:
        """Flip toward the other face, reversing if already in flight."""
        self.flip.toggle()
        if not self._animating:
            self.page.run_task(self._animate)

    async def _animate(self) -> None:
        """Step the orientation toward the target at a constant speed."""
        self._animating = True
        frame_s = Config.FLIP_FRAME_MS / 1000
        step = 180.0 * Config.FLIP_FRAME_MS / self.duration_ms
        try:
            while self.flip.is_animating:
                remaining = self.flip.target - self.flip.orientation
                move = max(-step, min(step, remaining))
                self.flip.set_orientation(self.flip.orientation + move)
                self._render()
                self.page.update()
                await asyncio.sleep(frame_s)
        finally:
            self._animating = False
