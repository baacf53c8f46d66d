"""
Settings View - Application Configuration UI
----------------------------------------------

Edits the generation provider, timeouts and flip speed through
SettingsManager, and offers CSV import/export of the deck.
"""

from typing import Callable, Dict, Optional

import flet as ft

from ..config import Config, SettingsManager
from ..services.card_service import CardService
from .feedback import show_snackbar


class SettingsView:
    """
    Settings view for configuring application options.

    Binds to SettingsManager for persistent storage.
    """

    PROVIDER_OPTIONS: Dict[str, str] = {
        "openai": "OpenAI",
        "anthropic": "Anthropic",
        "groq": "Groq",
        "ollama": "Ollama (local)",
    }

    def __init__(
        self,
        page: ft.Page,
        service: CardService,
        on_saved: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Initialize the Settings view.

        Args:
            page: Flet page instance for updates
            service: Card service used for import/export
            on_saved: Called after settings are written, so the app can
                      rebuild anything derived from them
        """
        self.page = page
        self.service = service
        self.settings = SettingsManager()
        self._on_saved = on_saved

        self._provider_dropdown: Optional[ft.Dropdown] = None
        self._model_field: Optional[ft.TextField] = None
        self._base_url_field: Optional[ft.TextField] = None
        self._ai_timeout_field: Optional[ft.TextField] = None
        self._generation_timeout_field: Optional[ft.TextField] = None
        self._flip_label: Optional[ft.Text] = None
        self._flip_slider: Optional[ft.Slider] = None
        self._key_status: Optional[ft.Text] = None
        self._csv_path_field: Optional[ft.TextField] = None

        self._container = self._build_view()

    @property
    def container(self) -> ft.Container:
        """Get the main container for this view."""
        return self._container

    def _build_view(self) -> ft.Container:
        save_button = ft.ElevatedButton(
            content=ft.Row(
                controls=[
                    ft.Icon(ft.Icons.SAVE_ROUNDED, size=20),
                    ft.Text("Save Settings", size=15, weight=ft.FontWeight.W_500),
                ],
                spacing=8,
                alignment=ft.MainAxisAlignment.CENTER,
            ),
            style=ft.ButtonStyle(
                color=ft.Colors.WHITE,
                bgcolor={
                    ft.ControlState.DEFAULT: ft.Colors.INDIGO_600,
                    ft.ControlState.HOVERED: ft.Colors.INDIGO_500,
                },
                padding=ft.Padding.symmetric(horizontal=30, vertical=15),
                shape=ft.RoundedRectangleBorder(radius=10),
            ),
            on_click=self._on_save_click,
        )
        reset_button = ft.TextButton(
            content=ft.Text("Reset to Defaults", color=ft.Colors.WHITE54),
            on_click=self._on_reset_click,
        )

        content = ft.Column(
            controls=[
                ft.Container(
                    content=ft.Row(
                        controls=[
                            ft.Icon(ft.Icons.SETTINGS_ROUNDED, size=32, color=ft.Colors.INDIGO_200),
                            ft.Column(
                                controls=[
                                    ft.Text("Settings", size=28, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                                    ft.Text("Configure AI generation and studying", size=14, color=ft.Colors.WHITE54),
                                ],
                                spacing=2,
                            ),
                        ],
                        spacing=15,
                    ),
                    padding=ft.Padding.only(bottom=25),
                ),
                ft.Container(
                    content=ft.Column(
                        controls=[
                            self._build_ai_section(),
                            ft.Container(height=20),
                            self._build_study_section(),
                            ft.Container(height=20),
                            self._build_data_section(),
                            ft.Container(height=20),
                            ft.Row(
                                controls=[reset_button, ft.Container(expand=True), save_button],
                                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                            ),
                        ],
                        scroll=ft.ScrollMode.AUTO,
                        expand=True,
                    ),
                    expand=True,
                ),
            ],
            expand=True,
        )
        return ft.Container(content=content, expand=True, padding=10)

    def _build_section_card(self, title: str, icon: str, controls: list) -> ft.Container:
        """Build a styled section card."""
        return ft.Container(
            content=ft.Column(
                controls=[
                    ft.Row(
                        controls=[
                            ft.Icon(icon, size=20, color=ft.Colors.INDIGO_200),
                            ft.Text(title, size=16, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
                        ],
                        spacing=10,
                    ),
                    ft.Divider(height=1, color=ft.Colors.WHITE10),
                    ft.Container(height=5),
                    *controls,
                ],
                spacing=10,
            ),
            padding=20,
            border_radius=12,
            bgcolor="#1A1A1A",
        )

    @staticmethod
    def _text_field(
        value: str,
        label: str,
        width: Optional[int] = None,
        numeric: bool = False,
        decimal: bool = False,
    ) -> ft.TextField:
        if decimal:
            input_filter = ft.InputFilter(regex_string=r"^\d*\.?\d*$", allow=True, replacement_string="")
        elif numeric:
            input_filter = ft.NumbersOnlyInputFilter()
        else:
            input_filter = None
        return ft.TextField(
            value=value,
            label=label,
            width=width,
            border_color=ft.Colors.WHITE24,
            focused_border_color=ft.Colors.INDIGO_200,
            label_style=ft.TextStyle(color=ft.Colors.WHITE54),
            text_style=ft.TextStyle(color=ft.Colors.WHITE),
            cursor_color=ft.Colors.INDIGO_200,
            input_filter=input_filter,
        )

    def _build_ai_section(self) -> ft.Container:
        self._provider_dropdown = ft.Dropdown(
            value=self.settings.get("AI_PROVIDER", "openai"),
            options=[
                ft.dropdown.Option(key=key, text=name)
                for key, name in self.PROVIDER_OPTIONS.items()
            ],
            label="AI Provider",
            border_color=ft.Colors.WHITE24,
            focused_border_color=ft.Colors.INDIGO_200,
            label_style=ft.TextStyle(color=ft.Colors.WHITE54),
            text_style=ft.TextStyle(color=ft.Colors.WHITE),
            width=300,
            on_select=lambda _: self._update_key_status(),
        )
        self._model_field = self._text_field(
            self.settings.get("AI_MODEL", ""), "Model (blank for provider default)"
        )
        self._base_url_field = self._text_field(
            self.settings.get("AI_BASE_URL", ""), "Base URL (optional)"
        )
        self._ai_timeout_field = self._text_field(
            str(self.settings.get("AI_TIMEOUT", Config.AI_TIMEOUT)),
            "Connection Timeout (seconds)",
            width=240,
            numeric=True,
        )
        self._generation_timeout_field = self._text_field(
            f"{float(self.settings.get('GENERATION_TIMEOUT', 0) or 0):g}",
            "Generation Timeout (0 = none)",
            width=240,
            decimal=True,
        )
        self._key_status = ft.Text("", size=11)
        self._update_key_status(update=False)

        return self._build_section_card(
            "AI Generation",
            ft.Icons.AUTO_AWESOME,
            [
                ft.Text(
                    "API keys are read from the environment (OPENAI_API_KEY, ANTHROPIC_API_KEY, GROQ_API_KEY).",
                    size=12,
                    color=ft.Colors.WHITE38,
                ),
                self._key_status,
                ft.Container(height=10),
                self._provider_dropdown,
                self._model_field,
                self._base_url_field,
                ft.Row(
                    controls=[self._ai_timeout_field, self._generation_timeout_field],
                    spacing=15,
                    wrap=True,
                ),
            ],
        )

    def _build_study_section(self) -> ft.Container:
        duration = int(self.settings.get("FLIP_DURATION_MS", Config.FLIP_DURATION_MS))
        self._flip_label = ft.Text(f"Flip duration: {duration} ms", size=13, color=ft.Colors.WHITE70)
        self._flip_slider = ft.Slider(
            min=100,
            max=1000,
            divisions=18,
            value=duration,
            label="{value}",
            active_color=ft.Colors.INDIGO_400,
            inactive_color=ft.Colors.WHITE24,
            on_change_end=self._on_flip_change,
        )
        return self._build_section_card(
            "Studying",
            ft.Icons.SCHOOL_ROUNDED,
            [self._flip_label, self._flip_slider],
        )

    def _build_data_section(self) -> ft.Container:
        self._csv_path_field = self._text_field(Config.EXPORT_FILE, "CSV file")
        return self._build_section_card(
            "Data",
            ft.Icons.STORAGE_ROUNDED,
            [
                ft.Text("Pipe-separated CSV with uuid, word, definition, word_type and created_at.",
                        size=12, color=ft.Colors.WHITE38),
                self._csv_path_field,
                ft.Row(
                    controls=[
                        self._outlined_button("Import CSV", ft.Icons.UPLOAD_FILE_ROUNDED, self._on_import_click),
                        self._outlined_button("Export CSV", ft.Icons.DOWNLOAD_ROUNDED, self._on_export_click),
                    ],
                    spacing=15,
                ),
            ],
        )

    @staticmethod
    def _outlined_button(text: str, icon: str, on_click: Callable) -> ft.OutlinedButton:
        return ft.OutlinedButton(
            content=ft.Row(
                controls=[
                    ft.Icon(icon, size=16, color=ft.Colors.WHITE70),
                    ft.Text(text, size=13, color=ft.Colors.WHITE70),
                ],
                spacing=6,
            ),
            style=ft.ButtonStyle(
                side={ft.ControlState.DEFAULT: ft.BorderSide(1, ft.Colors.WHITE12)},
                padding=ft.Padding.symmetric(horizontal=14, vertical=10),
            ),
            on_click=on_click,
        )

    def _update_key_status(self, update: bool = True) -> None:
        provider = self._provider_dropdown.value if self._provider_dropdown else "openai"
        if provider == "ollama" or self.settings.api_key(provider):
            self._key_status.value = "API key found"
            self._key_status.color = ft.Colors.TEAL_200
        else:
            self._key_status.value = "No API key in environment for this provider"
            self._key_status.color = ft.Colors.AMBER_300
        if update:
            self.page.update()

    def _on_flip_change(self, e: ft.ControlEvent) -> None:
        self._flip_label.value = f"Flip duration: {int(e.control.value)} ms"
        self.page.update()

    def _on_save_click(self, e: ft.ControlEvent) -> None:
        """Write every field to SettingsManager."""
        try:
            self.settings.set("AI_PROVIDER", self._provider_dropdown.value or "openai", persist=False)
            self.settings.set("AI_MODEL", (self._model_field.value or "").strip(), persist=False)
            self.settings.set("AI_BASE_URL", (self._base_url_field.value or "").strip(), persist=False)
            self.settings.set("AI_TIMEOUT", int(self._ai_timeout_field.value or Config.AI_TIMEOUT), persist=False)
            self.settings.set("GENERATION_TIMEOUT", float(self._generation_timeout_field.value or 0), persist=False)
            self.settings.set("FLIP_DURATION_MS", int(self._flip_slider.value))
        except ValueError as ex:
            show_snackbar(self.page, f"Error saving settings: {ex}", error=True)
            return

        show_snackbar(self.page, "Settings saved successfully!")
        if self._on_saved:
            self._on_saved()

    def _on_reset_click(self, e: ft.ControlEvent) -> None:
        self.settings.reset()
        self._reload_ui()
        show_snackbar(self.page, "Settings reset to defaults")
        if self._on_saved:
            self._on_saved()

    def _reload_ui(self) -> None:
        """Reload UI with current settings values."""
        self._provider_dropdown.value = self.settings.get("AI_PROVIDER", "openai")
        self._model_field.value = self.settings.get("AI_MODEL", "")
        self._base_url_field.value = self.settings.get("AI_BASE_URL", "")
        self._ai_timeout_field.value = str(self.settings.get("AI_TIMEOUT", Config.AI_TIMEOUT))
        self._generation_timeout_field.value = f"{float(self.settings.get('GENERATION_TIMEOUT', 0) or 0):g}"
        duration = int(self.settings.get("FLIP_DURATION_MS", Config.FLIP_DURATION_MS))
        self._flip_slider.value = duration
        self._flip_label.value = f"Flip duration: {duration} ms"
        self._update_key_status(update=False)
        self.page.update()

    def _on_import_click(self, e: ft.ControlEvent) -> None:
        path = (self._csv_path_field.value or "").strip()
        if not path:
            show_snackbar(self.page, "Enter a CSV path first.", error=True)
            return
        imported = self.service.import_csv(path)
        if imported:
            show_snackbar(self.page, f"Imported {imported} card(s)")
        else:
            show_snackbar(self.page, "No cards imported", error=True, icon=ft.Icons.INFO_OUTLINE)

    def _on_export_click(self, e: ft.ControlEvent) -> None:
        path = (self._csv_path_field.value or "").strip() or Config.EXPORT_FILE
        if self.service.export_csv(path):
            show_snackbar(self.page, f"Exported {self.service.count} card(s) to {path}")
        else:
            show_snackbar(self.page, "Export failed", error=True)
