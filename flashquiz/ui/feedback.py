"""Snackbars and confirmation dialogs shared by the views."""

from typing import Callable, Optional

import flet as ft


def show_snackbar(page: ft.Page, message: str, error: bool = False, icon: Optional[str] = None) -> None:
    """Show a snackbar notification, replacing any visible one."""
    snackbar = ft.SnackBar(
        content=ft.Row(
            controls=[
                ft.Icon(
                    icon or (ft.Icons.ERROR_OUTLINE if error else ft.Icons.CHECK_CIRCLE_OUTLINE),
                    color=ft.Colors.WHITE,
                    size=20,
                ),
                ft.Text(message, color=ft.Colors.WHITE, size=14),
            ],
            spacing=12,
        ),
        bgcolor=ft.Colors.RED_700 if error else ft.Colors.GREEN_700,
        duration=3000,
    )
    for ctrl in list(page.overlay):
        if isinstance(ctrl, ft.SnackBar):
            page.overlay.remove(ctrl)
    page.overlay.append(snackbar)
    snackbar.open = True
    page.update()


def show_confirm_dialog(
    page: ft.Page,
    title: str,
    message: str,
    on_confirm: Callable[[], None],
    confirm_label: str = "Delete",
) -> None:
    """
    Ask the user to confirm a destructive action.

    Args:
        page: Flet page instance
        title: Dialog title
        message: Body text
        on_confirm: Called after the dialog closes if the user confirmed
        confirm_label: Text of the confirming button
    """
    def close(confirmed: bool) -> None:
        dialog.open = False
        page.update()
        if dialog in page.overlay:
            page.overlay.remove(dialog)
        if confirmed:
            on_confirm()

    dialog = ft.AlertDialog(
        modal=True,
        title=ft.Row(
            controls=[
                ft.Icon(ft.Icons.WARNING_AMBER_ROUNDED, color=ft.Colors.AMBER_400, size=28),
                ft.Text(title, weight=ft.FontWeight.W_700, size=18),
            ],
            spacing=12,
        ),
        content=ft.Text(message, size=14, color=ft.Colors.WHITE70),
        actions=[
            ft.TextButton("Cancel", on_click=lambda _: close(False)),
            ft.ElevatedButton(
                confirm_label,
                on_click=lambda _: close(True),
                style=ft.ButtonStyle(bgcolor=ft.Colors.RED_600, color=ft.Colors.WHITE),
            ),
        ],
        actions_alignment=ft.MainAxisAlignment.END,
    )
    page.overlay.append(dialog)
    dialog.open = True
    page.update()
