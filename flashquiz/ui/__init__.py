"""UI components for FlashQuiz."""

from .card_form import CardFormDialog
from .card_list import CardListView
from .feedback import show_confirm_dialog, show_snackbar
from .flashcard_view import FlashcardView, word_type_badge
from .settings import SettingsView
from .study_view import StudyView

__all__ = [
    'CardFormDialog',
    'CardListView',
    'FlashcardView',
    'SettingsView',
    'StudyView',
    'show_confirm_dialog',
    'show_snackbar',
    'word_type_badge',
]
