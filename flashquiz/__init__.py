"""FlashQuiz - vocabulary flashcards with AI-generated definitions"""

__version__ = "1.0.0"
__author__ = "FlashQuiz Team"

from .config import Config, SettingsManager
from .models import Card, WordType, Face, FlipController, GenerationResult
from .services import CardService, GenerationOrchestrator, GenerationPhase, GenerationMode

__all__ = [
    'Config',
    'SettingsManager',
    'Card',
    'WordType',
    'Face',
    'FlipController',
    'GenerationResult',
    'CardService',
    'GenerationOrchestrator',
    'GenerationPhase',
    'GenerationMode',
]
