"""Data models for FlashQuiz."""

from .card import Card, CardValidationError, WordType
from .flip import Face, FlipController
from .generated import GeneratedDefinition, GeneratedWordType, GenerationResult

__all__ = [
    'Card',
    'CardValidationError',
    'WordType',
    'Face',
    'FlipController',
    'GeneratedDefinition',
    'GeneratedWordType',
    'GenerationResult',
]
