"""Services layer for business logic separation."""

from .ai_service import AIService, AIProvider, AIConfig, GenerationSession, create_ai_service
from .card_service import CardService, StorageBackend
from .generation import GenerationMode, GenerationOrchestrator, GenerationPhase
from .repository import BaseRepository, CSVRepository, SQLiteRepository

__all__ = [
    "AIService",
    "AIProvider",
    "AIConfig",
    "GenerationSession",
    "create_ai_service",
    "CardService",
    "StorageBackend",
    "GenerationMode",
    "GenerationOrchestrator",
    "GenerationPhase",
    "BaseRepository",
    "CSVRepository",
    "SQLiteRepository",
]
