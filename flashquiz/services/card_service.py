"""
Card Service - CRUD operations for flashcards.

Separates data access logic from the UI layer:
- Validation of user input before anything is persisted
- Study order (oldest first) and list order (newest first)
- CSV import/export
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config import Config
from ..models.card import Card, WordType
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from .repository import BaseRepository, CSVRepository, SQLiteRepository

logger = setup_logger(__name__)


class StorageBackend(Enum):
    """Available storage backends."""
    SQLITE = "sqlite"
    CSV = "csv"


class CardService:
    """
    Service for managing flashcards.

    Usage:
        service = CardService()
        service.load()
        card = service.add_card("Ephemeral", "Lasting for a very short time")
        for card in service.study_order():
            ...
    """

    # Thread pool for blocking I/O operations
    _executor = ThreadPoolExecutor(max_workers=2)

    def __init__(
        self,
        db_path: Optional[str] = None,
        backend: StorageBackend = StorageBackend.SQLITE,
        csv_path: Optional[str] = None,
    ):
        """
        Initialize card service.

        Args:
            db_path: Path to SQLite database (for SQLite backend)
            backend: Storage backend to use
            csv_path: Path to CSV file (for CSV backend)
        """
        self.backend = backend
        self.db_path = db_path
        self.csv_path = csv_path

        self._repository: Optional[BaseRepository] = None
        self._change_callbacks: List[Callable[[], Any]] = []

    def _get_repository(self) -> BaseRepository:
        """Get or create the appropriate repository."""
        if self._repository is None:
            if self.backend == StorageBackend.CSV:
                self._repository = CSVRepository(self.csv_path)
            else:
                self._repository = SQLiteRepository(self.db_path)
        return self._repository

    @property
    def repository(self) -> BaseRepository:
        return self._get_repository()

    @property
    def count(self) -> int:
        """Get total card count."""
        return self._get_repository().count()

    def on_change(self, callback: Callable[[], Any]) -> None:
        """
        Register a callback for data changes.

        Args:
            callback: Function to call when data changes
        """
        self._change_callbacks.append(callback)

    def _notify_change(self) -> None:
        """Notify all registered callbacks of data change."""
        for callback in self._change_callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Card change callback failed")

    def load(self) -> bool:
        """
        Prepare the storage backend.

        Returns:
            True if loaded successfully
        """
        return self._get_repository().load()

    async def load_async(self) -> bool:
        """Prepare the storage backend off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.load)

    def _persist(self) -> None:
        repo = self._get_repository()
        if isinstance(repo, CSVRepository):
            repo.save()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def study_order(self) -> List[Card]:
        """Cards oldest first, the order they are studied in."""
        return self._get_repository().list_cards(ascending=True)

    def list_order(self) -> List[Card]:
        """Cards newest first, the order the list view shows."""
        return self._get_repository().list_cards(ascending=False)

    def get_card(self, card_id: int) -> Optional[Card]:
        return self._get_repository().get(card_id)

    def search(self, query: str) -> List[Card]:
        """
        Search cards by word or definition.

        Args:
            query: Case-insensitive text to look for

        Returns:
            Matching cards, newest first
        """
        query = TextParser.clean_field(query).lower()
        if not query:
            return []
        return [
            card for card in self.list_order()
            if query in card.word.lower() or query in card.definition.lower()
        ]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get card statistics.

        Returns:
            Total count, per word type counts and the unclassified count
        """
        cards = self.study_order()
        by_type = {word_type.value: 0 for word_type in WordType}
        unclassified = 0
        for card in cards:
            if card.word_type:
                by_type[card.word_type.value] += 1
            else:
                unclassified += 1

        return {
            "total_cards": len(cards),
            "by_word_type": by_type,
            "unclassified": unclassified,
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_card(
        self,
        word: str,
        definition: str,
        word_type: Optional[WordType] = None,
    ) -> Card:
        """
        Validate and store a new card.

        Raises:
            CardValidationError: If word or definition is empty after trimming
        """
        card = Card.create(word, definition, word_type)
        self._get_repository().add(card)
        self._persist()
        logger.info("Added card %r (id=%s)", card.word, card.id)
        self._notify_change()
        return card

    def update_card(
        self,
        card: Card,
        word: Optional[str] = None,
        definition: Optional[str] = None,
        word_type: Optional[WordType] = None,
        clear_word_type: bool = False,
    ) -> bool:
        """
        Change fields of a stored card in place.

        Fields left as None keep their value. The result is validated the
        same way as a new card before anything is written.

        Raises:
            CardValidationError: If word or definition would become empty
        """
        validated = Card.create(
            word if word is not None else card.word,
            definition if definition is not None else card.definition,
        )
        card.word = validated.word
        card.definition = validated.definition
        if clear_word_type:
            card.word_type = None
        elif word_type is not None:
            card.word_type = word_type

        updated = self._get_repository().update(card)
        if updated:
            self._persist()
            self._notify_change()
        return updated

    def delete_card(self, card: Card) -> bool:
        """Delete a stored card."""
        if card.id is None:
            return False
        deleted = self._get_repository().delete(card.id)
        if deleted:
            self._persist()
            logger.info("Deleted card %r (id=%s)", card.word, card.id)
            self._notify_change()
        return deleted

    async def add_card_async(self, word: str, definition: str, word_type: Optional[WordType] = None) -> Card:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.add_card, word, definition, word_type)

    async def delete_card_async(self, card: Card) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.delete_card, card)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_csv(self, csv_path: Optional[str] = None) -> bool:
        """
        Write all cards to a pipe-separated CSV file.

        Args:
            csv_path: Destination (defaults to Config.EXPORT_FILE)

        Returns:
            True if written successfully
        """
        target = CSVRepository(csv_path or Config.EXPORT_FILE)
        target.replace_all(self.study_order())
        return target.save()

    def import_csv(self, csv_path: str) -> int:
        """
        Add every valid card from a CSV file.

        Rows with an empty word or definition are skipped.

        Returns:
            Number of cards imported
        """
        source = CSVRepository(csv_path)
        if not source.load():
            return 0

        repo = self._get_repository()
        imported = 0
        for card in source.list_cards():
            new_card = Card.create(card.word, card.definition, card.word_type, created_at=card.created_at)
            repo.add(new_card)
            imported += 1

        if imported:
            self._persist()
            logger.info("Imported %d cards from %s", imported, csv_path)
            self._notify_change()
        return imported

    @classmethod
    def load_from_sqlite(cls, db_path: Optional[str] = None) -> "CardService":
        """
        Factory method to create and load from a SQLite database.

        Args:
            db_path: Path to SQLite database (uses default if None)

        Returns:
            Loaded CardService instance
        """
        service = cls(db_path=db_path, backend=StorageBackend.SQLITE)
        service.load()
        return service
