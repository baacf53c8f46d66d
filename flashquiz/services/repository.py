"""
Repository Pattern - card storage.

SQLite is the primary store. The CSV repository (pandas) backs import and
export and can stand in as a store for small decks.
"""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional

import pandas as pd

from ..config import Config
from ..models.card import Card
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


class BaseRepository(ABC):
    """
    Abstract base class for card repositories.

    Defines the contract for all data access operations.
    """

    @abstractmethod
    def load(self) -> bool:
        """Prepare the storage. Returns True if successful."""
        pass

    @abstractmethod
    def add(self, card: Card) -> Card:
        """Insert a card and return it with its id assigned."""
        pass

    @abstractmethod
    def get(self, card_id: int) -> Optional[Card]:
        """Get a card by id."""
        pass

    @abstractmethod
    def update(self, card: Card) -> bool:
        """Write a card's fields back. Returns True if a row changed."""
        pass

    @abstractmethod
    def delete(self, card_id: int) -> bool:
        """Delete a card by id."""
        pass

    @abstractmethod
    def list_cards(self, ascending: bool = True) -> List[Card]:
        """All cards ordered by creation time."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total card count."""
        pass


class SQLiteRepository(BaseRepository):
    """
    SQLite-based repository implementation.

    Each operation opens a short-lived connection, so the repository can be
    used from the executor thread as well as the UI thread.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite repository.

        Args:
            db_path: Path to database file
        """
        self.db_path = Path(db_path or Config.DB_FILE)
        self._ensure_db_dir()

    def _ensure_db_dir(self) -> None:
        """Ensure database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS cards (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    uuid TEXT UNIQUE NOT NULL,
                    word TEXT NOT NULL,
                    definition TEXT NOT NULL,
                    word_type TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT
                )
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_cards_created ON cards(created_at)")

            cursor.execute("INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                           (self.SCHEMA_VERSION, datetime.now().isoformat()))

            conn.commit()

    @staticmethod
    def _row_to_card(row: sqlite3.Row) -> Card:
        return Card.from_dict(dict(row))

    def load(self) -> bool:
        """Initialize database and schema."""
        try:
            self._init_schema()
            return True
        except sqlite3.Error as e:
            logger.error("Error initializing SQLite at %s: %s", self.db_path, e)
            return False

    def add(self, card: Card) -> Card:
        """Insert a card. Sets card.id on success."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO cards (uuid, word, definition, word_type, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    card.uuid,
                    card.word,
                    card.definition,
                    card.word_type.value if card.word_type else None,
                    card.created_at.isoformat(),
                ),
            )
            conn.commit()
            card.id = cursor.lastrowid
        return card

    def get(self, card_id: int) -> Optional[Card]:
        """Get card by id."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM cards WHERE id = ?", (card_id,))
            row = cursor.fetchone()
            return self._row_to_card(row) if row else None

    def get_by_uuid(self, uuid: str) -> Optional[Card]:
        """Get card by UUID."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM cards WHERE uuid = ?", (uuid,))
            row = cursor.fetchone()
            return self._row_to_card(row) if row else None

    def update(self, card: Card) -> bool:
        """Write word, definition and word type of an existing card."""
        if card.id is None:
            return False
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE cards SET word = ?, definition = ?, word_type = ?, updated_at = ? WHERE id = ?",
                (
                    card.word,
                    card.definition,
                    card.word_type.value if card.word_type else None,
                    datetime.now().isoformat(),
                    card.id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, card_id: int) -> bool:
        """Delete card by id."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            conn.commit()
            return cursor.rowcount > 0

    def list_cards(self, ascending: bool = True) -> List[Card]:
        """All cards by creation time; id breaks ties."""
        order = "ASC" if ascending else "DESC"
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT * FROM cards ORDER BY created_at {order}, id {order}")
            return [self._row_to_card(row) for row in cursor.fetchall()]

    def count(self) -> int:
        """Get total card count."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM cards")
            return cursor.fetchone()[0]


class CSVRepository(BaseRepository):
    """
    CSV-based repository implementation.

    Uses pandas with pipe-separated columns. Ids are row positions assigned
    on load and are not stable across saves.
    """

    COLUMNS = ["uuid", "word", "definition", "word_type", "created_at"]

    def __init__(self, csv_path: Optional[str] = None):
        """
        Initialize CSV repository.

        Args:
            csv_path: Path to CSV file
        """
        self.csv_path = Path(csv_path or Config.EXPORT_FILE)
        self._cards: List[Card] = []
        self._next_id: int = 1
        self._dirty: bool = False

    @property
    def is_dirty(self) -> bool:
        """Check for unsaved changes."""
        return self._dirty

    def load(self) -> bool:
        """Load cards from the CSV file."""
        self._cards = []
        self._next_id = 1
        if not self.csv_path.exists():
            return False

        try:
            df = pd.read_csv(
                self.csv_path,
                sep='|',
                encoding='utf-8-sig',
                dtype=str,
                keep_default_na=False,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
            logger.error("Error loading CSV %s: %s", self.csv_path, e)
            return False

        df.columns = df.columns.str.strip()
        for record in df.to_dict(orient="records"):
            record.pop("id", None)
            try:
                card = Card.from_dict(record)
            except ValueError as e:
                logger.warning("Skipping unreadable CSV row %r: %s", record, e)
                continue
            if not card.word.strip() or not card.definition.strip():
                logger.warning("Skipping CSV row with empty word or definition: %r", record)
                continue
            self._assign_id(card)
            self._cards.append(card)

        self._dirty = False
        return True

    def save(self) -> bool:
        """Write all cards to the CSV file."""
        rows = []
        for card in self._cards:
            data = card.to_dict()
            rows.append({column: data[column] or "" for column in self.COLUMNS})

        try:
            self.csv_path.parent.mkdir(parents=True, exist_ok=True)
            pd.DataFrame(rows, columns=self.COLUMNS).to_csv(
                self.csv_path,
                sep='|',
                index=False,
                encoding='utf-8-sig'
            )
        except OSError as e:
            logger.error("Error saving CSV %s: %s", self.csv_path, e)
            return False

        self._dirty = False
        return True

    def _assign_id(self, card: Card) -> None:
        card.id = self._next_id
        self._next_id += 1

    def add(self, card: Card) -> Card:
        self._assign_id(card)
        self._cards.append(card)
        self._dirty = True
        return card

    def get(self, card_id: int) -> Optional[Card]:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    def update(self, card: Card) -> bool:
        for index, existing in enumerate(self._cards):
            if existing.id == card.id:
                self._cards[index] = card
                self._dirty = True
                return True
        return False

    def delete(self, card_id: int) -> bool:
        before = len(self._cards)
        self._cards = [card for card in self._cards if card.id != card_id]
        if len(self._cards) == before:
            return False
        self._dirty = True
        return True

    def list_cards(self, ascending: bool = True) -> List[Card]:
        return sorted(self._cards, key=lambda card: (card.created_at, card.id), reverse=not ascending)

    def count(self) -> int:
        return len(self._cards)

    def replace_all(self, cards: List[Card]) -> None:
        """Replace the repository contents (used for export)."""
        self._cards = []
        self._next_id = 1
        for card in cards:
            copied = Card.from_dict(card.to_dict())
            self._assign_id(copied)
            self._cards.append(copied)
        self._dirty = True
