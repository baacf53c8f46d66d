"""Data models for FlashQuiz cards."""

import uuid as uuid_lib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.parsing import TextParser


class CardValidationError(ValueError):
    """A card field is empty after trimming."""


class WordType(Enum):
    """Grammatical category of a vocabulary word."""
    NOUN = "noun"
    VERB = "verb"
    ADJECTIVE = "adjective"
    ADVERB = "adverb"
    PREPOSITION = "preposition"
    CONJUNCTION = "conjunction"
    PRONOUN = "pronoun"
    INTERJECTION = "interjection"
    DETERMINER = "determiner"
    PHRASE = "phrase"

    @property
    def abbreviation(self) -> str:
        return _ABBREVIATIONS[self]

    @property
    def color(self) -> str:
        """Badge colour name understood by the UI layer."""
        return _COLORS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["WordType"]:
        """
        Match a category name or abbreviation.

        Args:
            raw: Text such as "Adverb", " adv " or "noun"

        Returns:
            The matching WordType, or None if nothing matches
        """
        if raw is None:
            return None
        key = str(raw).strip().lower().rstrip('.')
        if not key:
            return None
        for word_type in cls:
            if key == word_type.value or key == word_type.abbreviation:
                return word_type
        return None


_ABBREVIATIONS = {
    WordType.NOUN: "n",
    WordType.VERB: "v",
    WordType.ADJECTIVE: "adj",
    WordType.ADVERB: "adv",
    WordType.PREPOSITION: "prep",
    WordType.CONJUNCTION: "conj",
    WordType.PRONOUN: "pron",
    WordType.INTERJECTION: "interj",
    WordType.DETERMINER: "det",
    WordType.PHRASE: "phr",
}

_COLORS = {
    WordType.NOUN: "blue",
    WordType.VERB: "green",
    WordType.ADJECTIVE: "orange",
    WordType.ADVERB: "purple",
    WordType.PREPOSITION: "pink",
    WordType.CONJUNCTION: "cyan",
    WordType.PRONOUN: "indigo",
    WordType.INTERJECTION: "red",
    WordType.DETERMINER: "teal",
    WordType.PHRASE: "amber",
}


@dataclass
class Card:
    """A single word/definition flashcard."""

    word: str
    definition: str
    created_at: datetime = field(default_factory=datetime.now)
    word_type: Optional[WordType] = None

    # Assigned by the repository
    id: Optional[int] = None
    uuid: str = field(default_factory=lambda: uuid_lib.uuid4().hex)

    @classmethod
    def create(
        cls,
        word: str,
        definition: str,
        word_type: Optional[WordType] = None,
        created_at: Optional[datetime] = None,
    ) -> "Card":
        """
        Build a card from user input.

        Raises:
            CardValidationError: If word or definition is empty after trimming
        """
        word = TextParser.clean_field(word)
        definition = TextParser.clean_field(definition)
        if not word:
            raise CardValidationError("Word must not be empty")
        if not definition:
            raise CardValidationError("Definition must not be empty")
        return cls(
            word=word,
            definition=definition,
            word_type=word_type,
            created_at=created_at or datetime.now(),
        )

    @property
    def abbreviation(self) -> Optional[str]:
        return self.word_type.abbreviation if self.word_type else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "uuid": self.uuid,
            "word": self.word,
            "definition": self.definition,
            "word_type": self.word_type.value if self.word_type else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        created_at = data.get("created_at")
        if isinstance(created_at, str) and created_at:
            created_at = datetime.fromisoformat(created_at)
        elif not isinstance(created_at, datetime):
            created_at = datetime.now()

        row_id = data.get("id")
        card = cls(
            word=str(data.get("word") or ""),
            definition=str(data.get("definition") or ""),
            created_at=created_at,
            word_type=WordType.parse(data.get("word_type")),
            id=int(row_id) if row_id not in (None, "") else None,
        )
        if data.get("uuid"):
            card.uuid = str(data["uuid"])
        return card
