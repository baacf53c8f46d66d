"""Structured payloads exchanged with the language model."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import MalformedResponseError, ValidationFailedError
from .card import WordType


@dataclass
class GeneratedDefinition:
    """A beginner-friendly definition, possibly still streaming in."""

    definition: Optional[str] = None

    FIELDS = ("definition",)

    @classmethod
    def example(cls) -> Dict[str, Any]:
        return {
            "definition": (
                "Feeling good and joyful inside, like when something nice happens to you. "
                "People often smile, laugh, or feel excited when they are happy."
            )
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GeneratedDefinition":
        value = payload.get("definition")
        if value is None:
            return cls()
        if not isinstance(value, str):
            raise MalformedResponseError(f"definition is {type(value).__name__}, expected text")
        return cls(definition=value)


@dataclass
class GeneratedWordType:
    """A validated grammatical classification."""

    word_type: WordType
    abbreviation: str

    @classmethod
    def examples(cls) -> List[Dict[str, str]]:
        return [
            {"wordType": "noun", "abbreviation": "n"},
            {"wordType": "verb", "abbreviation": "v"},
            {"wordType": "adjective", "abbreviation": "adj"},
        ]

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GeneratedWordType":
        """
        Validate a classification reply.

        The category must be one of the ten WordType values. The abbreviation
        in the reply is not trusted; the canonical one is used instead.

        Raises:
            MalformedResponseError: If wordType is missing or not text
            ValidationFailedError: If wordType is not a known category
        """
        raw = payload.get("wordType", payload.get("word_type"))
        if raw is None:
            raise MalformedResponseError("Reply has no wordType field")
        if not isinstance(raw, str):
            raise MalformedResponseError(f"wordType is {type(raw).__name__}, expected text")

        word_type = WordType.parse(raw)
        if word_type is None:
            raise ValidationFailedError(f"Unknown word type {raw!r}")
        return cls(word_type=word_type, abbreviation=word_type.abbreviation)


@dataclass
class GenerationResult:
    """What a generation attempt has produced so far."""

    definition: Optional[str] = None
    word_type: Optional[WordType] = None

    @property
    def abbreviation(self) -> Optional[str]:
        return self.word_type.abbreviation if self.word_type else None

    @property
    def is_empty(self) -> bool:
        return self.definition is None and self.word_type is None
