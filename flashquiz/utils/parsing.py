"""Text parsing utilities for card input and model output."""

import json
import re
import unicodedata
from typing import Any, Dict, Iterable, Optional


class TextParser:
    """
    Centralized text parsing utilities.

    Covers the two places text enters the application: what the user types
    into a card, and what a language model sends back.
    """

    # Markdown code fence around a model reply (```json ... ```)
    CODE_FENCE_PATTERN = re.compile(r'^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$', re.DOTALL)

    # Whitespace normalization pattern
    WHITESPACE_PATTERN = re.compile(r'\s+')

    # Simple escapes inside a JSON string
    JSON_ESCAPES = {
        '"': '"',
        '\\': '\\',
        '/': '/',
        'b': '\b',
        'f': '\f',
        'n': '\n',
        'r': '\r',
        't': '\t',
    }

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Args:
            text: Input text

        Returns:
            NFC-normalized text
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))

    @classmethod
    def clean_field(cls, text: Optional[str]) -> str:
        """Strip surrounding whitespace and normalize Unicode of a card field."""
        if text is None:
            return ""
        return cls.normalize_unicode(str(text)).strip()

    @classmethod
    def collapse_whitespace(cls, text: str) -> str:
        """Collapse runs of whitespace into single spaces."""
        if not text:
            return ""
        return cls.WHITESPACE_PATTERN.sub(' ', str(text)).strip()

    @classmethod
    def strip_code_fence(cls, text: str) -> str:
        """Remove a surrounding markdown code fence, if any."""
        if not text:
            return ""
        match = cls.CODE_FENCE_PATTERN.match(text)
        return match.group(1) if match else text

    @classmethod
    def extract_json(cls, text: str) -> Dict[str, Any]:
        """
        Decode the JSON object contained in a model reply.

        Tolerates code fences and chatter before or after the object.

        Args:
            text: Raw model output

        Returns:
            Decoded object

        Raises:
            ValueError: If no JSON object can be decoded
        """
        body = cls.strip_code_fence(text or "").strip()
        start = body.find('{')
        end = body.rfind('}')
        if start == -1 or end < start:
            raise ValueError(f"No JSON object in model output: {body[:80]!r}")

        try:
            data = json.loads(body[start:end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in model output: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Model output is not a JSON object")
        return data

    @classmethod
    def partial_string_field(cls, buffer: str, field: str) -> Optional[str]:
        """
        Read a string field from a JSON object that may still be incomplete.

        Used while a reply is streaming in: '{"definition": "Lasting for a sh'
        yields 'Lasting for a sh'. Escape sequences cut off at the end of the
        buffer are left out until the rest arrives.

        Args:
            buffer: Text received so far
            field: Name of the string field

        Returns:
            The decoded value so far, or None if the field has not started
        """
        match = re.search(r'"%s"\s*:\s*"' % re.escape(field), buffer or "")
        if not match:
            return None

        chars = []
        i = match.end()
        while i < len(buffer):
            ch = buffer[i]
            if ch == '"':
                break
            if ch != '\\':
                chars.append(ch)
                i += 1
                continue

            if i + 1 >= len(buffer):
                break
            code = buffer[i + 1]
            if code == 'u':
                digits = buffer[i + 2:i + 6]
                if len(digits) < 4:
                    break
                try:
                    chars.append(chr(int(digits, 16)))
                except ValueError:
                    chars.append(digits)
                i += 6
            else:
                chars.append(cls.JSON_ESCAPES.get(code, code))
                i += 2

        return ''.join(chars)

    @classmethod
    def partial_fields(cls, buffer: str, fields: Iterable[str]) -> Dict[str, Optional[str]]:
        """Read several string fields from a possibly incomplete JSON object."""
        return {field: cls.partial_string_field(buffer, field) for field in fields}
