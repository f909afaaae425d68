"""Folder label parsing for the linkage engine.

This module turns a free-text folder label such as ``"Smith, John - Docs"``
or ``"ClientID: 4521 - Random Label"`` into a ParsedName holding a first,
last and full name plus an optional embedded client identifier.

Parsing runs in three steps:
    1. Strip role prefixes (member, client, case, folder) and trailing
       suffixes (folder, files, docs, documents).
    2. Extract and remove an embedded ``ClientID: <digits>`` identifier.
    3. Split the remainder with the first applicable name format:
       CommaFormat, DashFormat, then PlainFormat.

Example:
    >>> from memberlink.matching import parse_folder_name
    >>> parsed = parse_folder_name("Smith, John")
    >>> parsed.first, parsed.last, parsed.full
    ('John', 'Smith', 'John Smith')
"""

import re
from typing import List, Optional, Sequence, Tuple

from memberlink.models.data_models import ParsedName


class NameFormat:
    """Base class for one way of splitting a cleaned label into name parts.

    Subclasses implement ``applies`` and ``split``. ``split`` returns a
    ``(first, last)`` tuple and never raises.
    """

    name = "base"

    def applies(self, text: str) -> bool:
        raise NotImplementedError

    def split(self, text: str) -> Tuple[str, str]:
        raise NotImplementedError

    @staticmethod
    def _split_tokens(text: str) -> Tuple[str, str]:
        """First whitespace token is the first name, the rest the last name."""
        tokens = text.split()
        if not tokens:
            return "", ""
        return tokens[0], " ".join(tokens[1:])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CommaFormat(NameFormat):
    """``"Last, First"``. Segments after the second comma are ignored."""

    name = "comma"

    def applies(self, text: str) -> bool:
        return "," in text

    def split(self, text: str) -> Tuple[str, str]:
        parts = [part.strip() for part in text.split(",")]
        return parts[1], parts[0]


class DashFormat(NameFormat):
    """``"First Last - Additional Info"``. Only the text before the first
    `` - `` is treated as the name."""

    name = "dash"
    SEPARATOR = " - "

    def applies(self, text: str) -> bool:
        return self.SEPARATOR in text

    def split(self, text: str) -> Tuple[str, str]:
        return self._split_tokens(text.split(self.SEPARATOR, 1)[0])


class PlainFormat(NameFormat):
    """``"First Last"`` or a single bare token. Always applies."""

    name = "plain"

    def applies(self, text: str) -> bool:
        return True

    def split(self, text: str) -> Tuple[str, str]:
        return self._split_tokens(text)


DEFAULT_FORMATS: Tuple[NameFormat, ...] = (CommaFormat(), DashFormat(), PlainFormat())


class NameParser:
    """Parses folder labels into ParsedName instances.

    Attributes:
        formats: Name formats tried in priority order. The first format whose
            ``applies`` returns True decides the split.

    Example:
        >>> parser = NameParser()
        >>> parser.parse("Client Jane Doe Files").full
        'Jane Doe'
    """

    # Role prefix as a whole word, e.g. "Client Jane Doe" but not "Casey Jones"
    _PREFIX_PATTERN = re.compile(r'^(member|client|case|folder)\b\s*', re.IGNORECASE)
    # Trailing suffix as a whole word, e.g. "Jane Doe Documents"
    _SUFFIX_PATTERN = re.compile(r'\s*\b(folder|files?|docs?|documents?)$', re.IGNORECASE)
    _CLIENT_ID_PATTERN = re.compile(r'clientid:\s*(\d+)', re.IGNORECASE)

    def __init__(self, formats: Optional[Sequence[NameFormat]] = None) -> None:
        self.formats: List[NameFormat] = list(formats if formats is not None else DEFAULT_FORMATS)

    def clean(self, label: str) -> str:
        """Strip role prefixes and trailing suffixes from a label."""
        text = (label or "").strip()
        text = self._PREFIX_PATTERN.sub("", text)
        text = self._SUFFIX_PATTERN.sub("", text)
        return text.strip()

    def extract_client_id(self, text: str) -> Tuple[str, Optional[str]]:
        """Remove an embedded ``ClientID: <digits>`` marker.

        Args:
            text: Cleaned label text.

        Returns:
            Tuple of (remaining_text, client_id). client_id is None when the
            label carries no identifier.
        """
        match = self._CLIENT_ID_PATTERN.search(text)
        if match is None:
            return text, None
        remaining = (text[:match.start()] + text[match.end():]).strip()
        return remaining, match.group(1)

    def select_format(self, text: str) -> NameFormat:
        for name_format in self.formats:
            if name_format.applies(text):
                return name_format
        return PlainFormat()

    def parse(self, label: str) -> ParsedName:
        """Parse a folder label.

        Args:
            label: Raw folder label. Empty or malformed labels are accepted.

        Returns:
            ParsedName with empty strings for any part that could not be
            recovered.
        """
        text = self.clean(label)
        text, client_id = self.extract_client_id(text)

        if not text:
            return ParsedName(has_id=client_id is not None, id=client_id)

        first, last = self.select_format(text).split(text)
        full = f"{first} {last}".strip()

        return ParsedName(
            first=first,
            last=last,
            full=full,
            has_id=client_id is not None,
            id=client_id,
        )


_default_parser = NameParser()


def parse_folder_name(label: str) -> ParsedName:
    """Parse a folder label with the default name formats."""
    return _default_parser.parse(label)
