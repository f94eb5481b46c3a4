"""Structured error entries and the per-unit error collection.

An entry keeps what was passed to :meth:`Errors.add` — attribute, message (or
symbolic :class:`ErrorType`) and options — so messages are generated lazily and
entries can be copied between units without losing their type.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from simple_service.config.settings import get_settings

BASE = "base"


class ErrorType(StrEnum):
    """Symbolic error messages, resolved through :data:`DEFAULT_MESSAGES`."""

    INVALID = "invalid"
    BLANK = "blank"
    PRESENT = "present"
    EMPTY = "empty"
    INCLUSION = "inclusion"
    EXCLUSION = "exclusion"
    TOO_LONG = "too_long"
    TOO_SHORT = "too_short"
    WRONG_LENGTH = "wrong_length"
    NOT_A_NUMBER = "not_a_number"
    NOT_AN_INTEGER = "not_an_integer"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL_TO = "greater_than_or_equal_to"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL_TO = "less_than_or_equal_to"
    EQUAL_TO = "equal_to"
    OTHER_THAN = "other_than"
    INVALID_TYPE = "invalid_type"


DEFAULT_MESSAGES: dict[ErrorType, str] = {
    ErrorType.INVALID: "is invalid",
    ErrorType.BLANK: "can't be blank",
    ErrorType.PRESENT: "must be blank",
    ErrorType.EMPTY: "can't be empty",
    ErrorType.INCLUSION: "is not included in the list",
    ErrorType.EXCLUSION: "is reserved",
    ErrorType.TOO_LONG: "is too long (maximum is {count} characters)",
    ErrorType.TOO_SHORT: "is too short (minimum is {count} characters)",
    ErrorType.WRONG_LENGTH: "is the wrong length (should be {count} characters)",
    ErrorType.NOT_A_NUMBER: "is not a number",
    ErrorType.NOT_AN_INTEGER: "must be an integer",
    ErrorType.GREATER_THAN: "must be greater than {count}",
    ErrorType.GREATER_THAN_OR_EQUAL_TO: "must be greater than or equal to {count}",
    ErrorType.LESS_THAN: "must be less than {count}",
    ErrorType.LESS_THAN_OR_EQUAL_TO: "must be less than or equal to {count}",
    ErrorType.EQUAL_TO: "must be equal to {count}",
    ErrorType.OTHER_THAN: "must be other than {count}",
    ErrorType.INVALID_TYPE: "must be a valid {expected}",
}


class _KeepMissing(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def humanize(attribute: str) -> str:
    """Turn an attribute key into a sentence-case label.

    Examples:
        >>> humanize("trigger_failure")
        'Trigger failure'
        >>> humanize("owner_id")
        'Owner'
        >>> humanize("address.zip")
        'Address zip'
    """
    text = attribute.replace(".", "_")
    if text.endswith("_id") and len(text) > 3:
        text = text[:-3]
    text = text.replace("_", " ").strip().lower()
    return text[:1].upper() + text[1:]


def underscore(name: str) -> str:
    """Snake-case a class name.

    Examples:
        >>> underscore("CreateInvoice")
        'create_invoice'
        >>> underscore("HTTPRequest")
        'http_request'
    """
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


class ErrorEntry(BaseModel):
    """One error as it was added: attribute, message or type, and options."""

    model_config = {"frozen": True}

    attribute: str
    message: ErrorType | str = ErrorType.INVALID
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def type(self) -> ErrorType | None:
        """The symbolic type, or None for a literal message."""
        message = self.options.get("message", self.message)
        return message if isinstance(message, ErrorType) else None


class Errors:
    """Mutable, ordered error list shared by validations and business logic.

    *base* is the owning unit; it supplies ``human_attribute_name`` for full
    messages. Any object works as long as it offers that classmethod or none
    at all.
    """

    def __init__(self, base: Any) -> None:
        self._base = base
        self._entries: list[ErrorEntry] = []

    def add(
        self,
        attribute: str,
        message: ErrorType | str = ErrorType.INVALID,
        /,
        **options: Any,
    ) -> ErrorEntry:
        """Append an error. ``message=`` in *options* overrides *message*.

        *attribute* and *message* are positional-only so an override passed as a
        ``message=`` keyword lands in *options* next to the symbolic type.
        """
        entry = ErrorEntry(attribute=str(attribute), message=message, options=options)
        self._entries.append(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> list[ErrorEntry]:
        """Snapshot of the raw entries in insertion order."""
        return list(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ErrorEntry]:
        return iter(list(self._entries))

    def __contains__(self, attribute: object) -> bool:
        return any(entry.attribute == str(attribute) for entry in self._entries)

    def __getitem__(self, attribute: str) -> list[str]:
        """Generated messages for *attribute* (empty list when none)."""
        return [
            self.generate_message(entry)
            for entry in self._entries
            if entry.attribute == str(attribute)
        ]

    def __repr__(self) -> str:
        return f"Errors({self.full_messages!r})"

    # --- Formatting ---

    def generate_message(self, entry: ErrorEntry) -> str:
        """Resolve an entry's message, formatting templates with its options."""
        options = dict(entry.options)
        message = options.pop("message", entry.message)
        if isinstance(message, ErrorType):
            template = DEFAULT_MESSAGES.get(message, str(message))
            values = _KeepMissing(options)
            values.setdefault("attribute", self._human_attribute_name(entry.attribute))
            return template.format_map(values)
        return str(message)

    def full_message(self, attribute: str, message: str) -> str:
        """Prefix *message* with the humanized attribute, except for ``base``."""
        if attribute == BASE:
            return message
        return get_settings().error_format.format(
            attribute=self._human_attribute_name(attribute),
            message=message,
        )

    @property
    def messages(self) -> dict[str, list[str]]:
        """Generated messages grouped by attribute, in first-seen order."""
        grouped: dict[str, list[str]] = {}
        for entry in self._entries:
            grouped.setdefault(entry.attribute, []).append(self.generate_message(entry))
        return grouped

    @property
    def full_messages(self) -> list[str]:
        return [
            self.full_message(entry.attribute, self.generate_message(entry))
            for entry in self._entries
        ]

    def full_messages_for(self, attribute: str) -> list[str]:
        return [self.full_message(str(attribute), message) for message in self[attribute]]

    def api_errors(
        self, decorate: Callable[[dict[str, Any]], dict[str, Any]] | None = None
    ) -> list[dict[str, Any]]:
        """Serializable view of every entry, optionally passed through *decorate*."""
        result: list[dict[str, Any]] = []
        for entry in self._entries:
            message = self.generate_message(entry)
            error_type = entry.type
            error: dict[str, Any] = {
                "full_message": self.full_message(entry.attribute, message),
                "message": message,
                "type": str(error_type) if error_type is not None else None,
                "attribute": entry.attribute,
                "options": dict(entry.options),
            }
            if decorate is not None:
                error = decorate(error)
            result.append(error)
        return result

    def _human_attribute_name(self, attribute: str) -> str:
        owner = self._base if isinstance(self._base, type) else type(self._base)
        namer = getattr(owner, "human_attribute_name", None)
        if namer is None:
            return humanize(attribute)
        return namer(attribute)
