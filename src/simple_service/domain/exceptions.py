"""Exceptions raised by units.

Business-rule failures are never raised by the non-raising entry points; they
live in the unit's error list. Only the ``*_or_raise`` forms convert them into
:class:`Invalid` or :class:`Failure`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class SimpleServiceError(Exception):
    """Base exception carrying the unit that raised it and its full messages."""

    code: str = "error"

    def __init__(self, target: Any, messages: Sequence[str] = ()) -> None:
        self.target = target
        self.messages = list(messages)
        super().__init__(", ".join(self.messages) or type(self).__name__)


class Invalid(SimpleServiceError):
    """Validation reported errors before the operation could run."""

    code = "invalid"


class Failure(SimpleServiceError):
    """The unit was valid but the operation added errors while running."""

    code = "failure"


class UnknownAttributeError(AttributeError):
    """Construction input named an attribute the unit never declared."""

    def __init__(self, record: Any, attribute: str) -> None:
        self.record = record
        self.attribute = attribute
        super().__init__(f"unknown attribute '{attribute}' for {type(record).__name__}.")
