"""Validation rules and the pluggable Validator collaborator.

A unit type owns an ordered list of rules. A validation pass hands the unit to
the type's ``validator`` which runs every rule; rules report problems by
appending entries to ``record.errors`` and never raise for bad input.

Rules read values through ``record.read_attribute_for_validation(name)`` so
they may target names that are not declared attributes.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable, Mapping, Sized
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from simple_service.domain.errors import BASE, ErrorType

HOOK_ATTR = "__validation_hook__"
VALIDATE = "validate"
BEFORE = "before"
AFTER = "after"


def is_blank(value: Any) -> bool:
    """None, False, whitespace-only strings and empty collections are blank.

    Examples:
        >>> is_blank("  ")
        True
        >>> is_blank(0)
        False
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, Sized):
        return len(value) == 0
    return False


# --- Hook decorators ---


def validator[F: Callable[..., Any]](func: F) -> F:
    """Mark a method as a custom validation. It adds errors itself."""
    setattr(func, HOOK_ATTR, VALIDATE)
    return func


def before_validation[F: Callable[..., Any]](func: F) -> F:
    """Mark a method to run before every validation pass."""
    setattr(func, HOOK_ATTR, BEFORE)
    return func


def after_validation[F: Callable[..., Any]](func: F) -> F:
    """Mark a method to run after every validation pass."""
    setattr(func, HOOK_ATTR, AFTER)
    return func


# --- Rules ---


class Rule:
    """Base class for validation rules over one or more attributes.

    Subclasses implement :meth:`validate_each`. ``message`` replaces the
    generated message; ``allow_none`` / ``allow_blank`` skip the check for
    missing values.
    """

    def __init__(
        self,
        *attributes: str,
        message: ErrorType | str | None = None,
        allow_none: bool = False,
        allow_blank: bool = False,
    ) -> None:
        self.attributes = tuple(str(attribute) for attribute in attributes)
        self.message = message
        self.allow_none = allow_none
        self.allow_blank = allow_blank

    def validate(self, record: Any) -> None:
        for attribute in self.attributes:
            value = record.read_attribute_for_validation(attribute)
            if value is None and self.allow_none:
                continue
            if self.allow_blank and is_blank(value):
                continue
            self.validate_each(record, attribute, value)

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        raise NotImplementedError

    def add_error(
        self, record: Any, attribute: str, error_type: ErrorType, **options: Any
    ) -> None:
        if self.message is not None:
            options["message"] = self.message
        record.errors.add(attribute, error_type, **options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self.attributes)})"


class PresenceRule(Rule):
    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        if is_blank(value):
            self.add_error(record, attribute, ErrorType.BLANK)


class AbsenceRule(Rule):
    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        if not is_blank(value):
            self.add_error(record, attribute, ErrorType.PRESENT)


class LengthRule(Rule):
    def __init__(
        self,
        *attributes: str,
        minimum: int | None = None,
        maximum: int | None = None,
        is_: int | None = None,
        **options: Any,
    ) -> None:
        if minimum is None and maximum is None and is_ is None:
            raise ValueError("length requires one of 'minimum', 'maximum' or 'is'")
        super().__init__(*attributes, **options)
        self.minimum = minimum
        self.maximum = maximum
        self.is_ = is_

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        length = len(value) if isinstance(value, Sized) else 0
        if self.is_ is not None and length != self.is_:
            self.add_error(record, attribute, ErrorType.WRONG_LENGTH, count=self.is_)
        if self.minimum is not None and length < self.minimum:
            self.add_error(record, attribute, ErrorType.TOO_SHORT, count=self.minimum)
        if self.maximum is not None and length > self.maximum:
            self.add_error(record, attribute, ErrorType.TOO_LONG, count=self.maximum)


class InclusionRule(Rule):
    def __init__(self, *attributes: str, in_: Collection[Any], **options: Any) -> None:
        super().__init__(*attributes, **options)
        self.in_ = in_

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        if value not in self.in_:
            self.add_error(record, attribute, ErrorType.INCLUSION, value=value)


class ExclusionRule(Rule):
    def __init__(self, *attributes: str, in_: Collection[Any], **options: Any) -> None:
        super().__init__(*attributes, **options)
        self.in_ = in_

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        if value in self.in_:
            self.add_error(record, attribute, ErrorType.EXCLUSION, value=value)


class FormatRule(Rule):
    def __init__(
        self,
        *attributes: str,
        with_: str | re.Pattern[str] | None = None,
        without: str | re.Pattern[str] | None = None,
        **options: Any,
    ) -> None:
        if (with_ is None) == (without is None):
            raise ValueError("format requires exactly one of 'with' or 'without'")
        super().__init__(*attributes, **options)
        self.with_ = re.compile(with_) if with_ is not None else None
        self.without = re.compile(without) if without is not None else None

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        text = "" if value is None else str(value)
        if self.with_ is not None and not self.with_.search(text):
            self.add_error(record, attribute, ErrorType.INVALID, value=value)
        if self.without is not None and self.without.search(text):
            self.add_error(record, attribute, ErrorType.INVALID, value=value)


class NumericalityRule(Rule):
    """Accepts numbers and numeric strings; optional integer and bound checks."""

    COMPARISONS: dict[str, tuple[ErrorType, Callable[[Decimal, Decimal], bool]]] = {
        "greater_than": (ErrorType.GREATER_THAN, lambda a, b: a > b),
        "greater_than_or_equal_to": (ErrorType.GREATER_THAN_OR_EQUAL_TO, lambda a, b: a >= b),
        "less_than": (ErrorType.LESS_THAN, lambda a, b: a < b),
        "less_than_or_equal_to": (ErrorType.LESS_THAN_OR_EQUAL_TO, lambda a, b: a <= b),
        "equal_to": (ErrorType.EQUAL_TO, lambda a, b: a == b),
        "other_than": (ErrorType.OTHER_THAN, lambda a, b: a != b),
    }

    def __init__(
        self,
        *attributes: str,
        only_integer: bool = False,
        message: ErrorType | str | None = None,
        allow_none: bool = False,
        allow_blank: bool = False,
        **bounds: int | float | Decimal,
    ) -> None:
        unknown = set(bounds) - set(self.COMPARISONS)
        if unknown:
            raise ValueError(f"Unknown numericality option(s): {', '.join(sorted(unknown))}")
        super().__init__(
            *attributes, message=message, allow_none=allow_none, allow_blank=allow_blank
        )
        self.only_integer = only_integer
        self.bounds = bounds

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        number = self._parse(value)
        if number is None:
            self.add_error(record, attribute, ErrorType.NOT_A_NUMBER, value=value)
            return
        if self.only_integer and number != number.to_integral_value():
            self.add_error(record, attribute, ErrorType.NOT_AN_INTEGER, value=value)
            return
        for option, bound in self.bounds.items():
            error_type, check = self.COMPARISONS[option]
            if not check(number, Decimal(str(bound))):
                self.add_error(record, attribute, error_type, count=bound, value=value)

    def _parse(self, value: Any) -> Decimal | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, Decimal)):
            return Decimal(value)
        if isinstance(value, float):
            return Decimal(str(value))
        if isinstance(value, str):
            try:
                number = Decimal(value.strip())
            except InvalidOperation:
                return None
            return number if number.is_finite() else None
        return None


class TypeRule(Rule):
    """Checks the value against a type using a pydantic ``TypeAdapter``."""

    def __init__(
        self, *attributes: str, expected: Any, strict: bool = True, **options: Any
    ) -> None:
        super().__init__(*attributes, **options)
        self.expected = expected
        self.strict = strict
        self._adapter: TypeAdapter[Any] = TypeAdapter(expected)

    def validate_each(self, record: Any, attribute: str, value: Any) -> None:
        try:
            self._adapter.validate_python(value, strict=self.strict)
        except ValidationError as exc:
            detail = exc.errors()[0]["msg"] if exc.errors() else str(exc)
            self.add_error(
                record,
                attribute,
                ErrorType.INVALID_TYPE,
                expected=getattr(self.expected, "__name__", str(self.expected)),
                detail=detail,
            )


class MethodRule(Rule):
    """Custom validation: calls a method on the record (or a plain callable)."""

    def __init__(self, method: str | Callable[[Any], Any]) -> None:
        super().__init__()
        self.method = method

    def validate(self, record: Any) -> None:
        if callable(self.method):
            self.method(record)
        else:
            getattr(record, self.method)()

    def __repr__(self) -> str:
        name = self.method if isinstance(self.method, str) else self.method.__name__
        return f"MethodRule({name})"


def _normalize(option: str, config: Any) -> dict[str, Any]:
    """Shorthand values into keyword arguments for a rule class."""
    if config is True:
        return {}
    if option in ("inclusion", "exclusion"):
        if isinstance(config, Mapping):
            config = dict(config)
            config["in_"] = config.pop("in")
            return config
        return {"in_": config}
    if option == "format":
        if isinstance(config, Mapping):
            config = dict(config)
            if "with" in config:
                config["with_"] = config.pop("with")
            return config
        return {"with_": config}
    if option == "length" and isinstance(config, Mapping):
        config = dict(config)
        if "is" in config:
            config["is_"] = config.pop("is")
        return config
    if option == "type":
        if isinstance(config, Mapping):
            return dict(config)
        return {"expected": config}
    if isinstance(config, Mapping):
        return dict(config)
    raise ValueError(f"Invalid configuration for {option!r} validation: {config!r}")


RULES: dict[str, type[Rule]] = {
    "presence": PresenceRule,
    "absence": AbsenceRule,
    "length": LengthRule,
    "inclusion": InclusionRule,
    "exclusion": ExclusionRule,
    "format": FormatRule,
    "numericality": NumericalityRule,
    "type": TypeRule,
}

_SHARED_OPTIONS = ("message", "allow_none", "allow_blank")


def build_rules(attributes: Iterable[str], **options: Any) -> list[Rule]:
    """Build rules from ``validates``-style keyword options.

    ``message``, ``allow_none`` and ``allow_blank`` apply to every rule unless a
    rule's own mapping overrides them. False or None disables a rule.

    Raises:
        ValueError: on an unknown option name or malformed configuration.
    """
    attributes = tuple(attributes)
    shared = {key: options.pop(key) for key in _SHARED_OPTIONS if key in options}
    rules: list[Rule] = []
    for option, config in options.items():
        rule_cls = RULES.get(option)
        if rule_cls is None:
            raise ValueError(f"Unknown validator: {option!r}")
        if config is None or config is False:
            continue
        kwargs = {**shared, **_normalize(option, config)}
        rules.append(rule_cls(*attributes, **kwargs))
    return rules


# --- Validator collaborator ---


@runtime_checkable
class Validator(Protocol):
    """Runs a record's validation rules.

    Appends entries to ``record.errors`` and returns whether the record passed.
    """

    def validate(self, record: Any) -> bool: ...


class RuleValidator:
    """Default validator: runs every rule declared on the record's type."""

    def validate(self, record: Any) -> bool:
        for rule in type(record).validation_rules():
            rule.validate(record)
        return record.errors.is_empty()


class PydanticValidator(RuleValidator):
    """Runs declared rules, then validates ``record.attributes()`` with a pydantic model.

    Unset (None) attributes are left out of the payload, so required fields
    report as ``blank``. Other pydantic errors keep their
    message with the pydantic error type in the entry options as ``code``.
    """

    def __init__(self, model: type[BaseModel]) -> None:
        self.model = model

    def validate(self, record: Any) -> bool:
        super().validate(record)
        payload = {
            name: value for name, value in record.attributes().items() if value is not None
        }
        try:
            self.model.model_validate(payload)
        except ValidationError as exc:
            for error in exc.errors():
                attribute = ".".join(str(part) for part in error["loc"]) or BASE
                if error["type"] == "missing":
                    record.errors.add(attribute, ErrorType.BLANK, code=error["type"])
                    continue
                message = error["msg"]
                record.errors.add(
                    attribute, message[:1].lower() + message[1:], code=error["type"]
                )
        return record.errors.is_empty()
