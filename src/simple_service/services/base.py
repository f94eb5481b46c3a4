"""ServiceBase — declared attributes, memoized validity, and the error list.

Every unit (``Service`` or ``ServiceObject``) builds on this class.

INVARIANT: Validation runs at most once per instance until ``reset()``.
The error list stays live, so ``succeeded()`` can turn false after
``is_valid()`` has been memoized as True. The two are kept apart on purpose.

Usage::

    class Greeting(ServiceBase):
        name = Attribute(presence=True)

    greeting = Greeting(name="Ada")
    greeting.is_valid()      # runs validations once
    greeting.errors.add("name", "is taken")
    greeting.is_valid()      # still True (memoized)
    greeting.succeeded()     # False (error list is not empty)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Self

from pydantic import BaseModel

from simple_service.domain.errors import Errors, humanize, underscore
from simple_service.domain.exceptions import Failure, Invalid, UnknownAttributeError
from simple_service.domain.validations import (
    AFTER,
    BEFORE,
    HOOK_ATTR,
    VALIDATE,
    MethodRule,
    Rule,
    RuleValidator,
    Validator,
    build_rules,
)
from simple_service.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)


class Attribute:
    """Declared input attribute.

    Assigning one in a class body registers the name and gives instances a
    plain get/set accessor. Keyword options are validation rules for the
    attribute, as accepted by :meth:`ServiceBase.validates`.
    """

    def __init__(self, **validations: Any) -> None:
        self.name = ""
        self.validations = validations

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.__dict__[self.name] = value

    def __repr__(self) -> str:
        return f"Attribute({self.name!r})"


class ServiceBase:
    """Attribute registry, construction-time assignment, and validity memoization.

    Attributes:
        errors: Live error list shared by validations and business logic.
        value: Captured value of the most recent operation (None when unset).
        validator: Validator collaborator used for each validation pass.
    """

    validator: ClassVar[Validator] = RuleValidator()

    _attribute_names: ClassVar[list[str]] = []
    _validation_rules: ClassVar[list[Rule]] = []
    _before_validation: ClassVar[list[str]] = []
    _after_validation: ClassVar[list[str]] = []

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Each type owns its registries; subclasses start from the parent's.
        cls._attribute_names = list(cls._attribute_names)
        cls._validation_rules = list(cls._validation_rules)
        cls._before_validation = list(cls._before_validation)
        cls._after_validation = list(cls._after_validation)

        for name, member in list(cls.__dict__.items()):
            if isinstance(member, Attribute):
                if name not in cls._attribute_names:
                    cls._attribute_names.append(name)
                if member.validations:
                    cls.validates(name, **member.validations)
                continue
            hook = getattr(member, HOOK_ATTR, None)
            if hook == VALIDATE:
                cls._validation_rules.append(MethodRule(name))
            elif hook == BEFORE:
                cls._before_validation.append(name)
            elif hook == AFTER:
                cls._after_validation.append(name)

    def __init__(
        self, attributes: Mapping[str, Any] | BaseModel | None = None, /, **kwargs: Any
    ) -> None:
        self.errors = Errors(self)
        self.value: Any = None
        self._valid: bool | None = None
        self.assign_attributes({**self._coerce_input(attributes), **kwargs})

    # --- Type-level declarations ---

    @classmethod
    def declare(cls, *names: str) -> None:
        """Register attribute names after class creation. Known names are skipped."""
        for raw in names:
            name = str(raw)
            if name in cls._attribute_names:
                continue
            cls._attribute_names.append(name)
            if not hasattr(cls, name):
                accessor = Attribute()
                accessor.__set_name__(cls, name)
                setattr(cls, name, accessor)

    @classmethod
    def attribute_names(cls) -> tuple[str, ...]:
        return tuple(cls._attribute_names)

    @classmethod
    def validates(cls, *attributes: str, **options: Any) -> None:
        """Attach validation rules, e.g. ``validates("email", presence=True)``."""
        if not attributes:
            raise ValueError("validates() needs at least one attribute")
        cls._validation_rules.extend(build_rules(attributes, **options))

    @classmethod
    def validate(cls, *methods: str | Callable[[Any], Any]) -> None:
        """Attach custom validations: method names or callables taking the record."""
        cls._validation_rules.extend(MethodRule(method) for method in methods)

    @classmethod
    def validation_rules(cls) -> tuple[Rule, ...]:
        return tuple(cls._validation_rules)

    @classmethod
    def model_name(cls) -> str:
        return cls.__name__

    @classmethod
    def human_attribute_name(cls, attribute: str) -> str:
        """Label used in full error messages. Override to rename attributes."""
        return humanize(attribute)

    # --- Construction ---

    @staticmethod
    def _coerce_input(attributes: Mapping[str, Any] | BaseModel | None) -> dict[str, Any]:
        if attributes is None:
            return {}
        if isinstance(attributes, BaseModel):
            return attributes.model_dump(exclude_unset=True)
        if isinstance(attributes, Mapping):
            return dict(attributes)
        kind = type(attributes).__name__
        raise TypeError(f"When assigning attributes, you must pass a mapping, got {kind}")

    def assign_attributes(self, values: Mapping[str, Any]) -> None:
        """Assign declared attributes from *values*.

        Raises:
            UnknownAttributeError: on the first key that is not declared.
                Nothing is assigned in that case.
        """
        declared = type(self)._attribute_names
        normalized = {str(key): value for key, value in values.items()}
        for name in normalized:
            if name not in declared:
                raise UnknownAttributeError(self, name)
        for name, value in normalized.items():
            setattr(self, name, value)

    # --- Queries ---

    def attributes(self) -> dict[str, Any]:
        """Fresh mapping of declared attribute -> current value, in declaration order."""
        return {name: getattr(self, name) for name in type(self)._attribute_names}

    def read_attribute_for_validation(self, attribute: str) -> Any:
        return getattr(self, attribute, None)

    def is_valid(self) -> bool:
        """Run validations on first call; return the memoized result afterwards."""
        if self._valid is None:
            self._valid = self._run_validations()
        return self._valid

    def is_invalid(self) -> bool:
        return not self.is_valid()

    def succeeded(self) -> bool:
        """True while the unit is valid and no errors have been added since."""
        return self.is_valid() and self.errors.is_empty()

    def failed(self) -> bool:
        return not self.succeeded()

    @property
    def validated(self) -> bool:
        """Whether validity has been memoized since construction or the last reset."""
        return self._valid is not None

    # --- Mutations ---

    def reset(self) -> Self:
        """Return to the post-construction state. Attribute values are kept."""
        self.errors.clear()
        self._valid = None
        self.value = None
        return self

    def add_errors_from(
        self, other: ServiceBase, *, key: str | None = None, full_messages: bool = False
    ) -> None:
        """Copy *other*'s errors into this unit's error list.

        With ``full_messages`` every formatted message is added under *key*
        (default: *other*'s model name in snake_case). Otherwise each raw entry
        keeps its message or type and options, under *key* or its own attribute.
        """
        if full_messages:
            target = key or underscore(type(other).model_name())
            for message in other.errors.full_messages:
                self.errors.add(target, message)
            return
        for entry in other.errors:
            self.errors.add(key or entry.attribute, entry.message, **entry.options)

    def to_result(self, op: str | None = None) -> ServiceResult:
        """Frozen snapshot of the outcome (validity is computed if needed)."""
        return ServiceResult(
            ok=self.succeeded(),
            op=op or type(self).model_name(),
            value=self.value,
            errors=[ServiceError(**error) for error in self.errors.api_errors()],
        )

    # --- Internals ---

    def _run_validations(self) -> bool:
        self.errors.clear()
        for name in type(self)._before_validation:
            getattr(self, name)()
        valid = bool(type(self).validator.validate(self))
        for name in type(self)._after_validation:
            getattr(self, name)()
        logger.debug(
            "Validated %s: valid=%s errors=%d", type(self).__name__, valid, len(self.errors)
        )
        return valid

    def _raise_unless_succeeded(self) -> None:
        """Raise Invalid when validation failed, Failure when errors were added later."""
        if not self.is_valid():
            logger.debug("Raising Invalid for %s", type(self).__name__)
            raise Invalid(self, self.errors.full_messages)
        if not self.succeeded():
            logger.debug("Raising Failure for %s", type(self).__name__)
            raise Failure(self, self.errors.full_messages)
