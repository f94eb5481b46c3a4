"""Service — a unit with any number of validated, chainable operations.

Operations are plain methods marked with :func:`service_method` (or registered
later through :meth:`Service.service_methods`). For each operation ``name``
the class ends up with:

- ``perform_<name>`` — the original body, unchanged signature.
- ``<name>(...)`` — runs the body only when the unit is valid, captures the
  return value (see ``capture_return_value``), and returns the unit. A skipped
  call leaves ``value`` as it was; it is not reset to None.
- ``<name>_or_raise(...)`` — runs ``<name>``, then raises ``Invalid`` or
  ``Failure``, or returns the captured value.

Wrappers look the real implementation up by name on every call, so ordinary
overriding of ``perform_<name>`` (or of ``<name>`` itself) in a subclass wins.

Usage::

    class Account(Service):
        owner = Attribute(presence=True)
        balance = Attribute()

        @service_method
        def close(self, reason="requested"):
            if self.balance:
                self.errors.add("balance", "must be zero")
                return None
            return f"closed: {reason}"

    Account(owner="ada").close("moving").value      # "closed: moving"
    Account(owner="ada", balance=5).close_or_raise()  # raises Failure
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, ClassVar

import structlog

from simple_service.config.settings import get_settings
from simple_service.services.base import ServiceBase

logger = logging.getLogger(__name__)

SERVICE_METHOD_ATTR = "__service_method__"
PERFORM_PREFIX = "perform_"
RAISING_SUFFIX = "_or_raise"
OPERATIONS_LOGGER = "simple_service.operations"


def service_method[F: Callable[..., Any]](func: F) -> F:
    """Mark a method in a ``Service`` class body as an operation."""
    setattr(func, SERVICE_METHOD_ATTR, True)
    return func


def log_operation(unit: ServiceBase, operation: str, started: float) -> None:
    """Emit an ``operation.complete`` event once structlog has been configured."""
    if not structlog.is_configured():
        return
    structlog.get_logger(OPERATIONS_LOGGER).debug(
        "operation.complete",
        unit=type(unit).__name__,
        operation=operation,
        errors=len(unit.errors),
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )


def _wrap(func: Callable[..., Any], operation: Callable[..., Any]) -> Callable[..., Any]:
    functools.update_wrapper(operation, func)
    # Wrappers are not operations themselves.
    operation.__dict__.pop(SERVICE_METHOD_ATTR, None)
    return operation


def _non_raising(name: str, func: Callable[..., Any]) -> Callable[..., Any]:
    impl_name = PERFORM_PREFIX + name

    def operation(self: Service, *args: Any, **kwargs: Any) -> Service:
        if self.is_valid():
            started = time.perf_counter()
            result = getattr(self, impl_name)(*args, **kwargs)
            if self._captures_return_value():
                self.value = result
            log_operation(self, name, started)
        else:
            logger.debug("Skipped %s.%s: unit is invalid", type(self).__name__, name)
        return self

    return _wrap(func, operation)


def _raising(name: str, func: Callable[..., Any]) -> Callable[..., Any]:
    def operation(self: Service, *args: Any, **kwargs: Any) -> Any:
        getattr(self, name)(*args, **kwargs)
        self._raise_unless_succeeded()
        return self.value

    _wrap(func, operation)
    operation.__name__ = func.__name__ + RAISING_SUFFIX
    operation.__qualname__ = func.__qualname__ + RAISING_SUFFIX
    return operation


class Service(ServiceBase):
    """Unit with any number of registered operations.

    Attributes:
        capture_return_value: Whether operations store their return value in
            ``value``. Set on the class for a type-level default or on an
            instance to override it. None falls back to
            ``ServiceSettings.capture_return_value``.
    """

    capture_return_value: bool | None = None

    _service_method_names: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        marked = [
            (name, member)
            for name, member in cls.__dict__.items()
            if callable(member) and getattr(member, SERVICE_METHOD_ATTR, False)
        ]
        for name, func in marked:
            # An explicit perform_<name> in the same class body wins.
            cls._register_service_method(name, func, replace_impl=False)

    @classmethod
    def service_methods(cls, *functions: Callable[..., Any]) -> None:
        """Register functions as operations after the class exists.

        Each function is registered under its ``__name__``. The latest
        registration of a name replaces earlier ones.
        """
        for func in functions:
            cls._register_service_method(func.__name__, func, replace_impl=True)

    @classmethod
    def service_method_names(cls) -> tuple[str, ...]:
        return cls._service_method_names

    @classmethod
    def _register_service_method(
        cls, name: str, func: Callable[..., Any], *, replace_impl: bool
    ) -> None:
        impl_name = PERFORM_PREFIX + name
        if replace_impl or impl_name not in cls.__dict__:
            setattr(cls, impl_name, func)
        setattr(cls, name, _non_raising(name, func))
        setattr(cls, name + RAISING_SUFFIX, _raising(name, func))
        cls._service_method_names = (
            *(existing for existing in cls._service_method_names if existing != name),
            name,
        )

    def _captures_return_value(self) -> bool:
        flag = self.capture_return_value
        if flag is None:
            return get_settings().capture_return_value
        return flag
