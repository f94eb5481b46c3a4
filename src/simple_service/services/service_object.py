"""ServiceObject — a unit with exactly one operation, ``perform``.

Subclasses implement ``perform`` and are run through ``call`` (non-raising,
returns the unit) or ``call_or_raise`` (returns the captured value or raises
``Invalid`` / ``Failure``). Both are also available on the class, where they
construct the unit first, so a ServiceObject type can be handed to anything
that expects a ``call(attributes, callback=...)`` callable.

Usage::

    class SendInvite(ServiceObject):
        email = Attribute(presence=True, format=r"@")

        def perform(self, callback=None):
            invite = deliver(self.email)
            return callback(invite) if callback else invite

    SendInvite.call(email="ada@example.com").succeeded()
    SendInvite.call_or_raise({"email": "ada@example.com"})
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Mapping
from types import MethodType
from typing import Any, Protocol, Self, runtime_checkable

from pydantic import BaseModel

from simple_service.services.service import SERVICE_METHOD_ATTR, Service, log_operation

Callback = Callable[..., Any]


class dualmethod:
    """Method with a separate implementation when accessed on the class.

    Usage::

        @dualmethod
        def call(self): ...

        @call.classlevel
        def call(cls, attributes): ...
    """

    def __init__(self, method: Callable[..., Any]) -> None:
        self.method = method
        self.class_method: Callable[..., Any] | None = None
        functools.update_wrapper(self, method)

    def classlevel(self, func: Callable[..., Any]) -> dualmethod:
        self.class_method = func
        return self

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            if self.class_method is None:
                return self.method
            return MethodType(self.class_method, owner)
        return MethodType(self.method, instance)


class _Undefined:
    """Class attribute that reads as missing, hiding an inherited one."""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None and owner is not None:
            raise AttributeError(f"type object {owner.__name__!r} has no attribute {self.name!r}")
        raise AttributeError(f"{type(instance).__name__!r} object has no attribute {self.name!r}")


@runtime_checkable
class CallableService(Protocol):
    """Anything invocable as ``call(attributes, callback=...)``."""

    def call(
        self,
        attributes: Mapping[str, Any] | None = None,
        /,
        *,
        callback: Callback | None = None,
        **kwargs: Any,
    ) -> Any: ...


class ServiceObject(Service):
    """Unit restricted to a single ``perform`` operation.

    ``perform`` always stores its return value in ``value``; the
    ``capture_return_value`` policy only applies to registered operations.
    """

    service_methods = _Undefined()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        for name, member in cls.__dict__.items():
            if getattr(member, SERVICE_METHOD_ATTR, False):
                raise AttributeError(
                    f"{cls.__name__}.{name}: service methods are not available on "
                    "ServiceObject types; implement perform() instead"
                )
        super().__init_subclass__(**kwargs)

    def perform(self, callback: Callback | None = None) -> Any:
        raise NotImplementedError(f"{type(self).__name__}.perform() must be implemented.")

    @dualmethod
    def call(self, callback: Callback | None = None) -> Self:
        """Run ``perform`` when valid, capture its result, and return the unit."""
        if self.is_valid():
            started = time.perf_counter()
            self.value = self.perform(callback) if callback is not None else self.perform()
            log_operation(self, "perform", started)
        return self

    @call.classlevel
    def call(
        cls,
        attributes: Mapping[str, Any] | BaseModel | None = None,
        /,
        *,
        callback: Callback | None = None,
        **kwargs: Any,
    ) -> ServiceObject:
        """Construct a unit from *attributes* / *kwargs* and ``call`` it."""
        return cls(attributes, **kwargs).call(callback)

    @dualmethod
    def call_or_raise(self, callback: Callback | None = None) -> Any:
        """``call``, then raise Invalid or Failure, or return the captured value.

        The callback runs before the outcome is checked, so it may clear errors
        (for example through ``reset()``) and still produce a successful result.
        """
        self.call(callback)
        self._raise_unless_succeeded()
        return self.value

    @call_or_raise.classlevel
    def call_or_raise(
        cls,
        attributes: Mapping[str, Any] | BaseModel | None = None,
        /,
        *,
        callback: Callback | None = None,
        **kwargs: Any,
    ) -> Any:
        """Construct a unit from *attributes* / *kwargs* and ``call_or_raise`` it."""
        return cls(attributes, **kwargs).call_or_raise(callback)
