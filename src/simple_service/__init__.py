"""Service objects: validated, chainable units of business logic.

Two unit kinds share one lifecycle (declared attributes, validation memoized
once per instance, a live error list):

- :class:`Service` — any number of operations registered with
  :func:`service_method`; each gets ``name`` / ``name_or_raise`` entry points.
- :class:`ServiceObject` — exactly one ``perform`` operation run through
  ``call`` / ``call_or_raise``, on instances or directly on the class.

Example:
    >>> class Greet(ServiceObject):
    ...     name = Attribute(presence=True)
    ...
    ...     def perform(self):
    ...         return f"hello {self.name}"
    >>> Greet.call_or_raise(name="ada")
    'hello ada'
    >>> Greet.call().errors.full_messages
    ["Name can't be blank"]
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from simple_service.config.logging import configure_logging
from simple_service.config.settings import ServiceSettings, configure, get_settings
from simple_service.domain.errors import ErrorEntry, Errors, ErrorType
from simple_service.domain.exceptions import (
    Failure,
    Invalid,
    SimpleServiceError,
    UnknownAttributeError,
)
from simple_service.domain.validations import (
    PydanticValidator,
    RuleValidator,
    Validator,
    after_validation,
    before_validation,
    validator,
)
from simple_service.services.base import Attribute, ServiceBase
from simple_service.services.result import ServiceError, ServiceResult
from simple_service.services.service import Service, service_method
from simple_service.services.service_object import CallableService, ServiceObject

try:
    __version__ = version("simple-service")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"

__all__ = [
    "Attribute",
    "CallableService",
    "ErrorEntry",
    "ErrorType",
    "Errors",
    "Failure",
    "Invalid",
    "PydanticValidator",
    "RuleValidator",
    "Service",
    "ServiceBase",
    "ServiceError",
    "ServiceObject",
    "ServiceResult",
    "ServiceSettings",
    "SimpleServiceError",
    "UnknownAttributeError",
    "Validator",
    "__version__",
    "after_validation",
    "before_validation",
    "configure",
    "configure_logging",
    "get_settings",
    "service_method",
    "validator",
]
