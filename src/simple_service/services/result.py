"""ServiceResult and ServiceError — frozen snapshot of a unit's outcome.

Units stay mutable while they run; ``unit.to_result()`` captures the state at
one point in time for callers that want a plain, serializable value (logs,
JSON responses, test assertions).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """One formatted error entry within a ServiceResult."""

    model_config = {"frozen": True}

    attribute: str
    message: str
    full_message: str
    type: str | None = None
    options: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of a unit.

    Attributes:
        ok: Whether the unit succeeded (valid and no errors).
        op: Name of the operation or unit type.
        value: Captured value, None when unset.
        errors: Formatted errors in insertion order.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    value: Any = None
    errors: list[ServiceError] = Field(default_factory=list)
