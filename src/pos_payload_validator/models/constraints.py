"""Reusable field constraints with fixed, integrator-facing messages."""

from collections.abc import Callable
from typing import Any

from pydantic import AfterValidator
from pydantic_core import PydanticCustomError


def require(
    predicate: Callable[[Any], bool], message: str, error_type: str = "constraint"
) -> AfterValidator:
    """Build an after-validator that rejects values failing ``predicate``.

    The message is reported verbatim, without pydantic's "Value error," prefix.

    Args:
        predicate: Returns True for acceptable values
        message: Message attached to the violation
        error_type: Error type recorded as the raw schema expectation

    Returns:
        AfterValidator usable inside ``Annotated[...]``
    """

    def check(value: Any) -> Any:
        if not predicate(value):
            raise PydanticCustomError(error_type, message)
        return value

    return AfterValidator(check)


def non_empty(value: Any) -> bool:
    return len(value) > 0


def positive(value: int | float) -> bool:
    return value > 0
