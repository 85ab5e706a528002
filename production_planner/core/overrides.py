# production_planner/core/overrides.py
"""Manual override values entered against a forecast.

An override is one of three things: nothing was entered, a valid
non-negative quantity was entered, or something unusable was entered. Only a
valid quantity ever replaces the calculated forecast; the other two fall
back to it, so a bad entry never blocks a plan from being committed.
"""
from dataclasses import dataclass
from typing import Any, Optional, Union

from production_planner.utils.validation import parse_quantity


@dataclass(frozen=True)
class NoOverride:
    """Nothing entered."""

    @property
    def quantity(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class ValidQuantity:
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 0:
            raise ValueError(f"Override quantity must be a non-negative integer, got {self.value!r}")

    @property
    def quantity(self) -> Optional[int]:
        return self.value


@dataclass(frozen=True)
class InvalidInput:
    """Entered but unusable; kept so the caller can flag the field."""
    raw: Any

    @property
    def quantity(self) -> Optional[int]:
        return None


Override = Union[NoOverride, ValidQuantity, InvalidInput]

NO_OVERRIDE = NoOverride()


def parse_override(raw: Any) -> Override:
    """Classify a user-entered override value.

    Args:
        raw: Value as entered (int, str or None)

    Returns:
        NoOverride for None or blank text, ValidQuantity for a non-negative
        whole number, InvalidInput for anything else
    """
    if isinstance(raw, (NoOverride, ValidQuantity, InvalidInput)):
        return raw

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return NO_OVERRIDE

    quantity = parse_quantity(raw)
    if quantity is None or quantity < 0:
        return InvalidInput(raw)

    return ValidQuantity(quantity)


def resolve_quantity(forecast_quantity: int, override: Override) -> int:
    """A valid override wins; otherwise the forecast stands."""
    if isinstance(override, ValidQuantity):
        return override.value
    return forecast_quantity
