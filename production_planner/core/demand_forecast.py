# production_planner/core/demand_forecast.py
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from ..models import TimePeriod
from ..exceptions import ForecastError
from .overrides import Override, NO_OVERRIDE, ValidQuantity, parse_override, resolve_quantity

DEFAULT_MAX_WEEKS = 3
DEFAULT_MIN_WEEKS_FOR_CONFIDENCE = 3


@dataclass(frozen=True)
class ForecastItem:
    """Next-day production forecast for one product in one time period.

    Created fresh by every calculation and only persisted when a plan is
    committed.
    """
    product_id: str
    product_name: str
    time_period: TimePeriod
    forecast_quantity: int
    weeks_of_data: int
    has_warning: bool
    last_week_quantity: Optional[int] = None
    manual_override: Override = field(default=NO_OVERRIDE)

    @property
    def key(self) -> Tuple[str, TimePeriod]:
        return (self.product_id, self.time_period)

    @property
    def adjusted_quantity(self) -> Optional[int]:
        """The override to persist, or None when it is missing or invalid."""
        if isinstance(self.manual_override, ValidQuantity):
            return self.manual_override.value
        return None

    @property
    def final_quantity(self) -> int:
        return resolve_quantity(self.forecast_quantity, self.manual_override)

    @property
    def trend(self) -> Optional[int]:
        """Final quantity minus last comparable week's sales."""
        if not self.last_week_quantity:
            return None
        return self.final_quantity - self.last_week_quantity

    def with_override(self, raw: Any) -> 'ForecastItem':
        return replace(self, manual_override=parse_override(raw))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'time_period': self.time_period.value,
            'forecast_quantity': self.forecast_quantity,
            'manual_override': self.adjusted_quantity,
            'final_quantity': self.final_quantity,
            'last_week_quantity': self.last_week_quantity,
            'weeks_of_data': self.weeks_of_data,
            'has_warning': self.has_warning,
        }


def ceiling_mean(quantities: Sequence[int]) -> int:
    """Average rounded up to the next whole unit.

    Integer arithmetic keeps exact means exact (36 / 3 is 12, never 13).

    Args:
        quantities: Non-empty list of quantities

    Returns:
        Ceiling of the arithmetic mean
    """
    if not quantities:
        raise ForecastError("Cannot average an empty set of quantities")
    return -(-sum(quantities) // len(quantities))


def weekday_matches(observation_date: date, target_date: date) -> bool:
    return observation_date.weekday() == target_date.weekday()


def select_recent_observations(
    observations: Iterable[Dict[str, Any]],
    max_weeks: int = DEFAULT_MAX_WEEKS
) -> List[Dict[str, Any]]:
    """Most recent observations first, at most ``max_weeks`` of them."""
    ordered = sorted(observations, key=lambda obs: obs['sale_date'], reverse=True)
    return ordered[:max_weeks]


def _group_matching_weekday(
    observations: Iterable[Dict[str, Any]],
    target_date: date
) -> Dict[Tuple[str, TimePeriod], List[Dict[str, Any]]]:
    grouped = defaultdict(list)
    for obs in observations:
        if obs['sale_date'] >= target_date or not weekday_matches(obs['sale_date'], target_date):
            continue
        period = TimePeriod.from_string(obs['time_period'])
        grouped[(obs['product_id'], period)].append(obs)
    return grouped


def calculate_forecast_item(
    product: Dict[str, Any],
    time_period: TimePeriod,
    observations: Sequence[Dict[str, Any]],
    max_weeks: int = DEFAULT_MAX_WEEKS,
    min_weeks_for_confidence: int = DEFAULT_MIN_WEEKS_FOR_CONFIDENCE
) -> Optional[ForecastItem]:
    """Forecast one product and time period from its matching-weekday history.

    Args:
        product: Product dictionary with 'id' and 'name'
        time_period: Time period being forecast
        observations: Observations already restricted to this product, time
            period and the target weekday
        max_weeks: Number of most recent weeks to average
        min_weeks_for_confidence: Fewer weeks than this sets the warning flag

    Returns:
        ForecastItem, or None when there is no history
    """
    recent = select_recent_observations(observations, max_weeks)
    if not recent:
        return None

    quantities = [int(obs['quantity_sold']) for obs in recent]
    weeks_of_data = len(quantities)

    return ForecastItem(
        product_id=product['id'],
        product_name=product['name'],
        time_period=time_period,
        forecast_quantity=max(ceiling_mean(quantities), 0),
        weeks_of_data=weeks_of_data,
        has_warning=weeks_of_data < min_weeks_for_confidence,
        last_week_quantity=quantities[0],
    )


def calculate_forecasts(
    target_date: date,
    products: Sequence[Dict[str, Any]],
    observations: Iterable[Dict[str, Any]],
    time_periods: Sequence[TimePeriod] = tuple(TimePeriod),
    max_weeks: int = DEFAULT_MAX_WEEKS,
    min_weeks_for_confidence: int = DEFAULT_MIN_WEEKS_FOR_CONFIDENCE
) -> List[ForecastItem]:
    """Calculate the rolling same-weekday average forecast for a date.

    Only observations on the target date's weekday, for the same product
    and time period, and dated before the target date count. Pairs with no
    such history produce no item.

    Args:
        target_date: Date being planned
        products: Active products (dictionaries with 'id' and 'name')
        observations: Sales observations fetched for the lookback window
        time_periods: Time periods to forecast, in display order
        max_weeks: Number of most recent matching weeks to average
        min_weeks_for_confidence: Fewer weeks than this sets the warning flag

    Returns:
        List of forecast items ordered by product then time period
    """
    if max_weeks < 1:
        raise ForecastError(f"max_weeks must be at least 1, got {max_weeks}")

    grouped = _group_matching_weekday(observations, target_date)

    forecasts = []
    for product in products:
        for time_period in time_periods:
            item = calculate_forecast_item(
                product,
                time_period,
                grouped.get((product['id'], time_period), []),
                max_weeks,
                min_weeks_for_confidence
            )
            if item is not None:
                forecasts.append(item)

    return forecasts


def group_by_time_period(items: Iterable[ForecastItem]) -> Dict[TimePeriod, List[ForecastItem]]:
    """Group forecast items under each time period, in enum order."""
    grouped = {period: [] for period in TimePeriod}
    for item in items:
        grouped[item.time_period].append(item)
    return grouped


def summarize_forecasts(items: Sequence[ForecastItem]) -> Dict[str, Any]:
    """Summary figures for a set of forecast items.

    Returns:
        Dictionary with item count, total units, units per time period,
        number of low-confidence items and the mean weeks of data used
    """
    final = np.array([item.final_quantity for item in items], dtype=int)
    weeks = np.array([item.weeks_of_data for item in items], dtype=float)

    return {
        'items': len(items),
        'total_units': int(final.sum()) if len(items) else 0,
        'units_by_time_period': {
            period.value: sum(item.final_quantity for item in period_items)
            for period, period_items in group_by_time_period(items).items()
        },
        'low_confidence_items': sum(1 for item in items if item.has_warning),
        'mean_weeks_of_data': round(float(weeks.mean()), 2) if len(items) else 0.0,
    }
