from .demand_forecast import (
    ForecastItem, calculate_forecasts, calculate_forecast_item, ceiling_mean,
    weekday_matches, select_recent_observations, group_by_time_period,
    summarize_forecasts
)
from .overrides import (
    Override, NoOverride, ValidQuantity, InvalidInput, NO_OVERRIDE,
    parse_override, resolve_quantity
)

__all__ = [
    'ForecastItem',
    'calculate_forecasts',
    'calculate_forecast_item',
    'ceiling_mean',
    'weekday_matches',
    'select_recent_observations',
    'group_by_time_period',
    'summarize_forecasts',
    'Override',
    'NoOverride',
    'ValidQuantity',
    'InvalidInput',
    'NO_OVERRIDE',
    'parse_override',
    'resolve_quantity'
]
