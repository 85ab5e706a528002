# production_planner/services/forecast_service.py
import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from production_planner.config import config
from production_planner.db.interface import DatabaseInterface
from production_planner.models import TimePeriod
from production_planner.core.demand_forecast import (
    ForecastItem, calculate_forecasts, summarize_forecasts, group_by_time_period
)
from production_planner.services.product_service import ProductService
from production_planner.services.sales_service import SalesService
from production_planner.exceptions import StorageUnavailableError
from production_planner.utils.date_utils import tomorrow, convert_to_date, lookback_window
from production_planner.logging_setup import logger as log_manager, get_logger

logger = get_logger(__name__)


class EmptyResultCondition(enum.Enum):
    """Why a forecast came back empty. Informational, not a failure."""
    NO_ACTIVE_PRODUCTS = 'No active products found'
    NO_HISTORY = ('No forecast data available. This is likely your first week - '
                  'enter quantities manually.')


@dataclass
class ForecastResult:
    target_date: date
    items: List[ForecastItem] = field(default_factory=list)
    condition: Optional[EmptyResultCondition] = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def message(self) -> str:
        if self.condition is not None:
            return self.condition.value
        return 'Forecast generated successfully'

    def by_time_period(self) -> Dict[TimePeriod, List[ForecastItem]]:
        return group_by_time_period(self.items)

    def summary(self) -> Dict[str, Any]:
        return summarize_forecasts(self.items)


OverrideKey = Tuple[str, Union[TimePeriod, str]]


class ForecastService:
    """Service for producing next-day production forecasts."""

    def __init__(self, interface: DatabaseInterface, settings: Optional[Dict[str, int]] = None):
        """Initialize the forecast service.

        Args:
            interface: Database interface
            settings: Optional forecasting parameters (lookback_days,
                max_weeks, min_weeks_for_confidence); defaults come from
                the [FORECAST] configuration section
        """
        self.db = interface
        self.settings = {**config.forecast_config, **(settings or {})}
        self.products = ProductService(interface)
        self.sales = SalesService(interface)

    def generate_forecast(self, target_date: Union[date, str, None] = None) -> ForecastResult:
        """Calculate the forecast for a date (tomorrow by default).

        Active products and the lookback window of sales are each read once.
        Any storage failure aborts the whole calculation.

        Args:
            target_date: Date being planned

        Returns:
            ForecastResult; an empty result carries the reason as its
            condition

        Raises:
            StorageUnavailableError if products or sales could not be read
        """
        target_date = convert_to_date(target_date) if target_date else tomorrow()
        log_info = log_manager.operation_start_log('forecast', {'target_date': target_date.isoformat()})

        try:
            products = self.products.get_active_products()
            if not products:
                logger.warning("No active products found")
                log_manager.operation_end_log(log_info, result_info={'items': 0})
                return ForecastResult(target_date, condition=EmptyResultCondition.NO_ACTIVE_PRODUCTS)

            start, end = lookback_window(target_date, self.settings['lookback_days'])
            observations = self.sales.query(start, end)
            logger.info(
                f"Forecasting {target_date} from {len(observations)} observations "
                f"between {start} and {end} for {len(products)} products"
            )
        except StorageUnavailableError:
            log_manager.operation_end_log(log_info, success=False)
            raise

        items = calculate_forecasts(
            target_date,
            products,
            observations,
            max_weeks=self.settings['max_weeks'],
            min_weeks_for_confidence=self.settings['min_weeks_for_confidence']
        )

        result = ForecastResult(target_date, items)
        if not items:
            result.condition = EmptyResultCondition.NO_HISTORY
            logger.info(result.message)

        log_manager.operation_end_log(log_info, result_info=result.summary())
        return result

    @staticmethod
    def apply_overrides(
        items: Iterable[ForecastItem],
        overrides: Mapping[OverrideKey, Any]
    ) -> List[ForecastItem]:
        """Overlay user-entered override values on forecast items.

        Args:
            items: Forecast items
            overrides: Raw entered values keyed by (product_id, time_period)

        Returns:
            New list of items; unusable entries are kept as InvalidInput and
            fall back to the forecast quantity

        Raises:
            ValidationError if a key names an unknown time period
        """
        entered = {
            (product_id, TimePeriod.from_string(period)): raw
            for (product_id, period), raw in overrides.items()
        }

        updated = []
        for item in items:
            if item.key in entered:
                item = item.with_override(entered[item.key])
                if item.adjusted_quantity is None and entered[item.key] not in (None, ''):
                    logger.warning(
                        f"Ignoring invalid override {entered[item.key]!r} for "
                        f"{item.product_name} ({item.time_period.value}); "
                        f"using forecast {item.forecast_quantity}"
                    )
            updated.append(item)
        return updated
