# production_planner/services/sales_service.py
from datetime import date
from typing import Any, Dict, List, Optional, Union

from production_planner.db.interface import DatabaseInterface
from production_planner.models import TimePeriod
from production_planner.exceptions import (
    ConstraintViolationError, DuplicateObservationError, NotFoundError
)
from production_planner.services.product_service import ProductService
from production_planner.utils.date_utils import convert_to_date
from production_planner.utils.validation import (
    validate_sales_entry, raise_for_errors, parse_quantity
)
from production_planner.logging_setup import get_logger

logger = get_logger(__name__)

class SalesService:
    """Sales ledger: one observation per product, date and time period."""

    TABLE = 'sales_data'

    def __init__(self, interface: DatabaseInterface):
        """Initialize the sales service.

        Args:
            interface: Database interface
        """
        self.db = interface
        self.products = ProductService(interface)

    def _normalize(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row['sale_date'] = convert_to_date(row['sale_date'])
        row['time_period'] = TimePeriod.from_string(row['time_period'])
        return row

    def _find(self, product_id: str, sale_date: date, time_period: TimePeriod) -> Optional[Dict[str, Any]]:
        results = self.db.query(self.TABLE, filters={
            'product_id': product_id,
            'sale_date': sale_date,
            'time_period': time_period.value,
        }, limit=1)
        return self._normalize(results[0]) if results else None

    def record(
        self,
        product_id: str,
        sale_date: Union[date, str],
        time_period: Union[TimePeriod, str],
        quantity: Union[int, str],
        update: bool = False
    ) -> Dict[str, Any]:
        """Record units sold for a product in one time period of one day.

        Args:
            product_id: Product ID
            sale_date: Calendar date of the sales
            time_period: Time period
            quantity: Units sold (positive whole number)
            update: Overwrite the quantity of an existing observation instead
                of rejecting it

        Returns:
            The stored observation

        Raises:
            ValidationError for invalid input
            NotFoundError if the product does not exist
            DuplicateObservationError if the observation exists and update
                was not requested
        """
        sale_date = convert_to_date(sale_date)
        raise_for_errors(
            validate_sales_entry(product_id, time_period, quantity),
            "Invalid sales entry"
        )
        time_period = TimePeriod.from_string(time_period)
        quantity = parse_quantity(quantity)
        self.products.get_product(product_id)

        existing = self._find(product_id, sale_date, time_period)
        if existing:
            if not update:
                raise DuplicateObservationError(
                    f"Sales for product {product_id} already recorded for "
                    f"{time_period.value} on {sale_date.isoformat()}",
                    details={'id': existing['id']}
                )
            self.db.update(self.TABLE, {'quantity_sold': quantity}, {'id': existing['id']})
            logger.info(f"Updated sales {existing['id']}: {existing['quantity_sold']} -> {quantity}")
            existing['quantity_sold'] = quantity
            return existing

        try:
            stored = self.db.insert(self.TABLE, [{
                'product_id': product_id,
                'sale_date': sale_date,
                'time_period': time_period.value,
                'quantity_sold': quantity,
            }])[0]
        except ConstraintViolationError as e:
            # Lost a race with another writer for the same observation
            raise DuplicateObservationError(
                f"Sales for product {product_id} could not be recorded for "
                f"{time_period.value} on {sale_date.isoformat()}: {e.message}"
            )

        logger.info(f"Recorded {quantity} {time_period.value} sales of {product_id} on {sale_date}")
        return self._normalize(stored)

    def get(self, observation_id: str) -> Dict[str, Any]:
        results = self.db.query(self.TABLE, filters={'id': observation_id}, limit=1)
        if not results:
            raise NotFoundError(f"Sales observation {observation_id} not found")
        return self._normalize(results[0])

    def update(
        self,
        observation_id: str,
        quantity: Union[int, str],
        sale_date: Union[date, str, None] = None,
        time_period: Union[TimePeriod, str, None] = None
    ) -> Dict[str, Any]:
        """Edit an observation in place.

        Moving it onto a (product, date, time period) that already has an
        observation raises DuplicateObservationError.
        """
        current = self.get(observation_id)
        sale_date = convert_to_date(sale_date) if sale_date else current['sale_date']
        time_period = time_period or current['time_period']

        raise_for_errors(
            validate_sales_entry(current['product_id'], time_period, quantity),
            "Invalid sales entry"
        )
        time_period = TimePeriod.from_string(time_period)

        clash = self._find(current['product_id'], sale_date, time_period)
        if clash and clash['id'] != observation_id:
            raise DuplicateObservationError(
                f"Sales for product {current['product_id']} already recorded for "
                f"{time_period.value} on {sale_date.isoformat()}",
                details={'id': clash['id']}
            )

        changes = {
            'sale_date': sale_date,
            'time_period': time_period.value,
            'quantity_sold': parse_quantity(quantity),
        }
        try:
            self.db.update(self.TABLE, changes, {'id': observation_id})
        except ConstraintViolationError as e:
            raise DuplicateObservationError(e.message)

        return {**current, **changes, 'time_period': time_period}

    def delete(self, observation_id: str) -> None:
        if not self.db.delete(self.TABLE, {'id': observation_id}):
            raise NotFoundError(f"Sales observation {observation_id} not found")
        logger.info(f"Deleted sales observation {observation_id}")

    def query(
        self,
        start_date: Union[date, str],
        end_date: Union[date, str, None] = None,
        product_id: Optional[str] = None,
        time_period: Union[TimePeriod, str, None] = None
    ) -> List[Dict[str, Any]]:
        """Get observations dated within [start_date, end_date], newest first.

        Args:
            start_date: First date (inclusive)
            end_date: Last date (inclusive); open-ended when omitted
            product_id: Optional product filter
            time_period: Optional time period filter

        Returns:
            List of observation dictionaries
        """
        filters = {}
        if product_id:
            filters['product_id'] = product_id
        if time_period:
            filters['time_period'] = TimePeriod.from_string(time_period).value

        end = convert_to_date(end_date) if end_date else None
        rows = self.db.query(
            self.TABLE,
            filters=filters,
            ranges={'sale_date': (convert_to_date(start_date), end)},
            order_by='sale_date',
            descending=True
        )
        return [self._normalize(row) for row in rows]

    def daily_entries(self, sale_date: Union[date, str]) -> List[Dict[str, Any]]:
        sale_date = convert_to_date(sale_date)
        return self.query(sale_date, sale_date)

    def daily_totals(self, sale_date: Union[date, str]) -> Dict[str, int]:
        """Units sold on a date, per time period."""
        totals = {period.value: 0 for period in TimePeriod}
        for row in self.daily_entries(sale_date):
            totals[row['time_period'].value] += row['quantity_sold']
        return totals
