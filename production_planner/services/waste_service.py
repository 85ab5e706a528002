# production_planner/services/waste_service.py
from collections import Counter, defaultdict
from datetime import date
from typing import Any, Dict, List, Optional, Union

from production_planner.config import config
from production_planner.db.interface import DatabaseInterface
from production_planner.models import TimePeriod, WasteReason
from production_planner.exceptions import NotFoundError
from production_planner.services.product_service import ProductService
from production_planner.utils.date_utils import (
    convert_to_date, get_week_start, last_n_days, DAY_NAMES
)
from production_planner.utils.validation import (
    validate_waste_entry, raise_for_errors, parse_quantity
)
from production_planner.logging_setup import get_logger

logger = get_logger(__name__)

TOP_WASTED_PRODUCTS = 5

def waste_patterns(entries: List[Dict[str, Any]], thresholds: Optional[Dict[str, float]] = None) -> List[Dict[str, Any]]:
    """Spot patterns in a week of waste entries.

    Args:
        entries: Normalized waste entries for the week
        thresholds: Ratios as in ``config.waste_config``

    Returns:
        List of dicts with kind, message and warning (True for problems,
        False for good news); never empty
    """
    thresholds = thresholds or config.waste_config
    total = sum(row['cost_wasted'] or 0 for row in entries)
    patterns = []

    by_day = defaultdict(float)
    for row in entries:
        by_day[DAY_NAMES[row['waste_date'].weekday()]] += row['cost_wasted'] or 0
    days = sorted(by_day.items(), key=lambda item: item[1], reverse=True)

    if days and days[0][1] > 0:
        patterns.append({
            'kind': 'highest_waste_day',
            'warning': True,
            'message': f"{days[0][0]}: Highest waste day this week ({days[0][1]:.2f})",
        })

    if entries:
        overproduction = sum(1 for row in entries if row['reason'] == WasteReason.OVERPRODUCTION)
        share = overproduction / len(entries)
        if share > thresholds['overproduction_warning_ratio']:
            patterns.append({
                'kind': 'overproduction',
                'warning': True,
                'message': f"{share * 100:.0f}% of waste is from overproduction - consider reducing forecast",
            })

    if len(days) > 1 and days[-1][1] < total / 7 * thresholds['low_waste_day_ratio']:
        patterns.append({
            'kind': 'low_waste_day',
            'warning': False,
            'message': f"{days[-1][0]}: Only {days[-1][1]:.2f} waste - you're dialed in!",
        })

    by_period = defaultdict(float)
    for row in entries:
        if row.get('time_period_made'):
            by_period[row['time_period_made'].value] += row['cost_wasted'] or 0
    if by_period:
        period, cost = max(by_period.items(), key=lambda item: item[1])
        if cost > total * thresholds['time_period_warning_ratio']:
            patterns.append({
                'kind': 'time_period',
                'warning': True,
                'message': f"{period}: {cost / total * 100:.0f}% of waste - review production timing",
            })

    if not patterns:
        patterns.append({
            'kind': 'not_enough_data',
            'warning': False,
            'message': 'Not enough data yet for pattern analysis',
        })
    return patterns

class WasteService:
    """Waste ledger and the cost-of-waste figures built from it."""

    TABLE = 'waste_logs'

    def __init__(self, interface: DatabaseInterface):
        """Initialize the waste service.

        Args:
            interface: Database interface
        """
        self.db = interface
        self.products = ProductService(interface)

    def _normalize(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row['waste_date'] = convert_to_date(row['waste_date'])
        row['reason'] = WasteReason.from_string(row['reason'])
        if row.get('time_period_made'):
            row['time_period_made'] = TimePeriod.from_string(row['time_period_made'])
        return row

    def _entry(self, product_id, quantity, reason, time_period_made, notes) -> Dict[str, Any]:
        raise_for_errors(
            validate_waste_entry(product_id, quantity, reason, time_period_made),
            "Invalid waste entry"
        )
        product = self.products.get_product(product_id)
        quantity = parse_quantity(quantity)

        return {
            'product_id': product_id,
            'quantity_wasted': quantity,
            'cost_wasted': round(float(product['cost_price']) * quantity, 2),
            'reason': WasteReason.from_string(reason).value,
            'time_period_made': TimePeriod.from_string(time_period_made).value if time_period_made else None,
            'notes': notes or None,
        }

    def record(
        self,
        product_id: str,
        waste_date: Union[date, str],
        quantity: Union[int, str],
        reason: Union[WasteReason, str],
        time_period_made: Union[TimePeriod, str, None] = None,
        notes: Optional[str] = None
    ) -> Dict[str, Any]:
        """Log wasted units of a product.

        The cost of the waste is the product's cost price times the quantity,
        fixed at the time of logging.

        Returns:
            The stored waste entry
        """
        waste_date = convert_to_date(waste_date)
        entry = self._entry(product_id, quantity, reason, time_period_made, notes)
        entry['waste_date'] = waste_date

        stored = self.db.insert(self.TABLE, [entry])[0]
        logger.info(
            f"Logged waste of {entry['quantity_wasted']} x {product_id} on {waste_date} "
            f"({entry['reason']}, cost {entry['cost_wasted']:.2f})"
        )
        return self._normalize(stored)

    def get(self, waste_id: str) -> Dict[str, Any]:
        results = self.db.query(self.TABLE, filters={'id': waste_id}, limit=1)
        if not results:
            raise NotFoundError(f"Waste entry {waste_id} not found")
        return self._normalize(results[0])

    def update(
        self,
        waste_id: str,
        quantity: Union[int, str],
        reason: Union[WasteReason, str],
        time_period_made: Union[TimePeriod, str, None] = None,
        notes: Optional[str] = None,
        waste_date: Union[date, str, None] = None
    ) -> Dict[str, Any]:
        """Edit a waste entry; the cost is recalculated."""
        current = self.get(waste_id)
        changes = self._entry(current['product_id'], quantity, reason, time_period_made, notes)
        changes['waste_date'] = convert_to_date(waste_date) if waste_date else current['waste_date']

        self.db.update(self.TABLE, changes, {'id': waste_id})
        return self._normalize({**current, **changes})

    def delete(self, waste_id: str) -> None:
        if not self.db.delete(self.TABLE, {'id': waste_id}):
            raise NotFoundError(f"Waste entry {waste_id} not found")
        logger.info(f"Deleted waste entry {waste_id}")

    def query(self, start_date: Union[date, str], end_date: Union[date, str, None] = None) -> List[Dict[str, Any]]:
        """Get waste entries dated within [start_date, end_date], newest first."""
        end = convert_to_date(end_date) if end_date else None
        rows = self.db.query(
            self.TABLE,
            ranges={'waste_date': (convert_to_date(start_date), end)},
            order_by='waste_date',
            descending=True
        )
        return [self._normalize(row) for row in rows]

    def daily_cost(self, waste_date: Union[date, str]) -> float:
        waste_date = convert_to_date(waste_date)
        return round(sum(row['cost_wasted'] or 0 for row in self.query(waste_date, waste_date)), 2)

    def weekly_summary(self, reference_date: Union[date, str]) -> Dict[str, Any]:
        """Summarize waste for the week (Monday start) containing a date.

        Args:
            reference_date: Any date in the week; also the last day of the
                7-day cost series

        Returns:
            Dictionary with week_start, total_cost, total_units,
            top_products (by cost, with primary reason), most_wasted_product,
            today_cost, daily_costs and patterns (see waste_patterns)
        """
        reference_date = convert_to_date(reference_date)
        week_start = get_week_start(reference_date)
        series_days = last_n_days(reference_date, 7)

        entries = self.query(min(week_start, series_days[0]), reference_date)
        week_entries = [row for row in entries if row['waste_date'] >= week_start]

        by_product = defaultdict(lambda: {'total_quantity': 0, 'total_cost': 0.0, 'reasons': Counter()})
        for row in week_entries:
            summary = by_product[row['product_id']]
            summary['total_quantity'] += row['quantity_wasted']
            summary['total_cost'] += row['cost_wasted'] or 0
            summary['reasons'][row['reason'].value] += 1

        names = {product['id']: product['name'] for product in self._products_named(by_product)}

        top_products = sorted(
            (
                {
                    'product_id': product_id,
                    'product_name': names.get(product_id, 'Unknown'),
                    'total_quantity': summary['total_quantity'],
                    'total_cost': round(summary['total_cost'], 2),
                    'primary_reason': summary['reasons'].most_common(1)[0][0],
                }
                for product_id, summary in by_product.items()
            ),
            key=lambda item: item['total_cost'],
            reverse=True
        )[:TOP_WASTED_PRODUCTS]

        daily_costs = []
        for day in series_days:
            cost = sum(row['cost_wasted'] or 0 for row in entries if row['waste_date'] == day)
            daily_costs.append({
                'date': day,
                'day': DAY_NAMES[day.weekday()][:3],
                'cost': round(cost, 2),
            })

        return {
            'week_start': week_start,
            'total_cost': round(sum(row['cost_wasted'] or 0 for row in week_entries), 2),
            'total_units': sum(row['quantity_wasted'] for row in week_entries),
            'top_products': top_products,
            'most_wasted_product': top_products[0] if top_products else None,
            'today_cost': daily_costs[-1]['cost'],
            'daily_costs': daily_costs,
            'patterns': waste_patterns(week_entries),
        }

    def _products_named(self, product_ids) -> List[Dict[str, Any]]:
        if not product_ids:
            return []
        return self.db.query(ProductService.TABLE, filters={'id': list(product_ids)})
