# production_planner/services/plan_service.py
from datetime import date
from typing import Any, Dict, Iterable, List, Union

from production_planner.db.interface import DatabaseInterface
from production_planner.models import TimePeriod
from production_planner.core.demand_forecast import ForecastItem
from production_planner.exceptions import (
    ValidationError, ConstraintViolationError, StorageUnavailableError, PlanCommitError
)
from production_planner.utils.date_utils import convert_to_date
from production_planner.logging_setup import logger as log_manager, get_logger

logger = get_logger(__name__)

class PlanService:
    """Commits and reads production plans.

    A plan for a date is always written as a whole: committing replaces
    every entry previously stored for that date.
    """

    TABLE = 'production_plans'

    def __init__(self, interface: DatabaseInterface):
        """Initialize the plan service.

        Args:
            interface: Database interface
        """
        self.db = interface

    def build_entries(self, plan_date: date, items: Iterable[ForecastItem]) -> List[Dict[str, Any]]:
        """Turn forecast items into plan rows.

        Raises:
            ValidationError if a product and time period appear twice
        """
        rows = []
        seen = set()
        for item in items:
            if item.key in seen:
                raise ValidationError(
                    f"{item.product_name} appears twice for {item.time_period.value}",
                    details={'product_id': item.product_id, 'time_period': item.time_period.value}
                )
            seen.add(item.key)
            rows.append({
                'plan_date': plan_date,
                'product_id': item.product_id,
                'time_period': item.time_period.value,
                'forecast_quantity': item.forecast_quantity,
                'adjusted_quantity': item.adjusted_quantity,
            })
        return rows

    def commit_plan(self, plan_date: Union[date, str], items: Iterable[ForecastItem]) -> List[Dict[str, Any]]:
        """Replace the production plan for a date.

        An empty set of items clears the plan. Nothing is partially applied:
        on failure the previous plan is left as it was and the caller should
        run the whole commit again.

        Args:
            plan_date: Date the plan is for
            items: Finalized forecast items, possibly carrying overrides

        Returns:
            The stored plan entries

        Raises:
            ValidationError for a malformed date or duplicate items
            PlanCommitError if the store rejected or failed the replace
        """
        plan_date = convert_to_date(plan_date)
        rows = self.build_entries(plan_date, items)
        log_info = log_manager.operation_start_log('plan commit', {
            'plan_date': plan_date.isoformat(),
            'entries': len(rows)
        })

        try:
            stored = self.db.replace_rows(self.TABLE, {'plan_date': plan_date}, rows)
        except (ConstraintViolationError, StorageUnavailableError) as e:
            log_manager.operation_end_log(log_info, success=False)
            logger.error(f"Production plan for {plan_date} not saved: {e.message}")
            raise PlanCommitError(
                f"Production plan for {plan_date.isoformat()} could not be saved: {e.message}",
                details=e.details,
                plan_date=plan_date
            )

        adjusted = sum(1 for row in rows if row['adjusted_quantity'] is not None)
        log_manager.operation_end_log(log_info, result_info={
            'entries': len(stored),
            'adjusted': adjusted
        })
        return stored

    def clear_plan(self, plan_date: Union[date, str]) -> None:
        """Remove the plan for a date."""
        self.commit_plan(plan_date, [])

    def get_plan(self, plan_date: Union[date, str]) -> List[Dict[str, Any]]:
        """Get the committed plan for a date.

        Returns:
            Entries ordered by time period then product name, each with
            product_name and final_quantity
        """
        plan_date = convert_to_date(plan_date)
        entries = self.db.query(self.TABLE, filters={'plan_date': plan_date})
        if not entries:
            return []

        product_ids = list({entry['product_id'] for entry in entries})
        names = {
            product['id']: product['name']
            for product in self.db.query('products', filters={'id': product_ids})
        }

        period_order = {period: index for index, period in enumerate(TimePeriod)}
        plan = []
        for entry in entries:
            entry['plan_date'] = convert_to_date(entry['plan_date'])
            entry['time_period'] = TimePeriod.from_string(entry['time_period'])
            entry['product_name'] = names.get(entry['product_id'], 'Unknown')
            adjusted = entry.get('adjusted_quantity')
            entry['final_quantity'] = adjusted if adjusted is not None else entry['forecast_quantity']
            plan.append(entry)

        plan.sort(key=lambda entry: (period_order[entry['time_period']], entry['product_name']))
        return plan

    def plan_summary(self, plan_date: Union[date, str]) -> Dict[str, Any]:
        """Totals per time period for the printable plan."""
        plan = self.get_plan(plan_date)
        by_period = {period.value: 0 for period in TimePeriod}
        for entry in plan:
            by_period[entry['time_period'].value] += entry['final_quantity']

        return {
            'plan_date': convert_to_date(plan_date),
            'entries': len(plan),
            'adjusted_entries': sum(1 for entry in plan if entry.get('adjusted_quantity') is not None),
            'total_units': sum(by_period.values()),
            'units_by_time_period': by_period,
        }
