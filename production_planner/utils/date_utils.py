# production_planner/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

from production_planner.exceptions import ValidationError

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

def today() -> date:
    return date.today()

def tomorrow(reference: Optional[date] = None) -> date:
    """Get the day after ``reference`` (defaults to today)."""
    return (reference or today()) + timedelta(days=1)

def convert_to_date(value: Union[str, date, datetime], format_string: str = "%Y-%m-%d") -> date:
    """Convert a string, datetime or date to a date.

    Args:
        value: Date string, datetime or date
        format_string: Format string used for strings

    Returns:
        Date object

    Raises:
        ValidationError if the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), format_string).date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r}", details={'format': format_string})

def get_day_name(target_date: date) -> str:
    return DAY_NAMES[target_date.weekday()]

def lookback_window(target_date: date, days: int) -> Tuple[date, date]:
    """Get the history window that precedes ``target_date``.

    The window covers the ``days`` calendar days before the target date;
    the target date itself is excluded.

    Args:
        target_date: Date being forecast
        days: Number of days to look back

    Returns:
        Tuple with first and last date of the window (inclusive)
    """
    if days < 1:
        raise ValidationError(f"Lookback window must be at least one day, got {days}")
    return target_date - timedelta(days=days), target_date - timedelta(days=1)

def get_week_start(target_date: date) -> date:
    """Get the Monday of the week containing ``target_date``."""
    return target_date - timedelta(days=target_date.weekday())

def last_n_days(end_date: date, days: int) -> List[date]:
    """Get ``days`` consecutive dates ending at ``end_date``, oldest first."""
    return [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

def format_long_date(target_date: date) -> str:
    """Format like 'Tuesday, January 2, 2024'."""
    return f"{get_day_name(target_date)}, {target_date.strftime('%B')} {target_date.day}, {target_date.year}"
