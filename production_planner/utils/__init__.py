from .date_utils import tomorrow, convert_to_date, lookback_window, get_week_start
from .validation import (
    parse_quantity, validate_sales_entry, validate_waste_entry, validate_product,
    validate_label, raise_for_errors
)

__all__ = [
    'tomorrow',
    'convert_to_date',
    'lookback_window',
    'get_week_start',
    'parse_quantity',
    'validate_sales_entry',
    'validate_waste_entry',
    'validate_product',
    'validate_label',
    'raise_for_errors'
]
