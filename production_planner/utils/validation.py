import re
from typing import Any, Dict, Optional

from production_planner.models import TimePeriod, WasteReason, BADGE_COLORS
from production_planner.exceptions import ValidationError

_INTEGER = re.compile(r'[+-]?\d+')

def parse_quantity(value: Any) -> Optional[int]:
    """Parse a whole-number quantity.

    Accepts ints and strings of decimal digits (surrounding whitespace is
    ignored). Booleans, floats and anything else give None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER.fullmatch(text):
            return int(text)
    return None

def validate_positive_quantity(value: Any, field: str, errors: Dict[str, str]) -> Optional[int]:
    quantity = parse_quantity(value)
    if value is None or value == '':
        errors[field] = 'Quantity is required'
    elif quantity is None:
        errors[field] = 'Quantity must be a whole number'
    elif quantity <= 0:
        errors[field] = 'Quantity must be positive'
    return quantity

def validate_time_period(value: Any, field: str, errors: Dict[str, str]) -> Optional[TimePeriod]:
    try:
        return TimePeriod.from_string(value)
    except ValidationError as e:
        errors[field] = e.message
        return None

def validate_sales_entry(product_id: str, time_period: Any, quantity: Any) -> Dict[str, str]:
    """Validate a sales entry.

    Args:
        product_id: Product ID
        time_period: Time period value
        quantity: Quantity sold

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not product_id:
        errors['product_id'] = 'Please select a product'

    if not time_period:
        errors['time_period'] = 'Please select a time period'
    else:
        validate_time_period(time_period, 'time_period', errors)

    validate_positive_quantity(quantity, 'quantity_sold', errors)

    return errors

def validate_waste_entry(product_id: str, quantity: Any, reason: Any, time_period_made: Any = None) -> Dict[str, str]:
    """Validate a waste entry.

    Args:
        product_id: Product ID
        quantity: Quantity wasted
        reason: Waste reason value
        time_period_made: Optional time period the product was made in

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not product_id:
        errors['product_id'] = 'Please select a product'

    validate_positive_quantity(quantity, 'quantity_wasted', errors)

    if not reason:
        errors['reason'] = 'Please select a reason'
    else:
        try:
            WasteReason.from_string(reason)
        except ValidationError as e:
            errors['reason'] = e.message

    if time_period_made:
        validate_time_period(time_period_made, 'time_period_made', errors)

    return errors

def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()

def validate_product(
    name: str,
    cost_price: Any,
    sell_price: Any,
    category: Any = 'Other',
    department: Any = 'Deli',
    shelf_life: Any = None,
    prep_time: Any = None
) -> Dict[str, str]:
    """Validate product fields.

    Sell price must be above cost price. Shelf life and prep time are
    optional but must be positive when given.

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if _is_blank(name):
        errors['name'] = 'Product name is required'
    if _is_blank(category):
        errors['category'] = 'Please select a category'
    if _is_blank(department):
        errors['department'] = 'Please select a department'

    prices = {}
    for field, value in (('cost_price', cost_price), ('sell_price', sell_price)):
        try:
            prices[field] = float(value)
        except (TypeError, ValueError):
            errors[field] = 'Price must be a number'
            continue
        if prices[field] <= 0:
            errors[field] = 'Price must be greater than zero'

    if 'cost_price' not in errors and 'sell_price' not in errors \
            and prices['sell_price'] <= prices['cost_price']:
        errors['sell_price'] = 'Sell price must be greater than cost price'

    for field, value, label in (('shelf_life', shelf_life, 'Shelf life'), ('prep_time', prep_time, 'Prep time')):
        if value is None or value == '':
            continue
        try:
            if float(value) <= 0:
                errors[field] = f'{label} must be a positive number'
        except (TypeError, ValueError):
            errors[field] = f'{label} must be a positive number'

    return errors

def validate_label(name: Any, color: Any, kind: str) -> Dict[str, str]:
    """Validate a category or department.

    Args:
        name: Label name
        color: One of BADGE_COLORS
        kind: 'Category' or 'Department', used in messages

    Returns:
        Dictionary with validation errors
    """
    errors = {}
    if _is_blank(name):
        errors['name'] = f'{kind} name is required'
    if color not in BADGE_COLORS:
        errors['color'] = f"Invalid color: {color}. Valid values are: {', '.join(BADGE_COLORS)}"
    return errors

def raise_for_errors(errors: Dict[str, str], message: str):
    """Raise ValidationError carrying ``errors`` when there are any."""
    if errors:
        raise ValidationError(message, details=errors)
