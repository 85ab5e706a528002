# production_planner/services/product_service.py
from typing import Any, Dict, List, Optional

from production_planner.db.interface import DatabaseInterface
from production_planner.exceptions import NotFoundError
from production_planner.utils.validation import validate_product, raise_for_errors
from production_planner.logging_setup import get_logger

logger = get_logger(__name__)

# Fields a product edit may change
EDITABLE_FIELDS = (
    'name', 'category', 'department', 'cost_price', 'sell_price',
    'shelf_life', 'prep_time', 'storage_type'
)

class ProductService:
    """Read and maintain the product catalog."""

    TABLE = 'products'

    def __init__(self, interface: DatabaseInterface):
        """Initialize the product service.

        Args:
            interface: Database interface
        """
        self.db = interface

    def get_active_products(self) -> List[Dict[str, Any]]:
        """Get active products ordered by name."""
        return self.db.query(self.TABLE, filters={'active': True}, order_by='name')

    def get_all_products(self) -> List[Dict[str, Any]]:
        """Get every product, inactive ones included, ordered by name."""
        return self.db.query(self.TABLE, order_by='name')

    def get_product(self, product_id: str) -> Dict[str, Any]:
        """Get a product by ID.

        Raises:
            NotFoundError if the product does not exist
        """
        results = self.db.query(self.TABLE, filters={'id': product_id}, limit=1)
        if not results:
            raise NotFoundError(f"Product {product_id} not found")
        return results[0]

    def count_products(self, field: str, value: str) -> int:
        """Number of products whose ``field`` (category or department) is ``value``."""
        return len(self.db.query(self.TABLE, filters={field: value}))

    def create_product(
        self,
        name: str,
        cost_price: float,
        sell_price: float,
        category: str = 'Other',
        department: str = 'Deli',
        shelf_life: Optional[float] = None,
        prep_time: Optional[int] = None,
        storage_type: Optional[str] = None
    ) -> Dict[str, Any]:
        """Add a product to the catalog.

        Returns:
            The stored product
        """
        raise_for_errors(
            validate_product(name, cost_price, sell_price, category, department, shelf_life, prep_time),
            "Invalid product"
        )

        product = self.db.insert(self.TABLE, [{
            'name': name.strip(),
            'category': category.strip(),
            'department': department.strip(),
            'cost_price': float(cost_price),
            'sell_price': float(sell_price),
            'shelf_life': float(shelf_life) if shelf_life not in (None, '') else None,
            'prep_time': int(float(prep_time)) if prep_time not in (None, '') else None,
            'storage_type': storage_type or None,
            'active': True,
        }])[0]

        logger.info(f"Created product {product['id']} ({product['name']})")
        return product

    def update_product(self, product_id: str, **changes) -> Dict[str, Any]:
        """Edit a product.

        Only the given fields change; the result is validated as a whole, so
        for example lowering the sell price below the stored cost price is
        rejected.

        Args:
            product_id: Product ID
            **changes: Any of EDITABLE_FIELDS

        Returns:
            The updated product

        Raises:
            ValidationError for unknown fields or invalid values
            NotFoundError if the product does not exist
        """
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        raise_for_errors({field: 'Field cannot be edited' for field in unknown}, "Invalid product update")

        current = self.get_product(product_id)
        merged = {**current, **changes}
        raise_for_errors(
            validate_product(
                merged['name'], merged['cost_price'], merged['sell_price'],
                merged['category'], merged['department'], merged['shelf_life'], merged['prep_time']
            ),
            "Invalid product"
        )

        data = {}
        for field, value in changes.items():
            if field in ('cost_price', 'sell_price'):
                value = float(value)
            elif field == 'shelf_life':
                value = float(value) if value not in (None, '') else None
            elif field == 'prep_time':
                value = int(float(value)) if value not in (None, '') else None
            elif isinstance(value, str):
                value = value.strip() or None
            data[field] = value

        if data:
            self.db.update(self.TABLE, data, {'id': product_id})
            logger.info(f"Updated product {product_id}: {', '.join(sorted(data))}")
        return {**current, **data}

    def deactivate_product(self, product_id: str) -> None:
        """Soft delete: the product stops being forecast but keeps its history."""
        self._set_active(product_id, False)

    def reactivate_product(self, product_id: str) -> None:
        self._set_active(product_id, True)

    def _set_active(self, product_id: str, active: bool) -> None:
        if not self.db.update(self.TABLE, {'active': active}, {'id': product_id}):
            raise NotFoundError(f"Product {product_id} not found")
        logger.info(f"Product {product_id} {'reactivated' if active else 'deactivated'}")
