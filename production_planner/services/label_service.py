# production_planner/services/label_service.py
from typing import Any, Dict, List, Optional, Tuple

from production_planner.db.interface import DatabaseInterface
from production_planner.exceptions import ConstraintViolationError, NotFoundError, ValidationError
from production_planner.services.product_service import ProductService
from production_planner.utils.validation import validate_label, raise_for_errors
from production_planner.logging_setup import get_logger

logger = get_logger(__name__)

class LabelService:
    """User-managed names that products are grouped under.

    Names are unique regardless of case. Products store the name itself, so
    renaming a label renames it on every product, and a label cannot be
    deleted while any product still uses it.
    """

    TABLE = None
    PRODUCT_FIELD = None
    KIND = None
    DEFAULTS: Tuple[Tuple[str, str], ...] = ()

    def __init__(self, interface: DatabaseInterface):
        """Initialize the service.

        Args:
            interface: Database interface
        """
        self.db = interface
        self.products = ProductService(interface)

    def list(self, active_only: bool = False) -> List[Dict[str, Any]]:
        filters = {'active': True} if active_only else None
        return self.db.query(self.TABLE, filters=filters, order_by='name')

    def get(self, label_id: str) -> Dict[str, Any]:
        results = self.db.query(self.TABLE, filters={'id': label_id}, limit=1)
        if not results:
            raise NotFoundError(f"{self.KIND} {label_id} not found")
        return results[0]

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive lookup."""
        wanted = name.strip().lower()
        for label in self.list():
            if label['name'].lower() == wanted:
                return label
        return None

    def _check_name_free(self, name: str, label_id: Optional[str] = None):
        existing = self.find_by_name(name)
        if existing and existing['id'] != label_id:
            raise ValidationError(
                f"A {self.KIND.lower()} with this name already exists",
                code='DUPLICATE',
                details={'name': existing['name']}
            )

    def create(self, name: str, color: str = 'gray', active: bool = True) -> Dict[str, Any]:
        """Add a label.

        Raises:
            ValidationError for a blank name, unknown color or a name already
                taken (ignoring case)
        """
        raise_for_errors(validate_label(name, color, self.KIND), f"Invalid {self.KIND.lower()}")
        name = name.strip()
        self._check_name_free(name)

        try:
            label = self.db.insert(self.TABLE, [{'name': name, 'color': color, 'active': active}])[0]
        except ConstraintViolationError:
            # Created concurrently under the same name
            raise ValidationError(f"A {self.KIND.lower()} with this name already exists", code='DUPLICATE')

        logger.info(f"Created {self.KIND.lower()} {label['name']}")
        return label

    def update(
        self,
        label_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
        active: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Edit a label; a new name is carried over to its products."""
        current = self.get(label_id)
        name = current['name'] if name is None else name
        color = current['color'] if color is None else color

        raise_for_errors(validate_label(name, color, self.KIND), f"Invalid {self.KIND.lower()}")
        name = name.strip()
        self._check_name_free(name, label_id)

        changes = {'name': name, 'color': color}
        if active is not None:
            changes['active'] = active

        try:
            self.db.update(self.TABLE, changes, {'id': label_id})
        except ConstraintViolationError:
            raise ValidationError(f"A {self.KIND.lower()} with this name already exists", code='DUPLICATE')

        if name != current['name']:
            renamed = self.db.update(
                ProductService.TABLE, {self.PRODUCT_FIELD: name}, {self.PRODUCT_FIELD: current['name']}
            )
            logger.info(f"Renamed {self.KIND.lower()} {current['name']} -> {name} on {renamed} products")

        return {**current, **changes}

    def delete(self, label_id: str) -> None:
        """Remove a label that no product uses.

        Raises:
            ValidationError (code IN_USE) while products still use it
        """
        label = self.get(label_id)
        in_use = self.products.count_products(self.PRODUCT_FIELD, label['name'])
        if in_use:
            plural = '' if in_use == 1 else 's'
            raise ValidationError(
                f"Cannot delete: {in_use} product{plural} using this {self.KIND.lower()}",
                code='IN_USE',
                details={'products': in_use}
            )

        self.db.delete(self.TABLE, {'id': label_id})
        logger.info(f"Deleted {self.KIND.lower()} {label['name']}")

    def seed_defaults(self) -> List[Dict[str, Any]]:
        """Create any of the default labels that are missing."""
        created = []
        for name, color in self.DEFAULTS:
            if self.find_by_name(name) is None:
                created.append(self.create(name, color))
        return created


class CategoryService(LabelService):
    TABLE = 'categories'
    PRODUCT_FIELD = 'category'
    KIND = 'Category'
    DEFAULTS = (
        ('Breakfast', 'yellow'),
        ('Lunch', 'green'),
        ('Hot Food', 'red'),
        ('Sandwiches', 'blue'),
        ('Bakery', 'purple'),
        ('Other', 'gray'),
    )


class DepartmentService(LabelService):
    TABLE = 'departments'
    PRODUCT_FIELD = 'department'
    KIND = 'Department'
    DEFAULTS = (
        ('Deli', 'blue'),
        ('Bakery', 'amber'),
        ('Cigarettes', 'green'),
        ('Soft Drinks', 'cyan'),
        ('Other', 'gray'),
    )
