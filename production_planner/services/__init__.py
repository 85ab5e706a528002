from .product_service import ProductService
from .label_service import CategoryService, DepartmentService
from .sales_service import SalesService
from .waste_service import WasteService, waste_patterns
from .forecast_service import ForecastService, ForecastResult, EmptyResultCondition
from .plan_service import PlanService

__all__ = [
    'ProductService',
    'CategoryService',
    'DepartmentService',
    'SalesService',
    'WasteService',
    'waste_patterns',
    'ForecastService',
    'ForecastResult',
    'EmptyResultCondition',
    'PlanService'
]
