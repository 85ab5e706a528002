"""
Shared fixtures for tests that run against an in-memory SQLite database.
"""
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from production_planner.models import Base
from production_planner.db.connection import enable_sqlite_foreign_keys
from production_planner.db.interface import SQLAlchemyInterface
from production_planner.services.product_service import ProductService
from production_planner.services.sales_service import SalesService

def make_session():
    """Create a session bound to a fresh in-memory database."""
    engine = enable_sqlite_foreign_keys(create_engine('sqlite://'))
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()

def make_interface():
    session = make_session()
    return session, SQLAlchemyInterface(session)

def add_product(interface, name, cost_price=1.0, sell_price=2.5, active=True):
    product = ProductService(interface).create_product(name, cost_price, sell_price)
    if not active:
        ProductService(interface).deactivate_product(product['id'])
    return product

def add_sales(interface, product_id, time_period, quantities_by_date):
    """Record sales; quantities_by_date maps date -> units."""
    sales = SalesService(interface)
    for sale_date, quantity in quantities_by_date.items():
        sales.record(product_id, sale_date, time_period, quantity)

# 2024-01-23 is a Tuesday; the three Tuesdays before it fall in the
# default 28-day window, as does a fourth on 2023-12-26.
TARGET_TUESDAY = date(2024, 1, 23)
TUESDAYS = [date(2024, 1, 16), date(2024, 1, 9), date(2024, 1, 2), date(2023, 12, 26)]
WEDNESDAY = date(2024, 1, 17)
