# production_planner/models.py
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, Boolean, ForeignKey, Text,
    Enum, Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import enum
import uuid

from production_planner.exceptions import ValidationError

Base = declarative_base()

# Colors a category or department label can be shown in
BADGE_COLORS = ('blue', 'red', 'green', 'amber', 'orange', 'cyan', 'purple', 'pink', 'yellow', 'gray')


def _uuid():
    return str(uuid.uuid4())


def _enum_column(enum_class, name):
    """Store enum values ('Breakfast'), not member names ('BREAKFAST')."""
    return Enum(
        enum_class,
        name=name,
        native_enum=False,
        length=50,
        values_callable=lambda members: [member.value for member in members]
    )


class TimePeriod(enum.Enum):
    """Named portions of the business day.

    Values:
        BREAKFAST ('Breakfast'): 6-11am
        LUNCH ('Lunch'): 11am-3pm
        AFTERNOON ('Afternoon'): 3pm-8pm
    """
    BREAKFAST = 'Breakfast'
    LUNCH = 'Lunch'
    AFTERNOON = 'Afternoon'

    def __str__(self):
        """Return the string value of the enum."""
        return self.value

    @property
    def hours(self):
        return _TIME_PERIOD_HOURS[self]

    @classmethod
    def from_string(cls, value) -> 'TimePeriod':
        """Create a TimePeriod from its string value.

        Args:
            value: 'Breakfast', 'Lunch' or 'Afternoon' (or a TimePeriod)

        Returns:
            TimePeriod enum value

        Raises:
            ValidationError if the string value is not valid
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ', '.join(member.value for member in cls)
            raise ValidationError(
                f"Invalid time period: {value}. Valid values are: {valid}",
                details={'time_period': value}
            )


_TIME_PERIOD_HOURS = {
    TimePeriod.BREAKFAST: '6-11am',
    TimePeriod.LUNCH: '11am-3pm',
    TimePeriod.AFTERNOON: '3pm-8pm',
}


class WasteReason(enum.Enum):
    EXPIRED = 'Expired/Past shelf life'
    OVERPRODUCTION = 'Overproduction'
    QUALITY_ISSUE = 'Quality issue'
    DAMAGED = 'Damaged'
    OTHER = 'Other'

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, value) -> 'WasteReason':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ', '.join(member.value for member in cls)
            raise ValidationError(
                f"Invalid waste reason: {value}. Valid values are: {valid}",
                details={'reason': value}
            )


class Product(Base):
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default='Other')
    department = Column(Text, nullable=False, default='Deli')
    cost_price = Column(Float, nullable=False)
    sell_price = Column(Float, nullable=False)
    shelf_life = Column(Float)      # hours
    prep_time = Column(Integer)     # minutes
    storage_type = Column(Text)
    active = Column(Boolean, nullable=False, default=True)  # soft delete flag
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    sales = relationship("SalesObservation", back_populates="product", cascade="all, delete-orphan")
    waste_logs = relationship("WasteLog", back_populates="product", cascade="all, delete-orphan")
    plan_entries = relationship("ProductionPlanEntry", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('cost_price > 0', name='ck_products_cost_price_positive'),
        CheckConstraint('sell_price > 0', name='ck_products_sell_price_positive'),
        Index('idx_products_active', 'active'),
        Index('idx_products_category', 'category'),
        Index('idx_products_department', 'department'),
    )


class Category(Base):
    """User-managed product category; products refer to it by name."""
    __tablename__ = 'categories'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    color = Column(Text, nullable=False, default='gray')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        Index('idx_categories_name_unique', func.lower(name), unique=True),
        Index('idx_categories_active', 'active'),
    )


class Department(Base):
    """User-managed business department; products refer to it by name."""
    __tablename__ = 'departments'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    color = Column(Text, nullable=False, default='gray')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        Index('idx_departments_name_unique', func.lower(name), unique=True),
        Index('idx_departments_active', 'active'),
    )


class SalesObservation(Base):
    __tablename__ = 'sales_data'

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    sale_date = Column(Date, nullable=False)
    time_period = Column(_enum_column(TimePeriod, 'time_period'), nullable=False)
    quantity_sold = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="sales")

    __table_args__ = (
        UniqueConstraint('product_id', 'sale_date', 'time_period', name='idx_sales_data_unique_entry'),
        CheckConstraint('quantity_sold > 0', name='ck_sales_data_quantity_positive'),
        Index('idx_sales_data_sale_date', 'sale_date'),
        Index('idx_sales_data_product_id', 'product_id'),
    )


class WasteLog(Base):
    __tablename__ = 'waste_logs'

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    waste_date = Column(Date, nullable=False)
    quantity_wasted = Column(Integer, nullable=False)
    cost_wasted = Column(Float)
    reason = Column(_enum_column(WasteReason, 'waste_reason'), nullable=False)
    time_period_made = Column(_enum_column(TimePeriod, 'time_period'))
    photo_url = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=func.now())

    product = relationship("Product", back_populates="waste_logs")

    __table_args__ = (
        CheckConstraint('quantity_wasted > 0', name='ck_waste_logs_quantity_positive'),
        Index('idx_waste_logs_waste_date', 'waste_date'),
    )


class ProductionPlanEntry(Base):
    __tablename__ = 'production_plans'

    id = Column(String(36), primary_key=True, default=_uuid)
    plan_date = Column(Date, nullable=False)
    product_id = Column(String(36), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    time_period = Column(_enum_column(TimePeriod, 'time_period'), nullable=False)
    forecast_quantity = Column(Integer, nullable=False)
    adjusted_quantity = Column(Integer)  # set when a manager overrides the forecast
    created_at = Column(DateTime, default=func.now())

    product = relationship("Product", back_populates="plan_entries")

    __table_args__ = (
        UniqueConstraint('plan_date', 'product_id', 'time_period', name='idx_production_plans_unique_entry'),
        CheckConstraint('forecast_quantity >= 0', name='ck_production_plans_forecast_non_negative'),
        CheckConstraint('adjusted_quantity IS NULL OR adjusted_quantity >= 0',
                        name='ck_production_plans_adjusted_non_negative'),
        Index('idx_production_plans_plan_date', 'plan_date'),
    )
