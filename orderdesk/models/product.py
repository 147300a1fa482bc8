"""Product model."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from orderdesk.database import Base


class Product(Base):
    """Product model (read-only reference for pricing)."""

    __tablename__ = 'product'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String, nullable=True)
    name = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    list_price = Column(Numeric(10, 2), nullable=False)
    mva = Column(Numeric(5, 2), nullable=True)  # Margem de valor agregado (%)
    quantity_per_volume = Column(Numeric(10, 3), nullable=False, default=1, server_default='1')
    weight = Column(Numeric(10, 3), nullable=False, default=0, server_default='0')
    cubic_volume = Column(Numeric(10, 4), nullable=False, default=0, server_default='0')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"
