"""Discount settings model."""
from sqlalchemy import Column, Integer, Numeric, DateTime
from sqlalchemy.sql import func
from orderdesk.database import Base


class DiscountSettings(Base):
    """
    Discount Settings - single row with the commercial and fiscal parameters.

    Every column is nullable: a missing value falls back to the application
    config instead of blocking the sale.
    """

    __tablename__ = 'discount_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Option percentages
    pickup = Column(Numeric(5, 2), nullable=True)
    half_invoice = Column(Numeric(5, 2), nullable=True)
    tax_substitution = Column(Numeric(5, 2), nullable=True)
    cash_payment = Column(Numeric(5, 2), nullable=True)

    # Order-level charges
    delivery_fee_capital = Column(Numeric(10, 2), nullable=True)
    delivery_fee_interior = Column(Numeric(10, 2), nullable=True)
    ipi_rate = Column(Numeric(5, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<DiscountSettings(id={self.id}, ipi_rate={self.ipi_rate})>"
