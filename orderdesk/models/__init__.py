"""Models package - exports all SQLAlchemy models."""
from orderdesk.models.product import Product
from orderdesk.models.discount_settings import DiscountSettings

__all__ = ['Product', 'DiscountSettings']
