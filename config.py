"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        # Try DB_* variables (Docker style)
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'orderdesk')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'orderdesk')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'orderdesk')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    DB_CREATE_ALL = os.getenv('DB_CREATE_ALL', 'false').lower() == 'true'

    # Delivery fees per region (used when the discount_settings row has no value)
    DELIVERY_FEE_CAPITAL = os.getenv('DELIVERY_FEE_CAPITAL', '20')
    DELIVERY_FEE_INTERIOR = os.getenv('DELIVERY_FEE_INTERIOR', '35')

    # Fiscal parameters
    IPI_RATE = os.getenv('IPI_RATE', '10')
    DEFAULT_MVA = os.getenv('DEFAULT_MVA', '39')
    TAX_SUBSTITUTION_RATE = os.getenv('TAX_SUBSTITUTION_RATE', '7.8')
    # Whether IPI is assessed only on the fiscally documented share of a half invoice
    IPI_SCALED_BY_HALF_INVOICE = os.getenv('IPI_SCALED_BY_HALF_INVOICE', 'false').lower() == 'true'

    # Commercial options
    PICKUP_DISCOUNT = os.getenv('PICKUP_DISCOUNT', '5')
    CASH_PAYMENT_DISCOUNT = os.getenv('CASH_PAYMENT_DISCOUNT', '3')
    HALF_INVOICE_DEFAULT_PERCENTAGE = os.getenv('HALF_INVOICE_DEFAULT_PERCENTAGE', '50')


class TestConfig(Config):
    """Configuration used by the test suite (in-memory SQLite)."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    DB_CREATE_ALL = True
    IPI_SCALED_BY_HALF_INVOICE = False
