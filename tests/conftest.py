import pytest
from decimal import Decimal

from orderdesk import create_app
from orderdesk.database import Base, get_session
from orderdesk.models import Product, DiscountSettings
from orderdesk.services.discount_options_service import default_catalog
from orderdesk.services.order_snapshot import (
    LineInput, OrderOptions, OrderSnapshot, PricingSettings, ProductInfo
)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; every table is emptied after the test."""
    session = get_session()
    yield session
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.remove()


@pytest.fixture
def cement(session):
    """Product with list price 100 and MVA 39%."""
    product = Product(
        sku='CIM-50',
        name='Cimento CP-II 50kg',
        active=True,
        list_price=Decimal('100.00'),
        mva=Decimal('39'),
        quantity_per_volume=Decimal('1'),
        weight=Decimal('50'),
        cubic_volume=Decimal('0.04'),
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def tiles(session):
    """Product sold by box (2.5 units per volume) without its own MVA."""
    product = Product(
        sku='PISO-60',
        name='Piso 60x60',
        active=True,
        list_price=Decimal('40.00'),
        mva=None,
        quantity_per_volume=Decimal('2.5'),
        weight=Decimal('22.5'),
        cubic_volume=Decimal('0.03'),
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture
def discount_settings(session):
    """Persisted settings row overriding part of the config defaults."""
    settings = DiscountSettings(
        pickup=Decimal('6'),
        tax_substitution=Decimal('9'),
        delivery_fee_capital=Decimal('25'),
    )
    session.add(settings)
    session.commit()
    return settings


@pytest.fixture
def catalog():
    """Stock catalog: pickup 5%, half invoice, tax substitution 7.8%, cash 3%."""
    return default_catalog()


@pytest.fixture
def pricing_settings():
    return PricingSettings()


@pytest.fixture
def cement_info():
    return ProductInfo(
        product_id='1',
        name='Cimento CP-II 50kg',
        list_price=Decimal('100'),
        mva=Decimal('39'),
        weight=Decimal('50'),
        cubic_volume=Decimal('0.04'),
    )


@pytest.fixture
def tiles_info():
    return ProductInfo(
        product_id='2',
        name='Piso 60x60',
        list_price=Decimal('40'),
        mva=None,
        units_per_volume=Decimal('2.5'),
        weight=Decimal('22.5'),
        cubic_volume=Decimal('0.03'),
    )


@pytest.fixture
def make_snapshot(catalog, pricing_settings):
    """Build an OrderSnapshot from lines and option keyword arguments."""
    def _make(lines=(), settings=None, **options):
        if 'selected_option_ids' in options:
            options['selected_option_ids'] = frozenset(options['selected_option_ids'])
        return OrderSnapshot(
            lines=tuple(lines),
            options=OrderOptions(**options),
            catalog=catalog,
            settings=settings or pricing_settings,
        )
    return _make


@pytest.fixture
def scenario_line(cement_info):
    """List price 100, 10% discount, quantity 2."""
    return LineInput(product=cement_info, quantity=2, discount_percent=Decimal('10'))
