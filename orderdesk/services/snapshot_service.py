"""
Snapshot service - build pricing snapshots from request payloads.

Joins posted cart lines against the product table and resolves the
commercial/fiscal parameters (discount_settings row first, app config as
fallback). This is the mutation boundary for the HTTP API: malformed input is
rejected here so the pricing services only ever see clean snapshots.
"""
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from orderdesk.exceptions import NotFoundError, ValidationError
from orderdesk.models import DiscountSettings, Product
from orderdesk.services.cart_service import validate_quantity
from orderdesk.services.discount_options_service import DiscountCatalog, build_catalog
from orderdesk.services.order_snapshot import (
    DEFAULT_MVA, CustomerInfo, DeliveryRegion, HalfInvoiceMode, LineInput, OrderOptions,
    OrderSnapshot, PaymentMethod, PricingSettings, ProductInfo, ShippingMode
)
from orderdesk.utils.number_format import json_decimal, to_decimal


def _setting(row: Optional[DiscountSettings], column: str, config: Mapping, key: str) -> Decimal:
    """Value from the settings row, falling back to config when the row or column is empty."""
    value = getattr(row, column, None) if row is not None else None
    if value is None:
        value = config.get(key)
    return to_decimal(value, Decimal('0'))


def load_pricing_configuration(session: Session, config: Mapping) -> Tuple[PricingSettings, DiscountCatalog]:
    """Resolve pricing settings and the option catalog in force."""
    row = session.query(DiscountSettings).order_by(DiscountSettings.id).first()

    settings = PricingSettings(
        ipi_rate=_setting(row, 'ipi_rate', config, 'IPI_RATE'),
        default_mva=to_decimal(config.get('DEFAULT_MVA'), DEFAULT_MVA),
        delivery_fees={
            DeliveryRegion.CAPITAL.value: _setting(row, 'delivery_fee_capital', config, 'DELIVERY_FEE_CAPITAL'),
            DeliveryRegion.INTERIOR.value: _setting(row, 'delivery_fee_interior', config, 'DELIVERY_FEE_INTERIOR'),
        },
        ipi_scaled_by_half_invoice=bool(config.get('IPI_SCALED_BY_HALF_INVOICE', False)),
        half_invoice_default_percentage=_setting(row, 'half_invoice', config, 'HALF_INVOICE_DEFAULT_PERCENTAGE'),
    )

    catalog = build_catalog(
        pickup=_setting(row, 'pickup', config, 'PICKUP_DISCOUNT'),
        half_invoice=Decimal('0'),
        tax_substitution=_setting(row, 'tax_substitution', config, 'TAX_SUBSTITUTION_RATE'),
        cash_payment=_setting(row, 'cash_payment', config, 'CASH_PAYMENT_DISCOUNT'),
    )
    return settings, catalog


def product_info(product: Product) -> ProductInfo:
    """Pricing view of a product row."""
    return ProductInfo(
        product_id=str(product.id),
        name=product.name,
        list_price=Decimal(str(product.list_price)),
        mva=Decimal(str(product.mva)) if product.mva is not None else None,
        units_per_volume=Decimal(str(product.quantity_per_volume or 1)),
        weight=Decimal(str(product.weight or 0)),
        cubic_volume=Decimal(str(product.cubic_volume or 0)),
    )


def _decimal_field(payload: Mapping, key: str, default: Decimal) -> Decimal:
    try:
        return json_decimal(payload.get(key), default)
    except ValueError:
        raise ValidationError(f'Valor inválido para {key}: {payload.get(key)!r}', payload={'field': key})


def _bool_field(payload: Mapping, key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on', 'sim')
    return bool(value)


def _enum_field(payload: Mapping, key: str, enum_cls, default):
    value = payload.get(key)
    if value in (None, ''):
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValidationError(f'Valor inválido para {key}: {value!r} (use {allowed})', payload={'field': key})


def parse_options(payload: Mapping, settings: PricingSettings) -> OrderOptions:
    """Build OrderOptions from the camelCase request payload."""
    selected = payload.get('selectedOptionIds') or []
    if not isinstance(selected, (list, tuple)):
        raise ValidationError('selectedOptionIds deve ser uma lista', payload={'field': 'selectedOptionIds'})

    region = payload.get('deliveryRegion') or None

    return OrderOptions(
        selected_option_ids=frozenset(str(option_id) for option_id in selected),
        apply_discounts=_bool_field(payload, 'applyDiscounts', True),
        half_invoice_percentage=_decimal_field(payload, 'halfInvoicePercentage', settings.half_invoice_default_percentage),
        half_invoice_mode=_enum_field(payload, 'halfInvoiceMode', HalfInvoiceMode, HalfInvoiceMode.QUANTITY),
        with_ipi=_bool_field(payload, 'withIPI', False),
        shipping_mode=_enum_field(payload, 'shippingMode', ShippingMode, ShippingMode.DELIVERY),
        delivery_region=str(region).lower() if region else None,
        transport_company_id=payload.get('transportCompanyId') or None,
        payment_method=_enum_field(payload, 'paymentMethod', PaymentMethod, PaymentMethod.CREDIT),
        payment_terms=str(payload.get('paymentTerms') or '').strip(),
    )


def parse_lines(raw_lines: List[Dict[str, Any]], session: Session) -> Tuple[LineInput, ...]:
    """
    Join posted lines against the product table.

    Raises:
        ValidationError: malformed line or non-positive quantity.
        NotFoundError: unknown or inactive product.
    """
    if not isinstance(raw_lines, list):
        raise ValidationError('lines deve ser uma lista', payload={'field': 'lines'})

    try:
        product_ids = [int(line['productId']) for line in raw_lines]
    except (KeyError, TypeError, ValueError):
        raise ValidationError('Cada item precisa de um productId numérico', payload={'field': 'productId'})

    products = {}
    if product_ids:
        rows = session.query(Product).filter(Product.id.in_(product_ids)).all()
        products = {p.id: p for p in rows if p.active}

    missing = [pid for pid in product_ids if pid not in products]
    if missing:
        raise NotFoundError(f'Produto(s) não encontrado(s): {", ".join(str(pid) for pid in missing)}')

    lines = []
    for raw, pid in zip(raw_lines, product_ids):
        product = products[pid]
        lines.append(LineInput(
            product=product_info(product),
            quantity=validate_quantity(raw.get('quantity', 1), product.name),
            discount_percent=_decimal_field(raw, 'discountPercent', Decimal('0')),
        ))
    return tuple(lines)


def parse_customer(payload: Mapping) -> Optional[CustomerInfo]:
    customer = payload.get('customer')
    if not customer:
        return None
    if not isinstance(customer, Mapping) or not customer.get('id'):
        raise ValidationError('Cliente inválido', payload={'field': 'customer'})
    return CustomerInfo(
        customer_id=str(customer['id']),
        name=str(customer.get('name') or ''),
        default_discount=_decimal_field(customer, 'defaultDiscount', Decimal('0')),
    )


def build_snapshot(payload: Mapping, session: Session, config: Mapping) -> OrderSnapshot:
    """Input snapshot for ``recompute`` from a request payload."""
    if not isinstance(payload, Mapping):
        raise ValidationError('Corpo da requisição inválido')

    settings, catalog = load_pricing_configuration(session, config)
    options = parse_options(payload.get('options') or {}, settings)
    lines = parse_lines(payload.get('lines') or [], session)
    return OrderSnapshot(lines=lines, options=options, catalog=catalog, settings=settings)
