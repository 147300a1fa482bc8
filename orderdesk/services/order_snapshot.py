"""Immutable order snapshot consumed by the pricing services."""
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, FrozenSet, Optional, Tuple

from orderdesk.services.discount_options_service import (
    DiscountCatalog, OptionKind, default_catalog
)

DEFAULT_MVA = Decimal('39')
DEFAULT_IPI_RATE = Decimal('10')
DEFAULT_HALF_INVOICE_PERCENTAGE = Decimal('50')


class HalfInvoiceMode(str, enum.Enum):
    """How a half invoice splits each line: by units or by unit price."""
    QUANTITY = 'quantity'
    PRICE = 'price'


class ShippingMode(str, enum.Enum):
    DELIVERY = 'delivery'
    PICKUP = 'pickup'


class DeliveryRegion(str, enum.Enum):
    CAPITAL = 'capital'
    INTERIOR = 'interior'


class PaymentMethod(str, enum.Enum):
    CASH = 'cash'
    CREDIT = 'credit'


@dataclass(frozen=True)
class ProductInfo:
    """Read-only product data needed to price a line."""

    product_id: str
    name: str
    list_price: Decimal
    mva: Optional[Decimal] = None  # None -> PricingSettings.default_mva
    units_per_volume: Decimal = Decimal('1')
    weight: Decimal = Decimal('0')
    cubic_volume: Decimal = Decimal('0')


@dataclass(frozen=True)
class LineInput:
    product: ProductInfo
    quantity: int
    discount_percent: Decimal = Decimal('0')


@dataclass(frozen=True)
class CustomerInfo:
    customer_id: str
    name: str
    default_discount: Decimal = Decimal('0')


@dataclass(frozen=True)
class PricingSettings:
    """Deployment-wide fiscal parameters."""

    ipi_rate: Decimal = DEFAULT_IPI_RATE
    default_mva: Decimal = DEFAULT_MVA
    delivery_fees: Dict[str, Decimal] = field(default_factory=lambda: {
        DeliveryRegion.CAPITAL.value: Decimal('20'),
        DeliveryRegion.INTERIOR.value: Decimal('35'),
    })
    ipi_scaled_by_half_invoice: bool = False
    half_invoice_default_percentage: Decimal = DEFAULT_HALF_INVOICE_PERCENTAGE

    def delivery_fee_for(self, region: Optional[str]) -> Decimal:
        """Fee for a region; unknown or missing regions cost nothing."""
        if not region:
            return Decimal('0')
        return self.delivery_fees.get(region, Decimal('0'))


@dataclass(frozen=True)
class OrderOptions:
    """
    Order-level toggles.

    Companion data of the option kinds lives here: the half-invoice
    percentage and mode, the delivery region and transport company used when
    the order is not picked up, and the payment terms used when it is not
    paid in cash.
    """

    selected_option_ids: FrozenSet[str] = frozenset()
    apply_discounts: bool = True
    half_invoice_percentage: Decimal = DEFAULT_HALF_INVOICE_PERCENTAGE
    half_invoice_mode: HalfInvoiceMode = HalfInvoiceMode.QUANTITY
    with_ipi: bool = False
    shipping_mode: ShippingMode = ShippingMode.DELIVERY
    delivery_region: Optional[str] = None
    transport_company_id: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CREDIT
    payment_terms: str = ''


@dataclass(frozen=True)
class OrderSnapshot:
    """Everything the pricing services need, frozen at one point in time."""

    lines: Tuple[LineInput, ...] = ()
    options: OrderOptions = field(default_factory=OrderOptions)
    catalog: DiscountCatalog = field(default_factory=default_catalog)
    settings: PricingSettings = field(default_factory=PricingSettings)

    @property
    def selected_kinds(self) -> FrozenSet[OptionKind]:
        return self.catalog.selected_kinds(self.options.selected_option_ids)

    @property
    def is_pickup(self) -> bool:
        return (OptionKind.PICKUP in self.selected_kinds
                or self.options.shipping_mode == ShippingMode.PICKUP)

    @property
    def is_cash_payment(self) -> bool:
        return (OptionKind.CASH_PAYMENT in self.selected_kinds
                or self.options.payment_method == PaymentMethod.CASH)

    @property
    def is_half_invoice(self) -> bool:
        return OptionKind.HALF_INVOICE in self.selected_kinds
