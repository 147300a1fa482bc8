"""
Cart service - the mutation boundary in front of the pricing services.

``Cart`` is the mutable cart state owned by the hosting application. Every
mutation validates its input here (quantities must be positive integers,
percentages are clamped) and callers re-run ``recompute`` on a fresh
``snapshot()`` afterwards. Blocking decisions such as a missing customer or
an empty cart also live here, never inside the pricing services.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from orderdesk.exceptions import InvalidQuantityError, NotFoundError, OrderNotReadyError, ValidationError
from orderdesk.services.discount_options_service import DiscountCatalog, OptionKind
from orderdesk.services.item_pricing_service import clamp_percent
from orderdesk.services.order_snapshot import (
    CustomerInfo, DeliveryRegion, HalfInvoiceMode, LineInput, OrderOptions,
    OrderSnapshot, PaymentMethod, PricingSettings, ProductInfo, ShippingMode
)
from orderdesk.services.order_totals_service import OrderTotals, recompute

logger = logging.getLogger(__name__)


def validate_quantity(quantity, product_name: str = 'produto') -> int:
    """Accept only whole, positive quantities."""
    try:
        value = Decimal(str(quantity))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidQuantityError(product_name, quantity)
    if not value.is_finite() or value <= 0 or value != value.to_integral_value():
        raise InvalidQuantityError(product_name, quantity)
    return int(value)


def check_order_ready(snapshot: OrderSnapshot, customer: Optional[CustomerInfo]) -> None:
    """
    Check that an order can be priced and sent.

    Raises:
        OrderNotReadyError: listing every problem found.
    """
    problems = []
    if customer is None:
        problems.append('Selecione um cliente')
    if not snapshot.lines:
        problems.append('O carrinho está vazio')
    if not snapshot.is_cash_payment and not (snapshot.options.payment_terms or '').strip():
        problems.append('Informe os prazos de pagamento')
    if not snapshot.is_pickup and not snapshot.options.delivery_region:
        problems.append('Selecione a região de entrega')

    if problems:
        raise OrderNotReadyError(problems)


class Cart:
    """Mutable cart state: lines, customer and order options."""

    def __init__(self, catalog: DiscountCatalog, settings: Optional[PricingSettings] = None):
        self.catalog = catalog
        self.settings = settings or PricingSettings()
        self._reset()

    def _reset(self) -> None:
        self.customer: Optional[CustomerInfo] = None
        self._lines: Dict[str, Dict] = {}
        self._selected_options: List[str] = []
        self.apply_discounts = True
        self.with_ipi = False
        self.half_invoice_percentage = self.settings.half_invoice_default_percentage
        self.half_invoice_mode = HalfInvoiceMode.QUANTITY
        self.delivery_region: Optional[str] = None
        self.transport_company_id: Optional[str] = None
        self.payment_terms = ''

    # Lines

    @property
    def items(self) -> List[Dict]:
        return list(self._lines.values())

    @property
    def total_items(self) -> int:
        return sum(item['quantity'] for item in self._lines.values())

    def _get_line(self, product_id) -> Dict:
        line = self._lines.get(str(product_id))
        if line is None:
            raise NotFoundError('O produto não está no carrinho.')
        return line

    def add_item(self, product: ProductInfo, quantity=1) -> Dict:
        """Add a product, merging with an existing line of the same product."""
        quantity = validate_quantity(quantity, product.name)
        line = self._lines.get(product.product_id)
        if line:
            line['quantity'] += quantity
        else:
            default_discount = self.customer.default_discount if self.customer else Decimal('0')
            line = {
                'product': product,
                'quantity': quantity,
                'discount': clamp_percent(default_discount),
            }
            self._lines[product.product_id] = line
        logger.info(f"[cart] add_item product_id={product.product_id} qty={line['quantity']}")
        return line

    def remove_item(self, product_id) -> None:
        self._lines.pop(str(product_id), None)

    def update_item_quantity(self, product_id, quantity) -> Dict:
        line = self._get_line(product_id)
        line['quantity'] = validate_quantity(quantity, line['product'].name)
        return line

    def update_item_discount(self, product_id, discount) -> Dict:
        """Set a line discount; values outside 0-100 are clamped, never rejected."""
        line = self._get_line(product_id)
        try:
            line['discount'] = clamp_percent(discount)
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f'Desconto inválido: {discount}')
        return line

    # Customer and options

    def set_customer(self, customer: Optional[CustomerInfo]) -> None:
        self.customer = customer

    def toggle_discount_option(self, option_id) -> bool:
        """Toggle an option; returns whether it is now selected."""
        option = self.catalog.get(option_id)
        if option is None:
            raise NotFoundError(f'Opção de desconto {option_id} não encontrada.')
        if option.id in self._selected_options:
            self._selected_options.remove(option.id)
            return False
        self._selected_options.append(option.id)
        return True

    def is_discount_option_selected(self, option_id) -> bool:
        return str(option_id) in self._selected_options

    def is_kind_selected(self, kind: OptionKind) -> bool:
        option = self.catalog.for_kind(kind)
        return option is not None and option.id in self._selected_options

    def toggle_apply_discounts(self) -> bool:
        self.apply_discounts = not self.apply_discounts
        return self.apply_discounts

    def toggle_ipi(self) -> bool:
        self.with_ipi = not self.with_ipi
        return self.with_ipi

    def set_delivery_region(self, region: Optional[str]) -> None:
        if region is not None and region not in {r.value for r in DeliveryRegion}:
            raise ValidationError(f'Região de entrega inválida: {region}')
        self.delivery_region = region

    def set_transport_company(self, transport_company_id: Optional[str]) -> None:
        self.transport_company_id = transport_company_id

    def set_half_invoice_percentage(self, percentage) -> None:
        self.half_invoice_percentage = clamp_percent(percentage)

    def set_half_invoice_mode(self, mode) -> None:
        try:
            self.half_invoice_mode = HalfInvoiceMode(mode)
        except ValueError:
            raise ValidationError(f'Tipo de meia nota inválido: {mode}')

    def set_payment_terms(self, terms: str) -> None:
        self.payment_terms = (terms or '').strip()

    def clear(self) -> None:
        """Empty the cart and reset the order options."""
        self._reset()

    # Pricing

    def snapshot(self) -> OrderSnapshot:
        """Freeze the current state into the input of ``recompute``."""
        pickup = self.is_kind_selected(OptionKind.PICKUP)
        cash = self.is_kind_selected(OptionKind.CASH_PAYMENT)
        options = OrderOptions(
            selected_option_ids=frozenset(self._selected_options),
            apply_discounts=self.apply_discounts,
            half_invoice_percentage=self.half_invoice_percentage,
            half_invoice_mode=self.half_invoice_mode,
            with_ipi=self.with_ipi,
            shipping_mode=ShippingMode.PICKUP if pickup else ShippingMode.DELIVERY,
            delivery_region=None if pickup else self.delivery_region,
            transport_company_id=None if pickup else self.transport_company_id,
            payment_method=PaymentMethod.CASH if cash else PaymentMethod.CREDIT,
            payment_terms='' if cash else self.payment_terms,
        )
        lines = tuple(
            LineInput(product=item['product'], quantity=item['quantity'], discount_percent=item['discount'])
            for item in self._lines.values()
        )
        return OrderSnapshot(lines=lines, options=options, catalog=self.catalog, settings=self.settings)

    def totals(self) -> OrderTotals:
        return recompute(self.snapshot())

    def validate(self) -> OrderSnapshot:
        """Snapshot of an order that is ready to be sent."""
        snapshot = self.snapshot()
        check_order_ready(snapshot, self.customer)
        return snapshot

