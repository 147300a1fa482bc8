"""
Item pricing - price one cart line under the active order options.

Pure functions over the immutable snapshot: nothing here raises for bad
business data. Quantities are validated before a line reaches this module
and out-of-range discounts are clamped.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from orderdesk.services.discount_options_service import OptionKind
from orderdesk.services.order_snapshot import LineInput, OrderSnapshot
from orderdesk.utils.number_format import quantize_money, quantize_unit

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def clamp_percent(value) -> Decimal:
    """Clamp a percentage into [0, 100]; None counts as 0."""
    if value is None:
        return ZERO
    value = Decimal(str(value)) if not isinstance(value, Decimal) else value
    if value < ZERO:
        return ZERO
    if value > HUNDRED:
        return HUNDRED
    return value


@dataclass(frozen=True)
class ActiveAdjustments:
    """Order-wide adjustment rates resolved once per recomputation."""

    apply_discounts: bool
    tax_substitution_rate: Decimal  # percent, 0 when inactive
    ipi_rate: Decimal  # percent, 0 when inactive
    half_invoice_percentage: Optional[Decimal]  # None when half invoice is off
    ipi_scaled_by_half_invoice: bool
    default_mva: Decimal
    option_discount_percent: Decimal  # signed sum of commercial options

    @property
    def half_invoice_factor(self) -> Optional[Decimal]:
        if self.half_invoice_percentage is None:
            return None
        return self.half_invoice_percentage / HUNDRED


def resolve_adjustments(snapshot: OrderSnapshot) -> ActiveAdjustments:
    """Turn the selected options into the rates the line pricing needs."""
    options = snapshot.options
    settings = snapshot.settings
    selected = snapshot.catalog.selected(options.selected_option_ids)
    kinds = {option.kind for option in selected}
    apply = options.apply_discounts

    tax_rate = ZERO
    if apply and OptionKind.TAX_SUBSTITUTION in kinds:
        tax_rate = snapshot.catalog.for_kind(OptionKind.TAX_SUBSTITUTION).value

    ipi_rate = settings.ipi_rate if (apply and options.with_ipi) else ZERO

    half_invoice_percentage = None
    if OptionKind.HALF_INVOICE in kinds:
        half_invoice_percentage = clamp_percent(options.half_invoice_percentage)

    option_discount = ZERO
    if apply:
        option_discount = sum(
            (option.signed_value for option in selected if option.kind.is_commercial),
            ZERO,
        )

    return ActiveAdjustments(
        apply_discounts=apply,
        tax_substitution_rate=tax_rate or ZERO,
        ipi_rate=ipi_rate or ZERO,
        half_invoice_percentage=half_invoice_percentage,
        ipi_scaled_by_half_invoice=settings.ipi_scaled_by_half_invoice,
        default_mva=settings.default_mva,
        option_discount_percent=option_discount,
    )


@dataclass(frozen=True)
class LinePricing:
    """Priced cart line."""

    product_id: str
    product_name: str
    quantity: int
    list_price: Decimal
    discount_percent: Decimal  # requested, clamped
    effective_discount_percent: Decimal  # 0 when discounts are switched off
    final_unit_price: Decimal
    per_unit_tax_substitution: Decimal
    per_unit_ipi: Decimal
    total_units: Decimal
    line_subtotal: Decimal
    total_discount_percentage: Decimal
    total_weight: Decimal
    total_cubic_volume: Decimal

    @property
    def tax_substitution_value(self) -> Decimal:
        return self.per_unit_tax_substitution * self.total_units

    @property
    def ipi_value(self) -> Decimal:
        return self.per_unit_ipi * self.total_units

    @property
    def list_amount(self) -> Decimal:
        """List price times quantity, before any discount."""
        return self.list_price * self.quantity

    @property
    def discount_amount(self) -> Decimal:
        """Discount measured against the list price, independent of final_unit_price."""
        return self.list_amount * self.effective_discount_percent / HUNDRED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productId': self.product_id,
            'productName': self.product_name,
            'quantity': self.quantity,
            'unitPrice': quantize_money(self.list_price),
            'discountPercent': self.discount_percent,
            'totalDiscountPercentage': self.total_discount_percentage,
            'finalUnitPrice': quantize_unit(self.final_unit_price),
            'taxSubstitutionValue': quantize_unit(self.per_unit_tax_substitution),
            'ipiValue': quantize_unit(self.per_unit_ipi),
            'totalUnits': self.total_units,
            'subtotal': quantize_money(self.line_subtotal),
            'totalWithTaxes': quantize_money(self.line_subtotal),
            'totalWeight': self.total_weight,
            'totalCubicVolume': self.total_cubic_volume,
        }


def price_line(line: LineInput, adjustments: ActiveAdjustments) -> LinePricing:
    """
    Price a single line.

    final_unit_price = list_price * (1 - discount/100)
    per_unit_tax_substitution = final * mva/100 * tax_rate/100 [* half_invoice%]
    per_unit_ipi = final * ipi_rate/100 [* half_invoice% when configured]
    line_subtotal = (final + tax + ipi) * total_units
    """
    product = line.product
    list_price = max(product.list_price or ZERO, ZERO)
    requested_discount = clamp_percent(line.discount_percent)
    effective_discount = requested_discount if adjustments.apply_discounts else ZERO

    final_unit_price = list_price * (HUNDRED - effective_discount) / HUNDRED

    units_per_volume = product.units_per_volume or Decimal('1')
    total_units = Decimal(line.quantity) * units_per_volume

    half_factor = adjustments.half_invoice_factor

    per_unit_tax = ZERO
    if adjustments.tax_substitution_rate:
        mva = product.mva if product.mva is not None else adjustments.default_mva
        per_unit_tax = final_unit_price * (mva / HUNDRED) * (adjustments.tax_substitution_rate / HUNDRED)
        if half_factor is not None:
            per_unit_tax = per_unit_tax * half_factor

    per_unit_ipi = ZERO
    if adjustments.ipi_rate:
        per_unit_ipi = final_unit_price * adjustments.ipi_rate / HUNDRED
        if half_factor is not None and adjustments.ipi_scaled_by_half_invoice:
            per_unit_ipi = per_unit_ipi * half_factor

    line_subtotal = (final_unit_price + per_unit_tax + per_unit_ipi) * total_units

    return LinePricing(
        product_id=product.product_id,
        product_name=product.name,
        quantity=line.quantity,
        list_price=list_price,
        discount_percent=requested_discount,
        effective_discount_percent=effective_discount,
        final_unit_price=final_unit_price,
        per_unit_tax_substitution=per_unit_tax,
        per_unit_ipi=per_unit_ipi,
        total_units=total_units,
        line_subtotal=line_subtotal,
        total_discount_percentage=clamp_percent(effective_discount + adjustments.option_discount_percent),
        total_weight=(product.weight or ZERO) * line.quantity,
        total_cubic_volume=(product.cubic_volume or ZERO) * line.quantity,
    )
