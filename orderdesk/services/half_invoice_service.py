"""
Half invoice splitter.

A half invoice documents only part of an order fiscally ("com nota") and the
rest informally ("sem nota"). The split is computed for display and printing
only; it never changes the order totals.

Quantity mode rounds each side independently (half up), so the two sides may
add up to one unit more or less than the line total. That gap is reported,
not hidden. Price mode is an exact partition of the unit price.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional

from orderdesk.services.item_pricing_service import HUNDRED, ZERO, LinePricing, clamp_percent
from orderdesk.services.order_snapshot import HalfInvoiceMode
from orderdesk.utils.formatters import num_br
from orderdesk.utils.number_format import quantize_money, quantize_unit


def round_half_up(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class QuantitySplit:
    total_units: Decimal
    with_invoice: int
    without_invoice: int

    @property
    def rounding_gap(self) -> Decimal:
        """Units gained (+) or lost (-) by rounding each side separately."""
        return Decimal(self.with_invoice + self.without_invoice) - self.total_units


@dataclass(frozen=True)
class PriceSplit:
    unit_price: Decimal
    with_invoice: Decimal
    without_invoice: Decimal


def split_quantity(total_units, percentage) -> QuantitySplit:
    pct = clamp_percent(percentage)
    total_units = Decimal(str(total_units))
    return QuantitySplit(
        total_units=total_units,
        with_invoice=round_half_up(total_units * pct / HUNDRED),
        without_invoice=round_half_up(total_units * (HUNDRED - pct) / HUNDRED),
    )


def split_price(final_unit_price, percentage) -> PriceSplit:
    pct = clamp_percent(percentage)
    final_unit_price = Decimal(str(final_unit_price))
    with_invoice = final_unit_price * pct / HUNDRED
    # with + without == unit price, always
    return PriceSplit(
        unit_price=final_unit_price,
        with_invoice=with_invoice,
        without_invoice=final_unit_price - with_invoice,
    )


def split_line(line: LinePricing, percentage, mode: HalfInvoiceMode) -> Dict[str, Any]:
    """Printable split columns for one priced line."""
    if mode == HalfInvoiceMode.PRICE:
        split = split_price(line.final_unit_price, percentage)
        return {
            'productId': line.product_id,
            'mode': mode.value,
            'priceWithInvoice': quantize_unit(split.with_invoice),
            'priceWithoutInvoice': quantize_unit(split.without_invoice),
        }

    split = split_quantity(line.total_units, percentage)
    return {
        'productId': line.product_id,
        'mode': HalfInvoiceMode.QUANTITY.value,
        'qtyWithInvoice': split.with_invoice,
        'qtyWithoutInvoice': split.without_invoice,
        'roundingGap': split.rounding_gap,
    }


@dataclass(frozen=True)
class InvoiceTotals:
    """Order amounts for the two fiscal views of a half-invoiced order."""

    percentage: Decimal
    mode: HalfInvoiceMode
    total_with_invoice: Decimal
    total_without_invoice: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'percentage': self.percentage,
            'mode': self.mode.value,
            'totalWithInvoice': quantize_money(self.total_with_invoice),
            'totalWithoutInvoice': quantize_money(self.total_without_invoice),
        }


def invoice_totals(
    lines: Iterable[LinePricing],
    percentage,
    mode: HalfInvoiceMode,
    tax_substitution_total: Decimal = ZERO,
    ipi_total: Decimal = ZERO,
    delivery_fee: Decimal = ZERO,
) -> InvoiceTotals:
    """
    Aggregate the "with invoice" and "without invoice" totals.

    Tax substitution, IPI and the delivery fee belong to the documented part
    of the order, so they are added to the "with invoice" side only.
    """
    pct = clamp_percent(percentage)
    with_invoice = ZERO
    without_invoice = ZERO

    for line in lines:
        if mode == HalfInvoiceMode.PRICE:
            split = split_price(line.final_unit_price, pct)
            with_invoice += split.with_invoice * line.total_units
            without_invoice += split.without_invoice * line.total_units
        else:
            split = split_quantity(line.total_units, pct)
            with_invoice += line.final_unit_price * split.with_invoice
            without_invoice += line.final_unit_price * split.without_invoice

    with_invoice += tax_substitution_total + ipi_total + delivery_fee

    return InvoiceTotals(
        percentage=pct,
        mode=mode,
        total_with_invoice=with_invoice,
        total_without_invoice=without_invoice,
    )


def half_invoice_label(percentage: Optional[Decimal]) -> str:
    """Invoice type as printed on the order: 'Nota Cheia' or 'Meia Nota (50%)'."""
    if percentage is None:
        return 'Nota Cheia'
    return f"Meia Nota ({num_br(percentage)}%)"
