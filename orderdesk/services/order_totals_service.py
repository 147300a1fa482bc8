"""
Order totals - fold priced lines and order-level charges into the totals
that are stored, invoiced and printed.

``recompute`` is the single entry point: the hosting application calls it
after every cart mutation with a fresh snapshot and replaces whatever totals
it held before. Totals are never patched incrementally.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from orderdesk.services.discount_options_service import DiscountOption
from orderdesk.services.half_invoice_service import (
    InvoiceTotals, half_invoice_label, invoice_totals, split_line
)
from orderdesk.services.item_pricing_service import (
    ZERO, LinePricing, price_line, resolve_adjustments
)
from orderdesk.services.order_snapshot import HalfInvoiceMode, OrderSnapshot
from orderdesk.utils.formatters import money_br, percent_br
from orderdesk.utils.number_format import quantize_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTotals:
    """Derived order figures. Rebuilt on every recompute, never mutated."""

    lines: Tuple[LinePricing, ...]
    subtotal: Decimal
    total_discount: Decimal
    tax_substitution_total: Decimal
    ipi_total: Decimal
    delivery_fee: Decimal
    total_items: int
    total_units: Decimal
    total_weight: Decimal
    total_cubic_volume: Decimal
    applied_discounts: Tuple[DiscountOption, ...]
    apply_discounts: bool
    with_ipi: bool
    is_pickup: bool
    effective_tax_substitution_rate: Decimal
    half_invoice_mode: HalfInvoiceMode
    half_invoice: Optional[InvoiceTotals] = None

    @property
    def grand_total(self) -> Decimal:
        return (self.subtotal - self.total_discount + self.tax_substitution_total
                + self.ipi_total + self.delivery_fee)

    @property
    def full_invoice(self) -> bool:
        return self.half_invoice is None

    @property
    def invoice_type(self) -> str:
        return half_invoice_label(None if self.half_invoice is None else self.half_invoice.percentage)

    def rounded(self) -> Dict[str, Decimal]:
        """
        Order-level amounts rounded to cents.

        The total is rebuilt from the rounded components so that the printed
        figures add up exactly.
        """
        amounts = {
            'subtotal': quantize_money(self.subtotal),
            'totalDiscount': quantize_money(self.total_discount),
            'taxSubstitutionTotal': quantize_money(self.tax_substitution_total),
            'ipiTotal': quantize_money(self.ipi_total),
            'deliveryFee': quantize_money(self.delivery_fee),
        }
        amounts['total'] = (amounts['subtotal'] - amounts['totalDiscount']
                            + amounts['taxSubstitutionTotal'] + amounts['ipiTotal']
                            + amounts['deliveryFee'])
        return amounts

    def to_dict(self) -> Dict[str, Any]:
        """Output snapshot handed to persistence and printing."""
        result: Dict[str, Any] = {
            'lines': [line.to_dict() for line in self.lines],
            **self.rounded(),
            'totalItems': self.total_items,
            'totalUnits': self.total_units,
            'totalWeight': self.total_weight,
            'totalCubicVolume': self.total_cubic_volume,
            'applyDiscounts': self.apply_discounts,
            'withIPI': self.with_ipi,
            'shipping': 'pickup' if self.is_pickup else 'delivery',
            'fullInvoice': self.full_invoice,
            'invoiceType': self.invoice_type,
            'taxSubstitution': self.effective_tax_substitution_rate > 0,
            'effectiveTaxSubstitutionRate': self.effective_tax_substitution_rate,
            'appliedDiscounts': [option.to_dict() for option in self.applied_discounts],
            'summary': financial_summary(self),
        }
        if self.half_invoice is not None:
            result['halfInvoice'] = self.half_invoice.to_dict()
            result['halfInvoice']['lines'] = [
                split_line(line, self.half_invoice.percentage, self.half_invoice_mode)
                for line in self.lines
            ]
            result['totalWithInvoice'] = result['halfInvoice']['totalWithInvoice']
            result['totalWithoutInvoice'] = result['halfInvoice']['totalWithoutInvoice']
        return result


def delivery_fee_for(snapshot: OrderSnapshot) -> Decimal:
    """Order-level delivery fee: zero on pickup, else the region's fee."""
    if snapshot.is_pickup:
        return ZERO
    return snapshot.settings.delivery_fee_for(snapshot.options.delivery_region)


def recompute(snapshot: OrderSnapshot) -> OrderTotals:
    """
    Re-derive all order totals from a snapshot.

    subtotal        = sum(list_price * quantity)
    total_discount  = sum(list_price * quantity * discount/100)
    tax / ipi       = sum(per-unit value * total_units)
    grand_total     = subtotal - total_discount + tax + ipi + delivery_fee
    """
    adjustments = resolve_adjustments(snapshot)
    priced = tuple(price_line(line, adjustments) for line in snapshot.lines)

    subtotal = ZERO
    total_discount = ZERO
    tax_total = ZERO
    ipi_total = ZERO
    total_units = ZERO
    total_weight = ZERO
    total_cubic = ZERO
    total_items = 0

    for line in priced:
        subtotal += line.list_amount
        total_discount += line.discount_amount
        tax_total += line.tax_substitution_value
        ipi_total += line.ipi_value
        total_units += line.total_units
        total_weight += line.total_weight
        total_cubic += line.total_cubic_volume
        total_items += line.quantity

    delivery_fee = delivery_fee_for(snapshot)

    effective_tax_rate = adjustments.tax_substitution_rate
    if effective_tax_rate and adjustments.half_invoice_factor is not None:
        effective_tax_rate = effective_tax_rate * adjustments.half_invoice_factor

    half_invoice = None
    if adjustments.half_invoice_percentage is not None:
        half_invoice = invoice_totals(
            priced,
            adjustments.half_invoice_percentage,
            snapshot.options.half_invoice_mode,
            tax_substitution_total=tax_total,
            ipi_total=ipi_total,
            delivery_fee=delivery_fee,
        )

    totals = OrderTotals(
        lines=priced,
        subtotal=subtotal,
        total_discount=total_discount,
        tax_substitution_total=tax_total,
        ipi_total=ipi_total,
        delivery_fee=delivery_fee,
        total_items=total_items,
        total_units=total_units,
        total_weight=total_weight,
        total_cubic_volume=total_cubic,
        applied_discounts=snapshot.catalog.selected(snapshot.options.selected_option_ids),
        apply_discounts=adjustments.apply_discounts,
        with_ipi=snapshot.options.with_ipi,
        is_pickup=snapshot.is_pickup,
        effective_tax_substitution_rate=effective_tax_rate,
        half_invoice_mode=snapshot.options.half_invoice_mode,
        half_invoice=half_invoice,
    )

    logger.debug(
        f"recompute: lines={len(priced)} subtotal={subtotal} discount={total_discount} "
        f"tax={tax_total} ipi={ipi_total} delivery={delivery_fee} total={totals.grand_total}"
    )
    return totals


def financial_summary(totals: OrderTotals) -> List[Dict[str, str]]:
    """Rows of the printed financial summary, formatted in BRL."""
    amounts = totals.rounded()
    rows = [
        {'label': 'Subtotal', 'value': money_br(amounts['subtotal'])},
        {'label': 'Descontos', 'value': f"-{money_br(amounts['totalDiscount'])}"},
    ]
    if totals.with_ipi and amounts['ipiTotal'] > 0:
        rows.append({'label': 'IPI', 'value': f"+{money_br(amounts['ipiTotal'])}"})
    if amounts['taxSubstitutionTotal'] > 0:
        rate = percent_br(totals.effective_tax_substitution_rate)
        rows.append({
            'label': f'Substituição Tributária ({rate})',
            'value': f"+{money_br(amounts['taxSubstitutionTotal'])}",
        })
    if amounts['deliveryFee'] > 0:
        rows.append({'label': 'Taxa de Entrega', 'value': money_br(amounts['deliveryFee'])})
    rows.append({'label': 'Total', 'value': money_br(amounts['total'])})
    return rows
