"""
Unit tests for the order totals aggregator.
"""

import pytest
from decimal import Decimal

from orderdesk.services.order_snapshot import HalfInvoiceMode, LineInput, PricingSettings, ShippingMode
from orderdesk.services.order_totals_service import delivery_fee_for, financial_summary, recompute

PICKUP = '1'
HALF_INVOICE = '2'
TAX_SUBSTITUTION = '3'
CASH = '4'


class TestRecompute:
    """Tests for order level aggregation."""

    def test_empty_order(self, make_snapshot):
        totals = recompute(make_snapshot([]))

        assert totals.subtotal == Decimal('0')
        assert totals.grand_total == Decimal('0')
        assert totals.total_items == 0
        assert totals.lines == ()

    def test_mixed_order(self, make_snapshot, scenario_line, tiles_info):
        lines = [scenario_line, LineInput(product=tiles_info, quantity=3)]
        snapshot = make_snapshot(
            lines, with_ipi=True,
            selected_option_ids={TAX_SUBSTITUTION}, delivery_region='capital',
        )
        totals = recompute(snapshot)

        assert totals.subtotal == Decimal('320')
        assert totals.total_discount == Decimal('20')
        assert totals.tax_substitution_total == Decimal('14.6016')
        assert totals.ipi_total == Decimal('48')
        assert totals.delivery_fee == Decimal('20')
        assert totals.grand_total == Decimal('382.6016')
        assert totals.total_items == 5
        assert totals.total_units == Decimal('9.5')
        assert totals.total_weight == Decimal('167.5')

        rounded = totals.rounded()
        assert rounded['taxSubstitutionTotal'] == Decimal('14.60')
        assert rounded['total'] == Decimal('382.60')

    @pytest.mark.parametrize('options', [
        {},
        {'selected_option_ids': {TAX_SUBSTITUTION}},
        {'selected_option_ids': {TAX_SUBSTITUTION, HALF_INVOICE}, 'half_invoice_percentage': Decimal('33')},
        {'with_ipi': True, 'delivery_region': 'interior'},
        {'apply_discounts': False, 'with_ipi': True, 'delivery_region': 'capital'},
        {'selected_option_ids': {PICKUP, CASH, TAX_SUBSTITUTION}, 'with_ipi': True},
    ])
    def test_grand_total_adds_up_to_the_cent(self, make_snapshot, scenario_line, tiles_info, options):
        lines = [scenario_line, LineInput(product=tiles_info, quantity=7, discount_percent=Decimal('12.35'))]
        totals = recompute(make_snapshot(lines, **options))

        assert totals.grand_total == (
            totals.subtotal - totals.total_discount + totals.tax_substitution_total
            + totals.ipi_total + totals.delivery_fee
        )
        data = totals.to_dict()
        assert data['total'] == (
            data['subtotal'] - data['totalDiscount'] + data['taxSubstitutionTotal']
            + data['ipiTotal'] + data['deliveryFee']
        )

    def test_line_subtotals_reconcile_with_grand_total(self, make_snapshot, scenario_line, cement_info):
        """With one unit per volume the lines add up to the order total minus delivery."""
        lines = [scenario_line, LineInput(product=cement_info, quantity=5, discount_percent=Decimal('3'))]
        snapshot = make_snapshot(
            lines, with_ipi=True,
            selected_option_ids={TAX_SUBSTITUTION}, delivery_region='interior',
        )
        totals = recompute(snapshot)

        assert sum(line.line_subtotal for line in totals.lines) + totals.delivery_fee == totals.grand_total

    def test_discount_measured_against_list_price(self, make_snapshot, scenario_line):
        """Option discounts never compound into the discount total."""
        snapshot = make_snapshot([scenario_line], selected_option_ids={PICKUP, CASH, TAX_SUBSTITUTION})
        totals = recompute(snapshot)

        assert totals.total_discount == Decimal('20')

    def test_apply_discounts_off(self, make_snapshot, scenario_line):
        snapshot = make_snapshot(
            [scenario_line], apply_discounts=False,
            selected_option_ids={TAX_SUBSTITUTION, CASH}, delivery_region='capital',
        )
        totals = recompute(snapshot)

        assert totals.total_discount == Decimal('0')
        assert totals.tax_substitution_total == Decimal('0')
        assert totals.delivery_fee == Decimal('20')
        assert totals.grand_total == Decimal('220')
        # the selection is still recorded
        assert [option.id for option in totals.applied_discounts] == [TAX_SUBSTITUTION, CASH]

    def test_unknown_option_id_has_no_effect(self, make_snapshot, scenario_line):
        baseline = recompute(make_snapshot([scenario_line]))
        totals = recompute(make_snapshot([scenario_line], selected_option_ids={'99'}))

        assert totals.grand_total == baseline.grand_total
        assert totals.applied_discounts == ()

    def test_half_invoice_totals(self, make_snapshot, scenario_line):
        snapshot = make_snapshot(
            [scenario_line],
            selected_option_ids={TAX_SUBSTITUTION, HALF_INVOICE},
            half_invoice_percentage=Decimal('50'),
            half_invoice_mode=HalfInvoiceMode.QUANTITY,
        )
        totals = recompute(snapshot)

        assert totals.full_invoice is False
        assert totals.invoice_type == 'Meia Nota (50%)'
        assert totals.effective_tax_substitution_rate == Decimal('3.9')
        assert totals.half_invoice.total_with_invoice == Decimal('92.7378')
        assert totals.half_invoice.total_without_invoice == Decimal('90')
        # the split never changes the order total
        assert totals.grand_total == Decimal('182.7378')

    def test_full_invoice(self, make_snapshot, scenario_line):
        totals = recompute(make_snapshot([scenario_line]))

        assert totals.full_invoice is True
        assert totals.invoice_type == 'Nota Cheia'
        assert 'halfInvoice' not in totals.to_dict()


class TestDeliveryFee:
    """Order level delivery fee lookup."""

    @pytest.mark.parametrize('region,expected', [
        ('capital', Decimal('20')),
        ('interior', Decimal('35')),
        ('norte', Decimal('0')),
        (None, Decimal('0')),
    ])
    def test_fee_by_region(self, make_snapshot, region, expected):
        assert delivery_fee_for(make_snapshot([], delivery_region=region)) == expected

    def test_pickup_option_waives_fee(self, make_snapshot):
        snapshot = make_snapshot([], selected_option_ids={PICKUP}, delivery_region='interior')
        assert delivery_fee_for(snapshot) == Decimal('0')

    def test_pickup_shipping_mode_waives_fee(self, make_snapshot):
        snapshot = make_snapshot([], shipping_mode=ShippingMode.PICKUP, delivery_region='capital')
        assert delivery_fee_for(snapshot) == Decimal('0')

    def test_custom_fee_table(self, make_snapshot):
        settings = PricingSettings(delivery_fees={'capital': Decimal('12.5')})
        snapshot = make_snapshot([], settings=settings, delivery_region='capital')
        assert delivery_fee_for(snapshot) == Decimal('12.5')

    def test_fee_added_once_per_order(self, make_snapshot, scenario_line, cement_info):
        lines = [scenario_line, LineInput(product=cement_info, quantity=1)]
        totals = recompute(make_snapshot(lines, delivery_region='interior'))

        assert totals.delivery_fee == Decimal('35')


class TestFinancialSummary:
    """Printed summary rows."""

    def test_rows(self, make_snapshot, scenario_line):
        snapshot = make_snapshot(
            [scenario_line], selected_option_ids={TAX_SUBSTITUTION}, delivery_region='capital',
        )
        rows = financial_summary(recompute(snapshot))

        assert rows == [
            {'label': 'Subtotal', 'value': 'R$ 200,00'},
            {'label': 'Descontos', 'value': '-R$ 20,00'},
            {'label': 'Substituição Tributária (7,80%)', 'value': '+R$ 5,48'},
            {'label': 'Taxa de Entrega', 'value': 'R$ 20,00'},
            {'label': 'Total', 'value': 'R$ 205,48'},
        ]

    def test_ipi_row(self, make_snapshot, scenario_line):
        rows = financial_summary(recompute(make_snapshot([scenario_line], with_ipi=True)))

        assert {'label': 'IPI', 'value': '+R$ 18,00'} in rows
        assert rows[-1] == {'label': 'Total', 'value': 'R$ 198,00'}
