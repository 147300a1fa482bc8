"""
Unit tests for the item pricing service.
"""

import pytest
from decimal import Decimal

from orderdesk.services.item_pricing_service import clamp_percent, price_line, resolve_adjustments
from orderdesk.services.order_snapshot import LineInput, PricingSettings, ProductInfo

TAX_SUBSTITUTION = '3'
HALF_INVOICE = '2'
PICKUP = '1'
CASH = '4'


def _price(snapshot, index=0):
    return price_line(snapshot.lines[index], resolve_adjustments(snapshot))


class TestClampPercent:
    """Tests for percentage clamping."""

    @pytest.mark.parametrize('value,expected', [
        (Decimal('-5'), Decimal('0')),
        (Decimal('0'), Decimal('0')),
        (Decimal('12.5'), Decimal('12.5')),
        (Decimal('100'), Decimal('100')),
        (Decimal('150'), Decimal('100')),
        (None, Decimal('0')),
    ])
    def test_clamp(self, value, expected):
        assert clamp_percent(value) == expected


class TestPriceLine:
    """Tests for single line pricing."""

    def test_discount_only(self, make_snapshot, scenario_line):
        """List 100, 10% off, 2 units, no options."""
        priced = _price(make_snapshot([scenario_line]))

        assert priced.final_unit_price == Decimal('90')
        assert priced.per_unit_tax_substitution == Decimal('0')
        assert priced.per_unit_ipi == Decimal('0')
        assert priced.line_subtotal == Decimal('180')
        assert priced.tax_substitution_value == Decimal('0')

    def test_tax_substitution(self, make_snapshot, scenario_line):
        """MVA 39% and rate 7.8% on a final price of 90."""
        snapshot = make_snapshot([scenario_line], selected_option_ids={TAX_SUBSTITUTION})
        priced = _price(snapshot)

        assert priced.per_unit_tax_substitution == Decimal('2.7378')
        assert priced.line_subtotal == Decimal('185.4756')

    def test_tax_substitution_under_half_invoice(self, make_snapshot, scenario_line):
        """Half invoice at 50% halves the tax substitution per unit."""
        snapshot = make_snapshot(
            [scenario_line],
            selected_option_ids={TAX_SUBSTITUTION, HALF_INVOICE},
            half_invoice_percentage=Decimal('50'),
        )
        priced = _price(snapshot)

        assert priced.per_unit_tax_substitution == Decimal('1.3689')
        assert priced.line_subtotal == Decimal('182.7378')

    def test_half_invoice_alone_does_not_change_price(self, make_snapshot, scenario_line):
        snapshot = make_snapshot([scenario_line], selected_option_ids={HALF_INVOICE})
        priced = _price(snapshot)

        assert priced.final_unit_price == Decimal('90')
        assert priced.line_subtotal == Decimal('180')

    def test_default_mva_when_product_has_none(self, make_snapshot, tiles_info):
        """Products without MVA use the default of 39%."""
        line = LineInput(product=tiles_info, quantity=1)
        priced = _price(make_snapshot([line], selected_option_ids={TAX_SUBSTITUTION}))

        # 40 * 0.39 * 0.078
        assert priced.per_unit_tax_substitution == Decimal('1.2168')

    def test_units_per_volume(self, make_snapshot, tiles_info):
        """Fractional units per volume multiply into total units without rounding."""
        line = LineInput(product=tiles_info, quantity=3)
        priced = _price(make_snapshot([line]))

        assert priced.total_units == Decimal('7.5')
        assert priced.line_subtotal == Decimal('300')

    def test_discount_above_100_is_clamped(self, make_snapshot, cement_info):
        line = LineInput(product=cement_info, quantity=1, discount_percent=Decimal('130'))
        priced = _price(make_snapshot([line]))

        assert priced.discount_percent == Decimal('100')
        assert priced.final_unit_price == Decimal('0')

    def test_negative_discount_is_clamped(self, make_snapshot, cement_info):
        line = LineInput(product=cement_info, quantity=1, discount_percent=Decimal('-20'))
        priced = _price(make_snapshot([line]))

        assert priced.discount_percent == Decimal('0')
        assert priced.final_unit_price == Decimal('100')

    @pytest.mark.parametrize('discount', ['0', '0.01', '33.33', '50', '99.99', '100'])
    def test_final_price_between_zero_and_list_price(self, make_snapshot, cement_info, discount):
        line = LineInput(product=cement_info, quantity=1, discount_percent=Decimal(discount))
        priced = _price(make_snapshot([line]))

        assert Decimal('0') <= priced.final_unit_price <= cement_info.list_price

    def test_ipi(self, make_snapshot, scenario_line):
        """IPI at 10% of the final price when enabled."""
        priced = _price(make_snapshot([scenario_line], with_ipi=True))

        assert priced.per_unit_ipi == Decimal('9')
        assert priced.line_subtotal == Decimal('198')

    def test_ipi_not_scaled_by_half_invoice_by_default(self, make_snapshot, scenario_line):
        snapshot = make_snapshot(
            [scenario_line], with_ipi=True,
            selected_option_ids={HALF_INVOICE}, half_invoice_percentage=Decimal('50'),
        )
        assert _price(snapshot).per_unit_ipi == Decimal('9')

    def test_ipi_scaled_by_half_invoice_when_configured(self, make_snapshot, scenario_line):
        settings = PricingSettings(ipi_scaled_by_half_invoice=True)
        snapshot = make_snapshot(
            [scenario_line], settings=settings, with_ipi=True,
            selected_option_ids={HALF_INVOICE}, half_invoice_percentage=Decimal('50'),
        )
        assert _price(snapshot).per_unit_ipi == Decimal('4.5')

    def test_apply_discounts_off_ignores_discounts_and_adjustments(self, make_snapshot, scenario_line):
        """With discounts switched off the line is sold at list price with no taxes."""
        snapshot = make_snapshot(
            [scenario_line], apply_discounts=False, with_ipi=True,
            selected_option_ids={TAX_SUBSTITUTION, PICKUP},
        )
        priced = _price(snapshot)

        assert priced.final_unit_price == Decimal('100')
        assert priced.per_unit_tax_substitution == Decimal('0')
        assert priced.per_unit_ipi == Decimal('0')
        assert priced.discount_percent == Decimal('10')
        assert priced.effective_discount_percent == Decimal('0')
        assert priced.line_subtotal == Decimal('200')

    def test_total_discount_percentage_includes_commercial_options(self, make_snapshot, scenario_line):
        """Line 10% plus pickup 5% plus cash 3%; tax substitution does not count."""
        snapshot = make_snapshot([scenario_line], selected_option_ids={PICKUP, CASH, TAX_SUBSTITUTION})
        priced = _price(snapshot)

        assert priced.total_discount_percentage == Decimal('18')
        # informational only, the price still follows the line discount
        assert priced.final_unit_price == Decimal('90')

    def test_logistics_totals(self, make_snapshot, cement_info):
        line = LineInput(product=cement_info, quantity=4)
        priced = _price(make_snapshot([line]))

        assert priced.total_weight == Decimal('200')
        assert priced.total_cubic_volume == Decimal('0.16')

    def test_negative_list_price_is_treated_as_zero(self, make_snapshot):
        product = ProductInfo(product_id='9', name='Brinde', list_price=Decimal('-1'))
        priced = _price(make_snapshot([LineInput(product=product, quantity=1)]))

        assert priced.final_unit_price == Decimal('0')

    def test_to_dict_rounds_money_and_keeps_unit_precision(self, make_snapshot, scenario_line):
        snapshot = make_snapshot([scenario_line], selected_option_ids={TAX_SUBSTITUTION})
        data = _price(snapshot).to_dict()

        assert data['productId'] == '1'
        assert data['quantity'] == 2
        assert data['finalUnitPrice'] == Decimal('90.0000')
        assert data['taxSubstitutionValue'] == Decimal('2.7378')
        assert data['subtotal'] == Decimal('185.48')
        assert data['totalWithTaxes'] == data['subtotal']
