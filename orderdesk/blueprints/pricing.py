"""Pricing blueprint - JSON endpoints around the pricing engine."""
from flask import Blueprint, request, current_app, jsonify
from orderdesk.database import get_session
from orderdesk.exceptions import ValidationError
from orderdesk.services.cart_service import check_order_ready
from orderdesk.services.half_invoice_service import split_price, split_quantity
from orderdesk.services.order_snapshot import HalfInvoiceMode
from orderdesk.services.order_totals_service import recompute
from orderdesk.services.snapshot_service import (
    build_snapshot, load_pricing_configuration, parse_customer
)
from orderdesk.utils.number_format import json_decimal, quantize_unit

pricing_bp = Blueprint('pricing', __name__, url_prefix='/pricing')


def _json_body():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('Corpo JSON inválido ou ausente')
    return payload


@pricing_bp.route('/options', methods=['GET'])
def list_options():
    """Discount option catalog and order-level settings in force."""
    db_session = get_session()
    settings, catalog = load_pricing_configuration(db_session, current_app.config)

    return jsonify({
        'options': catalog.to_list(),
        'deliveryFees': settings.delivery_fees,
        'ipiRate': settings.ipi_rate,
        'halfInvoiceDefaultPercentage': settings.half_invoice_default_percentage,
    })


@pricing_bp.route('/recompute', methods=['POST'])
def recompute_order():
    """Price an order: input snapshot in, output snapshot out."""
    db_session = get_session()
    snapshot = build_snapshot(_json_body(), db_session, current_app.config)

    totals = recompute(snapshot)
    current_app.logger.info(
        f"[pricing] recompute lines={len(snapshot.lines)} total={totals.rounded()['total']}"
    )
    return jsonify(totals.to_dict())


@pricing_bp.route('/half-invoice/split', methods=['POST'])
def split_half_invoice():
    """Split one line for the printed half invoice."""
    payload = _json_body()
    settings, _ = load_pricing_configuration(get_session(), current_app.config)

    try:
        percentage = json_decimal(payload.get('percentage'), settings.half_invoice_default_percentage)
        mode = HalfInvoiceMode(str(payload.get('mode') or HalfInvoiceMode.QUANTITY.value).lower())
    except ValueError:
        raise ValidationError('percentage ou mode inválido')

    if mode == HalfInvoiceMode.PRICE:
        try:
            final_unit_price = json_decimal(payload.get('finalUnitPrice'))
        except ValueError:
            final_unit_price = None
        if final_unit_price is None or final_unit_price < 0:
            raise ValidationError('finalUnitPrice inválido', payload={'field': 'finalUnitPrice'})
        split = split_price(final_unit_price, percentage)
        return jsonify({
            'mode': mode.value,
            'unitPrice': quantize_unit(split.unit_price),
            'priceWithInvoice': quantize_unit(split.with_invoice),
            'priceWithoutInvoice': quantize_unit(split.without_invoice),
        })

    # quantity * units per volume, may be fractional
    try:
        total_units = json_decimal(payload.get('totalUnits'))
    except ValueError:
        total_units = None
    if total_units is None or total_units < 0:
        raise ValidationError('totalUnits inválido', payload={'field': 'totalUnits'})
    split = split_quantity(total_units, percentage)
    return jsonify({
        'mode': mode.value,
        'totalUnits': total_units,
        'qtyWithInvoice': split.with_invoice,
        'qtyWithoutInvoice': split.without_invoice,
        'roundingGap': split.rounding_gap,
    })


@pricing_bp.route('/validate', methods=['POST'])
def validate_order():
    """Check that an order has everything it needs before it is sent."""
    payload = _json_body()
    db_session = get_session()

    snapshot = build_snapshot(payload, db_session, current_app.config)
    check_order_ready(snapshot, parse_customer(payload))

    return jsonify({'status': 'ok'})
