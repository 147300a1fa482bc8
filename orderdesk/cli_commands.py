"""
Flask CLI commands for pricing settings management.

Commands:
- flask seed-discount-settings: Create or update the discount settings row
"""

import click
from flask import current_app
from orderdesk.database import get_session
from orderdesk.models import DiscountSettings
from orderdesk.utils.formatters import money_br, percent_br
from orderdesk.utils.number_format import to_decimal

# discount_settings column -> config key
SETTINGS_FROM_CONFIG = {
    'pickup': 'PICKUP_DISCOUNT',
    'half_invoice': 'HALF_INVOICE_DEFAULT_PERCENTAGE',
    'tax_substitution': 'TAX_SUBSTITUTION_RATE',
    'cash_payment': 'CASH_PAYMENT_DISCOUNT',
    'delivery_fee_capital': 'DELIVERY_FEE_CAPITAL',
    'delivery_fee_interior': 'DELIVERY_FEE_INTERIOR',
    'ipi_rate': 'IPI_RATE',
}


def seed_discount_settings(db_session, config, overwrite=False):
    """
    Create the discount settings row from config, or fill its empty columns.

    With ``overwrite`` every column is reset to the config value.
    Returns the row and whether it was created.
    """
    settings = db_session.query(DiscountSettings).order_by(DiscountSettings.id).first()
    created = settings is None
    if created:
        settings = DiscountSettings()
        db_session.add(settings)

    for column, key in SETTINGS_FROM_CONFIG.items():
        if overwrite or getattr(settings, column) is None:
            setattr(settings, column, to_decimal(config.get(key)))

    db_session.commit()
    return settings, created


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('seed-discount-settings')
    @click.option('--overwrite', is_flag=True, help='Reset every column to the config value')
    def seed_discount_settings_command(overwrite):
        """Create or update the discount settings row from config."""
        db_session = get_session()

        try:
            settings, created = seed_discount_settings(db_session, current_app.config, overwrite=overwrite)
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Erro ao gravar configurações de desconto: {str(e)}', fg='red'))
            raise SystemExit(1)

        action = 'criadas' if created else 'atualizadas'
        click.echo(click.style(f'\n✅ Configurações de desconto {action}!', fg='green', bold=True))
        click.echo(f'   Retirada: {percent_br(settings.pickup)}')
        click.echo(f'   À vista: {percent_br(settings.cash_payment)}')
        click.echo(f'   Substituição Tributária: {percent_br(settings.tax_substitution)}')
        click.echo(f'   Meia Nota (padrão): {percent_br(settings.half_invoice)}')
        click.echo(f'   IPI: {percent_br(settings.ipi_rate)}')
        click.echo(f'   Entrega capital: {money_br(settings.delivery_fee_capital)}')
        click.echo(f'   Entrega interior: {money_br(settings.delivery_fee_interior)}')
