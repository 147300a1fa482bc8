"""Number parsing utilities for Brazilian formats."""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

BR_DECIMAL_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}$")
BR_NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")

CENT = Decimal('0.01')
UNIT_PRECISION = Decimal('0.0001')


def parse_br_decimal(value: str) -> Decimal:
    """
    Parse a monetary string in Brazilian format (e.g., 1.234,56) to Decimal.

    Rules:
    - Thousands separator: dot (.)
    - Decimal separator: comma (,)
    - Exactly 2 decimal digits
    - No negatives

    Raises:
        ValueError: if the value is invalid or empty.
    """
    if value is None:
        raise ValueError('Formato inválido. Use 1.234,56')

    cleaned = value.strip()
    if not cleaned or not BR_DECIMAL_PATTERN.match(cleaned):
        raise ValueError('Formato inválido. Use 1.234,56')

    normalized = cleaned.replace('.', '').replace(',', '.')
    try:
        decimal_value = Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError('Formato inválido. Use 1.234,56')

    return decimal_value.quantize(Decimal('0.01'))


def parse_br_number(value: str) -> Decimal:
    """
    Parse a number string in Brazilian format (e.g., 1.234,5 or 7,8) to Decimal.

    More flexible than parse_br_decimal - allows variable decimal places and
    falls back to plain notation ("7.8") when the value isn't BR-grouped.

    Raises:
        ValueError: if the value is invalid or empty.
    """
    if value is None:
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    cleaned = value.strip()
    if not cleaned:
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    if BR_NUMBER_PATTERN.match(cleaned):
        normalized = cleaned.replace('.', '').replace(',', '.')
    else:
        normalized = cleaned.replace(',', '.')

    try:
        decimal_value = Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    if not decimal_value.is_finite():
        raise ValueError('Formato inválido. Use 1.234,56 ou 1.234')

    return decimal_value


def to_decimal(value, default=None) -> Decimal:
    """
    Coerce numbers and numeric strings (plain or BR formatted) to Decimal.

    Signed strings are accepted ("-10" -> Decimal('-10')) so that callers can
    clamp out-of-range percentages instead of rejecting them. None and blank
    strings return ``default``.

    Raises:
        ValueError: if the value is not numeric.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default

    if isinstance(value, bool):
        raise ValueError(f'Valor numérico inválido: {value!r}')

    if isinstance(value, (int, float, Decimal)):
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
        if not decimal_value.is_finite():
            raise ValueError(f'Valor numérico inválido: {value!r}')
        return decimal_value

    if isinstance(value, str):
        cleaned = value.strip()
        negative = cleaned.startswith('-')
        parsed = parse_br_number(cleaned.lstrip('-+'))
        return -parsed if negative else parsed

    raise ValueError(f'Valor numérico inválido: {value!r}')


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents (half up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_unit(value: Decimal) -> Decimal:
    """Round a per-unit amount to four decimals (half up)."""
    return Decimal(value).quantize(UNIT_PRECISION, rounding=ROUND_HALF_UP)


def json_decimal(value, default=None) -> Decimal:
    """
    Coerce a JSON request value to Decimal.

    JSON clients send plain dot notation ("12.500" is 12.5), so strings only
    go through the Brazilian parser when they carry a decimal comma.

    Raises:
        ValueError: if the value is not numeric.
    """
    if isinstance(value, str) and value.strip() and ',' not in value:
        try:
            decimal_value = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f'Valor numérico inválido: {value!r}')
        if not decimal_value.is_finite():
            raise ValueError(f'Valor numérico inválido: {value!r}')
        return decimal_value
    return to_decimal(value, default)
