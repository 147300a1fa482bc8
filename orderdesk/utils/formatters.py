"""
Utilitários de formatação para pedidos impressos.
Formatos de números, moeda e percentuais no padrão brasileiro.
"""
from decimal import Decimal, InvalidOperation
from typing import Union, Optional


def _group_thousands(integer_part: str) -> str:
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    return '.'.join(groups)[::-1]


def num_br(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Formata um número no padrão brasileiro:
    - Separador de milhar: ponto (.)
    - Separador decimal: vírgula (,)
    - Sem casas decimais quando não são significativas

    Examples:
        num_br(1500) -> "1.500"
        num_br(1500.5) -> "1.500,5"
        num_br(7.8) -> "7,8"
        num_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        if isinstance(value, str):
            value = value.replace(",", ".")
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    num_str = f"{num:f}"

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part = num_str
        decimal_part = ""

    if integer_part.startswith('-'):
        sign_str = '-'
        integer_part = integer_part[1:]
    else:
        sign_str = ''

    integer_formatted = _group_thousands(integer_part)

    if decimal_part:
        return f"{sign_str}{integer_formatted},{decimal_part}"
    return f"{sign_str}{integer_formatted}"


def money_br(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formata um valor monetário em reais com exatamente 2 casas decimais.

    Valores negativos são exibidos como zero, como no pedido impresso.

    Examples:
        money_br(1500) -> "R$ 1.500,00"
        money_br(185.4756) -> "R$ 185,48"
        money_br(-3) -> "R$ 0,00"
    """
    if value is None or value == "":
        return "-"

    try:
        normalized = str(value).replace(",", ".")
        num = Decimal(normalized).quantize(Decimal('0.01'))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    num = max(num, Decimal('0.00'))
    integer_part, decimal_part = f"{num:.2f}".split(".")

    return f"R$ {_group_thousands(integer_part)},{decimal_part}"


def percent_br(value: Union[int, float, Decimal, str, None], decimals: int = 2) -> str:
    """
    Formata um percentual com casas fixas.

    Examples:
        percent_br(7.8) -> "7,80%"
        percent_br(3.9, decimals=1) -> "3,9%"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value).replace(",", ".")).quantize(Decimal(10) ** -decimals)
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    integer_part, _, decimal_part = f"{num:f}".partition(".")
    sign_str = ''
    if integer_part.startswith('-'):
        sign_str = '-'
        integer_part = integer_part[1:]

    formatted = f"{sign_str}{_group_thousands(integer_part)}"
    if decimal_part:
        formatted = f"{formatted},{decimal_part}"
    return f"{formatted}%"
