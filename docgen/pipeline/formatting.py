from __future__ import annotations

from decimal import Decimal

from ..models import Options
from ..money import Numeric, quantize, to_decimal


def _group_thousands(digits: str, separator: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return separator.join(groups)


def format_number(value: Numeric, precision: int, thousand: str = "", decimal: str = ".") -> str:
    rounded = quantize(value, precision)
    sign = "-" if rounded < 0 else ""
    text = f"{abs(rounded):f}"
    if "." in text:
        whole, frac = text.split(".", 1)
    else:
        whole, frac = text, ""
    out = sign + _group_thousands(whole, thousand)
    if precision > 0:
        out += decimal + frac
    return out


def format_money(value: Numeric, options: Options) -> str:
    number = format_number(
        value,
        options.currency_precision,
        thousand=options.currency_thousand,
        decimal=options.currency_decimal,
    )
    if number.startswith("-"):
        return "-" + options.currency_symbol + number[1:]
    return options.currency_symbol + number


def format_quantity(value: Numeric) -> str:
    """Quantity without trailing zeros ("2", "1.5")."""
    d = to_decimal(value)
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")
