"""USD notional <-> token base-unit conversion.

All arithmetic is Decimal/int so 18-decimal amounts never pass through a
binary float or a scientific-notation string.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Iterable, List, Union

from .constants import MICRO_UNITS
from .errors import InvalidAmountError

Number = Union[Decimal, int, float, str]

# Enough digits for uint256 amounts at any decimal count
_WIDE_PRECISION = 100


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(f"Not a number: {value!r}") from exc


def token_amount(usd_amount: Number, unit_price: Number) -> Decimal:
    """Return ``usd_amount / unit_price`` or raise ``InvalidAmountError``."""
    usd = to_decimal(usd_amount)
    price = to_decimal(unit_price)
    if not usd.is_finite() or not price.is_finite() or price <= 0:
        raise InvalidAmountError(f"Cannot price {usd} USD at unit price {price}")

    with localcontext() as ctx:
        ctx.prec = _WIDE_PRECISION
        amount = usd / price
    if amount <= 0:
        raise InvalidAmountError(f"Token amount must be positive, got {amount}")
    return amount


def to_base_units(usd_amount: Number, unit_price: Number, decimals: int) -> str:
    """Convert a USD notional into an integer base-unit string.

    The token amount is floored to micro-token precision, scaled by
    ``10**decimals`` and divided back down, all in integers.
    """
    if decimals < 0:
        raise InvalidAmountError(f"Token decimals must be non-negative, got {decimals}")

    amount = token_amount(usd_amount, unit_price)
    with localcontext() as ctx:
        ctx.prec = _WIDE_PRECISION
        micro = int((amount * MICRO_UNITS).to_integral_value(rounding=ROUND_FLOOR))
    return str(micro * 10 ** decimals // MICRO_UNITS)


def format_token_amount(amount: Decimal, places: int = 6) -> str:
    return _quantize(amount, places)


def format_units(base_units: Union[int, str], decimals: int, places: int) -> str:
    """Render ``base_units / 10**decimals`` with a fixed number of decimal places."""
    with localcontext() as ctx:
        ctx.prec = _WIDE_PRECISION
        value = Decimal(int(base_units)).scaleb(-decimals)
    return _quantize(value, places)


def _quantize(value: Decimal, places: int) -> str:
    with localcontext() as ctx:
        ctx.prec = _WIDE_PRECISION
        quantum = Decimal(1).scaleb(-places)
        return str(value.quantize(quantum, rounding=ROUND_HALF_UP))


def _plain(value: Decimal) -> str:
    """Shortest plain rendering: 7 -> '7', 1.50 -> '1.5', never exponent form."""
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_amount_label(amount: Number) -> str:
    """Label a USD checkpoint: ``$7k`` for thousands, ``$500`` below that."""
    value = to_decimal(amount)
    if value >= 1000:
        with localcontext() as ctx:
            ctx.prec = _WIDE_PRECISION
            return f"${_plain(value / 1000)}k"
    return f"${_plain(value)}"


def merge_checkpoints(custom: Iterable[Number], baseline: Iterable[Number]) -> List[Decimal]:
    """Deduplicate and sort the baseline plus caller checkpoints ascending."""
    merged = {to_decimal(value).normalize() for value in (*baseline, *custom)}
    return sorted(merged)
