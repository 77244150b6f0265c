import decimal
from typing import Union

SATOSHIS_PER_BTC = 100_000_000

BtcAmount = Union[int, decimal.Decimal, str]


def btc_to_satoshis(btc: BtcAmount) -> int:
    """
    Convert a BTC amount to satoshis, always rounding down.

    Rounding down means we never spend satoshis that were not explicitly specified.
    Floats are rejected, pass a Decimal or a decimal string instead.
    """
    if isinstance(btc, bool) or not isinstance(btc, (int, decimal.Decimal, str)):
        raise TypeError(f"Invalid type: {type(btc)}")
    with decimal.localcontext() as ctx:
        ctx.prec = 999
        decimal_value = decimal.Decimal(btc) * SATOSHIS_PER_BTC
        if not decimal_value.is_finite():
            raise ValueError(f"Not a finite amount: {btc}")
        return int(decimal_value.to_integral_value(rounding=decimal.ROUND_FLOOR))


def satoshis_to_btc(satoshis: int) -> decimal.Decimal:
    if isinstance(satoshis, bool) or not isinstance(satoshis, int):
        raise TypeError(f"Invalid type: {type(satoshis)}")
    with decimal.localcontext() as ctx:
        ctx.prec = 999
        return decimal.Decimal(satoshis) / SATOSHIS_PER_BTC


def format_btc(btc: BtcAmount) -> str:
    return f"{decimal.Decimal(btc):.8f}"


def format_satoshis(satoshis: int) -> str:
    return f"{satoshis:,}"
