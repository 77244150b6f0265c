import decimal
from typing import Any

from .errors import DepositValidationError
from .types import DepositIntent
from .units import btc_to_satoshis, format_satoshis

MIN_BTC_AMOUNT = decimal.Decimal("0.0001")
MAX_BTC_AMOUNT = decimal.Decimal("0.002")

STX_ADDRESS_PREFIXES = ("SP",)
BTC_ADDRESS_PREFIXES = ("bc1", "1", "3")


def validate_addresses(stx_receiver: str, btc_sender: str) -> None:
    if not isinstance(stx_receiver, str) or not stx_receiver.startswith(STX_ADDRESS_PREFIXES):
        raise DepositValidationError("STX address must start with 'SP'")
    if not isinstance(btc_sender, str) or not btc_sender.startswith(BTC_ADDRESS_PREFIXES):
        raise DepositValidationError("BTC address must be a valid Bitcoin address")


def validate_amount(btc_amount: Any) -> None:
    if isinstance(btc_amount, bool) or not isinstance(btc_amount, (int, str, decimal.Decimal)):
        raise DepositValidationError("Invalid amount")
    try:
        amount = decimal.Decimal(btc_amount)
    except decimal.InvalidOperation:
        raise DepositValidationError("Invalid amount") from None
    if not amount.is_finite():
        raise DepositValidationError("Invalid amount")

    if amount < MIN_BTC_AMOUNT:
        raise DepositValidationError(
            f"Minimum amount is {MIN_BTC_AMOUNT} BTC "
            f"({format_satoshis(btc_to_satoshis(MIN_BTC_AMOUNT))} satoshis)"
        )
    if amount > MAX_BTC_AMOUNT:
        raise DepositValidationError(
            f"Maximum amount is {MAX_BTC_AMOUNT} BTC "
            f"({format_satoshis(btc_to_satoshis(MAX_BTC_AMOUNT))} satoshis)"
        )


def validate_intent(intent: DepositIntent) -> None:
    validate_addresses(intent.stx_receiver, intent.btc_sender)
    validate_amount(intent.btc_amount)
