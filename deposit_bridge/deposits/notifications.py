import logging

from ..common.messengers import Messenger, NullMessenger
from .errors import FlowError
from .types import DepositIntent, ExecutionResult
from .units import btc_to_satoshis, format_satoshis

logger = logging.getLogger(__name__)


class DepositNotifier:
    def __init__(self, messenger: Messenger | None = None):
        if messenger is None:
            self._messenger = NullMessenger()
        else:
            self._messenger = messenger

    def deposit_broadcast(self, *, intent: DepositIntent, deposit_id: str, execution_result: ExecutionResult):
        self._messenger.send_message(
            title="BTC deposit broadcast",
            message=(
                f"Deposit: `{deposit_id}`\n"
                f"Amount: {intent.btc_amount} BTC ({format_satoshis(btc_to_satoshis(intent.btc_amount))} sats)\n"
                f"From: `{intent.btc_sender}` ({intent.wallet_provider.value})\n"
                f"To: `{intent.stx_receiver}`\n"
                f"BTC tx: `{execution_result['txid']}`"
            ),
        )

    def deposit_failed(self, *, intent: DepositIntent, deposit_id: str | None, error: FlowError):
        # Validation errors are user input mistakes, nothing to report
        if deposit_id is None:
            return
        self._messenger.send_message(
            title=f"BTC deposit failed at {error.step.value}",
            message=(
                f"Deposit: `{deposit_id}`\n"
                f"From: `{intent.btc_sender}` ({intent.wallet_provider.value})\n"
                f"Error ({error.kind.value}): {error.message}"
            ),
            alert=not error.is_inscription_error,
        )
