import logging

from .errors import DepositFlowError, ErrorKind, FlowError, FlowStep, classify_error
from .types import BridgeSDK, FeePriority, PreparedTransaction, WalletProvider

logger = logging.getLogger(__name__)


class TransactionPreparer:
    def __init__(self, *, sdk: BridgeSDK):
        self._sdk = sdk

    def prepare_transaction(
        self,
        amount_sat: int,
        user_address: str,
        btc_address: str,
        fee_priority: FeePriority,
        wallet_provider: WalletProvider,
    ) -> PreparedTransaction:
        """
        Ask the bridge backend to select UTXOs, compute the fee and build an unsigned
        transaction for `amount_sat` satoshis.

        The amount must already be in satoshis (see units.btc_to_satoshis), computed from
        the same BTC amount the deposit was registered with. It is never re-parsed here.
        """
        if isinstance(amount_sat, bool) or not isinstance(amount_sat, int):
            raise TypeError(f"amount_sat must be an int number of satoshis, got {type(amount_sat)}")
        if amount_sat <= 0:
            raise ValueError(f"amount_sat must be positive, got {amount_sat}")

        logger.info(
            "Preparing transaction of %s sats from %s (fee priority %s, wallet %s)",
            amount_sat,
            btc_address,
            fee_priority.value,
            wallet_provider.value,
        )
        try:
            prepared = self._sdk.prepare_transaction(
                amount=str(amount_sat),
                user_address=user_address,
                btc_address=btc_address,
                fee_priority=fee_priority.value,
                wallet_provider=wallet_provider.value,
            )
        except Exception as e:
            error = classify_error(e, step=FlowStep.PREPARE_TRANSACTION)
            if error.is_inscription_error:
                logger.warning("Transaction preparation failed, UTXOs are locked by inscriptions: %s", e)
            else:
                logger.warning("Error preparing transaction: %s", e)
            raise DepositFlowError(error) from e

        if not prepared:
            raise DepositFlowError(
                FlowError(
                    step=FlowStep.PREPARE_TRANSACTION,
                    kind=ErrorKind.UNKNOWN,
                    message="Failed to prepare transaction",
                    details=prepared,
                )
            )

        logger.info(
            "Transaction prepared: fee %s sats at %s sat/vB",
            prepared.get("fee"),
            prepared.get("feeRate"),
        )
        return prepared
