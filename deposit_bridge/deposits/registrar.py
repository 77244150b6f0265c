import logging

from .errors import DepositFlowError, ErrorKind, FlowError, FlowStep, classify_error
from .types import BridgeSDK, DepositIntent, DepositRegistration

logger = logging.getLogger(__name__)


class DepositRegistrar:
    """
    Registers deposit intents with the bridge backend.

    Registration is a one-time side effect: calling it twice for the same user action
    creates two tracked deposits on the backend.
    """

    def __init__(self, *, sdk: BridgeSDK):
        self._sdk = sdk

    def create_deposit(self, intent: DepositIntent) -> DepositRegistration:
        logger.info(
            "Creating deposit of %s BTC from %s to %s",
            intent.btc_amount,
            intent.btc_sender,
            intent.stx_receiver,
        )
        try:
            # The backend expects BTC here, not satoshis
            deposit_id = self._sdk.create_deposit(
                btc_amount=intent.btc_amount,
                stx_receiver=intent.stx_receiver,
                btc_sender=intent.btc_sender,
            )
        except Exception as e:
            logger.warning("Error creating deposit: %s", e)
            raise DepositFlowError(classify_error(e, step=FlowStep.CREATE_DEPOSIT)) from e

        if not deposit_id:
            logger.warning("Bridge backend returned no deposit id: %r", deposit_id)
            raise DepositFlowError(
                FlowError(
                    step=FlowStep.CREATE_DEPOSIT,
                    kind=ErrorKind.UNKNOWN,
                    message="Failed to get deposit ID",
                    details=deposit_id,
                )
            )

        logger.info("Deposit created with ID %s", deposit_id)
        return DepositRegistration(deposit_id=str(deposit_id), btc_amount=intent.btc_amount)
