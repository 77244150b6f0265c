import logging

from .errors import DepositFlowError, ErrorKind, FlowError, FlowStep, classify_error
from .types import BridgeSDK, ExecutionResult, PreparedTransaction, WalletProvider

logger = logging.getLogger(__name__)


class TransactionExecutor:
    def __init__(self, *, sdk: BridgeSDK):
        self._sdk = sdk

    def execute_transaction(
        self,
        deposit_id: str,
        prepared_data: PreparedTransaction,
        wallet_provider: WalletProvider,
        btc_address: str,
    ) -> ExecutionResult:
        """
        Sign the prepared transaction with the wallet provider and broadcast it.

        Either the transaction is broadcast (irreversible) and a result with its txid is
        returned, or DepositFlowError is raised and nothing was broadcast.
        """
        # Don't log the prepared data, it can be large
        logger.info(
            "Executing transaction for deposit %s from %s with %s",
            deposit_id,
            btc_address,
            wallet_provider.value,
        )
        try:
            result = self._sdk.execute_transaction(
                deposit_id=deposit_id,
                prepared_data=prepared_data,
                wallet_provider=wallet_provider.value,
                btc_address=btc_address,
            )
        except Exception as e:
            logger.warning("Error executing transaction for deposit %s: %s", deposit_id, e)
            raise DepositFlowError(classify_error(e, step=FlowStep.EXECUTE_TRANSACTION)) from e

        if not result or not result.get("txid"):
            raise DepositFlowError(
                FlowError(
                    step=FlowStep.EXECUTE_TRANSACTION,
                    kind=ErrorKind.UNKNOWN,
                    message="No transaction ID returned",
                    details=result,
                )
            )

        logger.info("Deposit %s broadcast in transaction %s", deposit_id, result["txid"])
        return result
