"""
The deposit flow: validate -> register -> prepare -> execute.

Each step runs once. The first failure ends the flow and is reported together with the
step it happened in, so the caller knows where it can resume:

* validation, create_deposit: nothing usable exists yet, start over
* prepare_transaction, execute_transaction: the deposit is registered, resume with the
  same registration (see DepositFlow.resume_deposit_flow). Registering again would create
  a duplicate deposit on the bridge backend, and resuming with a different amount is
  refused before anything is sent.

The flow never retries by itself.
"""
import dataclasses
import logging
from typing import Any

from .errors import DepositFlowError, DepositValidationError, FlowError, FlowStep, classify_error
from .executor import TransactionExecutor
from .notifications import DepositNotifier
from .preparer import TransactionPreparer
from .registrar import DepositRegistrar
from .types import (
    BridgeSDK,
    DepositIntent,
    DepositRegistration,
    DepositStatus,
    ExecutionResult,
    PreparedTransaction,
)
from .units import btc_to_satoshis, format_btc
from .validation import validate_addresses, validate_amount

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class DepositFlowResult:
    success: bool
    deposit_id: str | None = None
    registration: DepositRegistration | None = None
    prepared_data: PreparedTransaction | None = None
    execution_result: ExecutionResult | None = None
    error: FlowError | None = None

    @property
    def step(self) -> FlowStep | None:
        return self.error.step if self.error else None

    @property
    def txid(self) -> str | None:
        if not self.execution_result:
            return None
        return self.execution_result.get("txid")

    @property
    def is_resumable(self) -> bool:
        return self.error is not None and self.deposit_id is not None and self.error.step.is_resumable

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "depositId": self.deposit_id,
                "preparedData": self.prepared_data,
                "executionResult": self.execution_result,
            }
        ret = {
            "success": False,
            "step": self.error.step.value,
            "error": self.error.message,
            "kind": self.error.kind.value,
            "details": self.error.details,
            "isInscriptionError": self.error.is_inscription_error,
        }
        if self.error.help:
            ret["inscriptionHelp"] = self.error.help
        if self.deposit_id is not None:
            ret["depositId"] = self.deposit_id
        if self.prepared_data is not None:
            ret["preparedData"] = self.prepared_data
        return ret


@dataclasses.dataclass
class _FlowState:
    registration: DepositRegistration | None = None
    prepared_data: PreparedTransaction | None = None
    execution_result: ExecutionResult | None = None

    @property
    def deposit_id(self) -> str | None:
        return self.registration.deposit_id if self.registration else None

    def done(self) -> DepositFlowResult:
        return DepositFlowResult(
            success=True,
            deposit_id=self.deposit_id,
            registration=self.registration,
            prepared_data=self.prepared_data,
            execution_result=self.execution_result,
        )

    def failed(self, error: FlowError) -> DepositFlowResult:
        return DepositFlowResult(
            success=False,
            deposit_id=self.deposit_id,
            registration=self.registration,
            prepared_data=self.prepared_data,
            error=error,
        )


class DepositFlow:
    def __init__(
        self,
        *,
        sdk: BridgeSDK,
        notifier: DepositNotifier | None = None,
    ):
        self._sdk = sdk
        self.registrar = DepositRegistrar(sdk=sdk)
        self.preparer = TransactionPreparer(sdk=sdk)
        self.executor = TransactionExecutor(sdk=sdk)
        if notifier is None:
            self._notifier = DepositNotifier()
        else:
            self._notifier = notifier


    def complete_deposit_flow(self, intent: DepositIntent) -> DepositFlowResult:
        return self._run(intent, state=_FlowState())

    def resume_deposit_flow(self, intent: DepositIntent, registration: DepositRegistration) -> DepositFlowResult:
        """
        Continue a flow that failed at prepare_transaction or execute_transaction,
        reusing the earlier registration instead of registering again.

        `intent` must carry the BTC amount `registration` was made with, otherwise the flow
        fails at validation before calling the bridge backend.
        """
        if not registration.deposit_id:
            raise ValueError("deposit_id is required to resume a deposit flow")
        return self._run(intent, state=_FlowState(registration=registration))

    def cancel_deposit(self, deposit_id: str) -> None:
        logger.info("Canceling deposit %s", deposit_id)
        self._sdk.update_deposit_status(deposit_id, status=DepositStatus.CANCELED.value)

    def _run(self, intent: DepositIntent, *, state: _FlowState) -> DepositFlowResult:
        try:
            if state.registration is None:
                logger.info(
                    "Starting deposit flow: %s BTC from %s to %s (wallet %s, fee priority %s)",
                    intent.btc_amount,
                    intent.btc_sender,
                    intent.stx_receiver,
                    intent.wallet_provider.value,
                    intent.fee_priority.value,
                )
            else:
                logger.info("Resuming deposit flow for deposit %s", state.deposit_id)

            validate_addresses(intent.stx_receiver, intent.btc_sender)
            validate_amount(intent.btc_amount)

            if state.registration is None:
                state.registration = self.registrar.create_deposit(intent)
            else:
                _check_registered_amount(state.registration, intent)

            # Same btc_amount as the registration, converted exactly once
            amount_sat = btc_to_satoshis(intent.btc_amount)
            state.prepared_data = self.preparer.prepare_transaction(
                amount_sat,
                intent.stx_receiver,
                intent.btc_sender,
                intent.fee_priority,
                intent.wallet_provider,
            )

            state.execution_result = self.executor.execute_transaction(
                state.deposit_id,
                state.prepared_data,
                intent.wallet_provider,
                intent.btc_sender,
            )
        except DepositFlowError as e:
            logger.warning("Deposit flow failed at step %s: %s", e.error.step.value, e.error.message)
            self._notify_failed(intent, state, e.error)
            return state.failed(e.error)
        except Exception as e:
            logger.exception("Unexpected error in deposit flow")
            error = classify_error(e, step=FlowStep.COMPLETE_FLOW)
            self._notify_failed(intent, state, error)
            return state.failed(error)

        # The transaction is already out, nothing below may fail the flow
        self._mark_broadcast(state.deposit_id, state.execution_result["txid"])
        try:
            self._notifier.deposit_broadcast(
                intent=intent,
                deposit_id=state.deposit_id,
                execution_result=state.execution_result,
            )
        except Exception:
            logger.exception("Failed to send broadcast notification of deposit %s, ignored", state.deposit_id)
        logger.info("Deposit flow for deposit %s finished successfully", state.deposit_id)
        return state.done()

    def _notify_failed(self, intent: DepositIntent, state: _FlowState, error: FlowError) -> None:
        try:
            self._notifier.deposit_failed(intent=intent, deposit_id=state.deposit_id, error=error)
        except Exception:
            logger.exception("Failed to send failure notification of deposit %s, ignored", state.deposit_id)

    def _mark_broadcast(self, deposit_id: str, txid: str) -> None:
        try:
            self._sdk.update_deposit_status(
                deposit_id,
                status=DepositStatus.BROADCAST.value,
                btc_tx_id=txid,
            )
        except Exception:
            logger.exception(
                "Failed to update status of deposit %s to broadcast (tx %s), ignored",
                deposit_id,
                txid,
            )


def _check_registered_amount(registration: DepositRegistration, intent: DepositIntent) -> None:
    if btc_to_satoshis(registration.btc_amount) != btc_to_satoshis(intent.btc_amount):
        raise DepositValidationError(
            f"Amount {format_btc(intent.btc_amount)} BTC does not match the "
            f"{format_btc(registration.btc_amount)} BTC deposit {registration.deposit_id} was registered with"
        )
