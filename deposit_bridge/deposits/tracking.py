import logging

from anemic.ioc import Container, service
from sqlalchemy.orm import Session

from ..models import DepositAttempt, DepositAttemptStatus
from .errors import FlowStep
from .flow import DepositFlowResult
from .types import DepositIntent, DepositRegistration, FeePriority, WalletProvider
from .units import btc_to_satoshis

logger = logging.getLogger(__name__)


class DepositNotResumable(ValueError):
    pass


class DepositTracker:
    """
    Persists the outcome of deposit flows so that failed flows can be resumed later
    with the same deposit id and amount.

    Does not manage transactions, callers are expected to run it inside one.
    """

    def __init__(self, dbsession: Session):
        self.dbsession = dbsession

    def record_result(self, intent: DepositIntent, result: DepositFlowResult) -> DepositAttempt | None:
        if result.deposit_id is None:
            # Failed before registration, there is nothing to resume
            return None

        attempt = self.get_attempt(result.deposit_id)
        if attempt is None:
            attempt = DepositAttempt(
                deposit_id=result.deposit_id,
                btc_amount=intent.btc_amount,
                amount_sat=btc_to_satoshis(intent.btc_amount),
                stx_receiver=intent.stx_receiver,
                btc_sender=intent.btc_sender,
                fee_priority=intent.fee_priority.value,
                wallet_provider=intent.wallet_provider.value,
                num_attempts=1,
            )
            self.dbsession.add(attempt)
        else:
            if attempt.amount_sat != btc_to_satoshis(intent.btc_amount):
                raise ValueError(
                    f"Deposit {attempt.deposit_id} was registered for {attempt.amount_sat} sats, "
                    f"got {intent.btc_amount} BTC"
                )
            attempt.num_attempts += 1
            # Fee priority and wallet may change between attempts
            attempt.fee_priority = intent.fee_priority.value
            attempt.wallet_provider = intent.wallet_provider.value

        if result.success:
            attempt.status = DepositAttemptStatus.BROADCAST
            attempt.btc_tx_id = result.txid
            attempt.failed_step = None
            attempt.error_message = None
        else:
            attempt.status = DepositAttemptStatus.FAILED
            attempt.failed_step = result.error.step.value
            attempt.error_message = result.error.message

        self.dbsession.flush()
        logger.info("Recorded %s", attempt)
        return attempt

    def get_attempt(self, deposit_id: str) -> DepositAttempt | None:
        return self.dbsession.query(DepositAttempt).filter_by(deposit_id=deposit_id).one_or_none()

    def get_attempts_by_sender(self, btc_sender: str) -> list[DepositAttempt]:
        return (
            self.dbsession.query(DepositAttempt)
            .filter_by(btc_sender=btc_sender)
            .order_by(DepositAttempt.id.desc())
            .all()
        )

    def get_resumable_intent(self, deposit_id: str) -> DepositIntent:
        """
        Rebuild the intent of a failed deposit so that the flow can be resumed with it.
        """
        attempt = self._get_resumable_attempt(deposit_id)
        return DepositIntent(
            btc_amount=attempt.btc_amount,
            stx_receiver=attempt.stx_receiver,
            btc_sender=attempt.btc_sender,
            fee_priority=FeePriority(attempt.fee_priority),
            wallet_provider=WalletProvider(attempt.wallet_provider),
        )

    def get_resumable_registration(self, deposit_id: str) -> DepositRegistration:
        attempt = self._get_resumable_attempt(deposit_id)
        return DepositRegistration(deposit_id=attempt.deposit_id, btc_amount=attempt.btc_amount)

    def _get_resumable_attempt(self, deposit_id: str) -> DepositAttempt:
        attempt = self.get_attempt(deposit_id)
        if attempt is None:
            raise LookupError(f"Deposit attempt {deposit_id} not found")
        if attempt.status != DepositAttemptStatus.FAILED:
            raise DepositNotResumable(
                f"Deposit {deposit_id} is {DepositAttemptStatus.status_to_str(attempt.status)}, not failed"
            )
        if not FlowStep(attempt.failed_step).is_resumable:
            raise DepositNotResumable(f"Deposit {deposit_id} failed at {attempt.failed_step}, start a new deposit")
        return attempt

    def mark_canceled(self, deposit_id: str) -> DepositAttempt:
        attempt = self.get_attempt(deposit_id)
        if attempt is None:
            raise LookupError(f"Deposit attempt {deposit_id} not found")
        if attempt.status == DepositAttemptStatus.BROADCAST:
            raise ValueError(f"Deposit {deposit_id} is already broadcast, cannot cancel")
        attempt.status = DepositAttemptStatus.CANCELED
        self.dbsession.flush()
        return attempt


@service(scope="transaction", interface_override=DepositTracker)
def deposit_tracker_factory(container: Container):
    return DepositTracker(container.get(interface=Session))
