from decimal import Decimal

import pytest

from deposit_bridge.deposits.errors import FlowStep
from deposit_bridge.deposits.tracking import DepositNotResumable, DepositTracker
from deposit_bridge.deposits.types import FeePriority, WalletProvider
from deposit_bridge.models import DepositAttemptStatus

from ..conftest import BTC_SENDER, replace_intent


@pytest.fixture()
def tracker(dbsession):
    return DepositTracker(dbsession)


def test_nothing_recorded_before_registration(dbsession, tracker, flow, intent):
    result = flow.complete_deposit_flow(replace_intent(intent, stx_receiver="ST1"))

    with dbsession.begin():
        assert tracker.record_result(intent, result) is None
        assert tracker.get_attempts_by_sender(BTC_SENDER) == []


def test_record_successful_flow(dbsession, tracker, flow, sdk, intent):
    result = flow.complete_deposit_flow(intent)

    with dbsession.begin():
        attempt = tracker.record_result(intent, result)
        assert attempt.deposit_id == "deposit-1"
        assert attempt.status == DepositAttemptStatus.BROADCAST
        assert attempt.btc_tx_id == sdk.txid
        assert attempt.amount_sat == 50_000
        assert attempt.num_attempts == 1

    with dbsession.begin():
        with pytest.raises(DepositNotResumable):
            tracker.get_resumable_intent("deposit-1")


def test_failed_flow_can_be_resumed(dbsession, tracker, flow, sdk, intent):
    sdk.errors["execute_transaction"] = RuntimeError("wallet closed")
    failed = flow.complete_deposit_flow(intent)

    with dbsession.begin():
        attempt = tracker.record_result(intent, failed)
        assert attempt.status == DepositAttemptStatus.FAILED
        assert attempt.failed_step == "execute_transaction"
        assert attempt.error_message == "wallet closed"

    with dbsession.begin():
        resumed_intent = tracker.get_resumable_intent("deposit-1")
        registration = tracker.get_resumable_registration("deposit-1")
    assert registration.deposit_id == "deposit-1"
    assert registration.btc_amount == Decimal("0.0005")
    assert resumed_intent.btc_amount == Decimal("0.0005")
    assert resumed_intent.stx_receiver == intent.stx_receiver
    assert resumed_intent.btc_sender == intent.btc_sender
    assert resumed_intent.wallet_provider == WalletProvider.LEATHER
    assert resumed_intent.fee_priority == FeePriority.MEDIUM

    del sdk.errors["execute_transaction"]
    result = flow.resume_deposit_flow(resumed_intent, registration)
    assert result.success

    with dbsession.begin():
        attempt = tracker.record_result(resumed_intent, result)
        assert attempt.status == DepositAttemptStatus.BROADCAST
        assert attempt.num_attempts == 2
        assert attempt.failed_step is None
        assert attempt.error_message is None
    assert len(sdk.calls_to("create_deposit")) == 1


def test_amount_cannot_change_between_attempts(dbsession, tracker, flow, sdk, intent):
    sdk.errors["prepare_transaction"] = RuntimeError("timeout")
    failed = flow.complete_deposit_flow(intent)
    del sdk.errors["prepare_transaction"]

    with dbsession.begin():
        tracker.record_result(intent, failed)
        registration = tracker.get_resumable_registration("deposit-1")

    other_intent = replace_intent(intent, btc_amount=Decimal("0.0006"))
    result = flow.resume_deposit_flow(other_intent, registration)

    assert result.step == FlowStep.VALIDATION
    # Refused before anything was prepared or broadcast for the new amount
    assert [c["amount"] for c in sdk.calls_to("prepare_transaction")] == ["50000"]
    assert sdk.calls_to("execute_transaction") == []

    with dbsession.begin():
        # A result for a different amount is not recorded either
        with pytest.raises(ValueError):
            tracker.record_result(other_intent, result)
        assert tracker.get_attempt("deposit-1").amount_sat == 50_000


def test_create_deposit_failure_is_not_recorded(dbsession, tracker, flow, sdk, intent):
    sdk.errors["create_deposit"] = RuntimeError("down")
    result = flow.complete_deposit_flow(intent)

    with dbsession.begin():
        assert tracker.record_result(intent, result) is None


def test_resumable_intent_of_unknown_deposit(dbsession, tracker):
    with dbsession.begin():
        with pytest.raises(LookupError):
            tracker.get_resumable_intent("nope")


def test_mark_canceled(dbsession, tracker, flow, sdk, intent):
    sdk.errors["prepare_transaction"] = RuntimeError("timeout")
    failed = flow.complete_deposit_flow(intent)

    with dbsession.begin():
        tracker.record_result(intent, failed)
        attempt = tracker.mark_canceled("deposit-1")
        assert attempt.status == DepositAttemptStatus.CANCELED

    with dbsession.begin():
        with pytest.raises(DepositNotResumable):
            tracker.get_resumable_intent("deposit-1")
        with pytest.raises(LookupError):
            tracker.mark_canceled("nope")


def test_broadcast_deposit_cannot_be_canceled(dbsession, tracker, flow, intent):
    result = flow.complete_deposit_flow(intent)

    with dbsession.begin():
        tracker.record_result(intent, result)
        with pytest.raises(ValueError):
            tracker.mark_canceled("deposit-1")


def test_attempts_by_sender(dbsession, tracker, flow, sdk, intent):
    with dbsession.begin():
        tracker.record_result(intent, flow.complete_deposit_flow(intent))
        sdk.deposit_id = "deposit-2"
        tracker.record_result(intent, flow.complete_deposit_flow(intent))

    with dbsession.begin():
        attempts = tracker.get_attempts_by_sender(BTC_SENDER)
        assert [a.deposit_id for a in attempts] == ["deposit-2", "deposit-1"]
        assert DepositAttemptStatus.status_to_str(attempts[0].status) == "broadcast"
        assert tracker.get_attempts_by_sender("bc1qsomeoneelse") == []
