import requests

from deposit_bridge.common.bridge_api import BridgeApiError
from deposit_bridge.deposits.errors import (
    INSCRIPTION_ERROR_HELP,
    INSCRIPTION_ERROR_MESSAGE,
    DepositFlowError,
    ErrorKind,
    FlowError,
    FlowStep,
    classify_error,
    extract_error_message,
    is_inscription_error,
)

from ..mock_bridge import StubResponse, http_error


def test_is_inscription_error():
    assert is_inscription_error("Insufficient funds after filtering out UTXOs with inscriptions")
    assert is_inscription_error({"error": "Insufficient funds after filtering out UTXOs with inscriptions (3)"})
    assert is_inscription_error(
        {"details": {"reason": "Insufficient funds after filtering", "hint": "UTXOs with inscriptions"}}
    )
    assert not is_inscription_error({"error": "Insufficient funds"})
    assert not is_inscription_error("UTXOs with inscriptions")
    assert not is_inscription_error(None)


def test_classify_inscription_error():
    error = http_error(400, json_data={"error": "Insufficient funds after filtering out UTXOs with inscriptions"})

    flow_error = classify_error(error, step=FlowStep.PREPARE_TRANSACTION)

    assert flow_error.step == FlowStep.PREPARE_TRANSACTION
    assert flow_error.kind == ErrorKind.INSCRIPTION_PROTECTED
    assert flow_error.is_inscription_error
    assert flow_error.message == INSCRIPTION_ERROR_MESSAGE
    assert flow_error.help == INSCRIPTION_ERROR_HELP
    assert flow_error.cause is error
    assert flow_error.details == {"error": "Insufficient funds after filtering out UTXOs with inscriptions"}


def test_classify_inscription_error_from_text_body():
    error = http_error(400, text="Insufficient funds after filtering out UTXOs with inscriptions")

    flow_error = classify_error(error, step=FlowStep.PREPARE_TRANSACTION)

    assert flow_error.is_inscription_error
    assert flow_error.details == "Insufficient funds after filtering out UTXOs with inscriptions"


def test_classify_bridge_api_error():
    error = BridgeApiError(StubResponse(500, json_data={"message": "Deposit pool is paused"}))

    flow_error = classify_error(error, step=FlowStep.CREATE_DEPOSIT)

    assert flow_error.kind == ErrorKind.NETWORK
    assert flow_error.message == "Deposit pool is paused"
    assert flow_error.details == {"message": "Deposit pool is paused"}
    assert not flow_error.is_inscription_error
    assert flow_error.help is None


def test_classify_connection_error():
    error = requests.ConnectionError("Connection refused")

    flow_error = classify_error(error, step=FlowStep.CREATE_DEPOSIT)

    assert flow_error.kind == ErrorKind.NETWORK
    assert flow_error.message == "Connection refused"
    assert flow_error.details is error


def test_classify_unknown_error():
    error = RuntimeError("User canceled signing")

    flow_error = classify_error(error, step=FlowStep.EXECUTE_TRANSACTION)

    assert flow_error.step == FlowStep.EXECUTE_TRANSACTION
    assert flow_error.kind == ErrorKind.UNKNOWN
    assert flow_error.message == "User canceled signing"


def test_classify_passes_flow_errors_through():
    error = FlowError(step=FlowStep.VALIDATION, kind=ErrorKind.VALIDATION, message="nope")

    assert classify_error(DepositFlowError(error), step=FlowStep.COMPLETE_FLOW) is error


def test_extract_error_message():
    assert extract_error_message(None) == "Unknown error"
    assert extract_error_message("plain") == "plain"
    assert extract_error_message(RuntimeError("oops")) == "oops"
    assert extract_error_message(http_error(400, text="bad request body")) == "bad request body"
    assert extract_error_message(http_error(400, json_data={"message": "msg", "error": "err"})) == "msg"
    assert extract_error_message(http_error(400, json_data={"error": "err"})) == "err"
    assert extract_error_message(http_error(400, json_data={"code": 7})) == '{"code": 7}'
    assert extract_error_message(http_error(400, json_data={})) == "400 error"


def test_deposit_flow_error_str():
    error = FlowError(step=FlowStep.CREATE_DEPOSIT, kind=ErrorKind.NETWORK, message="timeout")

    assert str(DepositFlowError(error)) == "create_deposit: timeout"
