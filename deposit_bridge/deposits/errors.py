import dataclasses
import enum
import json
import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

# The backend does not give us an error code for this, so we match on the message
INSCRIPTION_ERROR_MARKERS = (
    "Insufficient funds after filtering",
    "UTXOs with inscriptions",
)
INSCRIPTION_ERROR_MESSAGE = "Insufficient funds after filtering out UTXOs with inscriptions"
INSCRIPTION_ERROR_HELP = (
    "Your Bitcoin address contains inscriptions (Ordinals/NFTs) that are being protected. "
    "Use an address without inscriptions or add more regular BTC."
)


class FlowStep(str, enum.Enum):
    VALIDATION = "validation"
    CREATE_DEPOSIT = "create_deposit"
    PREPARE_TRANSACTION = "prepare_transaction"
    EXECUTE_TRANSACTION = "execute_transaction"
    COMPLETE_FLOW = "complete_flow"

    @property
    def is_resumable(self) -> bool:
        """
        True if a flow that failed at this step can be continued with the deposit id it already has.
        Failures before (and at) registration must start over from validation.
        """
        return self in (FlowStep.PREPARE_TRANSACTION, FlowStep.EXECUTE_TRANSACTION)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    INSCRIPTION_PROTECTED = "inscription_protected"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True)
class FlowError:
    step: FlowStep
    kind: ErrorKind
    message: str
    cause: Any = None
    details: Any = None
    is_inscription_error: bool = False
    help: str | None = None


class DepositFlowError(Exception):
    def __init__(self, error: FlowError):
        self.error = error
        super().__init__(f"{error.step.value}: {error.message}")


class DepositValidationError(DepositFlowError, ValueError):
    def __init__(self, message: str):
        super().__init__(
            FlowError(
                step=FlowStep.VALIDATION,
                kind=ErrorKind.VALIDATION,
                message=message,
            )
        )


_no_response_data = object()


def get_response_data(error: Any) -> Any:
    """
    Return the HTTP response body attached to an error, parsed as JSON if possible.
    Returns None if the error has no response.
    """
    data = getattr(error, "data", _no_response_data)
    if data is not _no_response_data:
        return data
    response = getattr(error, "response", None)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _stringify(data: Any) -> str:
    if isinstance(data, str):
        return data
    try:
        return json.dumps(data, default=str)
    except (TypeError, ValueError):
        return str(data)


def is_inscription_error(response_data: Any) -> bool:
    if response_data is None:
        return False
    text = _stringify(response_data)
    return all(marker in text for marker in INSCRIPTION_ERROR_MARKERS)


def extract_error_message(error: Any) -> str:
    if error is None:
        return "Unknown error"

    response_data = get_response_data(error)
    if response_data:
        if isinstance(response_data, str):
            return response_data
        if isinstance(response_data, dict):
            if response_data.get("message"):
                return str(response_data["message"])
            if response_data.get("error"):
                return str(response_data["error"])
        return _stringify(response_data)

    if isinstance(error, str):
        return error
    message = str(error)
    if message:
        return message
    return repr(error)


def classify_error(error: Any, *, step: FlowStep) -> FlowError:
    """
    Map a raw error from the bridge backend to a FlowError.
    The original error is kept as the cause, and its response body (if any) as details.
    """
    if isinstance(error, DepositFlowError):
        return error.error

    response_data = get_response_data(error)
    details = response_data if response_data is not None else error

    if is_inscription_error(response_data):
        logger.info("Detected inscription-related error at step %s", step.value)
        return FlowError(
            step=step,
            kind=ErrorKind.INSCRIPTION_PROTECTED,
            message=INSCRIPTION_ERROR_MESSAGE,
            cause=error,
            details=details,
            is_inscription_error=True,
            help=INSCRIPTION_ERROR_HELP,
        )

    if isinstance(error, requests.RequestException) or getattr(error, "response", None) is not None:
        kind = ErrorKind.NETWORK
    else:
        kind = ErrorKind.UNKNOWN

    return FlowError(
        step=step,
        kind=kind,
        message=extract_error_message(error),
        cause=error,
        details=details,
    )
