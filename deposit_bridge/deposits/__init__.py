from .errors import (  # noqa: F401
    DepositFlowError,
    DepositValidationError,
    ErrorKind,
    FlowError,
    FlowStep,
    classify_error,
    extract_error_message,
)
from .flow import DepositFlow, DepositFlowResult  # noqa: F401
from .types import (  # noqa: F401
    BridgeSDK,
    DepositIntent,
    DepositRegistration,
    FeePriority,
    WalletProvider,
)
from .units import btc_to_satoshis, satoshis_to_btc  # noqa: F401
