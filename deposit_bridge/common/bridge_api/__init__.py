from .client import (  # noqa: F401
    BridgeApiClient,
    BridgeApiError,
    BridgeApiNotFound,
)
