import dataclasses
import enum
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Protocol


class FeePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WalletProvider(str, enum.Enum):
    LEATHER = "leather"
    XVERSE = "xverse"


class DepositStatus(str, enum.Enum):
    # Statuses we set on the bridge backend
    BROADCAST = "broadcast"
    CANCELED = "canceled"


# Both are owned by the bridge backend, we only pass them along
PreparedTransaction = Mapping[str, Any]
ExecutionResult = Mapping[str, Any]


@dataclasses.dataclass(frozen=True)
class DepositIntent:
    btc_amount: Decimal
    stx_receiver: str
    btc_sender: str
    wallet_provider: WalletProvider
    fee_priority: FeePriority = FeePriority.MEDIUM

    def __post_init__(self):
        # Accept the plain string values too, e.g. wallet_provider="leather"
        object.__setattr__(self, "wallet_provider", WalletProvider(self.wallet_provider))
        object.__setattr__(self, "fee_priority", FeePriority(self.fee_priority))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DepositIntent":
        return cls(
            btc_amount=Decimal(str(data["btc_amount"])),
            stx_receiver=data["stx_receiver"],
            btc_sender=data["btc_sender"],
            wallet_provider=WalletProvider(data["wallet_provider"]),
            fee_priority=FeePriority(data.get("fee_priority") or FeePriority.MEDIUM),
        )


@dataclasses.dataclass(frozen=True)
class DepositRegistration:
    deposit_id: str
    # The amount the deposit was registered with. Every later phase must use the same amount.
    btc_amount: Decimal


class BridgeSDK(Protocol):
    """
    The calls the deposit flow makes against the bridge backend.

    Implemented over HTTP by deposit_bridge.common.bridge_api.BridgeApiClient.
    Errors are raised as exceptions, optionally with an HTTP response attached.
    """

    def get_fee_estimates(self) -> Mapping[str, Any]: ...

    def create_deposit(self, *, btc_amount: Decimal, stx_receiver: str, btc_sender: str) -> str: ...

    def prepare_transaction(
        self,
        *,
        amount: str,
        user_address: str,
        btc_address: str,
        fee_priority: str,
        wallet_provider: str,
    ) -> PreparedTransaction: ...

    def execute_transaction(
        self,
        *,
        deposit_id: str,
        prepared_data: PreparedTransaction,
        wallet_provider: str,
        btc_address: str,
    ) -> ExecutionResult: ...

    def update_deposit_status(
        self,
        deposit_id: str,
        *,
        status: str,
        btc_tx_id: str | None = None,
    ) -> Mapping[str, Any]: ...
