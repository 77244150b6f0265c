import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, TypedDict

import requests

from ..btc.broadcast import MempoolSpaceBroadcaster
from ..wallets import WalletSigners

logger = logging.getLogger(__name__)


class BridgeApiError(Exception):
    response: requests.Response
    text: str
    status_code: int

    def __init__(self, response: requests.Response):
        self.response = response
        self.text = response.text
        self.status_code = response.status_code
        super().__init__(f"Bridge API request failed with status {self.status_code}: {self.text}")

    @property
    def data(self) -> Any:
        """
        Response body, parsed as JSON if possible
        """
        try:
            return self.response.json()
        except ValueError:
            return self.text


class BridgeApiNotFound(BridgeApiError):
    pass


class FeeEstimatesResponse(TypedDict):
    # sat/vB per priority, e.g. {"low": 3, "medium": 5, "high": 8}
    low: int
    medium: int
    high: int


class PreparedTransactionResponse(TypedDict, total=False):
    utxos: list[dict[str, Any]]
    opReturnData: str
    depositAddress: str
    fee: int
    changeAmount: int
    amountInSatoshis: int
    feeRate: int
    inputCount: int
    outputCount: int
    inscriptionCount: int


class ExecuteTransactionResponse(TypedDict, total=False):
    txPsbtHex: str
    needsFrontendInputHandling: bool
    transactionDetails: dict[str, Any]


class BridgeApiClient:
    """
    HTTP client for the bridge backend (deposit registration, transaction preparation,
    deposit status and history).

    Amounts in BTC are sent as decimal strings so that no float rounding happens on the
    way. Satoshi amounts are sent as integer strings.
    """

    def __init__(
        self,
        base_url: str,
        *,
        signers: WalletSigners | None = None,
        broadcaster: MempoolSpaceBroadcaster | None = None,
        timeout: float = 30.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._signers = signers if signers is not None else WalletSigners()
        self._broadcaster = broadcaster
        self._timeout = timeout

    @property
    def signers(self) -> WalletSigners:
        return self._signers

    def request(self, method, url, **kwargs):
        headers = kwargs.setdefault("headers", {})
        headers["Accept"] = "application/json"
        kwargs.setdefault("timeout", self._timeout)
        resp = requests.request(method, f"{self._base_url}{url}", **kwargs)
        if not resp.ok:
            if resp.status_code == 404:
                raise BridgeApiNotFound(resp)
            raise BridgeApiError(resp)
        if not resp.content:
            return None
        return resp.json()

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def put(self, url, **kwargs):
        return self.request("PUT", url, **kwargs)

    def is_healthy(self) -> bool:
        try:
            self.get("/api/pool/status")
        except requests.exceptions.ConnectionError:
            logger.info("Bridge API is not healthy (ConnectionError)")
            return False
        except BridgeApiError as e:
            logger.info("Bridge API is not healthy (status code %s)", e.status_code)
            return False
        return True

    def get_fee_estimates(self) -> FeeEstimatesResponse:
        return self.get("/api/fee-estimates")

    def create_deposit(self, *, btc_amount: Decimal, stx_receiver: str, btc_sender: str) -> str:
        data = self.post(
            "/api/deposits",
            json={
                "btcAmount": str(btc_amount),
                "stxReceiver": stx_receiver,
                "btcSender": btc_sender,
            },
        )
        # Either {"id": ...} or the bare id
        if isinstance(data, str):
            return data
        return data.get("id") if data else None

    def prepare_transaction(
        self,
        *,
        amount: str,
        user_address: str,
        btc_address: str,
        fee_priority: str,
        wallet_provider: str,
    ) -> PreparedTransactionResponse:
        return self.post(
            "/api/deposits/prepare",
            json={
                "amount": amount,
                "userAddress": user_address,
                "btcAddress": btc_address,
                "feePriority": fee_priority,
                "walletProvider": wallet_provider,
            },
        )

    def execute_transaction(
        self,
        *,
        deposit_id: str,
        prepared_data: Mapping[str, Any],
        wallet_provider: str,
        btc_address: str,
    ) -> dict[str, Any]:
        """
        Get the PSBT for the prepared transaction, have the wallet sign it and broadcast it.
        """
        # Fail before talking to the backend if nobody can sign for this wallet
        signer = self._signers.get(wallet_provider)

        execution: ExecuteTransactionResponse = self.post(
            "/api/deposits/execute",
            json={
                "depositId": deposit_id,
                "preparedData": dict(prepared_data),
                "walletProvider": wallet_provider,
                "btcAddress": btc_address,
            },
        )
        psbt_hex = execution.get("txPsbtHex") if execution else None
        if not psbt_hex:
            raise ValueError(f"Bridge API returned no PSBT for deposit {deposit_id}")

        signed = signer.sign_psbt(
            psbt_hex=psbt_hex,
            btc_address=btc_address,
            input_count=len(prepared_data.get("utxos") or []),
        )
        txid = signed.txid
        if not txid:
            if self._broadcaster is None:
                raise RuntimeError("Wallet did not broadcast the transaction and no broadcaster is configured")
            txid = self._broadcaster.broadcast(signed.tx_hex)

        return {
            "txid": txid,
            "psbtHex": psbt_hex,
            "transactionDetails": execution.get("transactionDetails"),
        }

    def update_deposit_status(
        self,
        deposit_id: str,
        *,
        status: str,
        btc_tx_id: str | None = None,
    ) -> dict[str, Any]:
        data = {"status": status}
        if btc_tx_id is not None:
            data["btcTxId"] = btc_tx_id
        return self.put(f"/api/deposits/{deposit_id}", json={"data": data})

    def get_deposit(self, deposit_id: str) -> dict[str, Any] | None:
        """
        Get deposit by id, or None if not found
        """
        try:
            return self.get(f"/api/deposits/{deposit_id}")
        except BridgeApiNotFound:
            return None

    def get_deposit_history(self, user_address: str) -> list[dict[str, Any]]:
        return self.get(f"/api/deposits/history/{user_address}") or []

    def get_all_deposits_history(self) -> list[dict[str, Any]]:
        return self.get("/api/deposits/history") or []

    def get_pool_status(self) -> dict[str, Any]:
        return self.get("/api/pool/status")

    def get_btc_price(self) -> Decimal:
        data = self.get("/api/btc-price")
        price = data["price"] if isinstance(data, dict) else data
        return Decimal(str(price))
