import dataclasses
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SignedTransaction:
    # Wallets either hand back the finalized raw transaction for us to broadcast,
    # or broadcast it themselves and only return the txid
    tx_hex: str | None = None
    txid: str | None = None

    def __post_init__(self):
        if not self.tx_hex and not self.txid:
            raise ValueError("SignedTransaction needs either tx_hex or txid")


class WalletSigner(Protocol):
    def sign_psbt(
        self,
        *,
        psbt_hex: str,
        btc_address: str,
        input_count: int,
    ) -> SignedTransaction: ...


class WalletSigners:
    """
    Signers by wallet provider name ("leather", "xverse").

    Signing happens in the user's wallet, so the concrete signers are supplied by
    whoever embeds the deposit flow.
    """

    def __init__(self, signers: dict[str, WalletSigner] | None = None):
        self._signers: dict[str, WalletSigner] = dict(signers or {})

    def register(self, wallet_provider: str, signer: WalletSigner) -> None:
        logger.info("Registering signer for wallet provider %s", wallet_provider)
        self._signers[wallet_provider] = signer

    def get(self, wallet_provider: str) -> WalletSigner:
        try:
            return self._signers[wallet_provider]
        except KeyError:
            raise LookupError(f"No signer registered for wallet provider {wallet_provider!r}") from None

    def __contains__(self, wallet_provider: str) -> bool:
        return wallet_provider in self._signers
