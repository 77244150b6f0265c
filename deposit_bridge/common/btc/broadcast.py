import logging

import requests

logger = logging.getLogger(__name__)


class BroadcastError(Exception):
    response: requests.Response
    text: str
    status_code: int

    def __init__(self, response: requests.Response):
        self.response = response
        self.text = response.text
        self.status_code = response.status_code
        super().__init__(f"Failed to broadcast transaction: {self.text}")


class MempoolSpaceBroadcaster:
    def __init__(self, *, base_url: str, timeout: float = 30.0):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def broadcast(self, tx_hex: str) -> str:
        """
        Broadcast a finalized raw transaction and return its txid.
        """
        resp = requests.post(
            f"{self._base_url}/api/tx",
            data=tx_hex,
            headers={"Content-Type": "text/plain"},
            timeout=self._timeout,
        )
        if not resp.ok:
            raise BroadcastError(resp)
        txid = resp.text.strip()
        logger.info("Broadcast transaction %s via %s", txid, self._base_url)
        return txid
