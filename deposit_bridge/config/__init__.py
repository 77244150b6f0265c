import logging
from typing import Literal

import environ
from anemic.ioc import service

logger = logging.getLogger(__name__)

BTC_NETWORKS = ("mainnet", "testnet")


def to_btc_network(value: str) -> str:
    value = value.strip().lower()
    if value not in BTC_NETWORKS:
        raise ValueError(f"Invalid BTC network: {value!r}, expected one of {BTC_NETWORKS}")
    return value


@environ.config(prefix="DEPOSIT")
class Config:
    # Network selection is read once. Addresses passed to the deposit flow are not
    # checked against it, callers must use addresses of the configured network.
    btc_network: Literal["mainnet", "testnet"] = environ.var("mainnet", converter=to_btc_network)
    bridge_api_url = environ.var()
    mempool_api_url = environ.var(default="")
    db_url = environ.var(default="sqlite:///deposit_bridge.sqlite")
    http_timeout = environ.var(default=30.0, converter=float)

    sentry_dsn = environ.var(default="")

    # Messenger settings
    discord_webhook_url = environ.var(default="")
    slack_webhook_url = environ.var(default="")
    slack_webhook_channel = environ.var(default="")

    def get_mempool_api_url(self) -> str:
        if self.mempool_api_url:
            return self.mempool_api_url.rstrip("/")
        url = "https://mempool.space"
        if self.btc_network != "mainnet":
            url += f"/{self.btc_network}"
        return url


@service(interface_override=Config, scope="global")
def create_config(_):
    config = environ.to_config(Config)
    logger.info("Using BTC network %s, bridge API at %s", config.btc_network, config.bridge_api_url)
    return config
