from dataclasses import dataclass

from anemic.ioc import Container, service

from .common.bridge_api import BridgeApiClient
from .common.btc.broadcast import MempoolSpaceBroadcaster
from .common.messengers import Messenger
from .common.wallets import WalletSigners
from .config import Config
from .deposits.fees import FeeTierEstimator
from .deposits.flow import DepositFlow
from .deposits.notifications import DepositNotifier


@dataclass
class DepositBridgeWiring:
    client: BridgeApiClient
    flow: DepositFlow
    fee_estimator: FeeTierEstimator


def wire_deposit_bridge(
    *,
    config: Config,
    signers: WalletSigners | None = None,
    messenger: Messenger | None = None,
) -> DepositBridgeWiring:
    broadcaster = MempoolSpaceBroadcaster(
        base_url=config.get_mempool_api_url(),
        timeout=config.http_timeout,
    )
    client = BridgeApiClient(
        config.bridge_api_url,
        signers=signers,
        broadcaster=broadcaster,
        timeout=config.http_timeout,
    )
    flow = DepositFlow(
        sdk=client,
        notifier=DepositNotifier(messenger),
    )
    fee_estimator = FeeTierEstimator(source=client)
    return DepositBridgeWiring(client=client, flow=flow, fee_estimator=fee_estimator)


@service(scope="global", interface_override=WalletSigners)
def wallet_signers_factory(_):
    # Empty until the embedding application registers its wallet signers
    return WalletSigners()


@service(scope="global", interface_override=DepositBridgeWiring)
def deposit_bridge_wiring_factory(container: Container):
    return wire_deposit_bridge(
        config=container.get(interface=Config),
        signers=container.get(interface=WalletSigners),
        messenger=container.get(interface=Messenger),
    )
