import dataclasses
import logging
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from deposit_bridge.deposits.flow import DepositFlow
from deposit_bridge.deposits.notifications import DepositNotifier
from deposit_bridge.deposits.types import DepositIntent, FeePriority, WalletProvider
from deposit_bridge.models import Base
from deposit_bridge.common.messengers import Messenger

from .mock_bridge import MockBridgeSDK

logger = logging.getLogger(__name__)

STX_RECEIVER = "SP2FW2AQXTBKYY8DXP18PCXZGWQT4S2RH7HC6WA4H"
BTC_SENDER = "bc1qexampleaddress"


def replace_intent(intent: DepositIntent, **changes) -> DepositIntent:
    return dataclasses.replace(intent, **changes)


class RecordingMessenger(Messenger):
    def __init__(self):
        self.messages = []

    def send_message(self, *, title: str, message: str, alert: bool = False):
        self.messages.append({"title": title, "message": message, "alert": alert})


@pytest.fixture()
def sdk() -> MockBridgeSDK:
    return MockBridgeSDK()


@pytest.fixture()
def messenger() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture()
def flow(sdk, messenger) -> DepositFlow:
    return DepositFlow(sdk=sdk, notifier=DepositNotifier(messenger))


@pytest.fixture()
def intent() -> DepositIntent:
    return DepositIntent(
        btc_amount=Decimal("0.0005"),
        stx_receiver=STX_RECEIVER,
        btc_sender=BTC_SENDER,
        wallet_provider=WalletProvider.LEATHER,
        fee_priority=FeePriority.MEDIUM,
    )


@pytest.fixture()
def dbengine():
    engine = create_engine("sqlite://", echo=False)
    yield engine
    engine.dispose()


# NOTE: sessions are scoped as test to start each test from a pristine db


@pytest.fixture()
def dbsession(dbengine):
    logger.info("Creating all models from metadata for engine %s", dbengine.url)
    Base.metadata.create_all(dbengine)
    session = Session(bind=dbengine, autobegin=False)
    yield session
    session.close()
    Base.metadata.drop_all(dbengine)
