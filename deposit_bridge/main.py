import json
import logging
import os
from argparse import ArgumentParser
from contextlib import contextmanager
from decimal import Decimal

from anemic.ioc import Container, FactoryRegistry, FactoryRegistrySet
from sqlalchemy.orm import Session

import deposit_bridge
from deposit_bridge.config import Config
from deposit_bridge.decimalcontext import set_decimal_context
from deposit_bridge.deposits.fees import calculate_service_fee
from deposit_bridge.deposits.tracking import DepositTracker
from deposit_bridge.models import DepositAttemptStatus
from deposit_bridge.sentry import init_sentry
from deposit_bridge.wiring import DepositBridgeWiring

logger = logging.getLogger(__name__)


def create_containers() -> tuple[Container, FactoryRegistry]:
    registries = FactoryRegistrySet()
    global_registry = registries.create_registry("global")
    transaction_registry = registries.create_registry("transaction")
    registries.scan_services(deposit_bridge)
    return Container(global_registry), transaction_registry


@contextmanager
def transaction(global_container: Container, transaction_registry: FactoryRegistry):
    container = Container(transaction_registry, parent=global_container)
    dbsession = container.get(interface=Session)
    try:
        with dbsession.begin():
            yield container
    finally:
        dbsession.close()


def create_parser() -> ArgumentParser:
    parser = ArgumentParser("deposit-bridge", description="BTC deposit bridge tools")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("fees", help="Show fee tiers")
    history = subparsers.add_parser("history", help="Show deposit history of an address")
    history.add_argument("address")
    subparsers.add_parser("all-history", help="Show history of all deposits")
    subparsers.add_parser("pool-status", help="Show bridge pool status")
    subparsers.add_parser("btc-price", help="Show BTC price")
    service_fee = subparsers.add_parser("service-fee", help="Show service fee for a BTC amount")
    service_fee.add_argument("btc_amount")
    attempts = subparsers.add_parser("attempts", help="Show locally tracked deposit attempts of a BTC address")
    attempts.add_argument("btc_sender")
    cancel = subparsers.add_parser("cancel", help="Cancel a deposit that was not broadcast")
    cancel.add_argument("deposit_id")
    return parser


def _print(data):
    print(json.dumps(data, indent=2, default=str))


def _attempt_to_dict(attempt):
    return {
        "depositId": attempt.deposit_id,
        "btcAmount": attempt.btc_amount,
        "amountSat": attempt.amount_sat,
        "stxReceiver": attempt.stx_receiver,
        "status": DepositAttemptStatus.status_to_str(attempt.status),
        "failedStep": attempt.failed_step,
        "error": attempt.error_message,
        "btcTxId": attempt.btc_tx_id,
        "numAttempts": attempt.num_attempts,
    }


def main(argv=None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", logging.INFO),
        format="%(asctime)s:%(name)s:%(levelname)s:%(message)s",
    )
    args = create_parser().parse_args(argv)

    set_decimal_context()
    global_container, transaction_registry = create_containers()
    config = global_container.get(interface=Config)
    if config.sentry_dsn:
        init_sentry(config.sentry_dsn, environment=config.btc_network)
    wiring = global_container.get(interface=DepositBridgeWiring)

    if args.command == "fees":
        _print(wiring.fee_estimator.get_fee_tiers().to_dict())
    elif args.command == "history":
        _print(wiring.client.get_deposit_history(args.address))
    elif args.command == "all-history":
        _print(wiring.client.get_all_deposits_history())
    elif args.command == "pool-status":
        _print(wiring.client.get_pool_status())
    elif args.command == "btc-price":
        _print({"price": wiring.client.get_btc_price()})
    elif args.command == "service-fee":
        _print({"serviceFee": calculate_service_fee(Decimal(args.btc_amount))})
    elif args.command == "attempts":
        with transaction(global_container, transaction_registry) as container:
            tracker = container.get(interface=DepositTracker)
            _print([_attempt_to_dict(a) for a in tracker.get_attempts_by_sender(args.btc_sender)])
    elif args.command == "cancel":
        with transaction(global_container, transaction_registry) as container:
            tracker = container.get(interface=DepositTracker)
            if tracker.get_attempt(args.deposit_id) is not None:
                tracker.mark_canceled(args.deposit_id)
            wiring.flow.cancel_deposit(args.deposit_id)
        logger.info("Deposit %s canceled", args.deposit_id)