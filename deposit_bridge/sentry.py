import logging
import warnings

import sentry_sdk

from .deposits.errors import DepositValidationError

logger = logging.getLogger(__name__)


def init_sentry(dsn, *, environment=None):
    if not dsn:
        warnings.warn("Sentry DSN not set, Sentry disabled", stacklevel=2)
        return

    def before_send(event, hint):
        if "exc_info" in hint:
            exc_value = hint["exc_info"][1]
            # Bad user input, not a bug
            if isinstance(exc_value, DepositValidationError):
                logger.info("Not reporting validation error to Sentry: %s", exc_value)
                return None

        return event

    logger.info("Initializing Sentry")
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        before_send=before_send,
    )
