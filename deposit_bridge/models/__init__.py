from .meta import Base  # noqa: F401
from .deposit_attempt import DepositAttempt, DepositAttemptStatus  # noqa: F401
