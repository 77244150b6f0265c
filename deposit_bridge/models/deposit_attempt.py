from enum import IntEnum

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    Numeric,
    Text,
    func,
)

from .meta import Base


class DepositAttemptStatus(IntEnum):
    REGISTERED = 10
    BROADCAST = 20
    FAILED = -1
    CANCELED = -2

    @staticmethod
    def status_to_str(status: "DepositAttemptStatus") -> str:
        return DepositAttemptStatus(status).name.lower()


class DepositAttempt(Base):
    """
    What the caller has to remember about a registered deposit to resume it:
    the deposit id, the exact amount it was registered with, and where it failed.
    """

    __tablename__ = "deposit_attempt"

    id = Column(Integer, primary_key=True)
    deposit_id = Column(Text, nullable=False, unique=True)

    btc_amount = Column(Numeric(16, 8, asdecimal=True), nullable=False)
    amount_sat = Column(BigInteger, nullable=False)
    stx_receiver = Column(Text, nullable=False)
    btc_sender = Column(Text, nullable=False, index=True)
    fee_priority = Column(Text, nullable=False)
    wallet_provider = Column(Text, nullable=False)

    status = Column(Integer, nullable=False, default=DepositAttemptStatus.REGISTERED)
    failed_step = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    btc_tx_id = Column(Text, nullable=True)
    num_attempts = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self):
        return (
            f"DepositAttempt(deposit_id={self.deposit_id!r}, "
            f"status={DepositAttemptStatus.status_to_str(self.status)}, "
            f"failed_step={self.failed_step!r})"
        )
