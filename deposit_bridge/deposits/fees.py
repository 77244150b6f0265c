import dataclasses
import decimal
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from .types import FeePriority

logger = logging.getLogger(__name__)

# Virtual size of a typical one-input deposit transaction
STANDARD_TX_VSIZE = 148

SMALL_DEPOSIT_SERVICE_FEE_THRESHOLD_BTC = decimal.Decimal("0.002")
SMALL_DEPOSIT_SERVICE_FEE_BTC = decimal.Decimal("0.00003000")
LARGE_DEPOSIT_SERVICE_FEE_BTC = decimal.Decimal("0.00006000")


@dataclasses.dataclass(frozen=True)
class FeeTier:
    rate_sats_per_vb: int
    fee_sat: int
    time_estimate: str


@dataclasses.dataclass(frozen=True)
class FeeTiers:
    low: FeeTier
    medium: FeeTier
    high: FeeTier

    def for_priority(self, priority: FeePriority) -> FeeTier:
        return getattr(self, FeePriority(priority).value)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {priority.value: dataclasses.asdict(self.for_priority(priority)) for priority in FeePriority}


def estimate_fee_sat(rate_sats_per_vb: int | decimal.Decimal, vsize: int = STANDARD_TX_VSIZE) -> int:
    fee = decimal.Decimal(vsize) * decimal.Decimal(rate_sats_per_vb)
    return int(fee.to_integral_value(rounding=decimal.ROUND_HALF_UP))


def _tier(rate: int, time_estimate: str) -> FeeTier:
    return FeeTier(rate_sats_per_vb=rate, fee_sat=estimate_fee_sat(rate), time_estimate=time_estimate)


DEFAULT_FEE_TIERS = FeeTiers(
    low=_tier(1, "30 min"),
    medium=_tier(2, "~20 min"),
    high=_tier(5, "~10 min"),
)


def _rate(raw: Mapping[str, Any], key: str) -> int:
    value = raw.get(key)
    if not value:
        return 0
    return int(decimal.Decimal(str(value)).to_integral_value(rounding=decimal.ROUND_CEILING))


def normalize_fee_estimates(raw: Mapping[str, Any]) -> FeeTiers:
    """
    Turn raw sat/vB estimates into fee tiers, making sure each tier is strictly
    more expensive than the one below it.
    """
    low = _rate(raw, "low") or 1
    medium = max(low + 1, _rate(raw, "medium") or 2)
    high = max(medium + 1, _rate(raw, "high") or 5)
    return FeeTiers(
        low=_tier(low, "30 min"),
        medium=_tier(medium, "~20 min"),
        high=_tier(high, "~10 min"),
    )


class FeeEstimateSource(Protocol):
    def get_fee_estimates(self) -> Mapping[str, Any]: ...


class FeeTierEstimator:
    def __init__(self, *, source: FeeEstimateSource):
        self._source = source

    def get_fee_tiers(self) -> FeeTiers:
        try:
            raw = self._source.get_fee_estimates()
            logger.debug("Fee estimates received: %s", raw)
            return normalize_fee_estimates(raw)
        except Exception:
            logger.exception("Failed to fetch fee estimates (only a warning, ignored), falling back to defaults")
        return DEFAULT_FEE_TIERS


def calculate_service_fee(btc_amount: decimal.Decimal) -> decimal.Decimal:
    """
    The fee the bridge charges on top of the network fee.
    """
    if btc_amount <= 0:
        return decimal.Decimal("0.00000000")
    if btc_amount <= SMALL_DEPOSIT_SERVICE_FEE_THRESHOLD_BTC:
        return SMALL_DEPOSIT_SERVICE_FEE_BTC
    return LARGE_DEPOSIT_SERVICE_FEE_BTC
