from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from pricetracker.schemas.prices import ConsolidatedResult, SourceObservation

logger = logging.getLogger(__name__)


def most_reliable(observations: Sequence[SourceObservation]) -> SourceObservation:
    # Strict comparison keeps the first observation on reliability ties.
    best = observations[0]
    for observation in observations[1:]:
        if observation.reliability > best.reliability:
            best = observation
    return best


def coefficient_of_variation(prices: Sequence[float]) -> float:
    count = len(prices)
    mean = sum(prices) / count
    variance = sum((price - mean) ** 2 for price in prices) / count
    return math.sqrt(variance) / mean


def weighted_mean(observations: Sequence[SourceObservation]) -> float:
    total_weight = sum(observation.reliability for observation in observations)
    weighted_sum = sum(observation.price * observation.reliability for observation in observations)
    return weighted_sum / total_weight


def consolidate(
    symbol: str,
    observations: Sequence[SourceObservation],
    verification_threshold: float,
) -> ConsolidatedResult:
    if not observations:
        raise ValueError("consolidate() requires at least one observation")

    primary = most_reliable(observations)

    if len(observations) == 1:
        return ConsolidatedResult(
            symbol=symbol,
            price=primary.price,
            primary_source=primary.source,
            verified=False,
            coefficient_of_variation=0.0,
            observation_count=1,
        )

    cv = coefficient_of_variation([observation.price for observation in observations])
    verified = cv < verification_threshold
    price = weighted_mean(observations) if verified else primary.price

    logger.debug(
        "%s price verification: CV=%.2f%%, verified=%s, sources=%d",
        symbol,
        cv * 100,
        verified,
        len(observations),
    )

    return ConsolidatedResult(
        symbol=symbol,
        price=price,
        primary_source=primary.source,
        verified=verified,
        coefficient_of_variation=cv,
        observation_count=len(observations),
    )
