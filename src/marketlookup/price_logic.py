from __future__ import annotations

from typing import Sequence

import numpy as np

from .models import PricingStats


def _percent_variance(price: float, baseline: float) -> float:
    # A zero baseline has no meaningful percentage; report NaN instead of +/-inf.
    if baseline == 0:
        return float("nan")
    return (price - baseline) / baseline * 100.0


def calculate_stats(reference_price: float, observed_prices: Sequence[float]) -> PricingStats:
    """
    Compare a reference price against the prices of its matched observations.

    Parameters
    ----------
    reference_price:
        Price of the reference (catalog) item.
    observed_prices:
        Prices of the observations matched to it.  May be empty.

    Returns
    -------
    PricingStats
        Minimum, maximum, mean and count of ``observed_prices`` plus the
        percentage variance of ``reference_price`` from the mean and from the
        minimum.  An empty price list yields :meth:`PricingStats.empty`.

    Notes
    -----
    When the mean or the minimum is exactly zero the corresponding variance
    is ``nan``; ``count`` still reflects every price supplied.
    """

    if len(observed_prices) == 0:
        return PricingStats.empty()

    prices = np.asarray(observed_prices, dtype=float)
    low = float(prices.min())
    high = float(prices.max())
    avg = float(prices.mean())
    price = float(reference_price)

    return PricingStats(
        min_price=low,
        max_price=high,
        avg_price=avg,
        count=int(prices.size),
        variance_from_avg=_percent_variance(price, avg),
        variance_from_min=_percent_variance(price, low),
    )


__all__ = ["calculate_stats"]
