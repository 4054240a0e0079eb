"""Per-item comparison rows, pricing health and portfolio summaries."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .matching import group_matches, index_by_id, resolve_observed
from .models import PRICE_POINTS, MatchEdge, ObservedItem, PricingStats, ReferenceItem
from .price_logic import calculate_stats

SORT_KEYS: Tuple[str, ...] = ("description", "price", "variance", "matches")
STATUS_FILTERS: Tuple[str, ...] = ("all", "matched", "unmatched")

# Variance sort value for rows without matches.
UNMATCHED_SORT_VARIANCE = -999.0

HEALTH_BAND_PCT = 10.0
MARKET_BAND_PCT = 5.0


def health_status(variance: float) -> str:
    """Classify a variance-from-average percentage.

    ``good`` below -10 %, ``critical`` above +10 %, ``warning`` above zero,
    ``neutral`` otherwise (including ``nan``).
    """

    if variance < -HEALTH_BAND_PCT:
        return "good"
    if variance > HEALTH_BAND_PCT:
        return "critical"
    if variance > 0:
        return "warning"
    return "neutral"


@dataclass(frozen=True)
class ComparisonRow:
    reference: ReferenceItem
    matches: Tuple[MatchEdge, ...]
    matched_items: Tuple[ObservedItem, ...]
    stats: PricingStats

    @property
    def is_matched(self) -> bool:
        return len(self.matched_items) > 0

    @property
    def health(self) -> Optional[str]:
        if not self.stats.has_data:
            return None
        return health_status(self.stats.variance_from_avg)


def build_comparison_rows(
    reference_items: Sequence[ReferenceItem],
    observed_items: Sequence[ObservedItem],
    edges: Iterable[MatchEdge],
    threshold: float,
    price_point: str = "price",
    observed_index: Optional[Mapping[str, ObservedItem]] = None,
) -> List[ComparisonRow]:
    """Join edges at or above ``threshold`` back to items and aggregate prices.

    Observations without a value for ``price_point`` are left out of the
    row, so ``stats.count`` always equals ``len(matched_items)``.  Edges are
    filtered and grouped in a single pass; callers that already hold an id
    index of ``observed_items`` can pass it as ``observed_index``.
    """

    if price_point not in PRICE_POINTS:
        raise ValueError(f"Unknown price point: {price_point!r}")
    if observed_index is None:
        observed_index = index_by_id(observed_items)
    grouped = group_matches(edges, threshold)
    rows: List[ComparisonRow] = []
    for reference in reference_items:
        kept_edges: List[MatchEdge] = []
        kept_items: List[ObservedItem] = []
        selected = grouped.get(reference.id, [])
        for edge, item in zip(selected, resolve_observed(selected, observed_index)):
            if item.price_at(price_point) is None:
                continue
            kept_edges.append(edge)
            kept_items.append(item)
        prices = [item.price_at(price_point) for item in kept_items]
        rows.append(
            ComparisonRow(
                reference=reference,
                matches=tuple(kept_edges),
                matched_items=tuple(kept_items),
                stats=calculate_stats(reference.price, prices),
            )
        )
    return rows


def filter_rows(rows: Iterable[ComparisonRow], search: str = "", status: str = "all") -> List[ComparisonRow]:
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status!r}")
    out = list(rows)
    needle = (search or "").strip().lower()
    if needle:
        out = [
            row
            for row in out
            if needle in row.reference.description.lower() or needle in row.reference.code.lower()
        ]
    if status == "matched":
        out = [row for row in out if row.is_matched]
    elif status == "unmatched":
        out = [row for row in out if not row.is_matched]
    return out


def _variance_sort_value(row: ComparisonRow) -> float:
    if not row.is_matched:
        return UNMATCHED_SORT_VARIANCE
    variance = row.stats.variance_from_avg
    return variance if math.isfinite(variance) else UNMATCHED_SORT_VARIANCE


_SORT_FUNCS = {
    "description": lambda row: row.reference.description.lower(),
    "price": lambda row: row.reference.price,
    "variance": _variance_sort_value,
    "matches": lambda row: len(row.matched_items),
}


def sort_rows(rows: Iterable[ComparisonRow], key: str = "description", descending: bool = False) -> List[ComparisonRow]:
    if key not in _SORT_FUNCS:
        raise ValueError(f"Unknown sort key: {key!r}")
    return sorted(rows, key=_SORT_FUNCS[key], reverse=descending)


@dataclass(frozen=True)
class PortfolioSummary:
    reference_items: int
    observed_items: int
    active_lookups: int
    mapped_products: int
    under_market: int
    within_range: int
    over_market: int
    undefined_variance: int
    largest_undercut_pct: float


def summarize_portfolio(
    rows: Sequence[ComparisonRow],
    observed_count: int,
    active_lookups: int,
) -> PortfolioSummary:
    """Bucket matched rows by variance from average at +/-5 %."""

    matched = [row for row in rows if row.stats.has_data]
    variances = [row.stats.variance_from_avg for row in matched]
    finite = [value for value in variances if math.isfinite(value)]
    under = [value for value in finite if value < -MARKET_BAND_PCT]
    over = [value for value in finite if value > MARKET_BAND_PCT]
    return PortfolioSummary(
        reference_items=len(rows),
        observed_items=int(observed_count),
        active_lookups=int(active_lookups),
        mapped_products=len(matched),
        under_market=len(under),
        within_range=len(finite) - len(under) - len(over),
        over_market=len(over),
        undefined_variance=len(variances) - len(finite),
        largest_undercut_pct=max((abs(value) for value in under), default=0.0),
    )


COMPARISON_COLUMNS = [
    "ID",
    "CODE",
    "DESCRIPTION",
    "PRICE",
    "CURRENCY",
    "MATCHES",
    "BEST_SCORE",
    "MARKET_MIN",
    "MARKET_MAX",
    "MARKET_AVG",
    "VARIANCE_FROM_AVG",
    "VARIANCE_FROM_MIN",
    "HEALTH",
]


def comparison_frame(rows: Sequence[ComparisonRow]) -> pd.DataFrame:
    """Tabular view of comparison rows; market columns are NaN for unmatched rows."""

    records = []
    for row in rows:
        stats = row.stats
        has_data = stats.has_data
        records.append(
            {
                "ID": row.reference.id,
                "CODE": row.reference.code,
                "DESCRIPTION": row.reference.description,
                "PRICE": row.reference.price,
                "CURRENCY": row.reference.currency,
                "MATCHES": stats.count,
                "BEST_SCORE": row.matches[0].score if row.matches else float("nan"),
                "MARKET_MIN": stats.min_price if has_data else float("nan"),
                "MARKET_MAX": stats.max_price if has_data else float("nan"),
                "MARKET_AVG": stats.avg_price if has_data else float("nan"),
                "VARIANCE_FROM_AVG": stats.variance_from_avg if has_data else float("nan"),
                "VARIANCE_FROM_MIN": stats.variance_from_min if has_data else float("nan"),
                "HEALTH": row.health,
            }
        )
    return pd.DataFrame(records, columns=COMPARISON_COLUMNS)


__all__ = [
    "ComparisonRow",
    "PortfolioSummary",
    "SORT_KEYS",
    "STATUS_FILTERS",
    "build_comparison_rows",
    "comparison_frame",
    "filter_rows",
    "health_status",
    "sort_rows",
    "summarize_portfolio",
]
