from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .analysis import ComparisonRow, build_comparison_rows
from .ingest import (
    DEFAULT_CURRENCY,
    ObservedColumns,
    ReferenceColumns,
    build_observed_items,
    build_reference_items,
    load_observed_items,
    load_reference_items,
)
from .matching import Scorer, count_active_matches, index_by_id, match_items
from .models import MatchEdge, ObservedItem, PricingStats, ReferenceItem
from .normalize import Normalizer
from .similarity import calculate_similarity


@dataclass
class LookupSession:
    """Item collections and match edges of one run.

    Edges are computed once; changing the confidence threshold only
    re-filters them and re-aggregates prices.
    """

    reference_items: Sequence[ReferenceItem]
    observed_items: Sequence[ObservedItem]
    edges: List[MatchEdge] = field(default_factory=list)
    _reference_index: Dict[str, ReferenceItem] = field(default_factory=dict, init=False, repr=False)
    _observed_index: Dict[str, ObservedItem] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.reference_items = tuple(self.reference_items)
        self.observed_items = tuple(self.observed_items)
        self._reference_index = index_by_id(self.reference_items)
        self._observed_index = index_by_id(self.observed_items)

    @classmethod
    def run(
        cls,
        reference_items: Sequence[ReferenceItem],
        observed_items: Sequence[ObservedItem],
        scorer: Scorer = calculate_similarity,
    ) -> "LookupSession":
        edges = match_items(reference_items, observed_items, scorer=scorer)
        return cls(reference_items=reference_items, observed_items=observed_items, edges=edges)

    @classmethod
    def from_columns(
        cls,
        reference_columns: ReferenceColumns,
        observed_columns: ObservedColumns,
        normalizer: Optional[Normalizer] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> "LookupSession":
        normalizer = normalizer or Normalizer()
        return cls.run(
            build_reference_items(reference_columns, normalizer, default_currency),
            build_observed_items(observed_columns, normalizer, default_currency),
        )

    @classmethod
    def from_files(
        cls,
        reference_path: Path,
        observed_path: Path,
        normalizer: Optional[Normalizer] = None,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> "LookupSession":
        normalizer = normalizer or Normalizer()
        return cls.run(
            load_reference_items(reference_path, normalizer, default_currency),
            load_observed_items(observed_path, normalizer, default_currency),
        )

    def rows(self, threshold: float, price_point: str = "price") -> List[ComparisonRow]:
        return build_comparison_rows(
            self.reference_items,
            self.observed_items,
            self.edges,
            threshold,
            price_point=price_point,
            observed_index=self._observed_index,
        )

    def stats_for(self, reference_id: str, threshold: float, price_point: str = "price") -> PricingStats:
        reference = self._reference_index.get(reference_id)
        if reference is None:
            raise KeyError(reference_id)
        row = build_comparison_rows(
            (reference,),
            self.observed_items,
            self.edges,
            threshold,
            price_point=price_point,
            observed_index=self._observed_index,
        )[0]
        return row.stats

    def active_lookups(self, threshold: float) -> int:
        return count_active_matches(self.edges, threshold)


__all__ = ["LookupSession"]
