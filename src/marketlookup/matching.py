"""Cross matching of reference items against observed items."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Sequence, TypeVar

from .models import MatchEdge, ObservedItem, ReferenceItem
from .similarity import calculate_similarity

LOGGER = logging.getLogger(__name__)

# Pairs scoring at or below the floor are never stored.
MATCH_FLOOR = 10.0

Scorer = Callable[[Sequence[str], Sequence[str]], float]
ItemT = TypeVar("ItemT", ReferenceItem, ObservedItem)


class DuplicateItemError(ValueError):
    """Raised when two items of one collection share an identifier."""


class MatchIntegrityError(LookupError):
    """Raised when an edge names an item missing from its collection."""


def match_reference_item(
    reference: ReferenceItem,
    observed_items: Iterable[ObservedItem],
    scorer: Scorer = calculate_similarity,
) -> List[MatchEdge]:
    """Score one reference item against every observed item."""

    edges: List[MatchEdge] = []
    for observed in observed_items:
        score = scorer(reference.tokens, observed.tokens)
        if score > MATCH_FLOOR:
            edges.append(MatchEdge(reference_id=reference.id, observed_id=observed.id, score=score))
    return edges


def match_items(
    reference_items: Sequence[ReferenceItem],
    observed_items: Sequence[ObservedItem],
    scorer: Scorer = calculate_similarity,
) -> List[MatchEdge]:
    """Evaluate the full ``reference x observed`` cross product.

    Edges come back in iteration order (reference-major).  An item may take
    part in any number of edges.
    """

    edges: List[MatchEdge] = []
    for reference in reference_items:
        edges.extend(match_reference_item(reference, observed_items, scorer))
    LOGGER.debug(
        "Matched %d reference x %d observed items => %d edges above %.1f",
        len(reference_items),
        len(observed_items),
        len(edges),
        MATCH_FLOOR,
    )
    return edges


def _check_threshold(threshold: float) -> float:
    value = float(threshold)
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"Confidence threshold must be between 0 and 100, got {threshold!r}")
    return value


def filter_matches(edges: Iterable[MatchEdge], threshold: float) -> List[MatchEdge]:
    limit = _check_threshold(threshold)
    return [edge for edge in edges if edge.score >= limit]


def matches_for_reference(
    edges: Iterable[MatchEdge],
    reference_id: str,
    threshold: float,
) -> List[MatchEdge]:
    """Edges of one reference item at or above ``threshold``, best score first."""

    return group_matches(edges, threshold).get(reference_id, [])


def group_matches(edges: Iterable[MatchEdge], threshold: float) -> Dict[str, List[MatchEdge]]:
    """Edges at or above ``threshold`` keyed by reference id, best score first.

    The edge collection is read once regardless of how many reference items
    it covers.
    """

    grouped: Dict[str, List[MatchEdge]] = {}
    for edge in filter_matches(edges, threshold):
        grouped.setdefault(edge.reference_id, []).append(edge)
    for selected in grouped.values():
        selected.sort(key=lambda edge: edge.score, reverse=True)
    return grouped


def count_active_matches(edges: Iterable[MatchEdge], threshold: float) -> int:
    return len(filter_matches(edges, threshold))


def index_by_id(items: Iterable[ItemT]) -> Dict[str, ItemT]:
    index: Dict[str, ItemT] = {}
    for item in items:
        if item.id in index:
            raise DuplicateItemError(f"Duplicate item id: {item.id!r}")
        index[item.id] = item
    return index


def resolve_observed(
    edges: Iterable[MatchEdge],
    observed_index: Mapping[str, ObservedItem],
) -> List[ObservedItem]:
    resolved: List[ObservedItem] = []
    for edge in edges:
        item = observed_index.get(edge.observed_id)
        if item is None:
            raise MatchIntegrityError(
                f"Edge {edge.reference_id!r} -> {edge.observed_id!r} references an unknown observed item"
            )
        resolved.append(item)
    return resolved


__all__ = [
    "MATCH_FLOOR",
    "DuplicateItemError",
    "MatchIntegrityError",
    "Scorer",
    "count_active_matches",
    "filter_matches",
    "group_matches",
    "index_by_id",
    "match_items",
    "match_reference_item",
    "matches_for_reference",
    "resolve_observed",
]
