"""Product description matching and market price comparison."""

from .api import LookupSession
from .matching import MATCH_FLOOR, match_items
from .models import MatchEdge, ObservedItem, PricingStats, ReferenceItem
from .normalize import Normalizer, normalize_text
from .price_logic import calculate_stats
from .similarity import calculate_similarity

__all__ = [
    "LookupSession",
    "MATCH_FLOOR",
    "MatchEdge",
    "Normalizer",
    "ObservedItem",
    "PricingStats",
    "ReferenceItem",
    "calculate_similarity",
    "calculate_stats",
    "match_items",
    "normalize_text",
]
