"""
Token normalization for free-text product descriptions.

Descriptions are stripped of punctuation, split into tokens (a number
glued to a unit symbol such as ``500ml`` becomes two tokens), lower-cased,
expanded through a small abbreviation/unit table and filtered against a set
of marketing filler words.  The result is ordered so that size/numeric
tokens come first and longer words precede shorter ones.

The abbreviation table can be extended from a CSV (``token,replacement``)
or JSON file named by ``NORMALIZATION_RULES_FILE``.  Entries in the static
table always win over external ones.
"""

from __future__ import annotations

import csv
import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

LOGGER = logging.getLogger(__name__)

NORMALIZATION_RULES: Dict[str, str] = {
    "kg": "kilogram",
    "g": "gram",
    "ml": "milliliter",
    "l": "liter",
    "pu": "polyurethane",
    "qty": "quantity",
    "pcs": "pieces",
}

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "premium",
        "high",
        "quality",
        "original",
        "authentic",
        "top",
        "grade",
        "the",
        "and",
        "for",
        "with",
    }
)

# Unit symbols split off a glued number ("500ml"). Case-sensitive, so "4G" stays whole.
GLUED_UNITS: FrozenSet[str] = frozenset({"kg", "Kg", "KG", "g", "ml", "mL", "ML", "l", "L"})

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9\s]")
_DIGIT_RE = re.compile(r"\d")
_NUMBER_UNIT_RE = re.compile(r"^(\d+)([A-Za-z]+)$")


def _token_sort_key(token: str) -> tuple[int, int]:
    has_digit = 0 if _DIGIT_RE.search(token) else 1
    return has_digit, -len(token)


class Normalizer:
    """Turns raw description text into an ordered sequence of comparable tokens."""

    def __init__(
        self,
        rules: Optional[Mapping[str, str]] = None,
        stop_words: Optional[Iterable[str]] = None,
        units: Optional[Iterable[str]] = None,
    ) -> None:
        source = NORMALIZATION_RULES if rules is None else rules
        self.rules: Dict[str, str] = {str(k).lower(): str(v) for k, v in source.items()}
        self.stop_words: FrozenSet[str] = (
            STOP_WORDS if stop_words is None else frozenset(w.lower() for w in stop_words)
        )
        self.units: FrozenSet[str] = GLUED_UNITS if units is None else frozenset(units)

    def _split_units(self, tokens: Iterable[str]) -> List[str]:
        # "500ml" -> "500", "ml"; runs before lower-casing
        out: List[str] = []
        for token in tokens:
            match = _NUMBER_UNIT_RE.match(token)
            if match and match.group(2) in self.units:
                out.extend(match.groups())
            else:
                out.append(token)
        return out

    def normalize(self, text: Optional[str]) -> List[str]:
        if not text:
            return []

        clean = _NON_ALNUM_RE.sub(" ", str(text))
        tokens = [token.lower() for token in self._split_units(clean.split())]
        tokens = [self.rules.get(token, token) for token in tokens]
        tokens = [token for token in tokens if token not in self.stop_words]
        # sorted() is stable, so equal-rank tokens keep their input order
        return sorted(tokens, key=_token_sort_key)


_DEFAULT_NORMALIZER = Normalizer()


def normalize_text(text: Optional[str]) -> List[str]:
    """Normalize ``text`` with the built-in rule and stop-word tables."""

    return _DEFAULT_NORMALIZER.normalize(text)


def get_normalization_rules(path: Path | None = None) -> Dict[str, str]:
    """Return the static rule table merged with optional external rules."""

    merged: Dict[str, str] = dict(NORMALIZATION_RULES)
    target = _resolve_rules_path(path)
    if target is None:
        return merged
    for token, replacement in load_normalization_rules(target).items():
        merged.setdefault(token, replacement)
    return merged


def build_normalizer(path: Path | None = None) -> Normalizer:
    return Normalizer(rules=get_normalization_rules(path))


def _resolve_rules_path(path: Path | None) -> Optional[Path]:
    if path:
        candidate = Path(path)
    else:
        env_path = os.environ.get("NORMALIZATION_RULES_FILE", "").strip()
        if not env_path:
            return None
        candidate = Path(env_path)
    if candidate.exists():
        return candidate
    LOGGER.warning("Normalization rules file not found: %s", candidate)
    return None


@lru_cache(maxsize=None)
def load_normalization_rules(path: Path) -> Dict[str, str]:
    """Load abbreviation rules from a CSV or JSON file.

    CSV files need ``token`` and ``replacement`` columns; JSON files hold a
    single object mapping tokens to replacements.  Keys are lower-cased.
    """

    suffix = path.suffix.lower()
    if suffix == ".csv":
        records = _load_csv(path)
    elif suffix == ".json":
        records = _load_json(path)
    else:
        LOGGER.warning("Unsupported normalization rules format: %s", path)
        return {}
    LOGGER.debug("Loaded %d normalization rules from %s", len(records), path)
    return records


def _load_csv(path: Path) -> Dict[str, str]:
    rules: Dict[str, str] = {}
    with path.open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            token = (row.get("token") or "").strip().lower()
            replacement = (row.get("replacement") or "").strip().lower()
            if not token or not replacement:
                continue
            rules[token] = replacement
    return rules


def _load_json(path: Path) -> Dict[str, str]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Normalization rules in {path} must be a JSON object")
    rules: Dict[str, str] = {}
    for token, replacement in payload.items():
        key = str(token).strip().lower()
        value = str(replacement or "").strip().lower()
        if key and value:
            rules[key] = value
    return rules


__all__ = [
    "NORMALIZATION_RULES",
    "GLUED_UNITS",
    "STOP_WORDS",
    "Normalizer",
    "build_normalizer",
    "get_normalization_rules",
    "load_normalization_rules",
    "normalize_text",
]
