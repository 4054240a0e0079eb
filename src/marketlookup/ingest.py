"""
Stateless ingestion of reference and observed items.

Items can be built from newline-separated column text (one pasted column per
field, rows aligned by line number) or from CSV/XLSX tables.  Tokens are
computed here, once per item; nothing downstream normalizes again.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .matching import index_by_id
from .models import ObservedItem, ReferenceItem
from .normalize import Normalizer

LOGGER = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"

_NON_NUMERIC_RE = re.compile(r"[^\d.]")
_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_HEADER_RE = re.compile(r"[^a-z0-9]")

_REFERENCE_ALIASES: Dict[str, str] = {
    "id": "id",
    "code": "code",
    "sku": "code",
    "description": "description",
    "size": "size",
    "feature": "feature",
    "otherfeature": "feature",
    "price": "price",
    "currency": "currency",
    "incoterm": "incoterm",
    "moq": "moq",
}

_OBSERVED_ALIASES: Dict[str, str] = {
    "id": "id",
    "description": "description",
    "price": "price",
    "baseprice": "price",
    "minprice": "min_price",
    "maxprice": "max_price",
    "retail": "retail",
    "retailprice": "retail",
    "wholesale": "wholesale",
    "wholesaleprice": "wholesale",
    "currency": "currency",
    "source": "source",
    "country": "region",
    "region": "region",
}


@dataclass(frozen=True)
class ReferenceColumns:
    """Raw column text for the reference catalog, one value per line."""

    code: str = ""
    description: str = ""
    size: str = ""
    feature: str = ""
    price: str = ""
    currency: str = ""
    incoterm: str = ""
    moq: str = ""


@dataclass(frozen=True)
class ObservedColumns:
    """Raw column text for market observations, one value per line."""

    description: str = ""
    price: str = ""
    min_price: str = ""
    max_price: str = ""
    retail: str = ""
    wholesale: str = ""
    currency: str = ""
    source: str = ""
    region: str = ""


def parse_price(value: object | None) -> Optional[float]:
    """Read a price from loosely formatted text.

    Everything but digits and ``.`` is discarded and the leading number is
    used, so ``"$1,234.50"`` reads as ``1234.5``.  Returns ``None`` when no
    number remains.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else abs(number)
    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def _cell(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _optional(value: object | None) -> Optional[str]:
    return _cell(value) or None


def _split_lines(text: str) -> List[str]:
    return (text or "").split("\n")


def _zip_columns(columns: object, row_keys: Iterable[str]) -> List[Dict[str, str]]:
    split = {f.name: _split_lines(getattr(columns, f.name)) for f in fields(columns)}
    row_count = max(len(split[key]) for key in row_keys)
    rows: List[Dict[str, str]] = []
    for i in range(row_count):
        rows.append({name: (values[i] if i < len(values) else "") for name, values in split.items()})
    return rows


def _reference_item(
    index: int,
    row: Mapping[str, object],
    normalizer: Normalizer,
    default_currency: str,
) -> Optional[ReferenceItem]:
    description = _cell(row.get("description"))
    code = _cell(row.get("code"))
    if not description and not code:
        return None
    size = _cell(row.get("size"))
    feature = _cell(row.get("feature"))
    return ReferenceItem(
        id=_cell(row.get("id")) or f"ref-{index}",
        code=code or "N/A",
        description=description or f"Product {index + 1}",
        price=parse_price(row.get("price")) or 0.0,
        currency=_cell(row.get("currency")) or default_currency,
        incoterm=_optional(row.get("incoterm")),
        moq=_optional(row.get("moq")),
        size=size or None,
        feature=feature or None,
        tokens=tuple(normalizer.normalize(f"{description} {size} {feature}")),
    )


def _observed_item(
    index: int,
    row: Mapping[str, object],
    normalizer: Normalizer,
    default_currency: str,
) -> Optional[ObservedItem]:
    description = _cell(row.get("description"))
    if not description and not _cell(row.get("price")):
        return None
    return ObservedItem(
        id=_cell(row.get("id")) or f"obs-{index}",
        description=description or f"Market Item {index + 1}",
        price=parse_price(row.get("price")) or 0.0,
        currency=_cell(row.get("currency")) or default_currency,
        min_price=parse_price(row.get("min_price")),
        max_price=parse_price(row.get("max_price")),
        retail_price=parse_price(row.get("retail")),
        wholesale_price=parse_price(row.get("wholesale")),
        source=_optional(row.get("source")),
        region=_optional(row.get("region")),
        tokens=tuple(normalizer.normalize(description)),
    )


def reference_items_from_rows(
    rows: Iterable[Mapping[str, object]],
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ReferenceItem]:
    normalizer = normalizer or Normalizer()
    items: List[ReferenceItem] = []
    for index, row in enumerate(rows):
        item = _reference_item(index, row, normalizer, default_currency)
        if item is not None:
            items.append(item)
    index_by_id(items)
    return items


def observed_items_from_rows(
    rows: Iterable[Mapping[str, object]],
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ObservedItem]:
    normalizer = normalizer or Normalizer()
    items: List[ObservedItem] = []
    for index, row in enumerate(rows):
        item = _observed_item(index, row, normalizer, default_currency)
        if item is not None:
            items.append(item)
    index_by_id(items)
    return items


def build_reference_items(
    columns: ReferenceColumns,
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ReferenceItem]:
    """Zip pasted reference columns into items.

    Rows run to the longest of the code, description and price columns;
    rows with neither a description nor a code are skipped.
    """

    rows = _zip_columns(columns, ("code", "description", "price"))
    return reference_items_from_rows(rows, normalizer, default_currency)


def build_observed_items(
    columns: ObservedColumns,
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ObservedItem]:
    """Zip pasted observation columns into items.

    Rows run to the longer of the description and price columns; rows with
    neither are skipped.
    """

    rows = _zip_columns(columns, ("description", "price"))
    return observed_items_from_rows(rows, normalizer, default_currency)


def _read_table(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in {".xlsx", ".xlsm", ".xls"}:
        frame = pd.read_excel(path, dtype=str)
    elif suffix in {".csv", ".txt"}:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported table format: {path}")
    return frame.fillna("")


def _canonical_records(frame: pd.DataFrame, aliases: Mapping[str, str]) -> List[Dict[str, object]]:
    rename: Dict[str, str] = {}
    for column in frame.columns:
        key = _HEADER_RE.sub("", str(column).lower())
        target = aliases.get(key)
        if target and target not in rename.values():
            rename[column] = target
    if "description" not in rename.values():
        raise ValueError("Input table has no DESCRIPTION column")
    return frame[list(rename)].rename(columns=rename).to_dict(orient="records")


def load_reference_items(
    path: Path,
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ReferenceItem]:
    path = Path(path)
    records = _canonical_records(_read_table(path), _REFERENCE_ALIASES)
    items = reference_items_from_rows(records, normalizer, default_currency)
    LOGGER.info("Loaded %d reference items from %s", len(items), path)
    return items


def load_observed_items(
    path: Path,
    normalizer: Optional[Normalizer] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> List[ObservedItem]:
    path = Path(path)
    records = _canonical_records(_read_table(path), _OBSERVED_ALIASES)
    items = observed_items_from_rows(records, normalizer, default_currency)
    LOGGER.info("Loaded %d observed items from %s", len(items), path)
    return items


__all__ = [
    "DEFAULT_CURRENCY",
    "ObservedColumns",
    "ReferenceColumns",
    "build_observed_items",
    "build_reference_items",
    "load_observed_items",
    "load_reference_items",
    "observed_items_from_rows",
    "parse_price",
    "reference_items_from_rows",
]
