from __future__ import annotations

from typing import Callable

import pytest

from marketlookup.models import ObservedItem, ReferenceItem
from marketlookup.normalize import normalize_text


@pytest.fixture
def reference_factory() -> Callable[..., ReferenceItem]:
    def _create(item_id: str, description: str, price: float = 10.0, **extra) -> ReferenceItem:
        return ReferenceItem(
            id=item_id,
            code=extra.pop("code", item_id.upper()),
            description=description,
            price=price,
            tokens=tuple(normalize_text(description)),
            **extra,
        )

    return _create


@pytest.fixture
def observed_factory() -> Callable[..., ObservedItem]:
    def _create(item_id: str, description: str, price: float = 10.0, **extra) -> ObservedItem:
        return ObservedItem(
            id=item_id,
            description=description,
            price=price,
            tokens=tuple(normalize_text(description)),
            **extra,
        )

    return _create
