from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from marketlookup.ingest import (
    ObservedColumns,
    ReferenceColumns,
    build_observed_items,
    build_reference_items,
    load_observed_items,
    load_reference_items,
    observed_items_from_rows,
    parse_price,
)
from marketlookup.matching import DuplicateItemError


def test_parse_price_variants():
    assert parse_price("$1,234.50") == 1234.5
    assert parse_price("12.5.3") == 12.5
    assert parse_price(" 7 USD") == 7.0
    assert parse_price(".5") == 0.5
    assert parse_price(7) == 7.0
    assert parse_price("abc") is None
    assert parse_price("") is None
    assert parse_price(".") is None
    assert parse_price(None) is None
    assert parse_price(float("nan")) is None


def test_build_reference_items_from_columns():
    columns = ReferenceColumns(
        code="SKU-101\n\nSKU-103",
        description="Standard Valve\n\n",
        size="1/2 inch",
        feature="Stainless Steel",
        price="10.50\n\n$7",
        currency="\n\nEUR",
        incoterm="FOB",
        moq="100",
    )

    items = build_reference_items(columns)

    assert [item.id for item in items] == ["ref-0", "ref-2"]
    first, third = items
    assert first.code == "SKU-101"
    assert first.price == 10.5
    assert first.currency == "USD"
    assert first.incoterm == "FOB"
    assert first.moq == "100"
    assert first.size == "1/2 inch"
    assert first.tokens == ("1", "2", "stainless", "standard", "valve", "steel", "inch")

    assert third.description == "Product 3"
    assert third.price == 7.0
    assert third.currency == "EUR"
    assert third.incoterm is None
    assert third.size is None
    assert third.tokens == ()


def test_build_reference_items_defaults_code_and_price():
    items = build_reference_items(ReferenceColumns(description="Hose Clamp"))
    assert len(items) == 1
    assert items[0].code == "N/A"
    assert items[0].price == 0.0


def test_build_observed_items_from_columns():
    columns = ObservedColumns(
        description="Valve Standard\nUnrelated Widget\n",
        price="11\n999\n5",
        retail="\n1200",
        source="Alibaba\nLocal",
        region="CN",
    )

    items = build_observed_items(columns)

    assert [item.id for item in items] == ["obs-0", "obs-1", "obs-2"]
    assert items[0].tokens == ("standard", "valve")
    assert items[0].retail_price is None
    assert items[0].region == "CN"
    assert items[1].retail_price == 1200.0
    assert items[1].source == "Local"
    assert items[1].min_price is None
    assert items[2].description == "Market Item 3"
    assert items[2].price == 5.0
    assert items[2].tokens == ()


def test_empty_columns_produce_no_items():
    assert build_reference_items(ReferenceColumns()) == []
    assert build_observed_items(ObservedColumns()) == []


def test_duplicate_ids_rejected():
    with pytest.raises(DuplicateItemError):
        observed_items_from_rows([{"id": "x", "description": "a"}, {"id": "x", "description": "b"}])


def test_load_reference_items_from_csv(tmp_path: Path):
    path = tmp_path / "catalog.csv"
    path.write_text(
        "Code,Description,Price,Currency,MOQ\n"
        "SKU-1,Standard Valve,10.00,,100\n"
        ",,,,\n"
        "SKU-3,Brass Elbow 1/2,\"1,250.00\",EUR,\n",
        encoding="utf-8",
    )

    items = load_reference_items(path, default_currency="GBP")

    assert [item.id for item in items] == ["ref-0", "ref-2"]
    assert items[0].currency == "GBP"
    assert items[0].moq == "100"
    assert items[1].price == 1250.0
    assert items[1].moq is None
    assert items[1].tokens == ("1", "2", "brass", "elbow")


def test_load_observed_items_honours_id_column(tmp_path: Path):
    path = tmp_path / "market.csv"
    path.write_text(
        "ID,Description,Base Price,Min Price,Wholesale,Country\n"
        "M-1,Valve Standard,11,9,8.5,CN\n"
        "M-2,Unrelated Widget,999,,,\n",
        encoding="utf-8",
    )

    items = load_observed_items(path)

    assert [item.id for item in items] == ["M-1", "M-2"]
    assert items[0].min_price == 9.0
    assert items[0].wholesale_price == 8.5
    assert items[0].region == "CN"
    assert items[1].min_price is None
    assert items[1].region is None


def test_load_requires_description_column(tmp_path: Path):
    path = tmp_path / "bad.csv"
    path.write_text("Code,Price\nA,1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_reference_items(path)


def test_load_rejects_unknown_format(tmp_path: Path):
    path = tmp_path / "catalog.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_reference_items(path)


def test_load_reference_items_from_xlsx(tmp_path: Path):
    pytest.importorskip("openpyxl")
    path = tmp_path / "catalog.xlsx"
    pd.DataFrame(
        {"CODE": ["SKU-1"], "DESCRIPTION": ["Standard Valve"], "PRICE": [10.5], "SIZE": ["DN15"]}
    ).to_excel(path, index=False)

    items = load_reference_items(path)

    assert len(items) == 1
    assert items[0].price == 10.5
    assert items[0].size == "DN15"
    assert set(items[0].tokens) == {"standard", "valve", "dn15"}
