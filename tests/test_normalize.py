from __future__ import annotations

from collections import Counter
from pathlib import Path

import marketlookup.normalize as normalize
from marketlookup.normalize import Normalizer, normalize_text


def test_empty_and_missing_text_yield_no_tokens():
    assert normalize_text("") == []
    assert normalize_text(None) == []
    assert normalize_text("!!! --- ///") == []
    assert normalize_text("The and FOR with") == []


def test_normalization_is_deterministic():
    text = "PU Foam Sheet 2kg, 10 pcs (Premium)"
    assert normalize_text(text) == normalize_text(text)


def test_case_and_punctuation_insensitive():
    left = normalize_text("Super-Glue 500ML")
    right = normalize_text("super glue 500 ml")
    assert Counter(left) == Counter(right)
    assert "milliliter" in left


def test_stop_words_removed():
    tokens = normalize_text("Premium Quality Valve")
    assert "premium" not in tokens
    assert "quality" not in tokens
    assert tokens == ["valve"]


def test_abbreviations_expand_on_exact_tokens_only():
    assert normalize_text("PU qty g") == ["polyurethane", "quantity", "gram"]
    # no substring expansion
    assert normalize_text("kgs") == ["kgs"]
    assert normalize_text("gasket") == ["gasket"]


def test_numeric_tokens_first_then_longest():
    assert normalize_text("Premium Quality Valve 1/2 inch") == ["1", "2", "valve", "inch"]
    assert normalize_text("PU Foam 2kg pcs") == ["2", "polyurethane", "kilogram", "pieces", "foam"]


def test_equal_rank_tokens_keep_input_order():
    assert normalize_text("Valve Steel") == ["valve", "steel"]
    assert normalize_text("Steel Valve") == ["steel", "valve"]


def test_unknown_unit_suffix_is_not_split():
    assert normalize_text("M8 bolt") == ["m8", "bolt"]
    assert normalize_text("8mm bolt") == ["8mm", "bolt"]


def test_only_unit_symbols_split_from_numbers():
    assert normalize_text("4G LTE Router") == ["4g", "router", "lte"]
    assert normalize_text("2g Yeast") == ["2", "yeast", "gram"]
    assert normalize_text("Water 5L") == ["5", "water", "liter"]
    assert normalize_text("10pcs Washer") == ["10pcs", "washer"]
    assert normalize_text("2qty") == ["2qty"]


def test_custom_unit_symbols():
    normalizer = Normalizer(units=["mm"])
    assert normalizer.normalize("8mm bolt") == ["8", "bolt", "mm"]
    assert normalizer.normalize("500ml") == ["500ml"]


def test_duplicates_are_kept_in_sequence():
    assert normalize_text("valve VALVE valve") == ["valve", "valve", "valve"]


def test_non_ascii_letters_become_boundaries():
    assert normalize_text("Café-Grün") == ["caf", "gr", "n"]


def test_custom_rules_and_stop_words():
    normalizer = Normalizer(rules={"SS": "stainless"}, stop_words=[])
    assert normalizer.normalize("SS the bolt") == ["stainless", "bolt", "the"]


def test_external_rules_merge_under_static_table(tmp_path: Path):
    csv_path = tmp_path / "rules.csv"
    csv_path.write_text("token,replacement\nss,stainless\nkg,kilo\n,ignored\n", encoding="utf-8")

    rules = normalize.get_normalization_rules(csv_path)
    assert rules["ss"] == "stainless"
    assert rules["kg"] == "kilogram"
    assert normalize.build_normalizer(csv_path).normalize("SS Pipe") == ["stainless", "pipe"]


def test_external_rules_from_env_json(tmp_path: Path, monkeypatch):
    json_path = tmp_path / "rules.json"
    json_path.write_text('{"Brkt": "bracket", "empty": ""}', encoding="utf-8")
    monkeypatch.setenv("NORMALIZATION_RULES_FILE", str(json_path))

    rules = normalize.get_normalization_rules()
    assert rules["brkt"] == "bracket"
    assert "empty" not in rules

    monkeypatch.delenv("NORMALIZATION_RULES_FILE", raising=False)
    assert "brkt" not in normalize.get_normalization_rules()


def test_missing_rules_file_falls_back_to_static_table(tmp_path: Path):
    rules = normalize.get_normalization_rules(tmp_path / "absent.csv")
    assert rules == normalize.NORMALIZATION_RULES
