from __future__ import annotations

from pathlib import Path

import pytest

from marketlookup.api import LookupSession
from marketlookup.ingest import ObservedColumns, ReferenceColumns
from marketlookup.matching import DuplicateItemError


def _valve_session() -> LookupSession:
    return LookupSession.from_columns(
        ReferenceColumns(code="SKU-101", description="Standard Valve", price="10"),
        ObservedColumns(description="Valve Standard\nUnrelated Widget", price="11\n999"),
    )


def test_valve_scenario_end_to_end():
    session = _valve_session()

    assert len(session.edges) == 1
    edge = session.edges[0]
    assert (edge.reference_id, edge.observed_id) == ("ref-0", "obs-0")
    assert edge.score > 10.0

    stats = session.stats_for("ref-0", 50)
    assert stats.count == 1
    assert stats.min_price == stats.max_price == stats.avg_price == 11.0
    assert stats.variance_from_avg == pytest.approx(-9.09, abs=0.01)


def test_threshold_changes_reuse_edges():
    session = _valve_session()
    edges_before = list(session.edges)

    assert session.active_lookups(50) == 1
    assert session.active_lookups(100) == 1
    assert session.rows(100)[0].stats.count == 1
    assert session.edges == edges_before


def test_unknown_reference_id():
    with pytest.raises(KeyError):
        _valve_session().stats_for("ref-99", 50)


def test_session_rejects_duplicate_ids(reference_factory, observed_factory):
    with pytest.raises(DuplicateItemError):
        LookupSession.run(
            [reference_factory("r1", "valve"), reference_factory("r1", "pipe")],
            [observed_factory("o1", "valve")],
        )


def test_from_files(tmp_path: Path):
    reference = tmp_path / "reference.csv"
    reference.write_text("Code,Description,Price\nSKU-1,Standard Valve,10\n", encoding="utf-8")
    observed = tmp_path / "observed.csv"
    observed.write_text("Description,Price\nValve Standard,11\nValve Standard Kit,13\n", encoding="utf-8")

    session = LookupSession.from_files(reference, observed)
    rows = session.rows(50)

    assert len(rows) == 1
    assert rows[0].stats.count == 2
    assert rows[0].stats.avg_price == 12.0
    assert [item.id for item in rows[0].matched_items] == ["obs-0", "obs-1"]


class _CountingEdges(list):
    """Edge list that records how often it is iterated."""

    passes = 0

    def __iter__(self):
        self.passes += 1
        return super().__iter__()


def test_rows_read_edges_once_per_call(reference_factory, observed_factory):
    reference = [reference_factory(f"r{i}", f"valve model {i}") for i in range(20)]
    observed = [observed_factory(f"o{i}", f"valve model {i}", 10.0 + i) for i in range(20)]
    edges = _CountingEdges(LookupSession.run(reference, observed).edges)
    session = LookupSession(reference, observed, edges=edges)

    rows = session.rows(50)
    assert edges.passes == 1
    assert len(rows) == 20
    assert all(row.stats.count >= 1 for row in rows)

    session.rows(90)
    assert edges.passes == 2


def test_stats_for_reuses_observed_index(monkeypatch):
    session = _valve_session()

    def _rebuild(items):
        raise AssertionError("observed items were re-indexed")

    monkeypatch.setattr("marketlookup.analysis.index_by_id", _rebuild)

    assert session.stats_for("ref-0", 50).count == 1
    assert session.rows(50)[0].stats.count == 1
