from __future__ import annotations

import math

from a11y_core.filters import TouchpointFilters, normalize_filters
from a11y_core.touchpoints import (
    TouchpointSummary,
    compute_touchpoints,
    find_key,
    parse_touchpoint_row,
    parse_touchpoint_sheet,
    RESOLVED_PATTERNS,
)


def test_basic_row():
    row = {"Touchpoint": "Home", "Gravità A": "5", "Gravità AA": "3", "Gravità AAA": "0"}
    assert parse_touchpoint_row(row) == TouchpointSummary(name="Home", A=5, AA=3, AAA=0, total=8)
    assert parse_touchpoint_row(row).to_dict() == {"name": "Home", "A": 5, "AA": 3, "AAA": 0, "total": 8}


def test_sheet_parsing(touchpoint_rows):
    parsed = parse_touchpoint_sheet(touchpoint_rows)
    assert [r.name for r in parsed] == ["Login", "Home", "Carte"]

    login, home, carte = parsed
    assert (login.A, login.AA, login.AAA, login.total) == (10, 2, 1, 13)
    assert login.unresolved is None and login.resolved is None and login.recheck is None

    assert home.total == 8
    assert (home.unresolved, home.resolved, home.recheck) == (4, 3, 1)

    # invalid "A" cell coerces to 0, missing AAA too
    assert (carte.A, carte.AA, carte.AAA, carte.total) == (0, 7, 0, 7)


def test_total_is_always_recomputed(touchpoint_rows):
    for r in parse_touchpoint_sheet(touchpoint_rows):
        assert r.total == r.A + r.AA + r.AAA


def test_rows_without_name_are_skipped():
    assert parse_touchpoint_sheet([{"Gravità A": 3}, {"Touchpoint": ""}, {}, "junk"]) == []


def test_resolved_column_ignores_non_resolved_column():
    row = {"Segnalazioni non risolte": 4, "Segnalazioni risolte": 9}
    assert find_key(row, RESOLVED_PATTERNS) == "Segnalazioni risolte"
    assert find_key({"Non risolti": 1}, RESOLVED_PATTERNS) is None


def test_optional_columns_only_when_present():
    summary = parse_touchpoint_row({"Touchpoint": "Faq", "Risolte": "n/d"})
    assert summary.resolved == 0
    assert summary.unresolved is None
    assert "unresolved" not in summary.to_dict()


def test_sorted_by_total_desc_with_stable_ties():
    rows = [{"Touchpoint": n, "Gravità A": 1} for n in ("B", "A", "C")] + [{"Touchpoint": "Top", "Gravità AA": 5}]
    assert [r.name for r in parse_touchpoint_sheet(rows)] == ["Top", "B", "A", "C"]


def test_compute_touchpoints_totals_and_default_sort(touchpoint_rows):
    payload = compute_touchpoints(parse_touchpoint_sheet(touchpoint_rows), TouchpointFilters())
    assert payload["totals"] == {"A": 15, "AA": 12, "AAA": 1, "total": 28, "unresolved": 4}
    assert [r["name"] for r in payload["rows"]] == ["Login", "Home", "Carte"]
    assert payload["row_count"] == 3
    assert "levels" in payload["charts"]
    assert payload["empty"] is False


def test_compute_touchpoints_search_is_accent_insensitive():
    rows = parse_touchpoint_sheet(
        [{"Touchpoint": "Area Città", "Gravità A": 1}, {"Touchpoint": "Home", "Gravità A": 2}]
    )
    payload = compute_touchpoints(rows, normalize_filters({"query": " CITTA "}))
    assert [r["name"] for r in payload["rows"]] == ["Area Città"]
    # totals strip always covers every row
    assert payload["totals"]["A"] == 3


def test_compute_touchpoints_sorting(touchpoint_rows):
    rows = parse_touchpoint_sheet(touchpoint_rows)

    by_aa = compute_touchpoints(rows, TouchpointFilters(sort_by="AA", direction="asc"))
    assert [r["name"] for r in by_aa["rows"]] == ["Login", "Home", "Carte"]

    by_name = compute_touchpoints(rows, TouchpointFilters(sort_by="name", direction="asc"))
    assert [r["name"] for r in by_name["rows"]] == ["Carte", "Home", "Login"]

    by_name_desc = compute_touchpoints(rows, TouchpointFilters(sort_by="name", direction="desc"))
    assert [r["name"] for r in by_name_desc["rows"]] == ["Login", "Home", "Carte"]


def test_compute_touchpoints_empty():
    payload = compute_touchpoints([], TouchpointFilters())
    assert payload["empty"] is True
    assert payload["rows"] == []
    assert payload["charts"] == {}


def test_normalize_filters_defaults():
    assert normalize_filters(None) == TouchpointFilters()
    assert normalize_filters({"sort_by": "aa", "direction": "ASC"}) == TouchpointFilters(sort_by="AA", direction="asc")
    assert normalize_filters({"sort_by": "bogus", "direction": "sideways"}) == TouchpointFilters()


def test_oversized_hex_cell_does_not_raise():
    parsed = parse_touchpoint_sheet([{"Touchpoint": "Home", "Gravità A": "0x" + "F" * 300, "Gravità AA": 2}])
    assert [r.name for r in parsed] == ["Home"]
    assert parsed[0].A == math.inf
    assert parsed[0].total == math.inf
