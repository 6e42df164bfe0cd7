from __future__ import annotations

import pytest

from chordcrack.catalog import (
    ChordCatalog,
    ChordCategory,
    default_catalog,
    map_to_available_sample,
    validate_catalog_document,
)
from chordcrack.errors import ConfigError, UnknownChord


def test_default_catalog_contents():
    catalog = default_catalog()
    assert len(catalog) == 58
    basic = catalog.basic_chords()
    assert len(basic) == 14
    assert {c.id for c in basic} >= {"A", "Am", "C", "G", "Em", "Fm"}
    assert all(c.full_chord_file for c in basic)
    assert default_catalog() is catalog


def test_lookup_and_unknown():
    catalog = default_catalog()
    am = catalog.lookup("Am")
    assert am.category is ChordCategory.BASIC
    assert am.audio_asset_key == "A_minor.m4a"
    assert "Am" in catalog
    assert catalog.get("nope") is None
    with pytest.raises(UnknownChord):
        catalog.lookup("nope")
    # UnknownChord is also a KeyError for mapping-style callers
    with pytest.raises(KeyError):
        catalog.lookup("nope")


def test_categories_partition_catalog():
    catalog = default_catalog()
    total = sum(len(catalog.by_category(cat)) for cat in ChordCategory)
    assert total == len(catalog)
    assert all(not c.is_allowed_in_daily_challenge for c in catalog.by_category("power"))


def test_fingered_positions_skip_open_strings():
    c = default_catalog().lookup("C")
    assert [p.string for p in c.fingered_positions] == ["A3", "D3", "B4"]


def test_duplicate_ids_rejected():
    rec = {"id": "X", "category": "basic", "positions": [["E2", 0]]}
    with pytest.raises(ConfigError):
        ChordCatalog.from_records([rec, rec])


def test_invalid_records_rejected():
    with pytest.raises(ConfigError):
        ChordCatalog.from_records([{"id": "X", "category": "jazz", "positions": [["E2", 0]]}])
    with pytest.raises(ConfigError):
        ChordCatalog.from_records([{"id": "X", "category": "basic", "positions": [["Q1", 0]]}])
    with pytest.raises(ConfigError):
        ChordCatalog.from_yaml("version: 1\nchords: {}\n")


@pytest.mark.parametrize(
    "string,fret,expected",
    [
        ("A3", 2, "A3_fret2.m4a"),
        ("E4", 7, "E4_fret7.m4a"),
        ("E2", 5, "A3_fret0.m4a"),
        ("G3", 7, "B4_fret3.m4a"),
        ("D3", 7, "G3_fret2.m4a"),
        ("B4", 20, "B4_fret4.m4a"),
        ("X9", 7, "X9_fret0.m4a"),
    ],
)
def test_sample_mapping(string, fret, expected):
    assert map_to_available_sample(string, fret) == expected


def test_schema_rejects_bad_documents(caplog):
    bad_fret = "chords:\n  - {id: X, category: basic, positions: [[E2, -1]]}\n"
    with pytest.raises(ConfigError):
        ChordCatalog.from_yaml(bad_fret)
    assert "Catalog schema validation error" in caplog.text

    with pytest.raises(ConfigError):
        validate_catalog_document({"chords": [{"id": "X", "category": "basic", "positions": [["E2", 0]], "x": 1}]})

    validate_catalog_document({"version": 1, "chords": [{"id": "X", "category": "power", "positions": [["E2", 0]]}]})
