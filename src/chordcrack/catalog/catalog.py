from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib.resources import files as resource_files
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

from ..errors import ConfigError, UnknownChord
from .models import Chord, ChordCategory, FingerPosition
from .samples import STRING_OFFSETS

logger = logging.getLogger(__name__)

CATALOG_RESOURCE = "chords.yaml"
SCHEMA_RESOURCE = "chords.schema.json"
BASIC_CHORD_COUNT = 14


class ChordCatalog:
    """Immutable lookup table: chord id -> :class:`Chord`.

    Built once from a mapping of records (normally the packaged YAML resource)
    and never mutated afterwards. Iteration follows catalog order.
    """

    def __init__(self, chords: Iterable[Chord]) -> None:
        table: Dict[str, Chord] = {}
        for chord in chords:
            if chord.id in table:
                raise ConfigError(f"Duplicate chord id in catalog: {chord.id!r}")
            table[chord.id] = chord
        self._table: Mapping[str, Chord] = MappingProxyType(table)
        self._by_category: Dict[ChordCategory, tuple] = {
            cat: tuple(c for c in table.values() if c.category is cat) for cat in ChordCategory
        }

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[Chord]:
        return iter(self._table.values())

    def __contains__(self, chord_id: object) -> bool:
        return chord_id in self._table

    def lookup(self, chord_id: str) -> Chord:
        try:
            return self._table[chord_id]
        except KeyError:
            raise UnknownChord(chord_id) from None

    def get(self, chord_id: str) -> Optional[Chord]:
        return self._table.get(chord_id)

    def all(self) -> List[Chord]:
        return list(self._table.values())

    def by_category(self, category: ChordCategory | str) -> List[Chord]:
        return list(self._by_category[ChordCategory(category)])

    def basic_chords(self) -> List[Chord]:
        """The chords eligible for the daily challenge (open majors and minors)."""
        return self.by_category(ChordCategory.BASIC)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "ChordCatalog":
        return cls(_chord_from_record(r) for r in records)

    @classmethod
    def from_yaml(cls, text: str) -> "ChordCatalog":
        raw = yaml.safe_load(text) or {}
        if not isinstance(raw, dict) or not isinstance(raw.get("chords"), list):
            raise ConfigError("Chord catalog must contain a 'chords' list")
        validate_catalog_document(raw)
        records = raw["chords"]
        catalog = cls.from_records(records)
        logger.info("Loaded chord catalog v%s with %d chords", raw.get("version", "?"), len(catalog))
        return catalog


def _chord_from_record(record: Mapping[str, Any]) -> Chord:
    try:
        chord_id = str(record["id"])
        category = ChordCategory(record["category"])
        positions = tuple(FingerPosition(str(s), int(f)) for s, f in record["positions"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid chord record {record!r}: {exc}") from exc
    for pos in positions:
        if pos.string not in STRING_OFFSETS:
            raise ConfigError(f"Chord {chord_id!r} uses unknown string {pos.string!r}")
        if pos.fret < 0:
            raise ConfigError(f"Chord {chord_id!r} has a negative fret on {pos.string}")
    return Chord(
        id=chord_id,
        category=category,
        positions=positions,
        full_chord_file=record.get("audio_file"),
    )


@lru_cache(maxsize=1)
def default_catalog() -> ChordCatalog:
    """Return the packaged catalog, loaded once per process."""
    text = resource_files("chordcrack.catalog").joinpath(CATALOG_RESOURCE).read_text(encoding="utf-8")
    catalog = ChordCatalog.from_yaml(text)
    basic = catalog.basic_chords()
    if len(basic) != BASIC_CHORD_COUNT:
        raise ConfigError(f"Expected {BASIC_CHORD_COUNT} basic chords, found {len(basic)}")
    return catalog


@lru_cache(maxsize=1)
def _load_schema() -> Dict[str, Any]:
    text = resource_files("chordcrack.catalog").joinpath(SCHEMA_RESOURCE).read_text(encoding="utf-8")
    return json.loads(text)


def validate_catalog_document(data: Mapping[str, Any]) -> None:
    """Validate a parsed catalog document against the packaged JSON schema.

    Every error is logged; the first (by path) is raised as :class:`ConfigError`.
    """
    validator = Draft202012Validator(_load_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        for err in errors:
            logger.error("Catalog schema validation error at %s: %s", list(err.path), err.message)
        first = errors[0]
        raise ConfigError(f"Invalid chord catalog at {list(first.path)}: {first.message}") from first
