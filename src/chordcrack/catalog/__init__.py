"""Static chord data: finger positions, categories and audio sample mapping."""
from .catalog import BASIC_CHORD_COUNT, ChordCatalog, default_catalog, validate_catalog_document
from .models import Chord, ChordCategory, FingerPosition
from .samples import BASS_STRINGS, TREBLE_STRINGS, map_to_available_sample

__all__ = [
    "BASIC_CHORD_COUNT",
    "BASS_STRINGS",
    "TREBLE_STRINGS",
    "Chord",
    "ChordCatalog",
    "ChordCategory",
    "FingerPosition",
    "default_catalog",
    "map_to_available_sample",
    "validate_catalog_document",
]
