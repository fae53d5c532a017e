"""Importer package for foreign collection export formats."""

from .ids import flatten_tree, remap, remap_plugins
from .normalizer import IMPORT_FORMATS, canonical_format, detect_format, normalize

__all__ = [
    "IMPORT_FORMATS",
    "canonical_format",
    "detect_format",
    "flatten_tree",
    "normalize",
    "remap",
    "remap_plugins",
]
