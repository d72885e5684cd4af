"""Classification of file nodes into families, tags and colors."""

from filescape.classify.registry import FAMILIES, TagRegistry
from filescape.classify.tagger import ClassificationBatch, ClassificationTag, SniffPolicy, Tagger

__all__ = [
    "FAMILIES",
    "TagRegistry",
    "ClassificationBatch",
    "ClassificationTag",
    "SniffPolicy",
    "Tagger",
]
