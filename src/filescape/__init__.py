"""filescape: turn a folder into sized, colored 3D blocks.

The package scans a directory tree into immutable FileNode values,
classifies nodes into visual families, and lays a focused node's children
out as placement records for an external renderer.
"""

from filescape.classify import ClassificationTag, Tagger, TagRegistry
from filescape.controller import Explorer
from filescape.layout import LayoutConfig, LayoutEngine, LayoutResult, PlacementRecord, PlacementStrategy
from filescape.model import FileNode, NodeState, ScanOptions, Scanner, select

__version__ = "0.1.0"

__all__ = [
    "ClassificationTag",
    "Tagger",
    "TagRegistry",
    "Explorer",
    "LayoutConfig",
    "LayoutEngine",
    "LayoutResult",
    "PlacementRecord",
    "PlacementStrategy",
    "FileNode",
    "NodeState",
    "ScanOptions",
    "Scanner",
    "select",
]
