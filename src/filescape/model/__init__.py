"""Model layer for filescape.

This module contains the immutable node tree, the scanner that builds it
from the file system, and the Top-N aggregator that prepares a node's
children for layout.
"""

from filescape.model.aggregator import Selection, select
from filescape.model.metadata import FileMetadata, MetadataProvider
from filescape.model.node import OTHERS_SENTINEL, FileNode, NodeState, is_others_path, make_others_node
from filescape.model.scanner import ScanOptions, ScanProgress, Scanner, ScannerWorker

__all__ = [
    "Selection",
    "select",
    "FileMetadata",
    "MetadataProvider",
    "OTHERS_SENTINEL",
    "FileNode",
    "NodeState",
    "is_others_path",
    "make_others_node",
    "ScanOptions",
    "ScanProgress",
    "Scanner",
    "ScannerWorker",
]
