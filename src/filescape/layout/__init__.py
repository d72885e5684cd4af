"""Layout engine for 3D file system visualization.

This module contains the layout algorithms for positioning
a focused node's children as blocks in 3D space.
"""

from filescape.layout.config import LayoutConfig, PlacementStrategy
from filescape.layout.engine import Connection, LayoutEngine, LayoutResult, PlacementRecord, format_size, relative_sizes
from filescape.layout.geometry import Box, bounds_of

__all__ = [
    "LayoutConfig",
    "PlacementStrategy",
    "Connection",
    "LayoutEngine",
    "LayoutResult",
    "PlacementRecord",
    "format_size",
    "relative_sizes",
    "Box",
    "bounds_of",
]
