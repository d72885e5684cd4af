"""Controller layer for filescape.

Coordinates the model (scan, selection) and layout layers for a host UI.
"""

from filescape.controller.explorer import Explorer, ExplorerView

__all__ = ["Explorer", "ExplorerView"]
