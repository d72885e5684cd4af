"""Explorer session coordinating scan, selection and layout.

Holds the navigation state a host UI needs (focus, breadcrumbs, selection,
search text, family filter) and turns it into a LayoutResult on demand.
It performs blocking I/O in rescan() and enter(); Qt hosts run those
through a ScannerWorker or another thread of their choosing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from filescape.classify.registry import FAMILIES
from filescape.classify.tagger import SniffPolicy, Tagger
from filescape.errors import FilescapeError
from filescape.layout.config import LayoutConfig
from filescape.layout.engine import LayoutEngine, LayoutResult
from filescape.model.aggregator import Selection, select
from filescape.model.node import FileNode, NodeState, is_others_path
from filescape.model.scanner import PREVIEW_LIMIT, Scanner, ScanOptions

logger = logging.getLogger(__name__)

EMPTY_FOLDER_MESSAGE = (
    "This folder appears empty. If this seems wrong, try including hidden "
    "files or choose the folder directly to grant access."
)


@dataclass(frozen=True)
class ExplorerView:
    """Everything a renderer needs for the current focus.

    Attributes:
        result: Placements for the focused node's visible children
        selection: Visible items and the Others remainder
        overlay_message: Hint to show over an empty scene, if any
    """

    result: LayoutResult
    selection: Selection
    overlay_message: str | None = None


class Explorer:
    """Navigation session over one scanned root."""

    def __init__(
        self,
        root: Path | str,
        scan_options: ScanOptions | None = None,
        layout_config: LayoutConfig | None = None,
        tagger: Tagger | None = None,
        scanner: Scanner | None = None,
    ) -> None:
        """Initialize the explorer.

        Args:
            root: Root directory to visualize
            scan_options: Options for the initial and on-demand scans
            layout_config: Layout configuration
            tagger: Classifier shared by filtering and layout
            scanner: Scanner used for every scan
        """
        self.root_path = Path(root)
        self.scan_options = scan_options or ScanOptions()
        self.tagger = tagger or Tagger()
        self.scanner = scanner or Scanner()
        self.layout_engine = LayoutEngine(layout_config, self.tagger)

        self.limit = 256
        self.enabled_families: set[str] = set(FAMILIES)
        self.search_text = ""
        self.sniff_policy = SniffPolicy.IN_ORDER

        self._nav_stack: list[FileNode] = []
        self._selected: FileNode | None = None
        self._others: tuple[FileNode, ...] = ()
        self._preview_cache: dict[str, tuple[FileNode, ...]] = {}

    # Navigation

    @property
    def root(self) -> FileNode | None:
        return self._nav_stack[0] if self._nav_stack else None

    @property
    def focus(self) -> FileNode | None:
        return self._nav_stack[-1] if self._nav_stack else None

    @property
    def selected(self) -> FileNode | None:
        return self._selected

    def breadcrumbs(self) -> list[FileNode]:
        return list(self._nav_stack)

    def rescan(self) -> FileNode:
        """Scan the root again and reset navigation to it."""
        node = self.scanner.scan(self.root_path, self.scan_options)
        self._nav_stack = [node]
        self._selected = None
        self._others = ()
        self._preview_cache.clear()
        return node

    def enter(self, node: FileNode | None = None) -> FileNode | None:
        """Make a directory (the selection by default) the new focus.

        Entering the Others node focuses a synthetic container holding the
        items it stands for. Entering a real directory scans it again so
        the levels below the previous depth cut-off become visible.

        Returns:
            The new focus, or None if the node cannot be entered
        """
        node = node or self._selected
        if node is None or not node.is_directory or node.is_package:
            return None

        if node.is_others:
            focus = FileNode(
                path=node.path,
                name=node.name,
                is_directory=True,
                size_bytes=node.size_bytes,
                children=self._others,
                state=NodeState.SYNTHETIC,
            )
        else:
            focus = self.scanner.scan(node.path, self.scan_options)

        self._nav_stack.append(focus)
        self._selected = None
        return focus

    def go_up(self) -> FileNode | None:
        """Return to the previous focus."""
        if len(self._nav_stack) <= 1:
            return None
        self._nav_stack.pop()
        self._selected = None
        return self.focus

    def go_to_breadcrumb(self, index: int) -> FileNode | None:
        if not 0 <= index < len(self._nav_stack):
            return None
        del self._nav_stack[index + 1:]
        self._selected = None
        return self.focus

    # Selection and search

    def select_path(self, path: str | None) -> FileNode | None:
        """Select a node of the current focus by path; None clears."""
        focus = self.focus
        if path is None or focus is None:
            self._selected = None
            return None
        if is_others_path(path):
            selection = self._select_children(focus)
            self._others = selection.others
            self._selected = selection.others_node
        else:
            self._selected = focus.find(path)
        return self._selected

    def match_paths(self, nodes: list[FileNode] | tuple[FileNode, ...]) -> set[str]:
        """Paths of nodes whose name contains the search text."""
        query = self.search_text.strip().lower()
        if not query:
            return set()
        return {node.path for node in nodes if query in node.name.lower()}

    def is_actionable(self, node: FileNode | None) -> bool:
        """Whether open/reveal/trash may be offered for a node."""
        return node is not None and not is_others_path(node.path) and node.state is not NodeState.SYNTHETIC

    def preview_children(self, node: FileNode | None, limit: int = PREVIEW_LIMIT) -> tuple[FileNode, ...] | None:
        """Children to hint at inside a block without entering it.

        Folders preview the children already scanned. Packages get a
        one-level listing of at most PREVIEW_LIMIT entries, cached per
        path until the next rescan. Files and unlistable packages have no
        preview.
        """
        if node is None or node.is_others:
            return None
        if node.is_directory and not node.is_package:
            return node.children[:limit]
        if not node.is_package:
            return None

        cached = self._preview_cache.get(node.path)
        if cached is None:
            try:
                cached = self.scanner.preview(node.path, self.scan_options, limit=PREVIEW_LIMIT)
            except FilescapeError as e:
                logger.debug(f"No preview for {node.path}: {e}")
                return None
            self._preview_cache[node.path] = cached
        return cached[:limit]

    # Building

    def _select_children(self, focus: FileNode) -> Selection:
        return select(
            focus.children,
            enabled_families=self.enabled_families,
            limit=self.limit,
            family_of=self.tagger.family_of,
            parent_path=focus.path,
        )

    def build(self) -> ExplorerView:
        """Lay out the focused node's children.

        Each call is one classification batch: the sniff budget is reset
        once here and shared by every node of the pass.
        """
        focus = self.focus
        if focus is None:
            empty = Selection(visible=(), others=())
            return ExplorerView(result=LayoutResult(), selection=empty)

        selection = self._select_children(focus)
        self._others = selection.others

        batch = self.tagger.begin_batch()
        classifications = self.tagger.classify_many(selection.visible, batch, self.sniff_policy)
        selected = {self._selected.path} if self._selected is not None else set()
        result = self.layout_engine.layout(
            selection.visible,
            classifications,
            selected=selected,
            matched=self.match_paths(selection.visible),
        )

        message = EMPTY_FOLDER_MESSAGE if not focus.children else None
        logger.debug(f"Built view for {focus.path}: {len(result.placements)} placements")
        return ExplorerView(result=result, selection=selection, overlay_message=message)
