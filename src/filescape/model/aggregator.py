"""Top-N selection of a node's children with an Others remainder."""

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import NamedTuple

from filescape.errors import ValidationError
from filescape.model.node import FileNode, make_others_node


class Selection(NamedTuple):
    """Result of select().

    Attributes:
        visible: Items to lay out, largest first, ending with the Others
            node when anything was cut
        others: Real items beyond the limit, kept so they can be entered
    """

    visible: tuple[FileNode, ...]
    others: tuple[FileNode, ...]

    @property
    def others_node(self) -> FileNode | None:
        if self.visible and self.visible[-1].is_others:
            return self.visible[-1]
        return None

    @property
    def real_visible(self) -> tuple[FileNode, ...]:
        """Visible items without the synthetic Others node."""
        return tuple(node for node in self.visible if not node.is_others)


def sort_by_size(nodes: Iterable[FileNode]) -> list[FileNode]:
    """Descending size, ties broken by name."""
    return sorted(nodes, key=lambda n: (-n.size_bytes, n.name))


def select(
    children: Sequence[FileNode],
    enabled_families: Iterable[str] | None = None,
    limit: int = 256,
    family_of: Callable[[FileNode], str] | None = None,
    parent_path: str | Path | None = None,
) -> Selection:
    """Filter, sort and cut a list of children.

    Args:
        children: Children of the focused node
        enabled_families: Families of files to keep; None keeps every
            family. Directories are never filtered out.
        limit: Maximum number of real items in the visible set
        family_of: Family lookup for files; required when filtering
        parent_path: Directory the Others node is placed under; defaults
            to the parent of the first child

    Returns:
        The visible items (plus an Others node if needed) and the remainder
    """
    if limit < 0:
        raise ValidationError("limit", limit, "non-negative integer")

    items = list(children)
    if enabled_families is not None:
        if family_of is None:
            raise ValidationError("family_of", family_of, "callable when filtering by family")
        enabled = set(enabled_families)
        items = [
            node for node in items
            if (node.is_directory and not node.is_package) or family_of(node) in enabled
        ]

    items = sort_by_size(items)
    visible = tuple(items[:limit])
    others = tuple(items[limit:])

    if others:
        if parent_path is None:
            parent_path = Path(others[0].path).parent
        visible = visible + (make_others_node(parent_path, others),)
    return Selection(visible=visible, others=others)
