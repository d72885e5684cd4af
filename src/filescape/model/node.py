"""FileNode value type representing a scanned file system entry."""

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Self

OTHERS_SENTINEL = "__filescape_others__"


class NodeState(Enum):
    """How completely a node reflects what is on disk."""

    COMPLETE = "complete"
    TRUNCATED = "truncated"  # max depth reached, more content below
    CYCLE_SKIPPED = "cycle_skipped"  # canonical path already visited
    HIDDEN = "hidden"  # hidden entry kept as a zero-size placeholder
    SYNTHETIC = "synthetic"  # Others aggregate, not a real entry


@dataclass(frozen=True, eq=False)
class FileNode:
    """Represents a file, package or directory in a scanned tree.

    Nodes are immutable: the scanner builds the children first and then
    constructs the parent around the finished tuple. A rescan produces a
    new tree.

    Attributes:
        path: Canonical absolute path as a string
        name: Display name (last path component)
        is_directory: Whether the entry is a directory
        is_package: Whether the directory is an opaque bundle
        extension: Lowercase extension without the dot ("" when absent)
        type_identifier: Best-effort type string such as "image/png"
        size_bytes: Allocated size for files, aggregated size for directories
        created: Creation time as Unix timestamp, if known
        modified: Modification time as Unix timestamp, if known
        accessed: Access time as Unix timestamp, if known
        children: Child nodes (empty for leaves)
        state: Completeness marker, see NodeState
        id: Synthetic identifier used for UI selection
    """

    path: str
    name: str
    is_directory: bool = False
    is_package: bool = False
    extension: str = ""
    type_identifier: str | None = None
    size_bytes: int = 0
    created: float | None = None
    modified: float | None = None
    accessed: float | None = None
    children: tuple[Self, ...] = ()
    state: NodeState = NodeState.COMPLETE
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative, got {self.size_bytes}")
        object.__setattr__(self, "extension", self.extension.lower().lstrip("."))
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    def __hash__(self) -> int:
        """Hash based on path."""
        return hash(self.path)

    def __eq__(self, other: object) -> bool:
        """Equality based on path."""
        if not isinstance(other, FileNode):
            return NotImplemented
        return self.path == other.path

    @property
    def is_file(self) -> bool:
        """Files and packages are both shown as single blocks."""
        return not self.is_directory or self.is_package

    @property
    def is_others(self) -> bool:
        """Check if this node is the synthetic Others aggregate."""
        return is_others_path(self.path)

    @property
    def needs_deeper_scan(self) -> bool:
        """A directory cut off by the depth limit; scan it again to expand."""
        return self.state is NodeState.TRUNCATED

    @property
    def file_count(self) -> int:
        """Get total number of files in this subtree."""
        if self.is_file:
            return 1
        return sum(child.file_count for child in self.children)

    @property
    def directory_count(self) -> int:
        """Get total number of directories in this subtree."""
        if self.is_file:
            return 0
        return 1 + sum(child.directory_count for child in self.children)

    def iter_descendants(self) -> Iterator[Self]:
        """Yield all descendant nodes depth first (not including self)."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def find_child_by_name(self, name: str) -> Self | None:
        """Find a direct child by name.

        Args:
            name: Name of the child to find

        Returns:
            The child node if found, None otherwise
        """
        for child in self.children:
            if child.name == name:
                return child
        return None

    def find(self, path: str) -> Self | None:
        """Find this node or a descendant by path."""
        if self.path == path:
            return self
        for child in self.children:
            if path == child.path or path.startswith(child.path.rstrip("/") + "/"):
                found = child.find(path)
                if found is not None:
                    return found
        return None

    def __repr__(self) -> str:
        """String representation of the node."""
        kind = "dir" if self.is_directory and not self.is_package else "file"
        return f"FileNode({kind}, {self.name}, size={self.size_bytes}, state={self.state.value})"


def is_others_path(path: str | Path) -> bool:
    """Check whether a path points at an Others aggregate."""
    return Path(path).name == OTHERS_SENTINEL


def make_others_node(parent_path: str | Path, members: Iterable[FileNode]) -> FileNode:
    """Build the synthetic node standing in for items beyond a Top-N cut.

    The node carries no children; callers keep the members themselves
    so they can be entered later.
    """
    members = tuple(members)
    return FileNode(
        path=str(Path(parent_path) / OTHERS_SENTINEL),
        name=f"Others ({len(members)})",
        is_directory=True,
        size_bytes=sum(member.size_bytes for member in members),
        state=NodeState.SYNTHETIC,
    )
