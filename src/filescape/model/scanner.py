"""Bounded recursive filesystem scanner with an optional QThread worker."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path

from PyQt6.QtCore import QThread, pyqtSignal

from filescape.errors import (
    BudgetExceededError,
    ChildReadError,
    FilescapeError,
    InvalidRootError,
    ScanCancelledError,
    ValidationError,
)
from filescape.model.metadata import DEFAULT_PACKAGE_EXTENSIONS, FileMetadata, MetadataProvider
from filescape.model.node import FileNode, NodeState

logger = logging.getLogger(__name__)

# Quick look inside packages
PREVIEW_LIMIT = 60
PREVIEW_NODE_BUDGET = 50_000


@dataclass(frozen=True)
class ScanOptions:
    """Options controlling a scan.

    Attributes:
        include_hidden: Include dot files and entries flagged hidden
        follow_symlinks: Stat through symbolic links. When False, links are
            reported as themselves and canonical paths are tracked so a
            directory reached twice is only expanded once.
        max_depth: Directories at this depth are returned truncated
            (no children, size 0) for a later on-demand scan
        package_as_files: Treat bundle directories as opaque files
        skip_paths: Absolute paths never enumerated
        node_count_limit: Maximum number of nodes visited before the
            scan fails with BudgetExceededError
        package_extensions: Directory suffixes considered packages
        prefer_allocated_size: Report allocated bytes on disk when the
            platform provides them, logical sizes otherwise
        deep_package_sizes: Size packages by summing their contents
            instead of the bundle directory entry itself; the contents
            count against node_count_limit
    """

    include_hidden: bool = False
    follow_symlinks: bool = False
    max_depth: int = 3
    package_as_files: bool = True
    skip_paths: frozenset[str] = frozenset()
    node_count_limit: int = 500_000
    package_extensions: frozenset[str] = field(default=DEFAULT_PACKAGE_EXTENSIONS)
    prefer_allocated_size: bool = True
    deep_package_sizes: bool = False

    def validate(self) -> None:
        """Raise ValidationError for options a scan cannot honor."""
        if self.max_depth < 0:
            raise ValidationError("max_depth", self.max_depth, "non-negative integer")
        if self.node_count_limit <= 0:
            raise ValidationError("node_count_limit", self.node_count_limit, "positive integer")


class ScanProgress:
    """Progress information for a scan operation."""

    def __init__(
        self,
        current_path: Path,
        nodes_found: int,
        is_complete: bool = False,
    ) -> None:
        """Initialize scan progress.

        Args:
            current_path: Path currently being scanned
            nodes_found: Total number of nodes found so far
            is_complete: Whether the scan is complete
        """
        self.current_path = current_path
        self.nodes_found = nodes_found
        self.is_complete = is_complete


class _ScanContext:
    """Mutable bookkeeping for one scan call."""

    def __init__(
        self,
        root: Path,
        options: ScanOptions,
        progress: Callable[[ScanProgress], None] | None,
        should_continue: Callable[[], bool] | None,
    ) -> None:
        self.root = root
        self.options = options
        self.remaining = options.node_count_limit
        self.visited: set[str] = set()
        self.skip_paths = {str(Path(p)) for p in options.skip_paths}
        self.progress = progress
        self.should_continue = should_continue

    @property
    def nodes_found(self) -> int:
        return self.options.node_count_limit - self.remaining


class Scanner:
    """Synchronous scanner building an immutable FileNode tree."""

    def __init__(self, provider: MetadataProvider | None = None) -> None:
        """Initialize the scanner.

        Args:
            provider: Metadata source; a local file system provider if None
        """
        self._provider = provider

    def scan(
        self,
        root: Path | str,
        options: ScanOptions | None = None,
        progress: Callable[[ScanProgress], None] | None = None,
        should_continue: Callable[[], bool] | None = None,
    ) -> FileNode:
        """Scan a directory tree.

        Args:
            root: Root path to scan
            options: Scan options (defaults if None)
            progress: Called once per enumerated directory
            should_continue: Polled before every node; returning False
                cancels the scan

        Returns:
            Root node of the scanned tree

        Raises:
            InvalidRootError: If the root does not exist or cannot be read
            BudgetExceededError: If the node count limit is exceeded
            ScanCancelledError: If should_continue returned False
        """
        options = options or ScanOptions()
        options.validate()
        root = Path(root).absolute()
        provider = self._provider or MetadataProvider(options.package_extensions)

        if not root.exists() and not root.is_symlink():
            raise InvalidRootError(root, "path does not exist")
        try:
            provider.stat(root, options.follow_symlinks)
        except OSError as e:
            raise InvalidRootError(root, str(e)) from e

        context = _ScanContext(root, options, progress, should_continue)
        node = self._build_node(root, 0, provider, context)
        logger.info(f"Scanned {root}: {context.nodes_found} nodes, {node.size_bytes} bytes")
        return node

    def preview(
        self,
        path: Path | str,
        options: ScanOptions | None = None,
        limit: int = PREVIEW_LIMIT,
        node_budget: int = PREVIEW_NODE_BUDGET,
    ) -> tuple[FileNode, ...]:
        """List one level of a directory or package for a quick look inside.

        At most ``limit`` entries are returned, in name order, none with
        children. Sub-folders get a rough size from walking their contents;
        all of those walks share ``node_budget`` and a folder whose walk runs
        out of it is reported with size 0.

        Raises:
            InvalidRootError: If the path cannot be listed
        """
        options = options or ScanOptions()
        if limit < 0:
            raise ValidationError("limit", limit, "non-negative integer")
        if node_budget <= 0:
            raise ValidationError("node_budget", node_budget, "positive integer")
        path = Path(path).absolute()
        provider = self._provider or MetadataProvider(options.package_extensions)
        try:
            entries = provider.list_dir(path, options.include_hidden)
        except OSError as e:
            raise InvalidRootError(path, str(e)) from e

        context = _ScanContext(path, replace(options, node_count_limit=node_budget), None, None)
        context.visited.add(provider.canonicalize(path))
        children: list[FileNode] = []
        for entry in entries[:limit]:
            try:
                meta = provider.stat(entry, options.follow_symlinks)
            except OSError as e:
                logger.debug(f"Omitting {entry} from preview: {e}")
                continue
            if meta.is_directory and not meta.is_package:
                try:
                    size = self._package_size(entry, provider, context)
                except BudgetExceededError:
                    logger.debug(f"Preview budget exhausted sizing {entry}")
                    size = 0
            else:
                size = self._entry_size(meta, options)
            children.append(self._make_node(entry, meta, size))
        return tuple(children)

    def _build_node(self, path: Path, depth: int, provider: MetadataProvider, context: _ScanContext) -> FileNode:
        """Scan a single node and, for directories within depth, its children."""
        if context.should_continue is not None and not context.should_continue():
            raise ScanCancelledError(path)
        if context.remaining <= 0:
            raise BudgetExceededError(path, context.options.node_count_limit)
        context.remaining -= 1

        options = context.options
        try:
            meta = provider.stat(path, options.follow_symlinks)
        except OSError as e:
            raise ChildReadError(path, str(e)) from e

        if meta.is_hidden and not options.include_hidden and depth > 0:
            return self._make_node(path, meta, 0, state=NodeState.HIDDEN)

        # Only directories that get expanded mark their target as visited;
        # an unexpanded link is reported as itself
        if not options.follow_symlinks and (meta.is_directory or meta.is_symlink):
            canonical = provider.canonicalize(path)
            if canonical in context.visited:
                logger.debug(f"Skipping already visited {path} -> {canonical}")
                return self._make_node(path, meta, 0, state=NodeState.CYCLE_SKIPPED)
            if meta.is_directory:
                context.visited.add(canonical)

        treat_as_file = not meta.is_directory or (meta.is_package and options.package_as_files)
        if treat_as_file:
            if meta.is_directory and options.deep_package_sizes:
                size = self._package_size(path, provider, context)
            else:
                size = self._entry_size(meta, options)
            return self._make_node(path, meta, size)

        if depth >= options.max_depth:
            return self._make_node(path, meta, 0, state=NodeState.TRUNCATED)

        children = self._scan_children(path, depth, provider, context)
        total = sum(child.size_bytes for child in children)
        return self._make_node(path, meta, total, children=children)

    def _scan_children(
        self,
        path: Path,
        depth: int,
        provider: MetadataProvider,
        context: _ScanContext,
    ) -> tuple[FileNode, ...]:
        """Scan children of a directory, omitting the ones that fail."""
        try:
            entries = provider.list_dir(path, context.options.include_hidden)
        except OSError as e:
            logger.debug(f"Cannot list {path}: {e}")
            return ()

        if context.progress is not None:
            context.progress(ScanProgress(current_path=path, nodes_found=context.nodes_found))

        children: list[FileNode] = []
        for entry in entries:
            if str(entry) in context.skip_paths:
                continue
            try:
                children.append(self._build_node(entry, depth + 1, provider, context))
            except (OSError, ChildReadError) as e:
                logger.debug(f"Omitting {entry}: {e}")
        return tuple(children)

    @staticmethod
    def _entry_size(meta: FileMetadata, options: ScanOptions) -> int:
        if options.prefer_allocated_size and meta.allocated_size is not None:
            return meta.allocated_size
        return meta.logical_size or 0

    def _package_size(self, path: Path, provider: MetadataProvider, context: _ScanContext) -> int:
        """Total size of everything inside a package, without building nodes."""
        options = context.options
        total = 0
        pending = [path]
        while pending:
            directory = pending.pop()
            try:
                entries = provider.list_dir(directory, options.include_hidden)
            except OSError as e:
                logger.debug(f"Cannot list package contents {directory}: {e}")
                continue
            for entry in entries:
                if context.remaining <= 0:
                    raise BudgetExceededError(entry, options.node_count_limit)
                context.remaining -= 1
                try:
                    meta = provider.stat(entry, options.follow_symlinks)
                except OSError as e:
                    logger.debug(f"Omitting {entry}: {e}")
                    continue
                if meta.is_directory:
                    canonical = provider.canonicalize(entry)
                    if canonical not in context.visited:
                        context.visited.add(canonical)
                        pending.append(entry)
                else:
                    total += self._entry_size(meta, options)
        return total

    @staticmethod
    def _make_node(
        path: Path,
        meta: FileMetadata,
        size: int,
        children: tuple[FileNode, ...] = (),
        state: NodeState = NodeState.COMPLETE,
    ) -> FileNode:
        return FileNode(
            path=str(path),
            name=path.name or str(path),
            is_directory=meta.is_directory,
            is_package=meta.is_package,
            extension=path.suffix,
            type_identifier=meta.type_identifier,
            size_bytes=size,
            created=meta.created,
            modified=meta.modified,
            accessed=meta.accessed,
            children=children,
            state=state,
        )


class ScannerWorker(QThread):
    """Worker thread for scanning directories asynchronously."""

    # Signals
    progress = pyqtSignal(object)  # Emits ScanProgress
    finished = pyqtSignal(object)  # Emits root FileNode when complete
    error = pyqtSignal(str)  # Emits error messages

    def __init__(
        self,
        root_path: Path,
        options: ScanOptions | None = None,
        scanner: Scanner | None = None,
    ) -> None:
        """Initialize the scanner worker.

        Args:
            root_path: Root path to scan
            options: Scan options passed through to the scanner
            scanner: Scanner to run (a default one if None)
        """
        super().__init__()
        self.root_path = Path(root_path)
        self.options = options or ScanOptions()
        self.scanner = scanner or Scanner()
        self._is_running = True

    def stop(self) -> None:
        """Stop the scanning process."""
        self._is_running = False

    def run(self) -> None:
        """Run the scan operation."""
        try:
            root_node = self.scanner.scan(
                self.root_path,
                self.options,
                progress=self.progress.emit,
                should_continue=lambda: self._is_running,
            )
            self.finished.emit(root_node)
        except FilescapeError as e:
            self.error.emit(str(e))
        except Exception as e:
            logger.exception(f"Scan of {self.root_path} failed")
            self.error.emit(f"Scan failed: {e}")
        finally:
            self.progress.emit(
                ScanProgress(
                    current_path=self.root_path,
                    nodes_found=0,
                    is_complete=True,
                )
            )
