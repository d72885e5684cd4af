"""Unit tests for the filesystem scanner.

Tests the recursive scan including:
- Size aggregation
- Depth cut-off, hidden files and skip paths
- Node count budget and cancellation
- Symlink cycle handling
- Packages
"""

import os
from dataclasses import replace
from pathlib import Path

import pytest

from filescape.errors import BudgetExceededError, InvalidRootError, ScanCancelledError, ValidationError
from filescape.layout.engine import relative_sizes
from filescape.model.metadata import MetadataProvider
from filescape.model.node import FileNode, NodeState
from filescape.model.scanner import Scanner, ScannerWorker, ScanOptions

LOGICAL = ScanOptions(prefer_allocated_size=False, max_depth=5)


def write(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def signature(node: FileNode) -> tuple:
    """Structure, paths and sizes of a tree, ignoring synthetic ids."""
    return (node.path, node.size_bytes, node.state, tuple(signature(c) for c in node.children))


def all_nodes(node: FileNode) -> list[FileNode]:
    return [node, *node.iter_descendants()]


def test_scan_sizes_scenario(tmp_path: Path):
    """Four files of known sizes add up at the root."""
    for name, size in [("a.bin", 1000), ("b.bin", 500), ("c.bin", 100), ("d.bin", 10)]:
        write(tmp_path / name, size)

    root = Scanner().scan(tmp_path, replace(LOGICAL, max_depth=1))

    assert root.size_bytes == 1610
    assert len(root.children) == 4
    ordered = sorted(root.children, key=lambda n: -n.size_bytes)
    rels = relative_sizes([n.size_bytes for n in ordered]).tolist()
    assert all(a > b for a, b in zip(rels, rels[1:]))
    assert rels[0] == pytest.approx(1.0)

    print("✓ Scan sizes scenario test passed")


def test_directory_size_is_sum_of_children(tmp_path: Path):
    """Every non-package directory aggregates its children."""
    write(tmp_path / "top.txt", 42)
    write(tmp_path / "one" / "a.py", 300)
    write(tmp_path / "one" / "two" / "b.py", 70)
    write(tmp_path / "one" / "two" / "c.md", 5)
    (tmp_path / "empty").mkdir()

    root = Scanner().scan(tmp_path, LOGICAL)

    for node in all_nodes(root):
        if node.is_directory and not node.is_package:
            assert node.size_bytes == sum(c.size_bytes for c in node.children)
    assert root.size_bytes == 42 + 300 + 70 + 5
    assert root.file_count == 4
    assert root.directory_count == 4


def test_scan_is_idempotent(tmp_path: Path):
    """Scanning an unchanged tree twice gives the same structure."""
    write(tmp_path / "x" / "y" / "z.txt", 12)
    write(tmp_path / "x" / "w.txt", 7)
    write(tmp_path / "v.txt", 3)

    first = Scanner().scan(tmp_path, LOGICAL)
    second = Scanner().scan(tmp_path, LOGICAL)

    assert signature(first) == signature(second)
    assert first.id != second.id


def test_budget_exceeded(tmp_path: Path):
    """A node count limit of 2 cannot cover a folder of five files."""
    for i in range(5):
        write(tmp_path / f"f{i}.txt", 10)

    with pytest.raises(BudgetExceededError) as info:
        Scanner().scan(tmp_path, ScanOptions(node_count_limit=2))
    assert info.value.limit == 2


def test_invalid_root(tmp_path: Path):
    """A missing root fails the scan."""
    with pytest.raises(InvalidRootError):
        Scanner().scan(tmp_path / "missing")


def test_invalid_options(tmp_path: Path):
    with pytest.raises(ValidationError):
        Scanner().scan(tmp_path, ScanOptions(max_depth=-1))
    with pytest.raises(ValidationError):
        Scanner().scan(tmp_path, ScanOptions(node_count_limit=0))


def test_symlink_cycle_terminates(tmp_path: Path):
    """A link back to the scanned folder is not expanded again."""
    root_dir = tmp_path / "A"
    write(root_dir / "data.bin", 100)
    try:
        os.symlink(root_dir, root_dir / "link")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    root = Scanner().scan(root_dir, replace(LOGICAL, follow_symlinks=False))

    link = root.find_child_by_name("link")
    assert link is not None
    assert link.state is NodeState.CYCLE_SKIPPED
    assert link.children == ()
    assert link.size_bytes == 0
    assert root.size_bytes == 100
    assert sum(1 for n in root.iter_descendants() if n.name == "data.bin") == 1


def test_max_depth_truncates(tmp_path: Path):
    """Directories at max depth come back empty and marked truncated."""
    write(tmp_path / "sub" / "deep.txt", 50)
    write(tmp_path / "top.txt", 5)

    root = Scanner().scan(tmp_path, replace(LOGICAL, max_depth=1))

    sub = root.find_child_by_name("sub")
    assert sub.state is NodeState.TRUNCATED
    assert sub.needs_deeper_scan
    assert sub.children == ()
    assert sub.size_bytes == 0
    assert root.size_bytes == 5

    deeper = Scanner().scan(sub.path, replace(LOGICAL, max_depth=1))
    assert deeper.size_bytes == 50


def test_hidden_files(tmp_path: Path):
    """Hidden entries are skipped unless requested."""
    write(tmp_path / ".secret", 80)
    write(tmp_path / "visible.txt", 20)

    default = Scanner().scan(tmp_path, LOGICAL)
    assert [c.name for c in default.children] == ["visible.txt"]

    with_hidden = Scanner().scan(tmp_path, replace(LOGICAL, include_hidden=True))
    assert {c.name for c in with_hidden.children} == {".secret", "visible.txt"}
    assert with_hidden.size_bytes == 100


class ListEverythingProvider(MetadataProvider):
    """Lists hidden entries even when asked not to."""

    def list_dir(self, path, include_hidden=False):
        return super().list_dir(path, include_hidden=True)


def test_hidden_placeholder(tmp_path: Path):
    """A hidden entry that slips through the listing becomes a placeholder."""
    write(tmp_path / ".cache" / "blob", 500)
    write(tmp_path / "keep.txt", 10)

    root = Scanner(ListEverythingProvider()).scan(tmp_path, LOGICAL)

    hidden = root.find_child_by_name(".cache")
    assert hidden.state is NodeState.HIDDEN
    assert hidden.size_bytes == 0
    assert root.size_bytes == 10


def test_hidden_root_is_scanned(tmp_path: Path):
    """The root itself is never hidden-filtered."""
    write(tmp_path / ".config" / "settings.toml", 30)

    root = Scanner().scan(tmp_path / ".config", LOGICAL)

    assert root.state is NodeState.COMPLETE
    assert root.size_bytes == 30


def test_skip_paths(tmp_path: Path):
    write(tmp_path / "node_modules" / "big.js", 1000)
    write(tmp_path / "src.py", 10)

    options = replace(LOGICAL, skip_paths=frozenset({str(tmp_path / "node_modules")}))
    root = Scanner().scan(tmp_path, options)

    assert [c.name for c in root.children] == ["src.py"]


def test_packages(tmp_path: Path):
    """Bundle directories are opaque unless packages are scanned as folders."""
    write(tmp_path / "Tool.app" / "Contents" / "MacOS" / "tool", 400)
    write(tmp_path / "Tool.app" / "Contents" / "Info.plist", 100)

    as_file = Scanner().scan(tmp_path, LOGICAL)
    app = as_file.find_child_by_name("Tool.app")
    assert app.is_package
    assert app.is_file
    assert app.children == ()

    deep = Scanner().scan(tmp_path, replace(LOGICAL, deep_package_sizes=True))
    assert deep.find_child_by_name("Tool.app").size_bytes == 500

    as_folder = Scanner().scan(tmp_path, replace(LOGICAL, package_as_files=False))
    app = as_folder.find_child_by_name("Tool.app")
    assert app.is_package
    assert app.find_child_by_name("Contents") is not None
    assert app.size_bytes == 500


class FailingProvider(MetadataProvider):
    """Fails to stat any entry named broken.txt."""

    def stat(self, path, follow_symlinks=False):
        if path.name == "broken.txt":
            raise PermissionError(13, "Permission denied", str(path))
        return super().stat(path, follow_symlinks)


def test_unreadable_child_is_omitted(tmp_path: Path):
    write(tmp_path / "broken.txt", 999)
    write(tmp_path / "fine.txt", 1)

    root = Scanner(FailingProvider()).scan(tmp_path, LOGICAL)

    assert [c.name for c in root.children] == ["fine.txt"]
    assert root.size_bytes == 1


def test_cancellation(tmp_path: Path):
    for i in range(3):
        write(tmp_path / f"f{i}.txt", 1)
    calls = []

    def should_continue():
        calls.append(1)
        return len(calls) < 2

    with pytest.raises(ScanCancelledError):
        Scanner().scan(tmp_path, LOGICAL, should_continue=should_continue)


def test_progress_reports_directories(tmp_path: Path):
    write(tmp_path / "a" / "b.txt", 1)
    seen = []

    Scanner().scan(tmp_path, LOGICAL, progress=seen.append)

    assert [p.current_path for p in seen] == [tmp_path.absolute(), tmp_path.absolute() / "a"]
    assert all(not p.is_complete for p in seen)


def test_worker_emits_finished(tmp_path: Path):
    """The worker's run() delivers the tree through its signals."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    write(tmp_path / "a.txt", 10)

    worker = ScannerWorker(tmp_path, LOGICAL)
    finished = []
    errors = []
    worker.finished.connect(finished.append)
    worker.error.connect(errors.append)
    worker.run()

    assert app is not None
    assert errors == []
    assert len(finished) == 1
    assert finished[0].size_bytes == 10


def test_worker_reports_errors(tmp_path: Path):
    from PyQt6.QtCore import QCoreApplication

    QCoreApplication.instance() or QCoreApplication([])
    worker = ScannerWorker(tmp_path / "missing")
    errors = []
    worker.error.connect(errors.append)
    worker.run()

    assert len(errors) == 1
    assert "does not exist" in errors[0]


def test_link_sorting_before_its_target(tmp_path: Path):
    """A link to a sibling folder does not hide the folder's contents."""
    target = tmp_path / "z_dir"
    write(target / "big.bin", 1000)
    try:
        os.symlink(target, tmp_path / "a_link")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    root = Scanner().scan(tmp_path, LOGICAL)

    z_dir = root.find_child_by_name("z_dir")
    link = root.find_child_by_name("a_link")
    assert z_dir.state is NodeState.COMPLETE
    assert z_dir.size_bytes == 1000
    assert link.state is NodeState.COMPLETE
    assert link.children == ()
    assert root.size_bytes == 1000 + os.lstat(tmp_path / "a_link").st_size


def test_preview_lists_one_level(tmp_path: Path):
    """Preview sizes sub-folders roughly and caps the entry count."""
    package = tmp_path / "Tool.app"
    write(package / "Contents" / "Info.plist", 100)
    write(package / "Contents" / "MacOS" / "tool", 400)
    for i in range(4):
        write(package / f"readme{i}.txt", 10)

    children = Scanner().preview(package, LOGICAL)

    assert [c.name for c in children] == ["Contents", "readme0.txt", "readme1.txt", "readme2.txt", "readme3.txt"]
    assert children[0].size_bytes == 500
    assert children[0].children == ()
    assert all(c.size_bytes == 10 for c in children[1:])

    capped = Scanner().preview(package, LOGICAL, limit=2)
    assert [c.name for c in capped] == ["Contents", "readme0.txt"]


def test_preview_budget(tmp_path: Path):
    """A folder whose walk runs out of budget previews as size 0."""
    write(tmp_path / "many" / "a.txt", 5)
    write(tmp_path / "many" / "b.txt", 5)
    write(tmp_path / "many" / "c.txt", 5)
    write(tmp_path / "small.txt", 7)

    children = Scanner().preview(tmp_path, LOGICAL, node_budget=2)

    sizes = {c.name: c.size_bytes for c in children}
    assert sizes == {"many": 0, "small.txt": 7}


def test_preview_missing_path(tmp_path: Path):
    with pytest.raises(InvalidRootError):
        Scanner().preview(tmp_path / "missing")
    with pytest.raises(ValidationError):
        Scanner().preview(tmp_path, limit=-1)


class ExplodingScanner(Scanner):
    """Fails with an error outside the filescape hierarchy."""

    def scan(self, root, options=None, progress=None, should_continue=None):
        raise RecursionError("maximum recursion depth exceeded")


def test_worker_reports_unexpected_errors(tmp_path: Path):
    from PyQt6.QtCore import QCoreApplication

    QCoreApplication.instance() or QCoreApplication([])
    worker = ScannerWorker(tmp_path, scanner=ExplodingScanner())
    errors = []
    finished = []
    worker.error.connect(errors.append)
    worker.finished.connect(finished.append)
    worker.run()

    assert finished == []
    assert errors == ["Scan failed: maximum recursion depth exceeded"]
