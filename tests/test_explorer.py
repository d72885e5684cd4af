"""Integration tests for the Explorer session."""

from dataclasses import replace
from pathlib import Path

from filescape.controller.explorer import EMPTY_FOLDER_MESSAGE, Explorer
from filescape.model.node import NodeState, is_others_path
from filescape.model.scanner import Scanner, ScanOptions

OPTIONS = ScanOptions(prefer_allocated_size=False, max_depth=1)


def make_tree(root: Path) -> Path:
    """Ten text files of growing size, a photo and a nested folder."""
    for i in range(10):
        (root / f"note{i}.txt").write_text("x" * (100 * (i + 1)))
    (root / "photo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 5000)
    nested = root / "projects" / "app"
    nested.mkdir(parents=True)
    (nested / "main.py").write_text("print('hello')\n" * 100)
    return root


def test_rescan_and_build(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)

    root = explorer.rescan()
    view = explorer.build()

    assert explorer.focus is root
    assert explorer.breadcrumbs() == [root]
    assert view.overlay_message is None
    assert len(view.result.placements) == len(root.children)
    assert view.result.placements[0].name == "photo.png"

    print("✓ Rescan and build test passed")


def test_empty_folder_message(tmp_path: Path):
    explorer = Explorer(tmp_path, OPTIONS)
    explorer.rescan()

    view = explorer.build()

    assert view.result.placements == []
    assert view.overlay_message == EMPTY_FOLDER_MESSAGE


def test_build_without_scan(tmp_path: Path):
    view = Explorer(tmp_path).build()

    assert view.result.placements == []
    assert view.selection.visible == ()


def test_others_select_and_enter(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)
    explorer.limit = 3
    explorer.rescan()

    view = explorer.build()
    others = view.selection.others_node
    assert others is not None
    assert view.result.by_path()[others.path].is_others
    assert len(view.selection.others) == len(explorer.focus.children) - 3

    selected = explorer.select_path(others.path)
    assert selected is not None
    assert is_others_path(selected.path)
    assert not explorer.is_actionable(selected)

    focus = explorer.enter()
    assert focus.state is NodeState.SYNTHETIC
    assert {c.path for c in focus.children} == {n.path for n in view.selection.others}
    assert len(explorer.breadcrumbs()) == 2

    inner = explorer.build()
    assert len(inner.result.placements) == 4
    assert inner.selection.others_node is not None
    assert len(inner.selection.others) == len(focus.children) - 3

    assert explorer.go_up() is explorer.root
    assert explorer.go_up() is None


def test_enter_truncated_directory(tmp_path: Path):
    """Entering a folder cut off by max depth scans below it."""
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)
    root = explorer.rescan()
    projects = root.find_child_by_name("projects")
    assert projects.state is NodeState.TRUNCATED

    explorer.select_path(projects.path)
    assert explorer.selected is projects
    assert explorer.is_actionable(projects)

    focus = explorer.enter()
    assert focus.path == projects.path
    app = focus.find_child_by_name("app")
    assert app.needs_deeper_scan

    deeper = explorer.enter(app)
    assert deeper.size_bytes == len("print('hello')\n") * 100
    assert [n.name for n in explorer.breadcrumbs()] == [root.name, "projects", "app"]

    assert explorer.go_to_breadcrumb(0) is root
    assert explorer.breadcrumbs() == [root]


def test_files_cannot_be_entered(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)
    root = explorer.rescan()

    assert explorer.enter(root.find_child_by_name("note1.txt")) is None
    assert explorer.enter() is None


def test_search_marks_matches(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)
    explorer.rescan()
    explorer.search_text = "NOTE1"

    view = explorer.build()

    matched = {p.name for p in view.result.placements if p.matched}
    assert matched == {"note1.txt"}
    assert all(p.label is not None for p in view.result.placements if p.matched)


def test_family_filter(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, OPTIONS)
    explorer.rescan()
    explorer.enabled_families = {"image"}

    view = explorer.build()

    assert {p.name for p in view.result.placements} == {"photo.png", "projects"}


def test_selection_flag(tmp_path: Path):
    make_tree(tmp_path)
    explorer = Explorer(tmp_path, replace(OPTIONS, max_depth=2))
    root = explorer.rescan()
    target = root.find_child_by_name("note3.txt")

    explorer.select_path(target.path)
    placements = explorer.build().result.by_path()

    assert placements[target.path].selected
    assert sum(p.selected for p in placements.values()) == 1
    assert explorer.select_path(None) is None


class CountingScanner(Scanner):
    """Counts preview listings."""

    def __init__(self):
        super().__init__()
        self.previews = 0

    def preview(self, path, options=None, limit=60, node_budget=50_000):
        self.previews += 1
        return super().preview(path, options, limit, node_budget)


def test_preview_children(tmp_path: Path):
    """Packages are listed once per scan; folders reuse scanned children."""
    make_tree(tmp_path)
    (tmp_path / "Tool.app" / "Contents").mkdir(parents=True)
    (tmp_path / "Tool.app" / "Contents" / "Info.plist").write_text("x" * 50)
    (tmp_path / "Tool.app" / "icon.png").write_bytes(b"\x00" * 20)
    scanner = CountingScanner()
    explorer = Explorer(tmp_path, OPTIONS, scanner=scanner)
    root = explorer.rescan()
    package = root.find_child_by_name("Tool.app")

    first = explorer.preview_children(package)
    second = explorer.preview_children(package, limit=1)

    assert [c.name for c in first] == ["Contents", "icon.png"]
    assert first[0].size_bytes == 50
    assert [c.name for c in second] == ["Contents"]
    assert scanner.previews == 1

    explorer.rescan()
    explorer.preview_children(package)
    assert scanner.previews == 2

    assert explorer.preview_children(root, limit=2) == root.children[:2]
    assert explorer.preview_children(root.find_child_by_name("note1.txt")) is None
    assert explorer.preview_children(None) is None
