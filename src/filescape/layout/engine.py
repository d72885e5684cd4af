"""Layout engine placing a focused node's children as 3D blocks."""

import logging
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

from filescape.classify.registry import Color
from filescape.classify.tagger import ClassificationTag, Tagger
from filescape.errors import LayoutError
from filescape.layout.config import LayoutConfig, PlacementStrategy
from filescape.layout.geometry import Box, bounds_of
from filescape.model.aggregator import sort_by_size
from filescape.model.node import FileNode

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
SQRT2 = math.sqrt(2.0)


@dataclass(frozen=True)
class PlacementRecord:
    """One block for the rendering layer.

    Attributes:
        path: Path of the node the block stands for
        name: Node display name
        x: Center X coordinate
        y: Center Y coordinate (height / 2 plus any elevation)
        z: Center Z coordinate
        width: Footprint along X
        depth: Footprint along Z
        height: Block height
        rel: Logarithmic size relative to the largest sibling, in [0, 1]
        selected: Node is the current selection
        matched: Node matches the current search
        label: Text to show next to the block, None for no label
        color: RGBA color, alpha already derived from rel
        roughness: Material roughness, higher for small blocks
        metalness: Material metalness, higher for large blocks
        tag: Classification tag
        family: Classification family
        is_others: Block stands for the synthetic Others node
    """

    path: str
    name: str
    x: float
    y: float
    z: float
    width: float
    depth: float
    height: float
    rel: float
    selected: bool
    matched: bool
    label: str | None
    color: Color
    roughness: float
    metalness: float
    tag: str
    family: str
    is_others: bool = False

    @property
    def box(self) -> Box:
        return Box(self.x, self.y, self.z, self.width, self.height, self.depth)

    @property
    def alpha(self) -> float:
        return self.color[3]


@dataclass(frozen=True)
class Connection:
    """Edge from the hub to another block, for visual context only."""

    source: str
    target: str


@dataclass
class LayoutResult:
    """Result of a layout operation.

    Attributes:
        placements: One record per laid out node, hub first
        connections: Hub-to-node edges, capped by max_connections
        bounds: Box enclosing every placement, None when empty
    """

    placements: list[PlacementRecord] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    bounds: Box | None = None

    def by_path(self) -> dict[str, PlacementRecord]:
        return {p.path: p for p in self.placements}


def format_size(size: int) -> str:
    """Format file size for display."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    else:
        return f"{size / (1024 * 1024 * 1024):.1f} GB"


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def relative_sizes(sizes: Sequence[int]) -> np.ndarray:
    """Logarithmic size of each item relative to the largest, in [0, 1]."""
    values = np.asarray(sizes, dtype=np.float64)
    if values.size == 0:
        return values
    max_bytes = max(1.0, float(values.max()))
    return np.clip(np.log1p(values) / np.log1p(max_bytes), 0.0, 1.0)


class _LayoutPass:
    """Per-call bookkeeping; the engine itself holds no layout state."""

    def __init__(
        self,
        nodes: list[FileNode],
        classifications: Mapping[str, ClassificationTag],
        selected: frozenset[str],
        matched: frozenset[str],
        now: float,
    ) -> None:
        self.nodes = nodes
        self.classifications = classifications
        self.selected = selected
        self.matched = matched
        self.now = now
        self.rel = dict(zip((n.path for n in nodes), relative_sizes([n.size_bytes for n in nodes]).tolist()))
        self.occupied: list[Box] = []
        self.placements: list[PlacementRecord] = []

    def family(self, node: FileNode) -> str:
        return self.classifications[node.path].family

    def collides(self, box: Box) -> bool:
        return any(box.intersects(other) for other in self.occupied)

    def reach(self) -> float:
        """Distance from the origin to the farthest occupied footprint corner."""
        return max(
            (math.hypot(max(abs(b.min_x), abs(b.max_x)), max(abs(b.min_z), abs(b.max_z))) for b in self.occupied),
            default=0.0,
        )


class LayoutEngine:
    """Engine for calculating 3D placements for a list of sibling nodes."""

    def __init__(self, config: LayoutConfig | None = None, tagger: Tagger | None = None) -> None:
        """Initialize the layout engine.

        Args:
            config: Layout configuration (uses defaults if None)
            tagger: Classifier for nodes without a precomputed classification
        """
        self.config = config or LayoutConfig()
        self.config.validate()
        self.tagger = tagger or Tagger()

    def layout(
        self,
        children: Sequence[FileNode],
        classifications: Mapping[str, ClassificationTag] | None = None,
        selected: Iterable[str] = (),
        matched: Iterable[str] = (),
    ) -> LayoutResult:
        """Calculate placements for a set of siblings.

        Identical inputs always produce identical output.

        Args:
            children: Nodes to place, usually Selection.visible
            classifications: Known classifications keyed by path; missing
                ones are computed in a fresh classification batch
            selected: Paths of selected nodes
            matched: Paths of nodes matching the current search

        Returns:
            LayoutResult with placements, connections and bounds

        Raises:
            LayoutError: If two children share a path
        """
        nodes = list(children)
        if not nodes:
            return LayoutResult()

        paths = [n.path for n in nodes]
        if len(set(paths)) != len(paths):
            raise LayoutError("children contain duplicate paths")

        known = dict(classifications or {})
        missing = [n for n in nodes if n.path not in known]
        if missing:
            known.update(self.tagger.classify_many(missing, self.tagger.begin_batch()))

        now = 0.0
        if self.config.use_age_for_height:
            now = self.config.reference_time if self.config.reference_time is not None else time.time()

        lp = _LayoutPass(nodes, known, frozenset(selected), frozenset(matched), now)
        strategy = self.config.strategy
        if strategy == PlacementStrategy.GRID:
            self._layout_grid(lp)
        elif strategy == PlacementStrategy.RADIAL:
            self._layout_radial(lp)
        elif strategy == PlacementStrategy.ROOMS:
            self._layout_rooms(lp)
        else:  # FAMILY_ARMS
            self._layout_family_arms(lp)

        result = LayoutResult(placements=lp.placements)
        result.connections = self._hub_connections(lp.placements)
        result.bounds = bounds_of(p.box for p in lp.placements)
        logger.debug(f"Laid out {len(nodes)} nodes with {strategy.value} strategy")
        return result

    # Sizing

    def footprint(self, rel: float) -> float:
        """Side length of a block's square footprint."""
        cfg = self.config
        return min(max(rel * cfg.max_block, cfg.min_block), cfg.max_block)

    def block_height(self, node: FileNode, rel: float, now: float) -> float:
        """Height from size, or from modification age when enabled."""
        cfg = self.config
        if cfg.use_age_for_height and node.modified is not None:
            days = max(0.0, now - node.modified) / 86400.0
            n = min(1.0, days / cfg.age_max_days)
            return max(0.1, (1.0 - n) * cfg.max_block * 0.8)
        return cfg.constant_height + rel * cfg.max_block * cfg.height_factor

    def _measure(self, lp: _LayoutPass, node: FileNode) -> tuple[float, float, float]:
        rel = lp.rel[node.path]
        return rel, self.footprint(rel), self.block_height(node, rel, lp.now)

    def _label(self, node: FileNode, rel: float, emphasized: bool) -> str | None:
        cfg = self.config
        if not emphasized and (not cfg.show_labels or rel < cfg.label_min_rel):
            return None
        name = node.name
        if len(name) > cfg.label_max_chars:
            name = name[: cfg.label_max_chars - 1] + "…"
        return f"{name}\n{format_size(node.size_bytes)}"

    def _place(self, lp: _LayoutPass, node: FileNode, x: float, z: float, elevation: float = 0.0) -> PlacementRecord:
        """Create the record for a node and mark its box occupied."""
        cfg = self.config
        rel, side, height = self._measure(lp, node)
        tag = lp.classifications[node.path]
        selected = node.path in lp.selected
        matched = node.path in lp.matched
        r, g, b, _ = tag.color

        record = PlacementRecord(
            path=node.path,
            name=node.name,
            x=x,
            y=height / 2 + elevation,
            z=z,
            width=side,
            depth=side,
            height=height,
            rel=rel,
            selected=selected,
            matched=matched,
            label=self._label(node, rel, selected or matched),
            color=(r, g, b, lerp(cfg.min_alpha, cfg.max_alpha, rel)),
            roughness=lerp(0.8, 0.3, rel),
            metalness=lerp(0.05, 0.3, rel),
            tag=tag.tag,
            family=tag.family,
            is_others=node.is_others,
        )
        lp.placements.append(record)
        lp.occupied.append(record.box)
        return record

    # Strategies

    def _layout_family_arms(self, lp: _LayoutPass) -> None:
        """Largest node at the hub, one outward rising spiral per family."""
        cfg = self.config
        nodes = sort_by_size(lp.nodes)
        hub, rest = nodes[0], nodes[1:]
        self._place(lp, hub, 0.0, 0.0)

        families = sorted({lp.family(n) for n in nodes})
        arm_count = max(1, len(families))
        groups: dict[str, list[FileNode]] = {family: [] for family in families}
        for node in rest:
            groups[lp.family(node)].append(node)

        min_step = cfg.arm_spread / arm_count
        for i, family in enumerate(families):
            angle = TWO_PI * i / arm_count
            radius = cfg.max_block * cfg.hub_radius_factor
            turns = 0.0

            for node in groups[family]:
                rel, side, height = self._measure(lp, node)
                gap = cfg.gap_base + (1.0 - rel) * cfg.gap_range
                step = max(min_step, (side + gap) / radius)
                angle += step
                radius += (side + cfg.spacing) * 0.25
                turns += step / TWO_PI
                elevation = turns * cfg.arm_pitch * cfg.max_block

                for _ in range(cfg.collision_attempts):
                    candidate = Box(
                        radius * math.cos(angle), height / 2 + elevation, radius * math.sin(angle),
                        side, height, side,
                    )
                    if not lp.collides(candidate):
                        break
                    radius += side + gap
                else:
                    radius = max(radius, lp.reach() + side * SQRT2 / 2 + gap)

                self._place(lp, node, radius * math.cos(angle), radius * math.sin(angle), elevation)

    def _grid_cells(self, count: int) -> list[tuple[float, float]]:
        """Centered row-major cell centers for count items."""
        if count == 0:
            return []
        cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / cols)
        cell = self.config.spacing + self.config.max_block
        width = (cols - 1) * cell
        depth = (rows - 1) * cell
        return [((i % cols) * cell - width / 2, (i // cols) * cell - depth / 2) for i in range(count)]

    def _layout_grid(self, lp: _LayoutPass) -> None:
        nodes = sort_by_size(lp.nodes)
        for node, (x, z) in zip(nodes, self._grid_cells(len(nodes))):
            self._place(lp, node, x, z)

    def _layout_radial(self, lp: _LayoutPass) -> None:
        """Largest at the center, the rest on rings of growing radius."""
        cfg = self.config
        nodes = sort_by_size(lp.nodes)
        self._place(lp, nodes[0], 0.0, 0.0)

        # Ring pitch and neighbour distance clear two blocks' diagonals
        pitch = cfg.max_block * SQRT2 + cfg.spacing
        index = 1
        ring = 1
        while index < len(nodes):
            radius = ring * pitch
            capacity = max(1, math.floor(math.pi / math.asin(min(1.0, pitch / (2 * radius))) + 1e-9))
            members = nodes[index:index + capacity]
            for j, node in enumerate(members):
                angle = TWO_PI * j / len(members)
                self._place(lp, node, radius * math.cos(angle), radius * math.sin(angle))
            index += len(members)
            ring += 1

    def _layout_rooms(self, lp: _LayoutPass) -> None:
        """Files on a central grid, folders on rings around it.

        The ring count is the smallest that holds every folder; rings are
        filled from the outermost one and the radius shrinks by one pitch
        each time a ring is used up.
        """
        cfg = self.config
        nodes = sort_by_size(lp.nodes)
        files = [n for n in nodes if n.is_file]
        folders = [n for n in nodes if not n.is_file]

        cells = self._grid_cells(len(files))
        for node, (x, z) in zip(files, cells):
            self._place(lp, node, x, z)
        if not folders:
            return

        half = cfg.max_block / 2
        corner = 0.0
        if cells:
            corner = math.hypot(max(abs(x) for x, _ in cells) + half, max(abs(z) for _, z in cells) + half)
        inner = corner + half * SQRT2 + cfg.ring_gap
        pitch = cfg.max_block * SQRT2 + cfg.ring_gap

        def angular_width(node: FileNode, radius: float) -> float:
            _, side, _ = self._measure(lp, node)
            reach = side * SQRT2 / 2 + cfg.ring_gap / 2
            return 2 * math.asin(min(1.0, reach / radius))

        def fill(ring_count: int) -> list[list[tuple[FileNode, float, float]]] | None:
            rings = []
            index = 0
            for k in range(ring_count - 1, -1, -1):
                radius = inner + k * pitch
                used = 0.0
                ring = []
                while index < len(folders):
                    width = angular_width(folders[index], radius)
                    if used + width > TWO_PI + 1e-9:
                        break
                    ring.append((folders[index], radius, used + width / 2))
                    used += width
                    index += 1
                rings.append(ring)
            return rings if index == len(folders) else None

        ring_count = 1
        rings = fill(ring_count)
        while rings is None:
            ring_count += 1
            rings = fill(ring_count)

        for ring in rings:
            for node, radius, angle in ring:
                self._place(lp, node, radius * math.cos(angle), radius * math.sin(angle))

    def _hub_connections(self, placements: list[PlacementRecord]) -> list[Connection]:
        if len(placements) < 2:
            return []
        hub = placements[0].path
        return [Connection(hub, p.path) for p in placements[1:1 + self.config.max_connections]]
