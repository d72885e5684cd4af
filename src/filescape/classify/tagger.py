"""Multi-stage content classifier.

Metadata stages (directory, package, extension, type identifier) run
without I/O. Unknown files may then be sniffed, reading at most a few
kilobytes each, under a per-batch budget so a folder full of unknown
files cannot turn one layout pass into thousands of reads.
"""

import logging
import struct
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from filescape.classify.registry import Color, TagRegistry
from filescape.errors import ClassificationUnavailable
from filescape.model.node import FileNode

logger = logging.getLogger(__name__)

DEFAULT_SNIFF_BUDGET = 200
MAGIC_MAX_BYTES = 5_000_000
TEXT_MAX_BYTES = 2_000_000
TEXT_SAMPLE_BYTES = 4096
PRINTABLE_RATIO = 0.95

_MAGIC_SIGNATURES: tuple[tuple[bytes, str, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "png", "image"),
    (b"\xff\xd8", "jpeg", "image"),
    (b"GIF", "gif", "image"),
    (b"%PDF-", "pdf", "document"),
    (b"PK", "zip", "archive"),
    (b"7z\xbc\xaf\x27\x1c", "7z", "archive"),
    (b"Rar!\x1a\x07", "rar", "archive"),
    (b"\x1f\x8b", "gz", "archive"),
    (b"\x7fELF", "elf", "binary"),
)

_MACHO_MAGICS = frozenset({0xFEEDFACE, 0xFEEDFACF, 0xCEFAEDFE, 0xCFFAEDFE})

_TEXT_BOMS: tuple[tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf8-text"),
    (b"\xff\xfe", "utf16le-text"),
    (b"\xfe\xff", "utf16be-text"),
)

_PRINTABLE = frozenset(range(0x09, 0x0E)) | frozenset(range(0x20, 0x7F))


@dataclass(frozen=True)
class ClassificationTag:
    """Classification of one node.

    Attributes:
        tag: Fine-grained key, e.g. "jpeg" or "utf8-text"
        family: Coarse category, e.g. "image"
        color: RGBA display color in [0, 1]
    """

    tag: str
    family: str
    color: Color


class SniffPolicy(Enum):
    """Order in which unknown files compete for the sniff budget."""

    IN_ORDER = "in_order"
    LARGEST_FIRST = "largest_first"


@dataclass
class ClassificationBatch:
    """Budget and memo for one layout pass.

    Attributes:
        budget: Content sniffs still allowed in this pass
        cache: Results keyed by node path
    """

    budget: int = DEFAULT_SNIFF_BUDGET
    cache: dict[str, ClassificationTag] = field(default_factory=dict)

    @property
    def exhausted(self) -> bool:
        return self.budget <= 0


class Tagger:
    """Assigns (tag, family, color) to file nodes."""

    def __init__(self, registry: TagRegistry | None = None, sniff_budget: int = DEFAULT_SNIFF_BUDGET) -> None:
        """Initialize the tagger.

        Args:
            registry: Family tables (a default registry if None)
            sniff_budget: Content sniffs permitted per batch
        """
        self.registry = registry or TagRegistry()
        self.sniff_budget = sniff_budget

    def begin_batch(self) -> ClassificationBatch:
        """Start a new layout pass with a fresh sniff budget."""
        return ClassificationBatch(budget=self.sniff_budget)

    def style(self, tag: str, family: str) -> ClassificationTag:
        return ClassificationTag(tag=tag, family=family, color=self.registry.color_for(tag, family))

    def family_of(self, node: FileNode) -> str:
        """Family from metadata only; never reads file content."""
        result = self._classify_metadata(node)
        return result[1] if result is not None else "other"

    def classify(self, node: FileNode, batch: ClassificationBatch | None = None) -> ClassificationTag:
        """Classify a node, sniffing content if metadata is inconclusive.

        Args:
            node: Node to classify
            batch: Budget and memo shared across one layout pass; a fresh
                batch is used when None

        Returns:
            The node's classification
        """
        batch = batch if batch is not None else self.begin_batch()
        cached = batch.cache.get(node.path)
        if cached is not None:
            return cached

        result = self._classify_metadata(node)
        if result is None:
            result = self._sniff(node, batch)
        if result is None:
            result = ("other", "other")

        tag = self.style(*result)
        batch.cache[node.path] = tag
        return tag

    def classify_many(
        self,
        nodes: Iterable[FileNode],
        batch: ClassificationBatch | None = None,
        policy: SniffPolicy = SniffPolicy.IN_ORDER,
    ) -> dict[str, ClassificationTag]:
        """Classify several nodes against one batch.

        With LARGEST_FIRST, nodes that would need sniffing are visited in
        descending size so a scarce budget goes to the biggest unknowns.
        """
        batch = batch if batch is not None else self.begin_batch()
        nodes = list(nodes)
        order = nodes
        if policy is SniffPolicy.LARGEST_FIRST:
            known: list[FileNode] = []
            unknown: list[FileNode] = []
            for node in nodes:
                (unknown if self._classify_metadata(node) is None else known).append(node)
            unknown.sort(key=lambda n: (-n.size_bytes, n.name))
            order = known + unknown
        for node in order:
            self.classify(node, batch)
        return {node.path: batch.cache[node.path] for node in nodes}

    def _classify_metadata(self, node: FileNode) -> tuple[str, str] | None:
        if node.is_directory and not node.is_package:
            return ("folder", "folder")
        if node.is_package:
            return ("app", "app")

        family = self.registry.family_for_extension(node.extension)
        if family is not None:
            return (self.registry.normalized_extension(node.extension), family)

        family = self.registry.family_for_type(node.type_identifier)
        if family is not None:
            return (node.type_identifier, family)
        return None

    def _sniff(self, node: FileNode, batch: ClassificationBatch) -> tuple[str, str] | None:
        size = node.size_bytes
        if batch.exhausted or size <= 0:
            return None

        try:
            if size <= MAGIC_MAX_BYTES:
                result = self._magic_family(Path(node.path))
                if result is not None:
                    batch.budget -= 1
                    return result
            if size <= TEXT_MAX_BYTES:
                result = self._sniff_text(Path(node.path))
                if result is not None:
                    batch.budget -= 1
                    return result
        except ClassificationUnavailable as e:
            logger.debug(str(e))
        return None

    @staticmethod
    def _read_head(path: Path, length: int) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read(length)
        except OSError as e:
            raise ClassificationUnavailable(path, str(e)) from e

    def _magic_family(self, path: Path) -> tuple[str, str] | None:
        """Match well-known signatures in the first 16 bytes."""
        head = self._read_head(path, 16)
        if len(head) < 8:
            return None
        for signature, tag, family in _MAGIC_SIGNATURES:
            if head.startswith(signature):
                return (tag, family)
        (word,) = struct.unpack("<I", head[:4])
        if word in _MACHO_MAGICS:
            return ("mach-o", "binary")
        return None

    def _sniff_text(self, path: Path) -> tuple[str, str] | None:
        """Detect text by BOM or by the share of printable bytes."""
        sample = self._read_head(path, TEXT_SAMPLE_BYTES)
        if not sample:
            return None
        for bom, tag in _TEXT_BOMS:
            if sample.startswith(bom):
                return (tag, "text")
        printable = sum(1 for b in sample if b in _PRINTABLE)
        if printable / len(sample) > PRINTABLE_RATIO:
            return ("text", "text")
        return None
