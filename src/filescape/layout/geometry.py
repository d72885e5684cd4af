"""Axis-aligned boxes for placement and overlap checks."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Box:
    """Axis-aligned box described by its center and dimensions.

    Attributes:
        x: Center X coordinate
        y: Center Y coordinate (Y is up)
        z: Center Z coordinate
        width: Size along the X axis
        height: Size along the Y axis
        depth: Size along the Z axis
    """

    x: float
    y: float
    z: float
    width: float
    height: float
    depth: float

    @property
    def min_x(self) -> float:
        return self.x - self.width / 2

    @property
    def max_x(self) -> float:
        return self.x + self.width / 2

    @property
    def min_y(self) -> float:
        return self.y - self.height / 2

    @property
    def max_y(self) -> float:
        return self.y + self.height / 2

    @property
    def min_z(self) -> float:
        return self.z - self.depth / 2

    @property
    def max_z(self) -> float:
        return self.z + self.depth / 2

    def intersects(self, other: "Box", padding: float = 0.0) -> bool:
        """Check if this box overlaps another.

        Args:
            other: Box to test against
            padding: Extra clearance required on every side

        Returns:
            True if the boxes (grown by padding) overlap
        """
        return (
            self.min_x - padding < other.max_x
            and self.max_x + padding > other.min_x
            and self.min_y - padding < other.max_y
            and self.max_y + padding > other.min_y
            and self.min_z - padding < other.max_z
            and self.max_z + padding > other.min_z
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"Box(x={self.x:.2f}, y={self.y:.2f}, z={self.z:.2f}, " f"w={self.width:.2f}, h={self.height:.2f}, d={self.depth:.2f})"


def bounds_of(boxes: Iterable[Box]) -> Box | None:
    """Smallest box enclosing all given boxes, None when there are none."""
    boxes = list(boxes)
    if not boxes:
        return None

    min_x = min(b.min_x for b in boxes)
    max_x = max(b.max_x for b in boxes)
    min_y = min(b.min_y for b in boxes)
    max_y = max(b.max_y for b in boxes)
    min_z = min(b.min_z for b in boxes)
    max_z = max(b.max_z for b in boxes)

    return Box(
        x=(min_x + max_x) / 2,
        y=(min_y + max_y) / 2,
        z=(min_z + max_z) / 2,
        width=max_x - min_x,
        height=max_y - min_y,
        depth=max_z - min_z,
    )
