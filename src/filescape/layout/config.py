"""Configuration for the layout engine."""

from dataclasses import dataclass
from enum import Enum

from filescape.errors import ValidationError, validate_range


class PlacementStrategy(Enum):
    """Strategy for placing a focused node's children."""

    FAMILY_ARMS = "family_arms"  # One outward spiral per family around a hub
    GRID = "grid"  # Row/column packing
    RADIAL = "radial"  # Concentric rings, largest at the center
    ROOMS = "rooms"  # Files on a central grid, folders on perimeter rings


@dataclass(frozen=True)
class LayoutConfig:
    """Configuration for the layout engine.

    Sizes are in scene units. Relative size ``rel`` is
    ``log(size + 1) / log(max_size + 1)`` among the laid out siblings.

    Attributes:
        strategy: Placement strategy
        min_block: Smallest footprint side
        max_block: Largest footprint side; also the scale of spacings
        spacing: Fixed clearance between grid cells and ring pitches
        constant_height: Height of a zero-size block in size-height mode
        height_factor: Height added per unit rel, times max_block
        use_age_for_height: Height shrinks from 0.8 * max_block towards
            0.1 as the modification age approaches age_max_days
        age_max_days: Age at which a block reaches its minimum height
        reference_time: "Now" for age heights as a Unix timestamp; the
            current time is read once per layout call when None
        min_alpha: Opacity of the smallest block (rel 0)
        max_alpha: Opacity of the largest block (rel 1)
        gap_base: Gap left after every block on an arm
        gap_range: Extra gap for small blocks, scaled by (1 - rel)
        ring_gap: Clearance between folders on a rooms perimeter ring
        arm_spread: Smallest angular step along an arm, in radians, divided
            by the number of arms
        arm_pitch: Rise per full revolution of an arm, times max_block
        hub_radius_factor: Radius at which arms start, times max_block
        show_labels: Produce label text for large enough blocks
        label_min_rel: rel below which a block gets no label unless it is
            selected or matched
        label_max_chars: Names longer than this are truncated with "…"
        max_connections: Cap on hub-to-node connection records
        collision_attempts: Outward pushes tried when an arm block would
            overlap an earlier one
    """

    strategy: PlacementStrategy = PlacementStrategy.FAMILY_ARMS
    min_block: float = 0.2
    max_block: float = 5.0
    spacing: float = 0.6
    constant_height: float = 0.4
    height_factor: float = 0.4
    use_age_for_height: bool = False
    age_max_days: float = 365.0
    reference_time: float | None = None
    min_alpha: float = 0.05
    max_alpha: float = 0.98
    gap_base: float = 0.06
    gap_range: float = 0.25
    ring_gap: float = 1.0
    arm_spread: float = 0.7
    arm_pitch: float = 1.0
    hub_radius_factor: float = 1.5
    show_labels: bool = True
    label_min_rel: float = 0.12
    label_max_chars: int = 28
    max_connections: int = 64
    collision_attempts: int = 32

    @classmethod
    def from_scales(cls, gap_scale: float = 1.0, alpha_scale: float = 1.0, **overrides) -> "LayoutConfig":
        """Build a config from the two user-facing sliders.

        Args:
            gap_scale: 0..2, multiplies gap_base and gap_range
            alpha_scale: 0..1, 1 keeps the full opacity range and lower
                values compress it towards translucent
            **overrides: Any other LayoutConfig field
        """
        validate_range(gap_scale, 0.0, 2.0, "gap_scale")
        validate_range(alpha_scale, 0.0, 1.0, "alpha_scale")
        return cls(
            gap_base=0.06 * gap_scale,
            gap_range=0.25 * gap_scale,
            min_alpha=0.05 + (1.0 - alpha_scale) * 0.5,
            max_alpha=0.98 - (1.0 - alpha_scale) * 0.4,
            **overrides,
        )

    def validate(self) -> None:
        """Raise ValidationError for inconsistent settings."""
        if self.min_block <= 0:
            raise ValidationError("min_block", self.min_block, "positive number")
        if self.max_block < self.min_block:
            raise ValidationError("max_block", self.max_block, f"at least min_block ({self.min_block})")
        if self.age_max_days <= 0:
            raise ValidationError("age_max_days", self.age_max_days, "positive number")
        if self.hub_radius_factor <= 0:
            raise ValidationError("hub_radius_factor", self.hub_radius_factor, "positive number")
        validate_range(self.min_alpha, 0.0, 1.0, "min_alpha")
        validate_range(self.max_alpha, 0.0, 1.0, "max_alpha")
        validate_range(self.label_min_rel, 0.0, 1.0, "label_min_rel")
        for name in ("spacing", "constant_height", "height_factor", "gap_base", "gap_range",
                     "ring_gap", "arm_spread", "arm_pitch"):
            if getattr(self, name) < 0:
                raise ValidationError(name, getattr(self, name), "non-negative number")
        if self.label_max_chars < 2:
            raise ValidationError("label_max_chars", self.label_max_chars, "at least 2")
        if self.max_connections < 0:
            raise ValidationError("max_connections", self.max_connections, "non-negative integer")
        if self.collision_attempts < 0:
            raise ValidationError("collision_attempts", self.collision_attempts, "non-negative integer")
