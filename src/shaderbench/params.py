"""
Per-tick parameter values shared by both backends.

All parameter types are frozen. The loop that drives a frame replaces them
wholesale between ticks; nothing mutates them while a filter runs.

Out-of-range values are clamped instead of raised: a bad scale or threshold
coming from the keyboard or a benchmark table must never stop the render loop.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple

logger = logging.getLogger(__name__)

MIN_SCALE = 1e-3
MIN_BLOCK_SIZE = 1
MAX_BLOCK_SIZE = 100


class FilterKind(Enum):
    """Per-pixel filter applied after the affine transform."""
    NONE = "None"
    PIXELATE = "Pixelate"
    KEEP_COLOR = "KeepColor"

    @classmethod
    def parse(cls, name: str) -> 'FilterKind':
        """
        Look up a filter kind by its display name (case-insensitive).

        Raises:
            ValueError: If no filter kind has that name
        """
        for kind in cls:
            if kind.value.lower() == name.lower():
                return kind
        raise ValueError(f"Unknown filter: {name!r}")


def _clamp(value, low, high):
    return max(low, min(high, value))


@dataclass(frozen=True)
class FilterParameters:
    """
    Filter settings.

    Attributes:
        block_size: Pixelate block edge in pixels (1 disables pixelation)
        keep_color: KeepColor reference color as (blue, green, red) bytes
        threshold: KeepColor distance threshold in 8-bit units [0, 255]
    """
    block_size: int = 8
    keep_color: Tuple[int, int, int] = (20, 20, 200)
    threshold: int = 60

    @property
    def effective_block_size(self) -> int:
        """Block size actually used by Pixelate; 1 means no-op."""
        block = int(self.block_size)
        return block if block >= 2 else 1

    def clamped(self) -> 'FilterParameters':
        """Return a copy with every field clamped into its valid range."""
        block = _clamp(int(self.block_size), MIN_BLOCK_SIZE, MAX_BLOCK_SIZE)
        color = tuple(_clamp(int(c), 0, 255) for c in self.keep_color)
        threshold = _clamp(int(self.threshold), 0, 255)

        result = FilterParameters(block_size=block, keep_color=color, threshold=threshold)
        if result != self:
            logger.debug("Clamped filter parameters %s -> %s", self, result)
        return result


@dataclass(frozen=True)
class AffineParameters:
    """
    Geometric transform settings.

    Rotation and scaling happen about the image center; the translation is
    added afterwards, in output pixels.
    """
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0
    rotation_degrees: float = 0.0

    def clamped(self) -> 'AffineParameters':
        """Return a copy whose scale is at least ``MIN_SCALE``."""
        if self.scale >= MIN_SCALE:
            return self
        logger.debug("Non-positive scale %r clamped to %r", self.scale, MIN_SCALE)
        return replace(self, scale=MIN_SCALE)

    def is_identity(self, tolerance: float = 1e-4) -> bool:
        """True when the parameters describe the identity transform."""
        return (
            self.scale == 1.0
            and abs(self.rotation_degrees) < tolerance
            and abs(self.translate_x) < tolerance
            and abs(self.translate_y) < tolerance
        )


IDENTITY_AFFINE = AffineParameters()


@dataclass(frozen=True)
class FrameSettings:
    """Everything a pipeline needs to process one tick."""
    filter_kind: FilterKind = FilterKind.NONE
    filter_params: FilterParameters = field(default_factory=FilterParameters)
    affine_params: AffineParameters = field(default_factory=AffineParameters)
    transform_enabled: bool = False

    @property
    def effective_affine(self) -> AffineParameters:
        """Affine parameters to apply this tick (identity when disabled)."""
        return self.affine_params if self.transform_enabled else IDENTITY_AFFINE
