"""
Frame container passed from frame sources to the pipelines.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
from numpy.typing import NDArray


@dataclass
class Frame:
    """
    A single video frame.

    Attributes:
        data: Pixel buffer as a numpy array (height, width, 3), uint8, BGR order
        frame_number: Sequential frame number assigned by the source
        timestamp: Capture or generation time (seconds, perf_counter clock)
    """
    data: NDArray[np.uint8]
    frame_number: int = 0
    timestamp: float = 0.0

    @property
    def width(self) -> int:
        return int(self.data.shape[1]) if self.data.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.data.shape[0]) if self.data.ndim >= 2 else 0

    @property
    def is_empty(self) -> bool:
        return self.data is None or self.data.size == 0

    def is_well_formed(self, width: Optional[int] = None, height: Optional[int] = None) -> bool:
        """
        Check that the frame is a non-empty 3-channel uint8 buffer.

        Args:
            width: Expected width, or None to accept any
            height: Expected height, or None to accept any
        """
        if self.is_empty:
            return False
        if self.data.ndim != 3 or self.data.shape[2] != 3 or self.data.dtype != np.uint8:
            return False
        if width is not None and self.width != width:
            return False
        if height is not None and self.height != height:
            return False
        return True

    def with_data(self, data: NDArray[np.uint8]) -> 'Frame':
        """Return a frame carrying ``data`` with this frame's timing."""
        return replace(self, data=data)
