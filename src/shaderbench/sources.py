"""
Frame sources.

A source hands the driving loop one frame per tick, or ``None`` when no frame
is available; the caller skips that tick.

- SyntheticFrameSource: random noise plus a moving marker, for benchmarks
- CameraFrameSource: OpenCV camera capture, for interactive use
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from .errors import FrameSourceError
from .frames import Frame

logger = logging.getLogger(__name__)

MARKER_COLOR = (20, 20, 220)
TEXT_COLOR = (240, 240, 240)


def ensure_bgr(image: Optional[NDArray]) -> Optional[NDArray[np.uint8]]:
    """
    Normalize a captured image to a contiguous 3-channel uint8 BGR buffer.

    Other sample types saturate into [0, 255] (floats are rounded first).
    Returns None for an empty image.
    """
    if image is None or image.size == 0:
        return None

    if image.dtype != np.uint8:
        if np.issubdtype(image.dtype, np.floating):
            image = np.rint(image)
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    elif image.shape[2] == 2:
        try:
            image = cv2.cvtColor(image, cv2.COLOR_YUV2BGR_YUY2)
        except cv2.error:
            logger.debug("YUY2 conversion failed for %s frame, using luma only", image.shape)
            image = cv2.cvtColor(np.ascontiguousarray(image[..., 0]), cv2.COLOR_GRAY2BGR)
    elif image.shape[2] == 1:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

    return np.ascontiguousarray(image)


class FrameSource(ABC):
    """
    Base class for frame sources.

    Example:
        with SyntheticFrameSource(640, 480) as source:
            frame = source.read()
            if frame is not None:
                ...
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self._frame_count = 0

    def open(self) -> None:
        """Acquire the underlying device (no-op by default)."""

    def close(self) -> None:
        """Release the underlying device (no-op by default)."""

    @abstractmethod
    def read(self) -> Optional[Frame]:
        """Return the next frame, or None if no frame is available this tick."""

    def _make_frame(self, data: NDArray[np.uint8]) -> Frame:
        frame = Frame(data=data, frame_number=self._frame_count, timestamp=time.perf_counter())
        self._frame_count += 1
        return frame

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SyntheticFrameSource(FrameSource):
    """
    Generates a fresh random frame every tick.

    Each frame is uniform noise with a filled circle that moves from tick to
    tick and the tick number printed in the corner, so consecutive frames
    never repeat. Deterministic for a given seed.
    """

    def __init__(self, width: int = 640, height: int = 480, seed: Optional[int] = None):
        super().__init__(width, height)
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def read(self) -> Frame:
        tick = self._frame_count + 1
        width, height = self.width, self.height

        image = self._rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)

        center = ((tick * 37) % width, (tick * 53) % height)
        radius = max(8, min(width, height) // 12)
        cv2.circle(image, center, radius, MARKER_COLOR, -1)
        cv2.putText(image, str(tick % 10000), (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, TEXT_COLOR, 2)

        return self._make_frame(image)


class CameraFrameSource(FrameSource):
    """
    Captures frames from a camera with OpenCV.

    Frames are normalized with :func:`ensure_bgr`. The frame size is whatever
    the camera delivers; ``width``/``height`` are only requests.
    """

    def __init__(self, device_id: int = 0, width: int = 640, height: int = 480):
        super().__init__(width, height)
        self.device_id = device_id
        self.capture = None
        self._first: Optional[NDArray[np.uint8]] = None

    def open(self) -> None:
        """
        Open the camera device and grab its first frame.

        The first frame fixes ``width``/``height`` and is returned by the
        first :meth:`read`.

        Raises:
            FrameSourceError: If the device cannot be opened or its first
                frame is empty
        """
        logger.info("Opening camera device %d", self.device_id)
        self.capture = cv2.VideoCapture(self.device_id)
        if not self.capture.isOpened():
            self.close()
            raise FrameSourceError(f"Failed to open camera device {self.device_id}", self.device_id)

        self.capture.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*'MJPG'))
        self.capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        ok, image = self.capture.read()
        image = ensure_bgr(image) if ok else None
        if image is None:
            self.close()
            raise FrameSourceError(f"Camera device {self.device_id} returned an empty first frame", self.device_id)

        # Camera may not support the requested size
        self.height, self.width = image.shape[:2]
        self._first = image
        logger.info("Camera opened: %dx%d", self.width, self.height)

    def read(self) -> Optional[Frame]:
        if self.capture is None:
            return None

        if self._first is not None:
            image, self._first = self._first, None
            return self._make_frame(image)

        ok, image = self.capture.read()
        image = ensure_bgr(image) if ok else None
        if image is None:
            logger.debug("Camera %d returned no frame", self.device_id)
            return None

        return self._make_frame(image)

    def close(self) -> None:
        self._first = None
        if self.capture is not None:
            self.capture.release()
            self.capture = None
            logger.info("Camera released (%d frames captured)", self._frame_count)
