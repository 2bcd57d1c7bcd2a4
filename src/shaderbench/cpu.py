"""
Pixel-buffer ("CPU") backend.

Applies the affine transform and the per-pixel filters directly to numpy
frames with OpenCV and numpy. Results are the reference the shader backend is checked
against, so every formula here has a counterpart in ``shaders/``.

Both operations return a new array and treat an empty buffer as a no-op.
"""

import logging
from typing import Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from .affine import build_affine_matrix
from .params import AffineParameters, FilterKind, FilterParameters

logger = logging.getLogger(__name__)

FILL_COLOR = (0, 0, 0)


def _is_empty(image: Optional[NDArray[np.uint8]]) -> bool:
    return image is None or image.size == 0


def warp_affine(image: NDArray[np.uint8], params: AffineParameters) -> NDArray[np.uint8]:
    """
    Resample ``image`` through the affine matrix.

    Output keeps the input dimensions. Bilinear interpolation; source
    coordinates outside the image read as opaque black. No-op (returns the
    input array) when the parameters are the identity.
    """
    if _is_empty(image) or params.is_identity():
        return image

    height, width = image.shape[:2]
    matrix = build_affine_matrix(params, width, height)

    # warpAffine inverts the forward matrix itself (no WARP_INVERSE_MAP)
    return cv2.warpAffine(
        image,
        matrix[:2],
        (width, height),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=FILL_COLOR,
    )


def _cell_index(size: int, block: int) -> NDArray[np.intp]:
    """Cell of every pixel along one axis; the last cell takes the remainder."""
    cells = max(1, size // block)
    return np.minimum(np.arange(size) // block, cells - 1)


def pixelate(image: NDArray[np.uint8], block_size: int) -> NDArray[np.uint8]:
    """
    Mosaic effect: average each cell of the block grid, fill it with the mean.

    Cells are ``block`` pixels wide starting at the top-left corner, so block
    edges stay on the grid. The last cell on each axis absorbs the remainder
    when the block does not divide the frame size (``max(1, size // block)``
    cells per axis). Means are rounded half up.
    """
    if _is_empty(image) or block_size <= 1:
        return image

    block = max(2, int(block_size))
    height, width = image.shape[:2]
    rows = _cell_index(height, block)
    cols = _cell_index(width, block)
    if block > width or block > height:
        logger.debug("Block %d exceeds %dx%d frame, using one cell per short axis", block, width, height)

    row_starts = np.flatnonzero(np.diff(rows, prepend=-1))
    col_starts = np.flatnonzero(np.diff(cols, prepend=-1))
    sums = np.add.reduceat(
        np.add.reduceat(image.astype(np.uint32), row_starts, axis=0),
        col_starts, axis=1,
    )
    counts = np.outer(np.bincount(rows), np.bincount(cols))[..., None].astype(np.uint32)
    means = ((sums + counts // 2) // counts).astype(np.uint8)

    return means[rows[:, None], cols[None, :]]


def keep_color(image: NDArray[np.uint8], color_bgr, threshold: int) -> NDArray[np.uint8]:
    """
    Selective desaturation.

    Pixels whose Euclidean distance to ``color_bgr`` is at most ``threshold``
    keep their color; all others are replaced by their luminance.
    """
    if _is_empty(image):
        return image

    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    gray_bgr = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)

    diff = image.astype(np.int32) - np.asarray(color_bgr, dtype=np.int32)
    distance_sq = np.einsum('ijk,ijk->ij', diff, diff)
    keep = distance_sq <= int(threshold) ** 2

    return np.where(keep[..., None], image, gray_bgr)


class PixelBufferBackend:
    """
    CPU implementation of the transform and filters.

    Example:
        backend = PixelBufferBackend()
        image = backend.apply_affine(frame.data, affine)
        image = backend.apply_filter(image, FilterKind.PIXELATE, params)
    """

    name = 'CPU'

    def apply_affine(self, image: NDArray[np.uint8], params: AffineParameters) -> NDArray[np.uint8]:
        """Warp ``image``; see :func:`warp_affine`."""
        return warp_affine(image, params)

    def apply_filter(
        self,
        image: NDArray[np.uint8],
        kind: FilterKind,
        params: FilterParameters
    ) -> NDArray[np.uint8]:
        """
        Apply one filter.

        Args:
            image: BGR uint8 buffer (height, width, 3)
            kind: Filter to apply
            params: Filter settings (clamped before use)

        Returns:
            Filtered buffer with the same shape
        """
        if _is_empty(image) or kind is FilterKind.NONE:
            return image

        params = params.clamped()
        if kind is FilterKind.PIXELATE:
            return pixelate(image, params.effective_block_size)
        if kind is FilterKind.KEEP_COLOR:
            return keep_color(image, params.keep_color, params.threshold)

        raise ValueError(f"Unknown filter kind: {kind}")

    def process(
        self,
        image: NDArray[np.uint8],
        kind: FilterKind,
        filter_params: FilterParameters,
        affine_params: Optional[AffineParameters] = None
    ) -> NDArray[np.uint8]:
        """Transform (when ``affine_params`` is given), then filter."""
        if affine_params is not None:
            image = self.apply_affine(image, affine_params)
        return self.apply_filter(image, kind, filter_params)
