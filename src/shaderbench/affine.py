"""
Affine matrix construction shared by the pixel-buffer and shader backends.

Convention: the matrix maps *source* pixel coordinates to *output* pixel
coordinates (the forward map), with pixel centers at integer coordinates and
the y axis pointing down. It matches ``cv2.getRotationMatrix2D`` about
``(w/2, h/2)`` with ``(tx, ty)`` added to the last column, so positive angles
rotate counter-clockwise on screen.

Both backends invert the matrix and sample the source at ``M^-1 (x, y, 1)`` for
every output pixel.
"""

import math

import numpy as np
from numpy.typing import NDArray

from .params import AffineParameters


def build_affine_matrix(params: AffineParameters, width: int, height: int) -> NDArray[np.float64]:
    """
    Build the 3x3 forward affine matrix for an image of the given size.

    Args:
        params: Translate/rotate/scale settings (scale is clamped if <= 0)
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        3x3 float64 matrix; the identity for default parameters
    """
    params = params.clamped()

    cx = width * 0.5
    cy = height * 0.5
    theta = math.radians(params.rotation_degrees)
    a = math.cos(theta) * params.scale
    b = math.sin(theta) * params.scale

    return np.array([
        [a, b, (1.0 - a) * cx - b * cy + params.translate_x],
        [-b, a, b * cx + (1.0 - a) * cy + params.translate_y],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def to_gl_mat3(matrix: NDArray[np.float64]) -> tuple:
    """Flatten a 3x3 matrix in column-major order for a GLSL ``mat3`` uniform."""
    return tuple(float(v) for v in np.asarray(matrix, dtype=np.float32).T.reshape(-1))


def is_identity_matrix(matrix: NDArray[np.float64], tolerance: float = 1e-6) -> bool:
    return bool(np.allclose(matrix, np.eye(3), atol=tolerance, rtol=0.0))


def invert_affine(matrix: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Inverse of an affine matrix (output pixel -> source pixel).

    Scale is clamped positive by :func:`build_affine_matrix`, so its matrices
    are always invertible.
    """
    return np.linalg.inv(np.asarray(matrix, dtype=np.float64))
