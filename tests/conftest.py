"""
Shared fixtures.

GL tests run on a standalone OpenGL 3.3 context and are skipped when the
machine cannot provide one.
"""

import numpy as np
import pytest

from shaderbench.errors import SurfaceError
from shaderbench.gpu.surface import create_offscreen_context


@pytest.fixture(scope='session')
def gl_context():
    ctx = None
    errors = []
    for settings in ({}, {'backend': 'egl'}):
        try:
            ctx = create_offscreen_context(**settings)
            break
        except SurfaceError as exc:
            errors.append(str(exc))
    if ctx is None:
        pytest.skip("No OpenGL 3.3 context available: " + '; '.join(errors))

    yield ctx
    ctx.release()


@pytest.fixture
def gradient_frame():
    """Smooth 64x48 BGR test frame (small per-pixel steps)."""
    ys, xs = np.mgrid[0:48, 0:64]
    image = np.empty((48, 64, 3), dtype=np.uint8)
    image[..., 0] = xs * 3
    image[..., 1] = ys * 4
    image[..., 2] = 128 + xs - ys
    return image
