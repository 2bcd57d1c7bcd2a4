"""
Render surfaces: the GL context, the input texture, and the draw target.

A surface owns everything that depends on the current resolution. The
benchmark resizes it between configurations; the pipelines upload frames to
its texture and draw into its target.

Two variants:
- WindowSurface: glfw window, frames presented with swap_buffers
- OffscreenSurface: standalone context drawing into a framebuffer, readable
  back into a numpy frame
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import glfw
import moderngl
import numpy as np
from numpy.typing import NDArray

from ..errors import SurfaceError

logger = logging.getLogger(__name__)

CLEAR_COLOR = (0.08, 0.10, 0.15)


class RenderSurface(ABC):
    """Base class owning the input texture for one resolution."""

    # Whether image row 0 must be drawn at the top of the target
    flip_y = False

    def __init__(self, ctx: 'moderngl.Context', width: int, height: int):
        self.ctx = ctx
        self.width = width
        self.height = height
        self.texture: Optional['moderngl.Texture'] = None
        self._create_texture()

    def _create_texture(self) -> None:
        if self.texture is not None:
            self.texture.release()
        self.texture = self.ctx.texture((self.width, self.height), 3, dtype='f1')
        self.texture.filter = (moderngl.NEAREST, moderngl.NEAREST)
        self.texture.repeat_x = False
        self.texture.repeat_y = False

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def viewport_size(self) -> Tuple[int, int]:
        """Size of the draw target in pixels."""
        return self.size

    def resize(self, width: int, height: int) -> None:
        """Recreate the resolution-dependent resources."""
        if (width, height) == self.size:
            return
        self.width = width
        self.height = height
        self._create_texture()
        self._resize_target()
        logger.debug("Surface resized to %dx%d", width, height)

    def _resize_target(self) -> None:
        pass

    def upload(self, image: NDArray[np.uint8]) -> None:
        """
        Upload a BGR frame to the input texture.

        Raises:
            ValueError: If the image size does not match the surface
        """
        height, width = image.shape[:2]
        if (width, height) != self.size:
            raise ValueError(
                f"Frame is {width}x{height}, surface is {self.width}x{self.height}"
            )
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        self.texture.write(np.ascontiguousarray(rgb).tobytes())

    @abstractmethod
    def begin_frame(self) -> None:
        """Bind the draw target and clear it."""

    @abstractmethod
    def present(self) -> None:
        """Finish the frame; this is the timing synchronization point."""

    def should_close(self) -> bool:
        return False

    def disable_vsync(self) -> None:
        """Remove any display-refresh frame cap."""

    def release(self) -> None:
        if self.texture is not None:
            self.texture.release()
            self.texture = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def create_offscreen_context(**settings) -> 'moderngl.Context':
    """
    Create a standalone OpenGL 3.3 context.

    Args:
        **settings: Passed to ``moderngl.create_standalone_context``
            (e.g. ``backend='egl'`` on headless Linux)

    Raises:
        SurfaceError: If no context can be created
    """
    try:
        return moderngl.create_standalone_context(require=330, **settings)
    except Exception as exc:
        raise SurfaceError(f"Failed to create standalone OpenGL context: {exc}") from exc


class OffscreenSurface(RenderSurface):
    """
    Surface drawing into an off-screen framebuffer.

    Example:
        with OffscreenSurface(640, 480) as surface:
            surface.upload(frame.data)
            surface.begin_frame()
            backend.draw(surface.texture, 640, 480, ...)
            image = surface.read_frame()
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        ctx: Optional['moderngl.Context'] = None,
        **context_settings
    ):
        self._owns_context = ctx is None
        if ctx is None:
            ctx = create_offscreen_context(**context_settings)
        self._fbo: Optional['moderngl.Framebuffer'] = None
        try:
            super().__init__(ctx, width, height)
            self._resize_target()
        except Exception:
            self.release()
            raise

    def _resize_target(self) -> None:
        if self._fbo is not None:
            self._fbo.release()
        self._fbo = self.ctx.simple_framebuffer((self.width, self.height), components=4)

    def begin_frame(self) -> None:
        self._fbo.use()
        self._fbo.clear(0.0, 0.0, 0.0, 1.0)

    def present(self) -> None:
        self.ctx.finish()

    def read_frame(self) -> NDArray[np.uint8]:
        """Read the rendered image back as a BGR uint8 array."""
        data = self._fbo.read(components=3, alignment=1)
        rgb = np.frombuffer(data, dtype=np.uint8).reshape(self.height, self.width, 3)
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)

    def release(self) -> None:
        if self._fbo is not None:
            self._fbo.release()
            self._fbo = None
        super().release()
        if self._owns_context and self.ctx is not None:
            self.ctx.release()
            self.ctx = None


class WindowSurface(RenderSurface):
    """
    Surface presenting to a glfw window (OpenGL 3.3 core).

    Vsync is off by default so measured frame rates reflect processing cost.
    """

    flip_y = True

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        title: str = 'shaderbench',
        vsync: bool = False
    ):
        if not glfw.init():
            raise SurfaceError("Failed to initialize GLFW")

        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, glfw.TRUE)  # For macOS

        self.window = glfw.create_window(width, height, title, None, None)
        if not self.window:
            glfw.terminate()
            raise SurfaceError("Failed to create GLFW window")

        glfw.make_context_current(self.window)
        glfw.swap_interval(1 if vsync else 0)

        self.ctx = None
        self.texture = None
        try:
            ctx = moderngl.create_context()
            super().__init__(ctx, width, height)
        except Exception:
            self.release()
            raise

        logger.info("Window surface %dx%d, OpenGL %s", width, height, ctx.version_code)

    @property
    def viewport_size(self) -> Tuple[int, int]:
        return glfw.get_framebuffer_size(self.window)

    def _resize_target(self) -> None:
        glfw.set_window_size(self.window, self.width, self.height)

    def begin_frame(self) -> None:
        width, height = self.viewport_size
        self.ctx.screen.use()
        self.ctx.viewport = (0, 0, width, height)
        self.ctx.clear(*CLEAR_COLOR)

    def present(self) -> None:
        glfw.swap_buffers(self.window)
        glfw.poll_events()

    def should_close(self) -> bool:
        return bool(glfw.window_should_close(self.window))

    def request_close(self) -> None:
        glfw.set_window_should_close(self.window, True)

    def disable_vsync(self) -> None:
        glfw.make_context_current(self.window)
        glfw.swap_interval(0)

    def set_title(self, title: str) -> None:
        glfw.set_window_title(self.window, title)

    def is_key_down(self, key: int) -> bool:
        return glfw.get_key(self.window, key) == glfw.PRESS

    def release(self) -> None:
        super().release()
        if self.window:
            glfw.destroy_window(self.window)
            self.window = None
            glfw.terminate()
