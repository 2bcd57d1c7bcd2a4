"""
Per-tick frame pipelines.

The benchmark and the interactive loop pick one pipeline per tick and call
``render`` the same way regardless of backend:

- CpuPipeline: transform and filter the pixel buffer, upload, display it
  through the pass-through program
- GpuPipeline: upload the raw frame, let the shader backend transform and
  filter while drawing
"""

from abc import ABC, abstractmethod

from .cpu import PixelBufferBackend
from .frames import Frame
from .gpu.backend import ShaderBackend
from .gpu.surface import RenderSurface
from .params import IDENTITY_AFFINE, FilterKind, FilterParameters, FrameSettings


class FramePipeline(ABC):
    """Processes and draws one frame onto a surface."""

    mode: str = ''

    @abstractmethod
    def render(self, surface: RenderSurface, frame: Frame, settings: FrameSettings) -> None:
        """Process ``frame`` and draw the result into ``surface`` (not presented yet)."""


class CpuPipeline(FramePipeline):
    mode = 'CPU'

    def __init__(self, pixel_backend: PixelBufferBackend, display: ShaderBackend):
        self.pixel_backend = pixel_backend
        self.display = display

    def render(self, surface: RenderSurface, frame: Frame, settings: FrameSettings) -> None:
        image = frame.data
        if settings.transform_enabled:
            image = self.pixel_backend.apply_affine(image, settings.affine_params)
        image = self.pixel_backend.apply_filter(image, settings.filter_kind, settings.filter_params)

        surface.upload(image)
        surface.begin_frame()
        self.display.draw(
            surface.texture, surface.width, surface.height,
            FilterKind.NONE, FilterParameters(), IDENTITY_AFFINE,
            view_size=surface.viewport_size, flip_y=surface.flip_y,
        )


class GpuPipeline(FramePipeline):
    mode = 'GPU'

    def __init__(self, shader_backend: ShaderBackend):
        self.shader_backend = shader_backend

    def render(self, surface: RenderSurface, frame: Frame, settings: FrameSettings) -> None:
        surface.upload(frame.data)
        surface.begin_frame()
        self.shader_backend.draw(
            surface.texture, surface.width, surface.height,
            settings.filter_kind, settings.filter_params, settings.effective_affine,
            view_size=surface.viewport_size, flip_y=surface.flip_y,
        )
