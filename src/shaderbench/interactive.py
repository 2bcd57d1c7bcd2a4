"""
Interactive mode: live camera frames through either backend in a window.
"""

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Optional, Union

import glfw

from .controls import HELP_LINES, Control, ControlState, EdgeDetector, apply_input
from .cpu import PixelBufferBackend
from .gpu.backend import ShaderBackend
from .gpu.surface import WindowSurface
from .pipeline import CpuPipeline, GpuPipeline
from .sources import CameraFrameSource
from .stats import FpsAverager

logger = logging.getLogger(__name__)

KEY_BINDINGS = {
    glfw.KEY_G: Control.TOGGLE_BACKEND,
    glfw.KEY_T: Control.TOGGLE_TRANSFORM,
    glfw.KEY_1: Control.FILTER_NONE,
    glfw.KEY_2: Control.FILTER_PIXELATE,
    glfw.KEY_3: Control.FILTER_KEEP_COLOR,
    glfw.KEY_LEFT: Control.MOVE_LEFT,
    glfw.KEY_RIGHT: Control.MOVE_RIGHT,
    glfw.KEY_UP: Control.MOVE_UP,
    glfw.KEY_DOWN: Control.MOVE_DOWN,
    glfw.KEY_Q: Control.ROTATE_LEFT,
    glfw.KEY_E: Control.ROTATE_RIGHT,
    glfw.KEY_MINUS: Control.ZOOM_OUT,
    glfw.KEY_EQUAL: Control.ZOOM_IN,
    glfw.KEY_Z: Control.BLOCK_DOWN,
    glfw.KEY_X: Control.BLOCK_UP,
    glfw.KEY_C: Control.THRESHOLD_DOWN,
    glfw.KEY_V: Control.THRESHOLD_UP,
    glfw.KEY_ESCAPE: Control.QUIT,
}


def run_interactive(
    device_id: int = 0,
    width: int = 640,
    height: int = 480,
    shader_dir: Optional[Union[str, Path]] = None
) -> None:
    """
    Run the live loop until Esc or the window is closed.

    Raises:
        FrameSourceError: If the camera cannot be opened
        SurfaceError: If the window cannot be created
        ShaderBuildError: If a shader program fails to build
    """
    with ExitStack() as stack:
        source = stack.enter_context(CameraFrameSource(device_id, width, height))

        surface = stack.enter_context(
            WindowSurface(source.width, source.height, title='Interactive Mode')
        )
        shader_backend = stack.enter_context(ShaderBackend(surface.ctx, shader_dir=shader_dir))
        pipelines = {
            'CPU': CpuPipeline(PixelBufferBackend(), shader_backend),
            'GPU': GpuPipeline(shader_backend),
        }

        for line in HELP_LINES:
            logger.info(line)

        state = ControlState()
        edges = EdgeDetector()
        fps = FpsAverager(120)

        while not surface.should_close():
            held = frozenset(
                control for key, control in KEY_BINDINGS.items() if surface.is_key_down(key)
            )
            state = apply_input(state, held, edges.update(held))
            if state.quit_requested:
                surface.request_close()
                break

            frame = source.read()
            if frame is None or frame.is_empty:
                glfw.poll_events()
                continue
            if (frame.width, frame.height) != surface.size:
                surface.resize(frame.width, frame.height)

            pipelines[state.mode].render(surface, frame, state.frame_settings())
            surface.set_title(state.title(fps.tick()))
            surface.present()
