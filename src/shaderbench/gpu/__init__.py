"""
GPU side of shaderbench: shader loading, the shader backend, render surfaces.
"""

from .backend import PROGRAM_FOR_FILTER, ShaderBackend
from .loader import DEFAULT_SHADER_DIR, ProgramSource, load_shader_sources
from .surface import (
    OffscreenSurface,
    RenderSurface,
    WindowSurface,
    create_offscreen_context,
)

__all__ = [
    'PROGRAM_FOR_FILTER',
    'ShaderBackend',
    'DEFAULT_SHADER_DIR',
    'ProgramSource',
    'load_shader_sources',
    'OffscreenSurface',
    'RenderSurface',
    'WindowSurface',
    'create_offscreen_context',
]
