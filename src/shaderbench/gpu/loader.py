"""
Shader source loader.

Reads the GLSL sources of the three programs from a directory. The files carry
no ``#version`` line; the loader prepends it, and prepends the shared sampling
code to every fragment program.

Directory layout:
    quad.vert          vertex stage shared by all programs
    sampling.glsl      fragment prelude (uniforms, bilinear warp)
    passthrough.frag   pass-through program
    pixelate.frag      pixelate program
    keep_color.frag    keep-color program
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from ..errors import ShaderBuildError

logger = logging.getLogger(__name__)

GLSL_VERSION = '#version 330 core'

DEFAULT_SHADER_DIR = Path(__file__).resolve().parent.parent / 'shaders'

VERTEX_FILE = 'quad.vert'
PRELUDE_FILE = 'sampling.glsl'

PROGRAM_FILES = {
    'passthrough': 'passthrough.frag',
    'pixelate': 'pixelate.frag',
    'keep_color': 'keep_color.frag',
}


@dataclass(frozen=True)
class ProgramSource:
    """Complete vertex and fragment source text of one program."""
    name: str
    vertex_shader: str
    fragment_shader: str


def _read(directory: Path, filename: str, program: str) -> str:
    path = directory / filename
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ShaderBuildError(program, f"Cannot read {path}: {exc}") from exc


def load_shader_sources(directory: Optional[Union[str, Path]] = None) -> Dict[str, ProgramSource]:
    """
    Load every program's source text.

    Args:
        directory: Shader directory (default: the sources shipped with the package)

    Returns:
        Mapping of program name ('passthrough', 'pixelate', 'keep_color') to source

    Raises:
        ShaderBuildError: If any file is missing or unreadable
    """
    directory = Path(directory) if directory is not None else DEFAULT_SHADER_DIR
    logger.debug("Loading shader sources from %s", directory)

    sources = {}
    for name, filename in PROGRAM_FILES.items():
        vertex = _read(directory, VERTEX_FILE, name)
        prelude = _read(directory, PRELUDE_FILE, name)
        body = _read(directory, filename, name)
        sources[name] = ProgramSource(
            name=name,
            vertex_shader=f"{GLSL_VERSION}\n{vertex}",
            fragment_shader=f"{GLSL_VERSION}\n{prelude}\n{body}",
        )

    return sources
