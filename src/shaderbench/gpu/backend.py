"""
Shader ("GPU") backend.

Holds the three compiled programs (pass-through, pixelate, keep-color) and
applies the affine transform and the selected filter at draw time. Every
program draws a full-surface quad so the fragment stage runs once per output
pixel; the filtered, transformed image lands directly in the bound
framebuffer.

The uniforms carry the same values the pixel-buffer backend uses: the forward
affine matrix from :func:`shaderbench.affine.build_affine_matrix` and its
inverse (computed once per draw, never per pixel), the effective block size,
and the keep color/threshold normalized to [0, 1].
"""

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

import moderngl
import numpy as np

from ..affine import build_affine_matrix, invert_affine, to_gl_mat3
from ..errors import ShaderBuildError
from ..params import AffineParameters, FilterKind, FilterParameters
from .loader import ProgramSource, load_shader_sources

logger = logging.getLogger(__name__)

PROGRAM_FOR_FILTER = {
    FilterKind.NONE: 'passthrough',
    FilterKind.PIXELATE: 'pixelate',
    FilterKind.KEEP_COLOR: 'keep_color',
}

COMMON_UNIFORMS = ('uTex', 'uAffine', 'uAffineInverse', 'uTexSize', 'uViewSize', 'uFlipY')

PROGRAM_UNIFORMS = {
    'passthrough': COMMON_UNIFORMS,
    'pixelate': COMMON_UNIFORMS + ('uBlock',),
    'keep_color': COMMON_UNIFORMS + ('uKeepColor', 'uThresh'),
}

# Triangle strip covering clip space
QUAD_VERTICES = np.array([
    -1.0, -1.0,
     1.0, -1.0,
    -1.0,  1.0,
     1.0,  1.0,
], dtype='f4')


class ShaderBackend:
    """
    GPU implementation of the transform and filters.

    All GL objects are owned by the backend and released by :meth:`release`
    (or on leaving a ``with`` block). If building any program fails, the
    objects created so far are released before the error propagates.

    Example:
        with ShaderBackend(ctx) as backend:
            surface.begin_frame()
            backend.draw(surface.texture, 640, 480,
                         FilterKind.PIXELATE, FilterParameters(block_size=8),
                         AffineParameters())
    """

    name = 'GPU'

    def __init__(
        self,
        ctx: 'moderngl.Context',
        sources: Optional[Mapping[str, ProgramSource]] = None,
        shader_dir: Optional[Union[str, Path]] = None
    ):
        """
        Compile and link every program.

        Args:
            ctx: Current moderngl context
            sources: Program sources by name (default: loaded from ``shader_dir``)
            shader_dir: Directory passed to the shader loader when ``sources`` is None

        Raises:
            ShaderBuildError: If a source is missing or fails to compile or link
        """
        self.ctx = ctx
        if sources is None:
            sources = load_shader_sources(shader_dir)

        self._programs: Dict[str, 'moderngl.Program'] = {}
        self._vaos: Dict[str, 'moderngl.VertexArray'] = {}
        self._uniforms: Dict[str, Dict[str, Optional['moderngl.Uniform']]] = {}

        with ExitStack() as stack:
            self._vbo = ctx.buffer(QUAD_VERTICES.tobytes())
            stack.callback(self._vbo.release)

            for name in PROGRAM_UNIFORMS:
                if name not in sources:
                    raise ShaderBuildError(name, "No source supplied for program")

                program = self._build_program(sources[name])
                stack.callback(program.release)

                vao = ctx.vertex_array(program, [(self._vbo, '2f', 'in_vert')])
                stack.callback(vao.release)

                self._programs[name] = program
                self._vaos[name] = vao
                self._uniforms[name] = {
                    uniform: program.get(uniform, None)
                    for uniform in PROGRAM_UNIFORMS[name]
                }

            self._resources = stack.pop_all()

        logger.info(
            "Shader backend ready: %s (%s)",
            ctx.info.get('GL_RENDERER', 'unknown renderer'),
            ctx.info.get('GL_VERSION', 'unknown version'),
        )

    def _build_program(self, source: ProgramSource) -> 'moderngl.Program':
        try:
            return self.ctx.program(
                vertex_shader=source.vertex_shader,
                fragment_shader=source.fragment_shader,
            )
        except moderngl.Error as exc:
            raise ShaderBuildError(source.name, str(exc)) from exc

    @property
    def program_names(self) -> Tuple[str, ...]:
        return tuple(self._programs)

    @staticmethod
    def _set(uniforms: Dict[str, Optional['moderngl.Uniform']], name: str, value) -> None:
        # Uniforms the GLSL compiler optimized away resolve to None
        uniform = uniforms.get(name)
        if uniform is not None:
            uniform.value = value

    def draw(
        self,
        texture: 'moderngl.Texture',
        width: int,
        height: int,
        filter_kind: FilterKind,
        filter_params: FilterParameters,
        affine_params: AffineParameters,
        view_size: Optional[Tuple[int, int]] = None,
        flip_y: bool = False
    ) -> None:
        """
        Draw ``texture`` filtered and transformed into the bound framebuffer.

        Args:
            texture: Input texture (RGB, ``width`` x ``height``)
            width: Texture width in pixels
            height: Texture height in pixels
            filter_kind: Selects the program
            filter_params: Filter settings (clamped before use)
            affine_params: Transform settings; identity for no transform
            view_size: Framebuffer size if it differs from the texture size
            flip_y: Put image row 0 at the top of the framebuffer (on-screen display)
        """
        name = PROGRAM_FOR_FILTER[filter_kind]
        uniforms = self._uniforms[name]
        matrix = build_affine_matrix(affine_params, width, height)

        texture.use(location=0)
        self._set(uniforms, 'uTex', 0)
        self._set(uniforms, 'uAffine', to_gl_mat3(matrix))
        self._set(uniforms, 'uAffineInverse', to_gl_mat3(invert_affine(matrix)))
        self._set(uniforms, 'uTexSize', (float(width), float(height)))
        self._set(uniforms, 'uViewSize', tuple(float(v) for v in (view_size or (width, height))))
        self._set(uniforms, 'uFlipY', bool(flip_y))

        if filter_kind is FilterKind.PIXELATE:
            params = filter_params.clamped()
            self._set(uniforms, 'uBlock', float(params.effective_block_size))
        elif filter_kind is FilterKind.KEEP_COLOR:
            params = filter_params.clamped()
            blue, green, red = params.keep_color
            self._set(uniforms, 'uKeepColor', (red / 255.0, green / 255.0, blue / 255.0))
            self._set(uniforms, 'uThresh', params.threshold / 255.0)

        self._vaos[name].render(moderngl.TRIANGLE_STRIP)

    def release(self) -> None:
        """Release every program, vertex array and buffer."""
        self._resources.close()
        self._programs.clear()
        self._vaos.clear()
        self._uniforms.clear()
        logger.debug("Shader backend released")

    def __enter__(self) -> 'ShaderBackend':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
