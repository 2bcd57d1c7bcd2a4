"""
Exception types raised by shaderbench.

Only initialization problems are exceptions. A frame that fails to arrive on a
tick is reported as ``None`` by the frame source and skipped by the caller.
"""

from typing import Optional


class ShaderBuildError(RuntimeError):
    """
    A shader program could not be loaded, compiled or linked.

    Attributes:
        program: Name of the program being built ('passthrough', 'pixelate', ...)
        diagnostic: Loader, compiler or linker output
    """

    def __init__(self, program: str, diagnostic: str):
        self.program = program
        self.diagnostic = diagnostic.strip()
        super().__init__(f"Failed to build shader program '{program}':\n{self.diagnostic}")


class FrameSourceError(RuntimeError):
    """The frame source could not be opened."""

    def __init__(self, message: str, device: Optional[int] = None):
        super().__init__(message)
        self.device = device


class SurfaceError(RuntimeError):
    """Window or OpenGL context creation failed."""
