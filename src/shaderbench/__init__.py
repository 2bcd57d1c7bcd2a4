"""
shaderbench - CPU vs GPU image-processing benchmark

Runs the same per-frame work (affine warp, Pixelate, KeepColor) either on
the pixel buffer with OpenCV or in GLSL fragment programs through moderngl,
and measures sustained frame rate for every combination.

Architecture:
- Backends: PixelBufferBackend (numpy/cv2), ShaderBackend (moderngl)
- Surfaces: WindowSurface (glfw) or OffscreenSurface (standalone context)
- Pipelines: per-tick CPU or GPU processing onto a surface
- BenchmarkDriver: warmup/sampling state machine over the config matrix

Example:
    from shaderbench import BenchmarkSettings, run_benchmark, write_summary_csv

    settings = BenchmarkSettings(headless=True, sample_seconds=2.0)
    results = run_benchmark(settings)
    write_summary_csv(results, settings.report_path)
"""

# Parameters and frames
from .params import (
    IDENTITY_AFFINE,
    AffineParameters,
    FilterKind,
    FilterParameters,
    FrameSettings,
)
from .frames import Frame
from .errors import FrameSourceError, ShaderBuildError, SurfaceError

# Backends
from .affine import build_affine_matrix
from .cpu import PixelBufferBackend
from .gpu import OffscreenSurface, RenderSurface, ShaderBackend, WindowSurface

# Sources and pipelines
from .sources import CameraFrameSource, FrameSource, SyntheticFrameSource
from .pipeline import CpuPipeline, FramePipeline, GpuPipeline

# Benchmark
from .config import BenchmarkSettings
from .benchmark import (
    BenchmarkConfiguration,
    BenchmarkDriver,
    BenchmarkResult,
    run_benchmark,
)
from .report import format_summary, write_summary_csv
from .stats import FpsAverager, FpsStats, summarize

__version__ = "0.1.0"

__all__ = [
    # Parameters and frames
    "IDENTITY_AFFINE",
    "AffineParameters",
    "FilterKind",
    "FilterParameters",
    "FrameSettings",
    "Frame",
    "FrameSourceError",
    "ShaderBuildError",
    "SurfaceError",
    # Backends
    "build_affine_matrix",
    "PixelBufferBackend",
    "OffscreenSurface",
    "RenderSurface",
    "ShaderBackend",
    "WindowSurface",
    # Sources and pipelines
    "CameraFrameSource",
    "FrameSource",
    "SyntheticFrameSource",
    "CpuPipeline",
    "FramePipeline",
    "GpuPipeline",
    # Benchmark
    "BenchmarkSettings",
    "BenchmarkConfiguration",
    "BenchmarkDriver",
    "BenchmarkResult",
    "run_benchmark",
    "format_summary",
    "write_summary_csv",
    "FpsAverager",
    "FpsStats",
    "summarize",
]
