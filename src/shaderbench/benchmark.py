"""
Benchmark driver.

Sweeps the configuration matrix {backend x filter x transform x resolution}
and records frame-rate statistics for each configuration.

Each configuration runs through ``IDLE -> WARMING -> SAMPLING -> RECORDED``:

1. The surface is resized to the configuration's resolution.
2. Frames are rendered for the warmup duration; their timings are discarded.
3. Frames are rendered for the sampling duration; every presented frame
   yields one FPS sample, the reciprocal of the interval since the previous
   presented frame. Non-positive intervals are discarded.
4. The samples are aggregated into an immutable BenchmarkResult.

A tick whose frame is missing or malformed is skipped: nothing is rendered
and the interval spanning it is not sampled. A stop request aborts the
current configuration and the rest of the matrix; results already recorded
are kept.
"""

import itertools
import logging
import threading
import time
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import BenchmarkSettings
from .cpu import PixelBufferBackend
from .frames import Frame
from .gpu.backend import ShaderBackend
from .gpu.surface import OffscreenSurface, RenderSurface, WindowSurface
from .params import FilterKind, FrameSettings
from .pipeline import CpuPipeline, FramePipeline, GpuPipeline
from .sources import FrameSource, SyntheticFrameSource
from .stats import summarize

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = 'idle'
    WARMING = 'warming'
    SAMPLING = 'sampling'
    RECORDED = 'recorded'


@dataclass(frozen=True)
class BenchmarkConfiguration:
    """One combination of backend, filter, transform flag and resolution."""
    mode: str
    filter_kind: FilterKind
    transform_enabled: bool
    resolution: Tuple[int, int]

    @property
    def transform_label(self) -> str:
        return 'On' if self.transform_enabled else 'Off'

    @property
    def resolution_label(self) -> str:
        width, height = self.resolution
        return f"{width}x{height}"

    def describe(self) -> str:
        return (
            f"{self.mode} | {self.filter_kind.value} | "
            f"T={self.transform_label} | {self.resolution_label}"
        )


@dataclass(frozen=True)
class BenchmarkResult:
    """Statistics of one configuration's sampling window."""
    configuration: BenchmarkConfiguration
    build: str
    avg_fps: float
    min_fps: float
    max_fps: float
    std_fps: float
    samples: int

    def as_row(self) -> Dict[str, object]:
        """Report row keyed by :data:`shaderbench.report.REPORT_FIELDS`."""
        return {
            'mode': self.configuration.mode,
            'filter': self.configuration.filter_kind.value,
            'transform': self.configuration.transform_label,
            'resolution': self.configuration.resolution_label,
            'build': self.build,
            'avg_fps': self.avg_fps,
            'min_fps': self.min_fps,
            'max_fps': self.max_fps,
            'std_fps': self.std_fps,
            'samples': self.samples,
        }


def build_matrix(
    modes: Sequence[str],
    filters: Sequence[FilterKind],
    transforms: Sequence[bool],
    resolutions: Sequence[Tuple[int, int]]
) -> List[BenchmarkConfiguration]:
    """
    Enumerate every configuration.

    Order is stable: backend outermost, then filter, then transform flag,
    then resolution.
    """
    return [
        BenchmarkConfiguration(mode, filter_kind, transform, tuple(resolution))
        for mode, filter_kind, transform, resolution
        in itertools.product(modes, filters, transforms, resolutions)
    ]


class BenchmarkAborted(Exception):
    """Raised internally when the stop signal interrupts a configuration."""


class BenchmarkDriver:
    """
    Runs configurations and collects results.

    Args:
        surface: Render surface shared by every configuration
        pipelines: Pipeline per mode ('CPU', 'GPU')
        settings: Durations and parameter values
        source_factory: Builds a frame source for a (width, height)
        clock: Monotonic time in seconds
        stop_event: Global stop signal

    Example:
        driver = BenchmarkDriver(surface, {'CPU': cpu, 'GPU': gpu}, settings)
        results = driver.run(build_matrix(...))
    """

    def __init__(
        self,
        surface: RenderSurface,
        pipelines: Dict[str, FramePipeline],
        settings: BenchmarkSettings,
        source_factory: Optional[Callable[[int, int], FrameSource]] = None,
        clock: Callable[[], float] = time.perf_counter,
        stop_event: Optional[threading.Event] = None
    ):
        self.surface = surface
        self.pipelines = pipelines
        self.settings = settings
        self.source_factory = source_factory or (
            lambda width, height: SyntheticFrameSource(width, height, seed=settings.seed)
        )
        self.clock = clock
        self.stop_event = stop_event or threading.Event()
        self.phase = Phase.IDLE
        self.results: List[BenchmarkResult] = []

    @property
    def stop_requested(self) -> bool:
        return self.stop_event.is_set() or self.surface.should_close()

    def configurations(self) -> List[BenchmarkConfiguration]:
        """The full matrix described by the settings."""
        return build_matrix(
            self.settings.modes,
            self.settings.filters,
            self.settings.transforms,
            self.settings.resolutions,
        )

    def run(self, configurations: Optional[Iterable[BenchmarkConfiguration]] = None) -> List[BenchmarkResult]:
        """
        Run every configuration in order.

        Returns:
            Results recorded before completion or the stop signal
        """
        if configurations is None:
            configurations = self.configurations()
        configurations = list(configurations)

        self.surface.disable_vsync()
        self.results = []

        for index, configuration in enumerate(configurations, start=1):
            if self.stop_requested:
                break
            logger.info("[RUN %d/%d] %s", index, len(configurations), configuration.describe())
            try:
                result = self.run_configuration(configuration)
            except BenchmarkAborted:
                break
            self.results.append(result)

        if len(self.results) < len(configurations):
            logger.warning(
                "Benchmark stopped after %d of %d configurations",
                len(self.results), len(configurations),
            )
        return list(self.results)

    def _frame_settings(self, configuration: BenchmarkConfiguration) -> FrameSettings:
        return FrameSettings(
            filter_kind=configuration.filter_kind,
            filter_params=self.settings.filter_params,
            affine_params=self.settings.affine_params,
            transform_enabled=configuration.transform_enabled,
        )

    def run_configuration(self, configuration: BenchmarkConfiguration) -> BenchmarkResult:
        """
        Warm up, sample, and aggregate one configuration.

        Raises:
            BenchmarkAborted: If the stop signal arrives mid-configuration
        """
        pipeline = self.pipelines[configuration.mode]
        width, height = configuration.resolution
        frame_settings = self._frame_settings(configuration)
        warmup = self.settings.warmup_seconds
        total = warmup + self.settings.sample_seconds

        self.phase = Phase.IDLE
        self.surface.resize(width, height)

        samples: List[float] = []
        with self.source_factory(width, height) as source:
            self.phase = Phase.WARMING
            start = self.clock()
            last: Optional[float] = None

            while True:
                if self.stop_requested:
                    self.phase = Phase.IDLE
                    raise BenchmarkAborted()

                frame = source.read()
                if not self._usable(frame, width, height):
                    logger.debug("Skipping tick without a usable frame")
                    last = None
                    if self.clock() - start >= total:
                        break
                    continue

                pipeline.render(self.surface, frame, frame_settings)
                self.surface.present()

                now = self.clock()
                elapsed = now - start

                if self.phase is Phase.WARMING and elapsed >= warmup:
                    # The interval straddling the boundary belongs to warmup
                    self.phase = Phase.SAMPLING
                elif self.phase is Phase.SAMPLING and last is not None:
                    dt = now - last
                    if dt > 0.0:
                        samples.append(1.0 / dt)
                last = now

                if elapsed >= total:
                    break

        stats = summarize(samples)
        self.phase = Phase.RECORDED
        return BenchmarkResult(
            configuration=configuration,
            build=self.settings.build,
            avg_fps=stats.avg,
            min_fps=stats.min,
            max_fps=stats.max,
            std_fps=stats.std,
            samples=stats.count,
        )

    @staticmethod
    def _usable(frame: Optional[Frame], width: int, height: int) -> bool:
        return frame is not None and frame.is_well_formed(width, height)


def run_benchmark(
    settings: BenchmarkSettings,
    stop_event: Optional[threading.Event] = None
) -> List[BenchmarkResult]:
    """
    Create the GL resources, run the whole matrix, release everything.

    Raises:
        SurfaceError: If the window or context cannot be created
        ShaderBuildError: If a shader program fails to build
    """
    width, height = settings.resolutions[0]

    with ExitStack() as stack:
        if settings.headless:
            surface = stack.enter_context(OffscreenSurface(width, height))
        else:
            surface = stack.enter_context(WindowSurface(width, height, title='Synthetic Benchmark'))

        shader_backend = stack.enter_context(ShaderBackend(surface.ctx, shader_dir=settings.shader_dir))
        pipelines = {
            'CPU': CpuPipeline(PixelBufferBackend(), shader_backend),
            'GPU': GpuPipeline(shader_backend),
        }

        driver = BenchmarkDriver(surface, pipelines, settings, stop_event=stop_event)
        return driver.run()
