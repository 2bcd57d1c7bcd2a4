"""
Benchmark configuration.

Defaults reproduce the reference benchmark: every backend, filter and
transform setting at 640x480, 1280x720 and 1920x1080, one second of warmup
and five seconds of sampling per configuration.
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .params import AffineParameters, FilterKind, FilterParameters

logger = logging.getLogger(__name__)

MODES = ('CPU', 'GPU')

DEFAULT_RESOLUTIONS = (
    (640, 480),
    (1280, 720),
    (1920, 1080),
)

BENCHMARK_AFFINE = AffineParameters(translate_x=60.0, translate_y=40.0, scale=1.15, rotation_degrees=8.0)

_RESOLUTION_RE = re.compile(r'^\s*(\d+)\s*[xX]\s*(\d+)\s*$')


def parse_resolution(text: str) -> Tuple[int, int]:
    """
    Parse a ``WIDTHxHEIGHT`` string.

    Raises:
        ValueError: If the text is malformed or a dimension is zero
    """
    match = _RESOLUTION_RE.match(text)
    if not match:
        raise ValueError(f"Invalid resolution {text!r}, expected WIDTHxHEIGHT")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Resolution must be positive, got {text!r}")
    return width, height


def default_build_label() -> str:
    return f"py{sys.version_info.major}.{sys.version_info.minor}"


@dataclass
class BenchmarkSettings:
    """
    Axes and constants of one benchmark run.

    Attributes:
        modes: Backends to run ('CPU', 'GPU'), outermost loop
        filters: Filter kinds
        transforms: Transform on/off values
        resolutions: (width, height) pairs, innermost loop
        warmup_seconds: Discarded warmup per configuration
        sample_seconds: Sampling window per configuration
        affine_params: Transform used when a configuration enables it
        filter_params: Filter settings used by every configuration
        build: Label written to the ``build`` report column
        output: Report path (default ``perf_summary_<build>.csv``)
        shader_dir: Shader source directory (default: packaged shaders)
        headless: Render off-screen instead of opening a window
        seed: Seed for the synthetic frame source
    """
    modes: Tuple[str, ...] = MODES
    filters: Tuple[FilterKind, ...] = tuple(FilterKind)
    transforms: Tuple[bool, ...] = (False, True)
    resolutions: Tuple[Tuple[int, int], ...] = DEFAULT_RESOLUTIONS
    warmup_seconds: float = 1.0
    sample_seconds: float = 5.0
    affine_params: AffineParameters = field(default_factory=lambda: BENCHMARK_AFFINE)
    filter_params: FilterParameters = field(default_factory=FilterParameters)
    build: str = field(default_factory=default_build_label)
    output: Optional[Path] = None
    shader_dir: Optional[Path] = None
    headless: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        self.modes = tuple(mode.upper() for mode in self.modes)
        for mode in self.modes:
            if mode not in MODES:
                raise ValueError(f"Unknown mode {mode!r}, expected one of {MODES}")

        # Negative durations are clamped, not rejected
        if self.warmup_seconds < 0 or self.sample_seconds < 0:
            logger.warning("Negative benchmark duration clamped to 0")
        self.warmup_seconds = max(0.0, float(self.warmup_seconds))
        self.sample_seconds = max(0.0, float(self.sample_seconds))
        self.filter_params = self.filter_params.clamped()
        self.affine_params = self.affine_params.clamped()

    @property
    def report_path(self) -> Path:
        if self.output is not None:
            return Path(self.output)
        return Path(f"perf_summary_{self.build}.csv")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'BenchmarkSettings':
        """Build settings from parsed ``benchmark`` command-line options."""
        defaults = cls()
        filter_params = FilterParameters(
            block_size=args.block if args.block is not None else defaults.filter_params.block_size,
            keep_color=tuple(args.keep_color) if args.keep_color else defaults.filter_params.keep_color,
            threshold=args.threshold if args.threshold is not None else defaults.filter_params.threshold,
        )
        return cls(
            modes=tuple(args.mode) if args.mode else defaults.modes,
            filters=tuple(FilterKind.parse(name) for name in args.filter) if args.filter else defaults.filters,
            transforms=_parse_transforms(args.transform) if args.transform else defaults.transforms,
            resolutions=tuple(args.resolution) if args.resolution else defaults.resolutions,
            warmup_seconds=args.warmup,
            sample_seconds=args.duration,
            filter_params=filter_params,
            build=args.build or defaults.build,
            output=args.output,
            shader_dir=args.shader_dir,
            headless=args.headless,
            seed=args.seed,
        )


def _parse_transforms(values: Sequence[str]) -> Tuple[bool, ...]:
    return tuple(value.lower() == 'on' for value in values)
