"""
Command-line entry point.

    shaderbench benchmark [--headless] [--resolution 640x480 ...]
    shaderbench interactive [--device 0]
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, Sequence

from .benchmark import run_benchmark
from .config import MODES, BenchmarkSettings, parse_resolution
from .errors import FrameSourceError, ShaderBuildError, SurfaceError
from .interactive import run_interactive
from .params import FilterKind
from .report import format_summary, write_summary_csv

logger = logging.getLogger('shaderbench')


def _resolution(text: str):
    try:
        return parse_resolution(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='shaderbench',
        description='CPU vs GPU image-processing benchmark and live viewer',
    )
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity')
    parser.add_argument('--shader-dir', type=Path, default=None,
                        help='Directory with shader sources (default: packaged shaders)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    bench = subparsers.add_parser('benchmark', help='Run the synthetic benchmark matrix')
    bench.add_argument('--resolution', action='append', type=_resolution,
                       help='WIDTHxHEIGHT, repeatable (default: 640x480 1280x720 1920x1080)')
    bench.add_argument('--mode', action='append', choices=MODES, help='Backend, repeatable')
    bench.add_argument('--filter', action='append', choices=[kind.value for kind in FilterKind],
                       help='Filter, repeatable')
    bench.add_argument('--transform', action='append', choices=['off', 'on'],
                       help='Transform setting, repeatable')
    bench.add_argument('--warmup', type=float, default=1.0, help='Warmup seconds per configuration')
    bench.add_argument('--duration', type=float, default=5.0, help='Sampling seconds per configuration')
    bench.add_argument('--block', type=int, default=None, help='Pixelate block size')
    bench.add_argument('--keep-color', type=int, nargs=3, metavar=('B', 'G', 'R'), default=None,
                       help='KeepColor target color')
    bench.add_argument('--threshold', type=int, default=None, help='KeepColor distance threshold')
    bench.add_argument('--build', default=None, help='Build label for the report (default: py<major>.<minor>)')
    bench.add_argument('--output', type=Path, default=None, help='Report path')
    bench.add_argument('--headless', action='store_true', help='Render off-screen, no window')
    bench.add_argument('--seed', type=int, default=None, help='Synthetic source seed')

    live = subparsers.add_parser('interactive', help='Live camera view with keyboard controls')
    live.add_argument('--device', type=int, default=0, help='Camera device index')
    live.add_argument('--width', type=int, default=640, help='Requested capture width')
    live.add_argument('--height', type=int, default=480, help='Requested capture height')

    return parser


def _install_stop_handler(stop_event: threading.Event) -> None:
    def handler(signum, frame):
        logger.warning("Interrupt received, stopping after the current tick")
        stop_event.set()

    signal.signal(signal.SIGINT, handler)


def run_benchmark_command(args: argparse.Namespace) -> int:
    settings = BenchmarkSettings.from_args(args)
    stop_event = threading.Event()
    _install_stop_handler(stop_event)

    results = run_benchmark(settings, stop_event=stop_event)
    path = write_summary_csv(results, settings.report_path)

    for line in format_summary(results):
        logger.info(line)
    logger.info("Wrote %d rows to %s", len(results), path)
    return 0


def run_interactive_command(args: argparse.Namespace) -> int:
    run_interactive(args.device, args.width, args.height, shader_dir=args.shader_dir)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    commands = {
        'benchmark': run_benchmark_command,
        'interactive': run_interactive_command,
    }
    try:
        return commands[args.command](args)
    except (ShaderBuildError, SurfaceError, FrameSourceError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == '__main__':
    sys.exit(main())
