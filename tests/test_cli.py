"""
Tests for the command-line entry point.
"""

import csv
from unittest import mock

import pytest

from shaderbench import cli
from shaderbench.benchmark import BenchmarkConfiguration, BenchmarkResult
from shaderbench.errors import FrameSourceError, ShaderBuildError, SurfaceError
from shaderbench.params import FilterKind


@pytest.fixture(autouse=True)
def no_signal_handlers():
    with mock.patch('shaderbench.cli.signal.signal') as patched:
        yield patched


def fake_results():
    config = BenchmarkConfiguration('GPU', FilterKind.NONE, False, (64, 48))
    return [BenchmarkResult(config, 'ci', 100.0, 90.0, 110.0, 5.0, 10)]


def test_benchmark_writes_report(tmp_path, no_signal_handlers):
    """Test the benchmark command writes the CSV and exits 0."""
    output = tmp_path / 'report.csv'
    with mock.patch('shaderbench.cli.run_benchmark', return_value=fake_results()) as run:
        code = cli.main(['benchmark', '--headless', '--build', 'ci', '--output', str(output)])

    assert code == 0
    settings = run.call_args.args[0]
    assert settings.headless
    assert run.call_args.kwargs['stop_event'] is not None
    no_signal_handlers.assert_called_once()

    with output.open(newline='') as handle:
        rows = list(csv.DictReader(handle))
    assert rows[0]['mode'] == 'GPU'
    assert rows[0]['resolution'] == '64x48'


def test_stop_handler_sets_event(no_signal_handlers):
    """Test the interrupt handler sets the stop event."""
    with mock.patch('shaderbench.cli.run_benchmark', return_value=[]) as run, \
            mock.patch('shaderbench.cli.write_summary_csv'):
        cli.main(['benchmark'])

    handler = no_signal_handlers.call_args.args[1]
    stop_event = run.call_args.kwargs['stop_event']
    assert not stop_event.is_set()
    handler(2, None)
    assert stop_event.is_set()


@pytest.mark.parametrize('error', [
    ShaderBuildError('pixelate', 'ERROR: 0:1: syntax error'),
    SurfaceError('no display'),
    FrameSourceError('Failed to open camera device 0', 0),
])
def test_fatal_errors_exit_1(error):
    """Test initialization failures exit with status 1."""
    with mock.patch('shaderbench.cli.run_benchmark', side_effect=error):
        assert cli.main(['benchmark']) == 1


def test_interactive_command():
    """Test the interactive command passes device and size through."""
    with mock.patch('shaderbench.cli.run_interactive') as run:
        assert cli.main(['interactive', '--device', '2', '--width', '320', '--height', '240']) == 0
    run.assert_called_once_with(2, 320, 240, shader_dir=None)


def test_camera_failure_exit_1():
    """Test an unopenable camera exits with status 1."""
    with mock.patch('shaderbench.cli.run_interactive', side_effect=FrameSourceError('no camera', 0)):
        assert cli.main(['interactive']) == 1


def test_command_required():
    """Test a missing subcommand is a usage error."""
    with pytest.raises(SystemExit):
        cli.main([])
