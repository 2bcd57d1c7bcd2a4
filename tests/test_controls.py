"""
Tests for interactive controls.
"""

import pytest

from shaderbench.controls import (
    HELP_LINES,
    Control,
    ControlState,
    EdgeDetector,
    apply_input,
)
from shaderbench.params import AffineParameters, FilterKind, FilterParameters


def press(state, *controls):
    held = frozenset(controls)
    return apply_input(state, held, held)


def hold(state, *controls):
    return apply_input(state, frozenset(controls), frozenset())


class TestControlState:
    """Test the initial state."""

    def test_defaults(self):
        """Test the live view starts on GPU with pixelate and transform on."""
        state = ControlState()
        assert state.use_gpu
        assert state.mode == 'GPU'
        assert state.transform_enabled
        assert state.filter_kind is FilterKind.PIXELATE
        assert state.affine_params.is_identity()
        assert not state.quit_requested

    def test_frame_settings(self):
        """Test conversion to per-tick settings."""
        state = ControlState(filter_kind=FilterKind.KEEP_COLOR, transform_enabled=False)
        settings = state.frame_settings()
        assert settings.filter_kind is FilterKind.KEEP_COLOR
        assert not settings.transform_enabled

    def test_title(self):
        """Test the window title."""
        title = ControlState().title(59.6)
        assert title == "[Interactive] Mode=GPU | Filter=Pixelate | Transform=ON | FPS=60"


class TestToggles:
    """Test press-edge toggles."""

    def test_toggle_backend(self):
        """Test G switches between GPU and CPU."""
        state = press(ControlState(), Control.TOGGLE_BACKEND)
        assert state.mode == 'CPU'
        assert press(state, Control.TOGGLE_BACKEND).mode == 'GPU'

    def test_held_toggle_does_not_repeat(self):
        """Test holding a toggle key does nothing after the press."""
        state = press(ControlState(), Control.TOGGLE_TRANSFORM)
        state = hold(state, Control.TOGGLE_TRANSFORM)
        assert not state.transform_enabled

    @pytest.mark.parametrize('control,kind', [
        (Control.FILTER_NONE, FilterKind.NONE),
        (Control.FILTER_PIXELATE, FilterKind.PIXELATE),
        (Control.FILTER_KEEP_COLOR, FilterKind.KEEP_COLOR),
    ])
    def test_select_filter(self, control, kind):
        """Test 1/2/3 select a filter."""
        assert press(ControlState(filter_kind=FilterKind.NONE), control).filter_kind is kind

    def test_quit(self):
        """Test Esc requests quit."""
        assert hold(ControlState(), Control.QUIT).quit_requested


class TestAdjustments:
    """Test held adjustments and their limits."""

    def test_translate(self):
        """Test arrows move by 5 pixels per tick."""
        state = hold(ControlState(), Control.MOVE_RIGHT, Control.MOVE_UP)
        assert state.affine_params.translate_x == 5.0
        assert state.affine_params.translate_y == -5.0

    def test_opposite_keys_cancel(self):
        """Test opposite directions cancel out."""
        state = hold(ControlState(), Control.MOVE_LEFT, Control.MOVE_RIGHT)
        assert state.affine_params.translate_x == 0.0

    def test_rotate(self):
        """Test Q/E rotate by 0.6 degrees per tick."""
        state = hold(ControlState(), Control.ROTATE_RIGHT)
        assert state.affine_params.rotation_degrees == pytest.approx(0.6)
        state = hold(hold(state, Control.ROTATE_LEFT), Control.ROTATE_LEFT)
        assert state.affine_params.rotation_degrees == pytest.approx(-0.6)

    def test_zoom(self):
        """Test -/= change the scale by 0.02 per tick."""
        state = hold(ControlState(), Control.ZOOM_IN)
        assert state.affine_params.scale == pytest.approx(1.02)

    def test_zoom_floor(self):
        """Test zooming out stops at 0.1."""
        state = ControlState(affine_params=AffineParameters(scale=0.11))
        for _ in range(10):
            state = hold(state, Control.ZOOM_OUT)
        assert state.affine_params.scale == pytest.approx(0.1)

    def test_block_limits(self):
        """Test the block size stays within [2, 100]."""
        low = ControlState(filter_params=FilterParameters(block_size=2))
        assert hold(low, Control.BLOCK_DOWN).filter_params.block_size == 2
        high = ControlState(filter_params=FilterParameters(block_size=100))
        assert hold(high, Control.BLOCK_UP).filter_params.block_size == 100
        assert hold(ControlState(), Control.BLOCK_UP).filter_params.block_size == 9

    def test_threshold_limits(self):
        """Test the threshold stays within [0, 255]."""
        low = ControlState(filter_params=FilterParameters(threshold=0))
        assert hold(low, Control.THRESHOLD_DOWN).filter_params.threshold == 0
        high = ControlState(filter_params=FilterParameters(threshold=255))
        assert hold(high, Control.THRESHOLD_UP).filter_params.threshold == 255
        assert hold(ControlState(), Control.THRESHOLD_DOWN).filter_params.threshold == 59

    def test_input_state_not_mutated(self):
        """Test apply_input returns a new state."""
        state = ControlState()
        hold(state, Control.MOVE_RIGHT, Control.BLOCK_UP)
        assert state == ControlState()


class TestEdgeDetector:
    """Test press-edge detection."""

    def test_edges(self):
        """Test a control is pressed only on the tick it goes down."""
        edges = EdgeDetector()
        assert edges.update({Control.TOGGLE_BACKEND}) == {Control.TOGGLE_BACKEND}
        assert edges.update({Control.TOGGLE_BACKEND}) == frozenset()
        assert edges.update(set()) == frozenset()
        assert edges.update({Control.TOGGLE_BACKEND}) == {Control.TOGGLE_BACKEND}


def test_help_lines():
    """Test the help text mentions every key group."""
    text = '\n'.join(HELP_LINES)
    for key in ('G', '1/2/3', 'T', 'Arrows', 'Q/E', '-/=', 'Z/X', 'C/V', 'Esc'):
        assert key in text
