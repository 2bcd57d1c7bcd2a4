"""
Live controls for interactive mode.

Input handling never mutates shared state. Each tick the loop collects the
controls held down, and :func:`apply_input` returns the next ControlState.
Toggles fire on the press edge; continuous adjustments repeat while held.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Iterable

from .params import AffineParameters, FilterKind, FilterParameters, FrameSettings

TRANSLATE_STEP = 5.0
ROTATE_STEP = 0.6
SCALE_STEP = 0.02
MIN_INTERACTIVE_SCALE = 0.1
BLOCK_RANGE = (2, 100)
THRESHOLD_RANGE = (0, 255)


class Control(Enum):
    TOGGLE_BACKEND = 'G'
    TOGGLE_TRANSFORM = 'T'
    FILTER_NONE = '1'
    FILTER_PIXELATE = '2'
    FILTER_KEEP_COLOR = '3'
    MOVE_LEFT = 'Left'
    MOVE_RIGHT = 'Right'
    MOVE_UP = 'Up'
    MOVE_DOWN = 'Down'
    ROTATE_LEFT = 'Q'
    ROTATE_RIGHT = 'E'
    ZOOM_OUT = '-'
    ZOOM_IN = '='
    BLOCK_DOWN = 'Z'
    BLOCK_UP = 'X'
    THRESHOLD_DOWN = 'C'
    THRESHOLD_UP = 'V'
    QUIT = 'Esc'


HELP_LINES = (
    "G: Toggle GPU/CPU",
    "1/2/3: None / Pixelate / KeepColor",
    "T: Toggle transform",
    "Arrows: Translate",
    "Q/E: Rotate",
    "-/=: Zoom out / Zoom in",
    "Z/X: Pixel block size",
    "C/V: KeepColor threshold",
    "Esc: Quit",
)

_FILTER_SELECT = {
    Control.FILTER_NONE: FilterKind.NONE,
    Control.FILTER_PIXELATE: FilterKind.PIXELATE,
    Control.FILTER_KEEP_COLOR: FilterKind.KEEP_COLOR,
}


@dataclass(frozen=True)
class ControlState:
    """Everything the operator can change while the loop runs."""
    use_gpu: bool = True
    transform_enabled: bool = True
    filter_kind: FilterKind = FilterKind.PIXELATE
    filter_params: FilterParameters = field(default_factory=FilterParameters)
    affine_params: AffineParameters = field(default_factory=AffineParameters)
    quit_requested: bool = False

    @property
    def mode(self) -> str:
        return 'GPU' if self.use_gpu else 'CPU'

    def frame_settings(self) -> FrameSettings:
        return FrameSettings(
            filter_kind=self.filter_kind,
            filter_params=self.filter_params,
            affine_params=self.affine_params,
            transform_enabled=self.transform_enabled,
        )

    def title(self, fps: float) -> str:
        return (
            f"[Interactive] Mode={self.mode} | Filter={self.filter_kind.value} | "
            f"Transform={'ON' if self.transform_enabled else 'OFF'} | FPS={round(fps)}"
        )


def _axis(held: FrozenSet[Control], negative: Control, positive: Control) -> int:
    return int(positive in held) - int(negative in held)


def apply_input(
    state: ControlState,
    held: FrozenSet[Control],
    pressed: FrozenSet[Control] = frozenset()
) -> ControlState:
    """
    Compute the next control state.

    Args:
        state: Current state (not modified)
        held: Controls held down this tick
        pressed: Controls that went down this tick (toggles react to these)

    Returns:
        The updated state
    """
    use_gpu = state.use_gpu
    transform_enabled = state.transform_enabled
    filter_kind = state.filter_kind

    if Control.TOGGLE_BACKEND in pressed:
        use_gpu = not use_gpu
    if Control.TOGGLE_TRANSFORM in pressed:
        transform_enabled = not transform_enabled
    for control, kind in _FILTER_SELECT.items():
        if control in pressed:
            filter_kind = kind

    affine = state.affine_params
    affine = replace(
        affine,
        translate_x=affine.translate_x + TRANSLATE_STEP * _axis(held, Control.MOVE_LEFT, Control.MOVE_RIGHT),
        translate_y=affine.translate_y + TRANSLATE_STEP * _axis(held, Control.MOVE_UP, Control.MOVE_DOWN),
        rotation_degrees=affine.rotation_degrees + ROTATE_STEP * _axis(held, Control.ROTATE_LEFT, Control.ROTATE_RIGHT),
        scale=max(MIN_INTERACTIVE_SCALE, affine.scale + SCALE_STEP * _axis(held, Control.ZOOM_OUT, Control.ZOOM_IN)),
    )

    params = state.filter_params
    block = params.block_size + _axis(held, Control.BLOCK_DOWN, Control.BLOCK_UP)
    threshold = params.threshold + _axis(held, Control.THRESHOLD_DOWN, Control.THRESHOLD_UP)
    params = replace(
        params,
        block_size=min(BLOCK_RANGE[1], max(BLOCK_RANGE[0], block)),
        threshold=min(THRESHOLD_RANGE[1], max(THRESHOLD_RANGE[0], threshold)),
    )

    return ControlState(
        use_gpu=use_gpu,
        transform_enabled=transform_enabled,
        filter_kind=filter_kind,
        filter_params=params,
        affine_params=affine,
        quit_requested=state.quit_requested or Control.QUIT in held,
    )


class EdgeDetector:
    """Turns per-tick held sets into press edges."""

    def __init__(self):
        self._previous: FrozenSet[Control] = frozenset()

    def update(self, held: Iterable[Control]) -> FrozenSet[Control]:
        held = frozenset(held)
        pressed = held - self._previous
        self._previous = held
        return pressed
