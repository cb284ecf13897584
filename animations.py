# animations.py
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pixels import CorrespondenceSet

# ---------------------------------------------------------------------------
# Easing Functions (0..1 -> 0..1)
# ---------------------------------------------------------------------------
def ease_linear(t: float) -> float:
    return t

def ease_in_quad(t: float) -> float:
    return t * t

def ease_out_quad(t: float) -> float:
    return t * (2 - t)

def ease_in_out_quad(t: float) -> float:
    return 2 * t * t if t < 0.5 else 1 - pow(-2 * t + 2, 2) / 2

def ease_in_sine(t: float) -> float:
    return 1 - math.cos((t * math.pi) / 2)

def ease_out_sine(t: float) -> float:
    return math.sin((t * math.pi) / 2)

def ease_in_out_sine(t: float) -> float:
    return -(math.cos(math.pi * t) - 1) / 2

def ease_in_out_cubic(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - pow(-2 * t + 2, 3) / 2

EASING_FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "linear": ease_linear,
    "in_quad": ease_in_quad, "quadin": ease_in_quad,
    "out_quad": ease_out_quad, "quadout": ease_out_quad,
    "in_out_quad": ease_in_out_quad, "quadinout": ease_in_out_quad,
    "in_sine": ease_in_sine, "sinein": ease_in_sine,
    "out_sine": ease_out_sine, "sineout": ease_out_sine,
    "in_out_sine": ease_in_out_sine, "sineinout": ease_in_out_sine,
    "in_out_cubic": ease_in_out_cubic, "cubicinout": ease_in_out_cubic,
}

# The morph's slow-start/slow-stop curve
ease_in_out = ease_in_out_quad

# ---------------------------------------------------------------------------
# Small math helpers
# ---------------------------------------------------------------------------
def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))

def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t

def get_easing(name: Any, default: Callable[[float], float] = ease_in_out_quad) -> Callable[[float], float]:
    s = str(name).strip().lower() if name is not None else ""
    return EASING_FUNCTIONS.get(s, default)

def steps_to_complete(step: float) -> int:
    """Number of fixed-size advances needed for t to reach 1.

    Rounded before the ceiling so 1/0.001 counts as 1000, not 1001.
    """
    if step <= 0.0:
        raise ValueError(f"step must be positive; got {step}")
    return max(1, math.ceil(round(1.0 / step, 9)))

# ---------------------------------------------------------------------------
# Animation state
# ---------------------------------------------------------------------------
class AnimationPhase(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass(frozen=True)
class AnimationState:
    t: float = 0.0
    tick: int = 0
    phase: AnimationPhase = AnimationPhase.IDLE

    @property
    def running(self) -> bool:
        # Complete still animates the wobble, only the interpolation is frozen
        return self.phase is not AnimationPhase.IDLE

    @property
    def finished(self) -> bool:
        return self.phase is AnimationPhase.COMPLETE


class MorphAnimator:
    """Drives one morph: progress ``t`` toward 1 and an unbounded wobble tick.

    Idle -> Running on ``reset(points)``. Every ``advance()`` is one frame:
    tick += 1, and while Running t grows by ``step`` until the integer step
    bound is hit, at which point t is exactly 1 and the phase becomes
    Complete. Listeners registered with ``on_finished`` fire once per run.
    Nothing here blocks; the host calls ``advance()`` from its frame callback.
    """

    def __init__(self, step: float, on_finished: Optional[Callable[[], None]] = None) -> None:
        self.step = float(step)
        self.total_steps = steps_to_complete(self.step)
        self._listeners: List[Callable[[], None]] = []
        if on_finished is not None:
            self._listeners.append(on_finished)
        self._points: Optional["CorrespondenceSet"] = None
        self._steps = 0
        self._state = AnimationState()

    # -- accessors --
    @property
    def state(self) -> AnimationState:
        return self._state

    @property
    def points(self) -> Optional["CorrespondenceSet"]:
        return self._points

    @property
    def t(self) -> float:
        return self._state.t

    @property
    def tick(self) -> int:
        return self._state.tick

    @property
    def phase(self) -> AnimationPhase:
        return self._state.phase

    def on_finished(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    # -- transitions --
    def reset(self, points: "CorrespondenceSet") -> AnimationState:
        """Start a new run with a freshly built correspondence set."""
        self._points = points
        self._steps = 0
        self._state = AnimationState(t=0.0, tick=0, phase=AnimationPhase.RUNNING)
        return self._state

    def stop(self) -> None:
        self._points = None
        self._steps = 0
        self._state = AnimationState()

    def advance(self) -> AnimationState:
        state = self._state
        if state.phase is AnimationPhase.IDLE:
            return state

        tick = state.tick + 1
        if state.phase is AnimationPhase.COMPLETE:
            self._state = AnimationState(t=1.0, tick=tick, phase=AnimationPhase.COMPLETE)
            return self._state

        self._steps += 1
        if self._steps >= self.total_steps:
            self._state = AnimationState(t=1.0, tick=tick, phase=AnimationPhase.COMPLETE)
            for cb in list(self._listeners):
                cb()
        else:
            t = _clamp01(self._steps * self.step)
            self._state = AnimationState(t=t, tick=tick, phase=AnimationPhase.RUNNING)
        return self._state
