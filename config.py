# config.py
from __future__ import annotations

import dataclasses
import os
import sys
from dataclasses import dataclass
from importlib import resources
from typing import Any, Dict, Mapping, Optional, Tuple

from animations import EASING_FUNCTIONS

# Installed as package data next to pixelmorph_assets/__init__.py
DEFAULT_TARGET_PATH = str(resources.files("pixelmorph_assets").joinpath("target.ppm"))

ENV_PREFIX = "PIXELMORPH_"


# ---------------------------------------------------------------------------
# Value coercion (env vars and CLI strings)
# ---------------------------------------------------------------------------
def _as_int(v: Any) -> int:
    if isinstance(v, int) and not isinstance(v, bool):
        return v
    return int(round(float(str(v).strip())))

def _as_float(v: Any) -> float:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return float(v)
    return float(str(v).strip())

def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    raise ValueError(f"not a boolean: {v!r}")

def _as_optional_int(v: Any) -> Optional[int]:
    if v is None:
        return None
    s = str(v).strip().lower()
    if s in ("", "none", "null"):
        return None
    return _as_int(v)

def _as_color(v: Any) -> Tuple[int, int, int, int]:
    # "R,G,B", "R,G,B,A", "#RRGGBB", "#RRGGBBAA" or a 3/4 tuple
    if isinstance(v, (list, tuple)) and len(v) >= 3:
        r, g, b = int(v[0]), int(v[1]), int(v[2])
        a = int(v[3]) if len(v) > 3 else 255
        return (r, g, b, a)
    s = str(v).strip()
    if s.startswith("#"):
        h = s.lstrip("#")
        if len(h) == 6:
            h += "FF"
        if len(h) != 8:
            raise ValueError(f"bad hex color: {v!r}")
        return tuple(int(h[i:i + 2], 16) for i in (0, 2, 4, 6))  # type: ignore[return-value]
    parts = [p.strip() for p in s.split(",")]
    if len(parts) not in (3, 4):
        raise ValueError(f"bad color: {v!r}")
    return _as_color([int(p) for p in parts])


_COERCERS = {
    "resolution": _as_int,
    "cell_size": _as_int,
    "step_per_frame": _as_float,
    "wobble_amplitude": _as_float,
    "wobble_speed": _as_float,
    "assumed_fps": _as_float,
    "easing": lambda v: str(v).strip().lower(),
    "background": _as_color,
    "target_path": lambda v: str(v).strip(),
    "seed": _as_optional_int,
    "strict_pairing": _as_bool,
}


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MorphConfig:
    """Named constants for one morph run.

    resolution:       pixels per side of the working grid (both images)
    cell_size:        on-screen size of one grid pixel
    step_per_frame:   progress added per frame (0.001 ~ 17 s at 60 Hz)
    wobble_amplitude: max wobble offset, in grid pixels
    wobble_speed:     wobble frequency multiplier
    assumed_fps:      refresh rate used to turn ticks into seconds
    easing:           key into animations.EASING_FUNCTIONS
    background:       RGBA clear color of the canvas
    target_path:      portrait every source morphs into
    seed:             phase RNG seed (None = fresh entropy per run)
    strict_pairing:   raise on mismatched sample sets instead of truncating
    """

    resolution: int = 200
    cell_size: int = 3
    step_per_frame: float = 0.001
    wobble_amplitude: float = 1.2
    wobble_speed: float = 4.0
    assumed_fps: float = 60.0
    easing: str = "in_out_quad"
    background: Tuple[int, int, int, int] = (0, 0, 0, 255)
    target_path: str = DEFAULT_TARGET_PATH
    seed: Optional[int] = None
    strict_pairing: bool = True

    def __post_init__(self) -> None:
        if self.resolution <= 0:
            raise ValueError(f"resolution must be positive; got {self.resolution}")
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive; got {self.cell_size}")
        if not (0.0 < self.step_per_frame <= 1.0):
            raise ValueError(f"step_per_frame must be in (0, 1]; got {self.step_per_frame}")
        if self.wobble_amplitude < 0.0:
            raise ValueError(f"wobble_amplitude must be >= 0; got {self.wobble_amplitude}")
        if self.assumed_fps <= 0.0:
            raise ValueError(f"assumed_fps must be positive; got {self.assumed_fps}")
        if self.easing not in EASING_FUNCTIONS:
            raise ValueError(
                f"Unknown easing '{self.easing}'. Available: {', '.join(sorted(EASING_FUNCTIONS))}"
            )

    @property
    def canvas_size(self) -> Tuple[int, int]:
        side = self.resolution * self.cell_size
        return (side, side)

    @property
    def frame_interval_ms(self) -> int:
        return max(1, int(1000 / self.assumed_fps))

    def replace(self, **changes: Any) -> "MorphConfig":
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "MorphConfig":
        """Build a config from PIXELMORPH_* variables, then apply overrides.

        Unparseable variables are reported and skipped. Overrides that are None
        are ignored so argparse defaults can be passed straight through.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name, coerce in _COERCERS.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                values[name] = coerce(raw)
            except (ValueError, TypeError) as e:
                print(f"[config] Ignoring {ENV_PREFIX}{name.upper()}={raw!r}: {e}", file=sys.stderr)
        for name, v in overrides.items():
            if v is None:
                continue
            if name not in _COERCERS:
                raise TypeError(f"Unknown config field '{name}'")
            values[name] = _COERCERS[name](v)
        return cls(**values)
