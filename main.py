#!/usr/bin/env python3
from __future__ import annotations

import argparse
import enum
import os
import sys
from typing import List, Optional

from PIL import Image

from animations import AnimationPhase, AnimationState, EASING_FUNCTIONS, MorphAnimator
from config import MorphConfig
from graphics import render_frame, render_preview
from images import ImageLoadError, ImageSource, load_normalized
from pixels import (
    CorrespondenceError,
    CorrespondenceSet,
    PixelSample,
    RngLike,
    build_correspondence,
    resolve_rng,
    sample_pixels,
)


class MorphStatus(enum.Enum):
    WAITING_TARGET = "waiting for target"
    TARGET_READY = "target ready, waiting for source"
    SOURCE_READY = "source ready"
    RUNNING = "running"
    FINISHED = "finished"
    TARGET_FAILED = "error: target image could not be loaded"
    SOURCE_FAILED = "error: source image could not be loaded"

    @property
    def text(self) -> str:
        return self.value


# ----- Morph Engine -----
class MorphEngine:
    """Owns the two sample sets, the animator and the user-facing status.

    The host calls ``frame()`` once per display refresh; everything else is
    triggered by user actions (load a source, play again).
    """

    def __init__(self, config: Optional[MorphConfig] = None, *, rng: RngLike = None) -> None:
        self.config = config or MorphConfig()
        self.rng = resolve_rng(rng if rng is not None else self.config.seed)

        self.status = MorphStatus.WAITING_TARGET
        self.target_samples: Optional[List[PixelSample]] = None
        self.source_samples: Optional[List[PixelSample]] = None
        self.source_image: Optional[Image.Image] = None
        self._target_failed = False

        self.animator = MorphAnimator(self.config.step_per_frame)
        self.animator.on_finished(self._on_finished)

    # -- properties --
    @property
    def target_ready(self) -> bool:
        return self.target_samples is not None

    @property
    def source_ready(self) -> bool:
        return self.source_samples is not None

    @property
    def points(self) -> Optional[CorrespondenceSet]:
        return self.animator.points

    @property
    def state(self) -> AnimationState:
        return self.animator.state

    @property
    def is_animating(self) -> bool:
        return self.animator.phase is not AnimationPhase.IDLE

    @property
    def can_replay(self) -> bool:
        return self.animator.phase is AnimationPhase.COMPLETE

    # -- loading --
    def load_target(self, src: Optional[ImageSource] = None) -> bool:
        src = self.config.target_path if src is None else src
        try:
            img = load_normalized(src, self.config.resolution)
        except ImageLoadError as e:
            print(f"[engine] Target load failed: {e}", file=sys.stderr)
            self._target_failed = True
            self.status = MorphStatus.TARGET_FAILED
            return False

        self.target_samples = sample_pixels(img)
        self._target_failed = False
        if self.source_ready:
            self.start()
        else:
            self.status = MorphStatus.TARGET_READY
        return True

    def load_source(self, src: ImageSource) -> bool:
        try:
            img = load_normalized(src, self.config.resolution)
        except ImageLoadError as e:
            print(f"[engine] Source load failed: {e}", file=sys.stderr)
            # A failed target stays the visible status; it is never retried
            self.status = MorphStatus.TARGET_FAILED if self._target_failed else MorphStatus.SOURCE_FAILED
            return False

        self.source_image = img
        self.source_samples = sample_pixels(img)
        if self.target_ready:
            self.start()
        elif not self._target_failed:
            self.status = MorphStatus.SOURCE_READY
        else:
            self.status = MorphStatus.TARGET_FAILED
        return True

    # -- animation --
    def start(self) -> bool:
        """Build a fresh correspondence and (re)start the animator."""
        if self.source_samples is None or self.target_samples is None:
            return False
        try:
            points = build_correspondence(
                self.source_samples,
                self.target_samples,
                rng=self.rng,
                strict=self.config.strict_pairing,
            )
        except CorrespondenceError as e:
            print(f"[engine] Cannot pair images: {e}", file=sys.stderr)
            return False
        self.animator.reset(points)
        self.status = MorphStatus.RUNNING
        return True

    def replay(self) -> bool:
        return self.start()

    def stop(self) -> None:
        self.animator.stop()

    def _on_finished(self) -> None:
        self.status = MorphStatus.FINISHED

    def frame(self) -> Image.Image:
        """One per-frame step: advance, then redraw everything."""
        if not self.is_animating:
            return render_preview(self.source_image, self.config)
        state = self.animator.advance()
        return render_frame(self.animator.points, state, self.config)


# ----------------------------- CLI -----------------------------

def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--target", default=None, help="Target portrait (defaults to $PIXELMORPH_TARGET_PATH or the bundled one)")
    p.add_argument("--resolution", type=int, default=None, help="Grid pixels per side")
    p.add_argument("--cell-size", type=int, default=None, help="Output pixels per grid pixel")
    p.add_argument("--step", type=float, default=None, help="Progress per frame (0..1]")
    p.add_argument("--amplitude", type=float, default=None, help="Wobble amplitude in grid pixels")
    p.add_argument("--speed", type=float, default=None, help="Wobble speed factor")
    p.add_argument("--easing", default=None, choices=sorted(EASING_FUNCTIONS), help="Easing curve")
    p.add_argument("--seed", type=int, default=None, help="Phase RNG seed")


def _config_from_args(args: argparse.Namespace) -> MorphConfig:
    return MorphConfig.from_env(
        target_path=args.target,
        resolution=args.resolution,
        cell_size=args.cell_size,
        step_per_frame=args.step,
        wobble_amplitude=args.amplitude,
        wobble_speed=args.speed,
        easing=args.easing,
        seed=args.seed,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Morph an image into a target portrait by brightness-rank pixel pairing."
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- 'gui' command ---
    g = sub.add_parser("gui", help="Open the interactive window")
    _add_config_args(g)
    g.set_defaults(func=cmd_gui)

    # --- 'render' command ---
    r = sub.add_parser("render", help="Render a single frame of the morph to an image file")
    r.add_argument("--source", required=True, help="Source image: path, file:// URI or http(s) URL")
    r.add_argument("--out", required=True, help="Output image path (e.g., frame.png)")
    r.add_argument("--steps", type=int, default=None,
                   help="Frames to advance before saving (default: until finished)")
    _add_config_args(r)
    r.set_defaults(func=cmd_render)

    # --- 'config' command ---
    c = sub.add_parser("config", help="Print the effective configuration")
    _add_config_args(c)
    c.set_defaults(func=cmd_config)

    return p

# ---------------- Command Functions ----------------

def cmd_render(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except ValueError as e:
        print(f"[Error] Invalid configuration: {e}", file=sys.stderr)
        return 1

    engine = MorphEngine(config)
    if not engine.load_target():
        print(f"[Error] {engine.status.text}: {config.target_path}", file=sys.stderr)
        return 1
    if not engine.load_source(args.source):
        print(f"[Error] {engine.status.text}: {args.source}", file=sys.stderr)
        return 1
    if not engine.is_animating:
        print("[Error] Could not start the animation.", file=sys.stderr)
        return 1

    steps = engine.animator.total_steps if args.steps is None else max(0, args.steps)
    print(f"Rendering {args.out}: {steps} frame(s) at {config.canvas_size[0]}x{config.canvas_size[1]}")

    img = render_frame(engine.points, engine.state, config)
    for _ in range(steps):
        img = engine.frame()

    os.makedirs(os.path.dirname(os.path.abspath(args.out)) or ".", exist_ok=True)
    img.save(args.out)
    print(f"Saved frame (t={engine.state.t:.3f}, status: {engine.status.text}) to {args.out}")
    return 0


def cmd_gui(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except ValueError as e:
        print(f"[Error] Invalid configuration: {e}", file=sys.stderr)
        return 1
    from gui import run_gui
    return run_gui(config)


def cmd_config(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except ValueError as e:
        print(f"[Error] Invalid configuration: {e}", file=sys.stderr)
        return 1
    for name, value in config.as_dict().items():
        print(f"{name}: {value}")
    return 0

# ---------------- Main Execution ----------------

def main(argv: Optional[List[str]] = None) -> int:
    """Parses arguments and calls the appropriate command function."""
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv:  # Show help if no arguments are given
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except Exception as e:
        print(f"[Error] An unexpected error occurred: {e}", file=sys.stderr)
        return 2

if __name__ == "__main__":
    sys.exit(main())
