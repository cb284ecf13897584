"""Tests for the morph engine and the command line."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from animations import AnimationPhase
from config import MorphConfig
from graphics import render_preview
from main import MorphEngine, MorphStatus, main
from pixels import build_correspondence


class TestMorphEngineStatus:
    def test_rng_passed_through(self, small_config):
        gen = np.random.default_rng(3)
        assert MorphEngine(small_config, rng=gen).rng is gen

    def test_config_seed_matches_correspondence_seed(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        engine.load_source(source_file)
        expected = build_correspondence(engine.source_samples, engine.target_samples, rng=small_config.seed)
        assert np.array_equal(engine.points.phases, expected.phases)

    def test_initial_state(self, small_config):
        engine = MorphEngine(small_config)
        assert engine.status is MorphStatus.WAITING_TARGET
        assert engine.status.text == "waiting for target"
        assert not engine.is_animating
        assert engine.frame().size == (8, 8)

    def test_target_then_source_starts(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        assert engine.load_target(target_file)
        assert engine.status is MorphStatus.TARGET_READY
        assert engine.load_source(source_file)
        assert engine.status is MorphStatus.RUNNING
        assert len(engine.points) == 16
        assert engine.state.phase is AnimationPhase.RUNNING

    def test_source_then_target_starts(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        engine.load_source(source_file)
        assert engine.status is MorphStatus.SOURCE_READY
        assert not engine.is_animating
        engine.load_target(target_file)
        assert engine.status is MorphStatus.RUNNING

    def test_runs_to_finished_and_keeps_ticking(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        engine.load_source(source_file)
        engine.frame()
        assert engine.state.t == 0.5
        assert not engine.can_replay
        engine.frame()
        assert engine.state.t == 1.0
        assert engine.status is MorphStatus.FINISHED
        assert engine.can_replay
        engine.frame()
        assert engine.state.tick == 3
        assert engine.state.t == 1.0

    def test_replay_rebuilds_points(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        engine.load_source(source_file)
        for _ in range(3):
            engine.frame()
        first = engine.points
        assert engine.replay()
        assert engine.status is MorphStatus.RUNNING
        assert engine.points is not first
        assert (engine.state.t, engine.state.tick) == (0.0, 0)
        assert not np.array_equal(engine.points.phases, first.phases)
        # same images -> same rank pairing, only the phases change
        assert np.array_equal(engine.points.starts, first.starts)
        assert np.array_equal(engine.points.ends, first.ends)

    def test_replay_needs_both_images(self, small_config, target_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        assert not engine.replay()
        assert engine.status is MorphStatus.TARGET_READY

    def test_target_failure_is_terminal(self, small_config, tmp_path, source_file):
        engine = MorphEngine(small_config)
        assert not engine.load_target(str(tmp_path / "missing.jpg"))
        assert engine.status is MorphStatus.TARGET_FAILED
        engine.load_source(source_file)
        assert engine.status is MorphStatus.TARGET_FAILED
        assert not engine.is_animating

    def test_bad_source_after_target_failure_keeps_target_error(self, small_config, tmp_path):
        engine = MorphEngine(small_config)
        engine.load_target(str(tmp_path / "missing.jpg"))
        assert not engine.load_source(b"not an image")
        assert engine.status is MorphStatus.TARGET_FAILED
        assert engine.status.text == "error: target image could not be loaded"

    def test_source_failure_leaves_state(self, small_config, target_file, source_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        engine.load_source(source_file)
        engine.frame()
        points, state = engine.points, engine.state
        assert not engine.load_source(b"not an image")
        assert engine.status is MorphStatus.SOURCE_FAILED
        assert engine.points is points
        assert engine.state == state

    def test_idle_frame_shows_source_preview(self, small_config, source_file):
        engine = MorphEngine(small_config)
        engine.load_source(source_file)
        expected = render_preview(engine.source_image, small_config)
        assert engine.frame().tobytes() == expected.tobytes()

    def test_bundled_target_loads(self):
        engine = MorphEngine(MorphConfig(resolution=16))
        assert engine.load_target()
        assert len(engine.target_samples) == 256

    def test_new_source_restarts(self, small_config, target_file):
        engine = MorphEngine(small_config)
        engine.load_target(target_file)
        engine.load_source(Image.new("RGB", (4, 4), (0, 0, 0)))
        engine.frame()
        engine.load_source(Image.new("RGB", (4, 4), (0, 0, 255)))
        assert engine.state.tick == 0
        first = engine.points[0]
        assert (first.r, first.g, first.b) == (0, 0, 255)


class TestCli:
    def _common(self, target_file):
        return ["--target", target_file, "--resolution", "4", "--cell-size", "2", "--step", "0.5", "--seed", "1"]

    def test_render_writes_frame(self, tmp_path, target_file, source_file, capsys):
        out = tmp_path / "frames" / "last.png"
        rc = main(["render", "--source", source_file, "--out", str(out)] + self._common(target_file))
        assert rc == 0
        with Image.open(out) as img:
            assert img.size == (8, 8)
        assert "finished" in capsys.readouterr().out

    def test_render_zero_steps(self, tmp_path, target_file, source_file):
        out = tmp_path / "first.png"
        rc = main(["render", "--source", source_file, "--out", str(out), "--steps", "0"] + self._common(target_file))
        assert rc == 0
        assert out.exists()

    def test_render_bad_source(self, tmp_path, target_file, capsys):
        rc = main(["render", "--source", str(tmp_path / "nope.png"), "--out", str(tmp_path / "x.png")]
                  + self._common(target_file))
        assert rc == 1
        assert "source image could not be loaded" in capsys.readouterr().err

    def test_render_bad_config(self, tmp_path, source_file, capsys):
        rc = main(["render", "--source", source_file, "--out", str(tmp_path / "x.png"), "--step", "2"])
        assert rc == 1
        assert "Invalid configuration" in capsys.readouterr().err

    def test_config_prints_values(self, capsys, monkeypatch):
        monkeypatch.setenv("PIXELMORPH_CELL_SIZE", "5")
        assert main(["config", "--resolution", "32"]) == 0
        out = capsys.readouterr().out
        assert "resolution: 32" in out
        assert "cell_size: 5" in out

    def test_no_args_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().err.lower()
