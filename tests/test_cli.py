"""Tests for cli.py - argument handling, exit codes and output."""

from pathlib import Path

import pytest

from conftest import sha1
from mtmedia.cli import build_parser, run_cli
from mtmedia.config import RunConfig
from mtmedia.main import main
from mtmedia.materialize import Strategy


def _args(argv):
    return build_parser().parse_args(["build", *argv])


class TestRunConfigFromArgs:
    def test_out_dir_layout(self, tmp_path: Path):
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path / "out"), "-c"]))
        assert cfg.media_dir == tmp_path / "out"
        assert cfg.index_path == tmp_path / "out" / "index.txt"
        assert cfg.strategy is Strategy.COPY
        assert cfg.game.is_absolute() and cfg.world.is_absolute()

    def test_mth_index_name(self, tmp_path: Path):
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path), "--format", "mth"]))
        assert cfg.index_path.name == "index.mth"
        assert cfg.strategy is Strategy.NONE

    def test_separate_paths_and_mods(self, tmp_path: Path):
        cfg = RunConfig.from_args(_args([
            "-g", "g", "-w", "w", "--media", str(tmp_path / "m"), "--index", str(tmp_path / "i.txt"),
            "-s", "extra1", "extra2",
        ]))
        assert cfg.media_dir == tmp_path / "m"
        assert cfg.index_path == tmp_path / "i.txt"
        assert cfg.strategy is Strategy.SYMLINK
        assert [p.name for p in cfg.mod_paths] == ["extra1", "extra2"]

    def test_threads_flag_beats_env(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("MTMEDIA_THREADS", "5")
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path), "--threads", "2"]))
        assert cfg.workers == 2
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path)]))
        assert cfg.workers == 5

    def test_hash_env_default(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("MTMEDIA_HASH", "xxh3_128")
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path)]))
        assert cfg.algorithm == "xxh3_128"
        cfg = RunConfig.from_args(_args(["-g", "g", "-w", "w", "-o", str(tmp_path), "--hash", "sha1"]))
        assert cfg.algorithm == "sha1"

    def test_strategies_are_exclusive(self):
        with pytest.raises(SystemExit):
            _args(["-g", "g", "-w", "w", "-o", "o", "-c", "-l"])


class TestBuildCommand:
    def test_success(self, game_dir: Path, world_dir: Path, out_dir: Path, capsys):
        rc = run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir), "--copy", "-q"])
        assert rc == 0
        out = capsys.readouterr().out
        assert "indexed 2 names, 2 distinct identifiers" in out
        assert (out_dir / "index.txt").exists()
        assert (out_dir / sha1(b"CC")).read_bytes() == b"CC"

    def test_explicit_build_subcommand(self, game_dir: Path, world_dir: Path, out_dir: Path):
        rc = run_cli(["build", "-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir), "-q"])
        assert rc == 0
        # no strategy flag: index only
        assert [p.name for p in out_dir.iterdir()] == ["index.txt"]

    def test_missing_game_reports_phase_and_path(self, tmp_path: Path, world_dir: Path, capsys):
        rc = run_cli(["-g", str(tmp_path / "nogame"), "-w", str(world_dir), "-o", str(tmp_path / "o"), "-q"])
        assert rc == 1
        err = capsys.readouterr().err
        assert "[locate]" in err
        assert "nogame" in err

    def test_stale_media_reports_strategy(self, game_dir: Path, world_dir: Path, out_dir: Path, capsys):
        out_dir.mkdir()
        (out_dir / sha1(b"BB")).write_bytes(b"wrong")
        rc = run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir), "-c", "-q"])
        assert rc == 1
        err = capsys.readouterr().err
        assert "[materialize]" in err and "strategy=copy" in err

    def test_needs_output(self, game_dir: Path, world_dir: Path):
        with pytest.raises(SystemExit):
            run_cli(["-g", str(game_dir), "-w", str(world_dir), "--media", "only_media"])

    def test_log_file(self, game_dir: Path, world_dir: Path, out_dir: Path, tmp_path: Path):
        log_file = tmp_path / "run.log"
        rc = run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir),
                      "-q", "--log-file", str(log_file)])
        assert rc == 0
        text = log_file.read_text(encoding="utf-8")
        assert "[locate]" in text and "[serialize]" in text

    def test_main_entry(self, game_dir: Path, world_dir: Path, out_dir: Path):
        assert main(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir), "-q"]) == 0

    def test_no_args_prints_help(self, capsys):
        assert run_cli([]) == 2
        assert "usage" in capsys.readouterr().out


class TestVerifyCommand:
    def _build(self, game_dir, world_dir, out_dir, fmt="text"):
        assert run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir),
                        "-c", "-q", "--format", fmt]) == 0

    def test_clean(self, game_dir: Path, world_dir: Path, out_dir: Path, capsys):
        self._build(game_dir, world_dir, out_dir)
        rc = run_cli(["verify", "--index", str(out_dir / "index.txt"), "--media", str(out_dir), "-q"])
        assert rc == 0
        assert "all 2 media entries OK" in capsys.readouterr().out

    def test_tampered(self, game_dir: Path, world_dir: Path, out_dir: Path, capsys):
        self._build(game_dir, world_dir, out_dir)
        (out_dir / sha1(b"BB")).write_bytes(b"tampered")
        rc = run_cli(["verify", "--index", str(out_dir / "index.txt"), "--media", str(out_dir), "-q"])
        assert rc == 1
        assert "Hash mismatch" in capsys.readouterr().out

    def test_mth(self, game_dir: Path, world_dir: Path, out_dir: Path):
        self._build(game_dir, world_dir, out_dir, fmt="mth")
        rc = run_cli(["verify", "--format", "mth", "--index", str(out_dir / "index.mth"),
                      "--media", str(out_dir), "-q"])
        assert rc == 0

    def test_missing_index_file(self, tmp_path: Path, capsys):
        rc = run_cli(["verify", "--index", str(tmp_path / "none.txt"), "--media", str(tmp_path), "-q"])
        assert rc == 1
        assert "error" in capsys.readouterr().err

    def test_uses_algorithm_recorded_in_index(self, game_dir: Path, world_dir: Path, out_dir: Path,
                                              monkeypatch, capsys):
        assert run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir),
                        "-c", "-q", "--hash", "xxh3_128"]) == 0
        monkeypatch.setenv("MTMEDIA_HASH", "sha256")
        rc = run_cli(["verify", "--index", str(out_dir / "index.txt"), "--media", str(out_dir), "-q"])
        assert rc == 0
        assert "all 2 media entries OK" in capsys.readouterr().out

    def test_json_index_algorithm(self, game_dir: Path, world_dir: Path, out_dir: Path):
        assert run_cli(["-g", str(game_dir), "-w", str(world_dir), "-o", str(out_dir),
                        "-c", "-q", "--format", "json", "--hash", "sha256"]) == 0
        assert run_cli(["verify", "--format", "json", "--index", str(out_dir / "index.json"),
                        "--media", str(out_dir), "-q"]) == 0

    def test_explicit_hash_overrides_index(self, game_dir: Path, world_dir: Path, out_dir: Path, capsys):
        self._build(game_dir, world_dir, out_dir)
        rc = run_cli(["verify", "--index", str(out_dir / "index.txt"), "--media", str(out_dir),
                      "--hash", "sha256", "-q"])
        assert rc == 1
        assert "Hash mismatch" in capsys.readouterr().out
