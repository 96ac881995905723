"""CLI tests: `python -m ggufrelease.release` in a subprocess, and main() in-process."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from conftest import minimal_config_dict, write_input_model
from ggufrelease import release
from ggufrelease.config.job_config import config_from_dict

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess:
    env = {**os.environ, "PYTHONPATH": str(PROJECT_ROOT / "src")}
    return subprocess.run(
        [sys.executable, "-m", "ggufrelease.release", *args],
        cwd=cwd,
        env=env,
        capture_output=True,
        text=True,
        stdin=subprocess.DEVNULL,
        timeout=60,
    )


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "job.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(minimal_config_dict(), f, allow_unicode=True, sort_keys=False)
    return config_path


def test_cli_skip_publish(tmp_path: Path, fake_quantize) -> None:
    wrapper, _ = fake_quantize()
    config_path = _write_config(tmp_path)
    write_input_model(tmp_path, config_from_dict(minimal_config_dict()))

    result = _run_cli(
        ["--config", str(config_path), "--quantize_bin", str(wrapper), "--skip_publish", "--run_id", "cli1"],
        cwd=tmp_path,
    )

    assert result.returncode == 0, (result.stdout, result.stderr)
    out = tmp_path / "dist"
    assert len(list(out.glob("*.gguf"))) == 3
    assert (out / "SHA256SUMS.txt").exists()
    assert (out / "Tiny-1B-Q8_0" / "README.md").exists()
    assert (out / "logs" / "cli1" / "meta.json").exists()
    assert "Starting GGUF preparation" in result.stderr


def test_cli_output_dir_override(tmp_path: Path, fake_quantize) -> None:
    wrapper, _ = fake_quantize()
    config_path = _write_config(tmp_path)
    write_input_model(tmp_path, config_from_dict(minimal_config_dict()))
    result = _run_cli(
        ["--config", str(config_path), "--quantize_bin", str(wrapper), "--output_dir", "release", "--skip_publish"],
        cwd=tmp_path,
    )
    assert result.returncode == 0, (result.stdout, result.stderr)
    assert (tmp_path / "release" / "MODELFILE").exists()
    assert not (tmp_path / "dist").exists()


def test_cli_missing_input_exits_nonzero(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = _run_cli(["--config", str(config_path), "--skip_publish"], cwd=tmp_path)
    assert result.returncode == 1
    assert "Release failed" in result.stderr
    assert "Tiny-1B-f16.gguf" in result.stderr
    assert not (tmp_path / "dist").exists()


def test_cli_bad_config_exits_nonzero(tmp_path: Path) -> None:
    config_path = tmp_path / "job.yaml"
    config_path.write_text("model_name: Tiny-1B\n", encoding="utf-8")
    result = _run_cli(["--config", str(config_path), "--skip_publish"], cwd=tmp_path)
    assert result.returncode == 1
    assert "invalid config" in result.stderr


def test_cli_list_profiles(tmp_path: Path) -> None:
    result = _run_cli(["--list_profiles"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert result.stdout.split() == ["qwen3-0.6b", "qwen3-4b", "qwen3-8b"]


def test_main_declined_upload_exits_cleanly(tmp_path: Path, fake_quantize, monkeypatch) -> None:
    """--no: repo is ensured and files are listed, but nothing is uploaded and main returns normally."""
    wrapper, _ = fake_quantize()
    config_path = _write_config(tmp_path)
    write_input_model(tmp_path, config_from_dict(minimal_config_dict()))
    api = MagicMock()
    monkeypatch.setattr(release.HubPublisher, "from_env", lambda *args, **kwargs: release.HubPublisher(api=api))
    monkeypatch.chdir(tmp_path)

    release.main(["--config", str(config_path), "--quantize_bin", str(wrapper), "--no"])

    api.create_repo.assert_called_once()
    api.upload_folder.assert_not_called()
    assert (tmp_path / "dist" / "SHA256SUMS.txt").exists()


def test_main_release_error_exits_one(tmp_path: Path, monkeypatch) -> None:
    config_path = _write_config(tmp_path)
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as exc:
        release.main(["--config", str(config_path), "--skip_publish"])
    assert exc.value.code == 1
