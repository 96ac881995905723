"""Tests for source model lookup."""

from pathlib import Path

import pytest

from conftest import write_input_model
from ggufrelease.errors import InputNotFoundError
from ggufrelease.quant.resolve_input import candidate_input_paths, resolve_input_model


def test_input_in_working_dir(tmp_path: Path, job_config) -> None:
    expected = write_input_model(tmp_path, job_config)
    assert resolve_input_model(job_config, tmp_path) == expected.resolve()


def test_input_falls_back_to_parent(tmp_path: Path, job_config) -> None:
    work = tmp_path / "llama.cpp"
    work.mkdir()
    expected = write_input_model(tmp_path, job_config)
    assert resolve_input_model(job_config, work) == expected.resolve()


def test_working_dir_wins_over_parent(tmp_path: Path, job_config) -> None:
    work = tmp_path / "llama.cpp"
    write_input_model(tmp_path, job_config)
    expected = write_input_model(work, job_config)
    assert resolve_input_model(job_config, work) == expected.resolve()


def test_missing_input_lists_checked_paths(tmp_path: Path, job_config) -> None:
    with pytest.raises(InputNotFoundError) as exc:
        resolve_input_model(job_config, tmp_path)
    msg = str(exc.value)
    assert "Tiny-1B-f16.gguf" in msg
    assert str(tmp_path.resolve()) in msg


def test_directory_with_input_name_is_ignored(tmp_path: Path, job_config) -> None:
    (tmp_path / job_config.input_filename).mkdir()
    with pytest.raises(InputNotFoundError):
        resolve_input_model(job_config, tmp_path)


def test_candidate_order(tmp_path: Path, job_config) -> None:
    paths = candidate_input_paths(job_config, tmp_path)
    assert paths == [tmp_path / "Tiny-1B-f16.gguf", tmp_path.parent / "Tiny-1B-f16.gguf"]
