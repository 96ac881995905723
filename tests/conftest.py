"""Shared fixtures: a minimal job config and a fake llama-quantize executable."""

import stat
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

from ggufrelease.config.job_config import JobConfig, config_from_dict

FAKE_QUANTIZE_PY = '''\
import sys
from pathlib import Path

inp, out, level = sys.argv[1:4]
with open({calls_path!r}, "a", encoding="utf-8") as f:
    f.write(level + "\\n")
if level in {fail_levels!r}:
    print("fake quantize failure for " + level)
    sys.exit(3)
magic = b"XXXX" if level in {bad_levels!r} else b"GGUF"
Path(out).write_bytes(magic + level.encode() + bytes(256))
print("quantized " + inp + " -> " + out)
'''


def minimal_config_dict(**overrides: Any) -> dict[str, Any]:
    cfg: dict[str, Any] = {
        "model_name": "Tiny-1B",
        "base_repo": "acme/Tiny-1B",
        "repo_id": "tester/Tiny-1B",
        "author": "tester",
        "license": "apache-2.0",
        "input_precision": "f16",
        "output_dir": "dist",
        "quantize_bin": "llama-quantize-fake",
        "commit_message": "Add test quants",
        "quants": ["Q2_K", "Q4_K_M", "Q8_0"],
        "levels": {
            "Q2_K": {
                "quality": "Minimal",
                "speed": "⚡ Fast",
                "ram": "~0.5 GB",
                "recommendation": "Only for extreme memory constraints.",
                "index": {"quality": "Minimal", "speed": "⚡ Fastest", "size": "300 MB", "recommendation": "Tiny."},
            },
            "Q4_K_M": {
                "quality": "Practical",
                "speed": "🚀 Fast",
                "ram": "~0.9 GB",
                "recommendation": "Best speed/quality trade-off.",
            },
            "Q8_0": {
                "quality": "Lossless*",
                "speed": "🐌 Slow",
                "ram": "~1.5 GB",
                "recommendation": "Ideal for archiving.",
            },
        },
        "demo_prompts": {
            "high": {"levels": ["Q8_0"], "mode": "general", "prompt": "Explain gravity to a child.", "temperature": 0.6},
            "mid": {"levels": ["Q4_K_M"], "mode": "creative", "prompt": "Write a short joke about cats.", "temperature": 0.8},
            "low": {"mode": "basic", "prompt": "Repeat the word 'hello' five times.", "temperature": 0.1},
        },
        "cards": {
            "tags": ["gguf", "llama.cpp", "quantized"],
            "languages": ["en"],
            "index": {"tagline": "a tiny test model.", "author_name": "Test Er"},
        },
    }
    cfg.update(overrides)
    return cfg


@pytest.fixture
def job_config() -> JobConfig:
    return config_from_dict(minimal_config_dict())


@pytest.fixture
def make_config() -> Callable[..., JobConfig]:
    def _make(**overrides: Any) -> JobConfig:
        return config_from_dict(minimal_config_dict(**overrides))

    return _make


@pytest.fixture
def fake_quantize(tmp_path: Path) -> Callable[..., tuple[Path, Path]]:
    """Factory for a fake quantize executable.

    Returns (executable, calls_log). Each invocation appends its level to calls_log.
    Levels in fail_levels exit 3; levels in bad_levels write a file with wrong magic.
    """

    def _make(fail_levels: tuple[str, ...] = (), bad_levels: tuple[str, ...] = ()) -> tuple[Path, Path]:
        bin_dir = tmp_path / "fakebin"
        bin_dir.mkdir(exist_ok=True)
        calls = bin_dir / "calls.log"
        calls.touch()
        script = bin_dir / "fake_quantize.py"
        script.write_text(
            FAKE_QUANTIZE_PY.format(
                calls_path=str(calls),
                fail_levels=list(fail_levels),
                bad_levels=list(bad_levels),
            ),
            encoding="utf-8",
        )
        wrapper = bin_dir / "llama-quantize"
        wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n', encoding="utf-8")
        wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return wrapper, calls

    return _make


def read_calls(calls_log: Path) -> list[str]:
    return [line for line in calls_log.read_text(encoding="utf-8").splitlines() if line]


def write_input_model(directory: Path, cfg: JobConfig) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / cfg.input_filename
    path.write_bytes(b"GGUF" + bytes(1024))
    return path
