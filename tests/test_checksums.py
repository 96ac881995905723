"""Tests for the SHA256SUMS.txt manifest."""

import hashlib
from pathlib import Path

import pytest

from ggufrelease.artifacts.checksums import (
    MANIFEST_NAME,
    read_checksum_manifest,
    verify_checksum_manifest,
    write_checksum_manifest,
)


def _artifacts(out: Path) -> dict[str, bytes]:
    files = {
        "Tiny-1B-f16:Q8_0.gguf": b"GGUF" + b"\x08" * 100,
        "Tiny-1B-f16:Q2_K.gguf": b"GGUF" + b"\x02" * 50,
        "Tiny-1B-f16:Q4_K_M.gguf": b"GGUF" + b"\x04" * 70,
    }
    out.mkdir(parents=True, exist_ok=True)
    for name, data in files.items():
        (out / name).write_bytes(data)
    return files


def test_manifest_has_one_sorted_line_per_gguf(tmp_path: Path) -> None:
    files = _artifacts(tmp_path)
    (tmp_path / "README.md").write_text("# card\n", encoding="utf-8")
    (tmp_path / "Tiny-1B-Q2_K").mkdir()
    (tmp_path / "Tiny-1B-Q2_K" / "README.md").write_text("# variant\n", encoding="utf-8")

    entries = write_checksum_manifest(tmp_path)

    lines = (tmp_path / MANIFEST_NAME).read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    names = [line.split("  ", 1)[1] for line in lines]
    assert names == sorted(files)
    for line in lines:
        digest, name = line.split("  ", 1)
        assert digest == hashlib.sha256(files[name]).hexdigest()
    assert [e.filename for e in entries] == names


def test_manifest_is_rewritten_not_appended(tmp_path: Path) -> None:
    _artifacts(tmp_path)
    write_checksum_manifest(tmp_path)
    write_checksum_manifest(tmp_path)
    assert len((tmp_path / MANIFEST_NAME).read_text(encoding="utf-8").splitlines()) == 3


def test_empty_output_dir_gives_empty_manifest(tmp_path: Path) -> None:
    assert write_checksum_manifest(tmp_path) == []
    assert (tmp_path / MANIFEST_NAME).read_text(encoding="utf-8") == ""


def test_verify_detects_changed_and_missing_files(tmp_path: Path) -> None:
    _artifacts(tmp_path)
    write_checksum_manifest(tmp_path)
    assert verify_checksum_manifest(tmp_path) == []

    (tmp_path / "Tiny-1B-f16:Q2_K.gguf").write_bytes(b"GGUF tampered")
    (tmp_path / "Tiny-1B-f16:Q8_0.gguf").unlink()
    assert verify_checksum_manifest(tmp_path) == ["Tiny-1B-f16:Q2_K.gguf", "Tiny-1B-f16:Q8_0.gguf"]


def test_read_accepts_binary_marker(tmp_path: Path) -> None:
    manifest = tmp_path / MANIFEST_NAME
    manifest.write_text(f"{'a' * 64}  *model.gguf\n\n", encoding="utf-8")
    entries = read_checksum_manifest(manifest)
    assert len(entries) == 1
    assert entries[0].filename == "model.gguf"


def test_read_rejects_malformed_line(tmp_path: Path) -> None:
    manifest = tmp_path / MANIFEST_NAME
    manifest.write_text("deadbeef model.gguf\n", encoding="utf-8")
    with pytest.raises(ValueError) as exc:
        read_checksum_manifest(manifest)
    assert ":1:" in str(exc.value)
