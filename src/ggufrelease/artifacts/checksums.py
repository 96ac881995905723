"""
SHA256SUMS.txt manifest for the quantized GGUF files.

Format matches `sha256sum` so users can check downloads with
`sha256sum -c SHA256SUMS.txt`:

    <64 hex chars><two spaces><filename>

Entries are sorted by filename so the manifest is stable across runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ggufrelease.utils.run_logging import compute_file_hash

logger = logging.getLogger(__name__)

MANIFEST_NAME = "SHA256SUMS.txt"
ARTIFACT_GLOB = "*.gguf"


@dataclass(frozen=True)
class ChecksumEntry:
    sha256: str
    filename: str

    def to_line(self) -> str:
        return f"{self.sha256}  {self.filename}"


def list_artifacts(output_dir: Path) -> list[Path]:
    """GGUF files directly under output_dir, sorted by name."""
    return sorted((p for p in Path(output_dir).glob(ARTIFACT_GLOB) if p.is_file()), key=lambda p: p.name)


def write_checksum_manifest(output_dir: Path) -> list[ChecksumEntry]:
    """Hash every GGUF in output_dir and overwrite SHA256SUMS.txt.

    Returns:
        The entries written, in file order.
    """
    output_dir = Path(output_dir)
    entries = [ChecksumEntry(compute_file_hash(p), p.name) for p in list_artifacts(output_dir)]
    manifest = output_dir / MANIFEST_NAME
    manifest.write_text("".join(e.to_line() + "\n" for e in entries), encoding="utf-8")
    logger.info(f"Wrote {manifest.name} with {len(entries)} entries")
    for e in entries:
        logger.debug(e.to_line())
    return entries


def read_checksum_manifest(path: Path) -> list[ChecksumEntry]:
    """Parse a sha256sum-style manifest. Blank lines are ignored."""
    entries = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line.strip():
                continue
            digest, sep, filename = line.partition("  ")
            if not sep or len(digest) != 64:
                raise ValueError(f"{path}:{lineno}: malformed checksum line: {line!r}")
            # sha256sum marks binary-mode entries with a leading '*'
            entries.append(ChecksumEntry(digest.lower(), filename.lstrip("*")))
    return entries


def verify_checksum_manifest(output_dir: Path) -> list[str]:
    """Recompute hashes for every manifest entry.

    Returns:
        Filenames that are missing or whose hash differs (empty list = all OK).
    """
    output_dir = Path(output_dir)
    failed = []
    for entry in read_checksum_manifest(output_dir / MANIFEST_NAME):
        path = output_dir / entry.filename
        if not path.exists():
            logger.warning(f"{entry.filename}: missing")
            failed.append(entry.filename)
        elif compute_file_hash(path) != entry.sha256:
            logger.warning(f"{entry.filename}: checksum mismatch")
            failed.append(entry.filename)
    return failed
