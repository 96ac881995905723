"""
Run logging and provenance helpers for release runs.

Console logging setup, run IDs, content hashing, and the meta.json writer used to
record what a run produced.
"""

import hashlib
import json
import logging
import platform
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
HASH_CHUNK_SIZE = 1024 * 1024
# src/ggufrelease/utils/run_logging.py -> repository root
PROJECT_ROOT = Path(__file__).resolve().parents[3]


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for CLI runs (INFO, or DEBUG when verbose)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def make_run_id(now: datetime | None = None) -> str:
    """Return a run ID in format YYYYMMDD_HHMMSS.

    Args:
        now: Fixed datetime for tests. Defaults to the current time.
    """
    if now is None:
        now = datetime.now()
    return now.strftime("%Y%m%d_%H%M%S")


def write_json(path: Path, obj: Any) -> None:
    """Write a Python object to a JSON file with indent, creating parent dirs."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def compute_file_hash(path: Path, algorithm: str = "sha256", chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """Hex digest of a file, read in chunks so multi-GB GGUFs never sit in memory.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def get_git_commit(repo_dir: Path | None = None) -> str | None:
    """Commit of the gguf-release checkout (or repo_dir); None outside a git checkout."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=repo_dir or PROJECT_ROOT,
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return result.stdout.strip() if result.returncode == 0 else None


def get_package_version(package_name: str) -> str:
    """Return installed package version or 'unknown'."""
    import importlib.metadata

    try:
        return importlib.metadata.version(package_name)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def build_run_meta(run_id: str, output_dir: Path, cwd: Path) -> dict[str, Any]:
    """Initial provenance record for a release run; commands and outputs filled later."""
    return {
        "run_id": run_id,
        "timestamp": datetime.now().isoformat(),
        "git_commit": get_git_commit(),
        "working_dir": str(cwd),
        "python_version": platform.python_version(),
        "package_versions": {
            "gguf-release": get_package_version("gguf-release"),
            "huggingface_hub": get_package_version("huggingface_hub"),
        },
        "environment": {
            "platform": platform.platform(),
            "machine": platform.machine(),
        },
        "output_dir": str(output_dir),
        "commands": [],
        "outputs": {},
    }
