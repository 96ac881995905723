"""Locate the source GGUF weight file for a release run."""

import logging
from pathlib import Path

from ggufrelease.config.job_config import JobConfig
from ggufrelease.errors import InputNotFoundError

logger = logging.getLogger(__name__)


def candidate_input_paths(cfg: JobConfig, cwd: Path) -> list[Path]:
    """Search order for <model>-<precision>.gguf: working dir, then its parent."""
    name = cfg.input_filename
    return [cwd / name, cwd.parent / name]


def resolve_input_model(cfg: JobConfig, cwd: Path | None = None) -> Path:
    """Return the absolute path of the source weight file.

    Raises:
        InputNotFoundError: If neither candidate location holds the file.
    """
    cwd = Path(cwd or Path.cwd()).resolve()
    candidates = candidate_input_paths(cfg, cwd)
    for i, path in enumerate(candidates):
        if path.is_file():
            if i > 0:
                logger.info(f"Input model not in {cwd}; using fallback {path}")
            return path
        logger.debug(f"Input model not found at {path}")
    checked = ", ".join(str(p) for p in candidates)
    raise InputNotFoundError(f"Input model '{cfg.input_filename}' not found. Checked: {checked}")
