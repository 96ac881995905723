"""
Quantize a source GGUF into every configured level via llama.cpp's llama-quantize.

Each level is one independent task: <quantize_bin> <input> <output> <level>.
Existing outputs are skipped, so re-running after a failure only redoes the
missing levels. The binary writes to <output>.part; the file is moved into place
only after it passes the GGUF magic check, so a skipped output is always a
validated one. Any failure aborts the whole batch.
"""

import logging
import os
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from ggufrelease.config.job_config import JobConfig
from ggufrelease.errors import InvalidArtifactError, QuantizeError, ReleaseError

logger = logging.getLogger(__name__)

GGUF_MAGIC = b"GGUF"
PARTIAL_SUFFIX = ".part"


@dataclass
class QuantizeTask:
    level: str
    output_path: Path
    command: list[str]
    log_path: Path

    @property
    def partial_path(self) -> Path:
        return self.output_path.with_name(self.output_path.name + PARTIAL_SUFFIX)


@dataclass
class QuantizeReport:
    """Outcome of a quantization batch, in configured level order."""

    produced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    outputs: dict[str, Path] = field(default_factory=dict)


def validate_gguf(path: Path) -> None:
    """Check that path is a non-empty file starting with the GGUF magic.

    Raises:
        InvalidArtifactError: If the file is missing, empty, or has the wrong magic.
    """
    path = Path(path)
    if not path.is_file() or path.stat().st_size == 0:
        raise InvalidArtifactError(f"{path.name} is not a valid GGUF file (missing or empty)")
    with open(path, "rb") as f:
        magic = f.read(len(GGUF_MAGIC))
    if magic != GGUF_MAGIC:
        raise InvalidArtifactError(f"{path.name} is not a valid GGUF file (invalid magic {magic!r})")


def resolve_quantize_bin(quantize_bin: str, cwd: Path) -> Path:
    """Resolve the quantize executable: absolute path, relative to cwd, or on PATH."""
    p = Path(quantize_bin)
    if p.is_absolute():
        if p.exists():
            return p
    elif (cwd / p).exists():
        return (cwd / p).resolve()
    else:
        found = shutil.which(quantize_bin)
        if found:
            return Path(found)
    raise QuantizeError(
        f"Quantize binary not found: {quantize_bin}. "
        "Build llama.cpp first (cmake -B build && cmake --build build) or pass --quantize_bin."
    )


def run_subprocess_logged(cmd: list[str], log_path: Path) -> subprocess.CompletedProcess:
    """Run command, writing stdout and stderr to log_path. Return completed process."""
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with open(log_path, "w", encoding="utf-8") as log_file:
        return subprocess.run(
            cmd,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )


def plan_quantize_tasks(
    cfg: JobConfig,
    input_path: Path,
    output_dir: Path,
    logs_dir: Path,
    quantize_bin: Path | str,
) -> list[QuantizeTask]:
    """One task per configured level, in list order (existing outputs included)."""
    tasks = []
    for level in cfg.quants:
        output_path = output_dir / cfg.output_filename(level)
        partial = output_path.with_name(output_path.name + PARTIAL_SUFFIX)
        tasks.append(
            QuantizeTask(
                level=level,
                output_path=output_path,
                command=[str(quantize_bin), str(input_path), str(partial), level],
                log_path=logs_dir / f"quantize_{level}.log",
            )
        )
    return tasks


def run_quantize_task(task: QuantizeTask) -> Path:
    """Run llama-quantize for one level, validate, and move the result into place."""
    logger.info(f"Quantizing {task.level} -> {task.output_path.name}")
    try:
        proc = run_subprocess_logged(task.command, task.log_path)
    except OSError as e:
        raise QuantizeError(
            f"Could not execute {task.command[0]} for {task.level}: {e}",
            level=task.level,
        ) from e
    if proc.returncode != 0:
        raise QuantizeError(
            f"Quantize {task.level} failed with exit code {proc.returncode} (see {task.log_path})",
            level=task.level,
            returncode=proc.returncode,
        )
    validate_gguf(task.partial_path)
    os.replace(task.partial_path, task.output_path)
    logger.info(f"Created and validated {task.output_path.name}")
    return task.output_path


def _run_parallel(tasks: list[QuantizeTask], workers: int) -> None:
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(run_quantize_task, t): t for t in tasks}
        try:
            for future in as_completed(futures):
                future.result()
        except ReleaseError:
            for future in futures:
                future.cancel()
            raise


def quantize_levels(
    cfg: JobConfig,
    input_path: Path,
    output_dir: Path,
    logs_dir: Path,
    cwd: Path | None = None,
    workers: int = 1,
) -> QuantizeReport:
    """Produce every configured level that is not already on disk.

    Args:
        cfg: Job config (levels, output naming, quantize binary).
        input_path: Source GGUF.
        output_dir: Directory receiving the quantized files.
        logs_dir: Directory for per-level llama-quantize logs.
        cwd: Base for resolving a relative quantize_bin; default cwd.
        workers: Levels quantized concurrently. 1 keeps the batch sequential.

    Returns:
        QuantizeReport with produced/skipped levels and planned commands.

    Raises:
        QuantizeError: Binary missing or nonzero exit for any level.
        InvalidArtifactError: An output (new or existing) fails validation.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    cwd = Path(cwd or Path.cwd()).resolve()
    report = QuantizeReport()

    pending_levels = [lvl for lvl in cfg.quants if not (output_dir / cfg.output_filename(lvl)).exists()]
    # Resolve the binary only when there is work; a complete output dir needs none.
    quantize_bin: Path | str = (
        resolve_quantize_bin(cfg.quantize_bin, cwd) if pending_levels else cfg.quantize_bin
    )
    tasks = plan_quantize_tasks(cfg, input_path, output_dir, logs_dir, quantize_bin)

    pending = []
    for task in tasks:
        report.outputs[task.level] = task.output_path
        if task.level in pending_levels:
            pending.append(task)
            report.commands.append(" ".join(task.command))
        else:
            logger.info(f"{task.output_path.name} already exists, skipping")
            validate_gguf(task.output_path)
            report.skipped.append(task.level)

    if workers == 1 or len(pending) <= 1:
        for task in pending:
            run_quantize_task(task)
    else:
        logger.info(f"Quantizing {len(pending)} levels with {workers} workers")
        _run_parallel(pending, workers)

    report.produced = [t.level for t in pending]
    return report
