"""
GGUF release pipeline: quantize → checksums → model cards → MODELFILE → publish.

Stages run in order and stop at the first failure; whatever was written stays on
disk, and a re-run skips already-quantized levels. Per-run logs and meta.json go
to <output_dir>/logs/<run_id>/ and are never uploaded.

CLI:
    python -m ggufrelease.release --profile qwen3-0.6b \
      [--config path/to/job.yaml] \
      [--output_dir ./dist] [--quantize_bin ./build/bin/llama-quantize] \
      [--repo_id owner/name] [--workers 1] \
      [--yes | --no] [--skip_publish] [--private] [--token_env HF_TOKEN]
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from ggufrelease.artifacts.checksums import (
    MANIFEST_NAME,
    ChecksumEntry,
    verify_checksum_manifest,
    write_checksum_manifest,
)
from ggufrelease.cards.index_card import write_index_card
from ggufrelease.cards.modelfile import write_modelfile
from ggufrelease.cards.variant_card import write_variant_cards
from ggufrelease.config.job_config import JobConfig, list_profiles, load_job_config, load_profile
from ggufrelease.errors import InvalidArtifactError, ReleaseError
from ggufrelease.publish.confirm import (
    Confirmer,
    always_confirm,
    describe_files,
    never_confirm,
    prompt_confirm,
)
from ggufrelease.publish.hub import HubPublisher, list_upload_files
from ggufrelease.quant.quantize_levels import QuantizeReport, quantize_levels
from ggufrelease.quant.resolve_input import resolve_input_model
from ggufrelease.utils.run_logging import (
    build_run_meta,
    make_run_id,
    setup_logging,
    write_json,
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "qwen3-0.6b"


@dataclass
class ReleaseResult:
    run_id: str
    input_path: Path
    output_dir: Path
    quantize: QuantizeReport
    checksums: list[ChecksumEntry] = field(default_factory=list)
    index_card: Path | None = None
    variant_cards: list[Path] = field(default_factory=list)
    modelfile: Path | None = None
    upload_files: list[Path] = field(default_factory=list)
    uploaded: bool = False


def resolve_output_dir(cfg: JobConfig, cwd: Path) -> Path:
    p = Path(cfg.output_dir)
    return p if p.is_absolute() else (cwd / p).resolve()


def prepare_release(
    cfg: JobConfig,
    cwd: Path | None = None,
    workers: int = 1,
    run_id: str | None = None,
) -> ReleaseResult:
    """Run every local stage: resolve input, quantize, checksum, write cards and MODELFILE."""
    cwd = Path(cwd or Path.cwd()).resolve()
    input_path = resolve_input_model(cfg, cwd)
    output_dir = resolve_output_dir(cfg, cwd)
    run_id = run_id or make_run_id()
    logs_dir = output_dir / "logs" / run_id

    logger.info("Starting GGUF preparation")
    logger.info(f"  Input: {input_path}")
    logger.info(f"  Output dir: {output_dir}")
    logger.info(f"  Source precision: {cfg.input_precision}")
    logger.info(f"  Target quants: {' '.join(cfg.quants)}")
    output_dir.mkdir(parents=True, exist_ok=True)

    meta = build_run_meta(run_id, output_dir, cwd)
    meta["model_name"] = cfg.model_name
    meta["repo_id"] = cfg.repo_id
    meta["input"] = str(input_path)

    report = quantize_levels(cfg, input_path, output_dir, logs_dir, cwd=cwd, workers=workers)
    meta["commands"] = report.commands
    result = ReleaseResult(run_id=run_id, input_path=input_path, output_dir=output_dir, quantize=report)

    result.checksums = write_checksum_manifest(output_dir)
    result.index_card = write_index_card(cfg, output_dir)
    result.variant_cards = write_variant_cards(cfg, output_dir)
    result.modelfile = write_modelfile(cfg, output_dir)

    digests = {e.filename: e.sha256 for e in result.checksums}
    meta["outputs"] = {
        path.name: {"sha256": digests[path.name], "size_bytes": path.stat().st_size}
        for path in report.outputs.values()
        if path.name in digests
    }
    write_json(logs_dir / "meta.json", meta)
    return result


def publish_release(
    cfg: JobConfig,
    result: ReleaseResult,
    publisher: HubPublisher,
    confirm: Confirmer = prompt_confirm,
) -> bool:
    """Verify checksums, ensure the repo, show the upload list, confirm, upload.

    Returns True if uploaded.

    Raises:
        InvalidArtifactError: A GGUF changed or vanished since SHA256SUMS.txt was written.
    """
    failed = verify_checksum_manifest(result.output_dir)
    if failed:
        raise InvalidArtifactError(f"Checksum verification failed for: {', '.join(failed)}")
    logger.info(f"Verified {MANIFEST_NAME}")
    publisher.ensure_repo(cfg.repo_id)
    files = list_upload_files(result.output_dir)
    result.upload_files = files
    logger.info(f"Final files to upload ({len(files)}):\n{describe_files(files, result.output_dir)}")
    if not confirm(files):
        logger.info(f"Skipped upload. Files ready in {result.output_dir}")
        return False
    publisher.upload(result.output_dir, cfg.repo_id, cfg.commit_message, files=files)
    logger.info(f"Upload complete. View it at: {cfg.hub_url}")
    return True


def run_release(
    cfg: JobConfig,
    cwd: Path | None = None,
    workers: int = 1,
    publisher: HubPublisher | None = None,
    confirm: Confirmer = prompt_confirm,
    skip_publish: bool = False,
    run_id: str | None = None,
) -> ReleaseResult:
    """Full pipeline. Raises a ReleaseError subclass on any fatal failure."""
    result = prepare_release(cfg, cwd=cwd, workers=workers, run_id=run_id)
    if skip_publish:
        logger.info(f"Publishing skipped. Files ready in {result.output_dir}")
        return result
    if publisher is None:
        publisher = HubPublisher()
    result.uploaded = publish_release(cfg, result, publisher, confirm)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quantize a GGUF model, generate hub model cards and checksums, and publish to Hugging Face.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--profile", type=str, default=None, help=f"Built-in profile (default: {DEFAULT_PROFILE})")
    source.add_argument("--config", type=Path, default=None, help="Job config YAML (instead of a built-in profile)")
    parser.add_argument("--list_profiles", action="store_true", help="Print built-in profile names and exit")
    parser.add_argument("--output_dir", type=str, default=None, help="Override config output_dir")
    parser.add_argument("--quantize_bin", type=str, default=None, help="Override config quantize_bin")
    parser.add_argument("--repo_id", type=str, default=None, help="Override config repo_id (owner/name)")
    parser.add_argument("--commit_message", type=str, default=None, help="Override config commit_message")
    parser.add_argument("--workers", type=int, default=1, help="Levels to quantize concurrently (default: 1)")
    answer = parser.add_mutually_exclusive_group()
    answer.add_argument("--yes", action="store_true", help="Upload without asking")
    answer.add_argument("--no", action="store_true", help="Never upload; stop after listing files")
    parser.add_argument("--skip_publish", action="store_true", help="Stop after local stages; no hub access")
    parser.add_argument("--private", action="store_true", help="Create the hub repo as private")
    parser.add_argument("--token_env", type=str, default=None, help="Env var holding the HF token (default: HF_TOKEN / cached login)")
    parser.add_argument("--run_id", type=str, default=None, help="Use this run ID instead of generating one")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.list_profiles:
        for name in list_profiles():
            print(name)
        return

    if args.no:
        confirm: Confirmer = never_confirm
    elif args.yes:
        confirm = always_confirm
    else:
        confirm = prompt_confirm

    try:
        cfg = load_job_config(args.config) if args.config else load_profile(args.profile or DEFAULT_PROFILE)
        cfg = cfg.with_overrides(
            output_dir=args.output_dir,
            quantize_bin=args.quantize_bin,
            repo_id=args.repo_id,
            commit_message=args.commit_message,
        )
        publisher = None
        if not args.skip_publish:
            publisher = HubPublisher.from_env(args.token_env, private=args.private)
        run_release(
            cfg,
            workers=args.workers,
            publisher=publisher,
            confirm=confirm,
            skip_publish=args.skip_publish,
            run_id=args.run_id,
        )
    except ReleaseError as e:
        logger.error(f"Release failed: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
