"""
Publish a release output directory to a Hugging Face model repository.

Only the release files are uploaded: GGUF weights, README cards, MODELFILE and
SHA256SUMS.txt. Logs and partial (.part) files stay local.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from huggingface_hub import HfApi

from ggufrelease.errors import RepoEnsureError, UploadError

logger = logging.getLogger(__name__)

UPLOAD_PATTERNS = ["*.gguf", "README.md", "MODELFILE", "SHA256SUMS.txt"]


def list_upload_files(output_dir: Path) -> list[Path]:
    """Files under output_dir (recursive) that an upload would send, sorted by path."""
    output_dir = Path(output_dir)
    found: set[Path] = set()
    for pattern in UPLOAD_PATTERNS:
        found.update(p for p in output_dir.rglob(pattern) if p.is_file())
    return sorted(found, key=lambda p: p.relative_to(output_dir).as_posix())


def allow_patterns_for(files: list[Path], output_dir: Path) -> list[str]:
    """Explicit repo-relative paths, so upload_folder sends exactly the listed files."""
    return [p.relative_to(output_dir).as_posix() for p in files]


class HubPublisher:
    """Thin wrapper over HfApi for the two operations a release needs."""

    def __init__(self, api: HfApi | None = None, token: str | None = None, private: bool = False):
        self.api = api if api is not None else HfApi(token=token)
        self.private = private

    @classmethod
    def from_env(cls, token_env: str | None = None, private: bool = False) -> HubPublisher:
        """Build with a token from token_env; when unset, huggingface_hub resolves HF_TOKEN or the cached login."""
        token = os.environ.get(token_env) if token_env else None
        if token_env and not token:
            raise RepoEnsureError(f"Environment variable {token_env} is not set or empty")
        return cls(token=token, private=private)

    def ensure_repo(self, repo_id: str) -> None:
        """Create the model repo if absent; an existing repo is success."""
        logger.info(f"Ensuring Hugging Face repo exists: {repo_id}")
        try:
            self.api.create_repo(repo_id=repo_id, repo_type="model", private=self.private, exist_ok=True)
        except Exception as e:
            raise RepoEnsureError(f"Failed to create repo {repo_id}: {e}") from e
        logger.info(f"Repository {repo_id} is ready")

    def upload(self, output_dir: Path, repo_id: str, commit_message: str, files: list[Path] | None = None) -> None:
        """Upload the release files of output_dir to the repo root in a single commit."""
        output_dir = Path(output_dir)
        if files is None:
            files = list_upload_files(output_dir)
        logger.info(f"Uploading {len(files)} files to https://huggingface.co/{repo_id}")
        try:
            self.api.upload_folder(
                folder_path=str(output_dir),
                repo_id=repo_id,
                repo_type="model",
                commit_message=commit_message,
                allow_patterns=allow_patterns_for(files, output_dir),
            )
        except Exception as e:
            raise UploadError(f"Upload to {repo_id} failed: {e}") from e
