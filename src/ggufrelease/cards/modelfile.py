"""Shared MODELFILE: runtime defaults used by LM Studio, OpenWebUI, GPT4All, etc."""

import logging
from pathlib import Path

from ggufrelease.cards.common import CHATML_TEMPLATE, STOP_SEQUENCES, format_value
from ggufrelease.cards.variant_card import DEFAULT_SAMPLING
from ggufrelease.config.job_config import JobConfig

logger = logging.getLogger(__name__)

MODELFILE_NAME = "MODELFILE"
DEFAULT_CONTEXT_LENGTH = 32768


def render_modelfile(cfg: JobConfig) -> str:
    settings = cfg.modelfile or {}
    sampling = settings.get("sampling") or DEFAULT_SAMPLING
    template = "\n".join(f"  {line}" for line in CHATML_TEMPLATE.splitlines())
    lines = [
        f"# MODELFILE for {cfg.model_name}-GGUF",
        "# Used by LM Studio, OpenWebUI, GPT4All, etc.",
        "",
        f"context_length: {int(settings.get('context_length', DEFAULT_CONTEXT_LENGTH))}",
        "embedding: false",
        "f16: cpu",
        "",
        "# Chat template using ChatML (used by Qwen)",
        "prompt_template: >-",
        template,
        "",
        "# Stop sequences help end generation cleanly",
        *(f'stop: "{s}"' for s in STOP_SEQUENCES),
        "",
        f"# {settings.get('sampling_comment', 'Default sampling')}",
        *(f"{key}: {format_value(value)}" for key, value in sampling.items()),
    ]
    return "\n".join(lines) + "\n"


def write_modelfile(cfg: JobConfig, output_dir: Path) -> Path:
    path = Path(output_dir) / MODELFILE_NAME
    path.write_text(render_modelfile(cfg), encoding="utf-8")
    logger.info(f"Generated shared {MODELFILE_NAME}")
    return path
