"""
Hub index card: the top-level README.md of the model repository.

Front matter (license, tags, base model, pipeline tag, languages) followed by the
description, the per-level quality/size table, use-case recommendations, usage,
author and disclaimer sections.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ggufrelease.cards.common import HF_BASE_URL, bullet_list, front_matter, hub_link
from ggufrelease.config.job_config import JobConfig, LevelInfo

logger = logging.getLogger(__name__)

INDEX_CARD_NAME = "README.md"


@dataclass
class IndexCardView:
    model_name: str
    base_repo: str
    license: str
    input_precision: str
    author: str
    author_name: str
    tags: list[str]
    languages: list[str]
    levels: list[LevelInfo]
    tagline: str = ""
    compatibility: str = ""
    highlights: str = ""
    use_cases: list[str] = field(default_factory=list)
    extra_sections: str = ""
    runtimes: list[str] = field(default_factory=list)
    usage_note: str = ""
    disclaimer: str = ""


def build_index_view(cfg: JobConfig) -> IndexCardView:
    """Collect index card values from the job config."""
    cards = cfg.cards
    index = cards.get("index") or {}
    return IndexCardView(
        model_name=cfg.model_name,
        base_repo=cfg.base_repo,
        license=cfg.license,
        input_precision=cfg.input_precision,
        author=cfg.author,
        author_name=index.get("author_name") or cfg.author,
        tags=list(cards.get("tags") or ["gguf", "llama.cpp", "quantized", "text-generation"]),
        languages=list(cards.get("languages") or ["en"]),
        levels=[cfg.lookup_level(level) for level in cfg.quants],
        tagline=index.get("tagline", ""),
        compatibility=index.get("compatibility", ""),
        highlights=index.get("highlights", ""),
        use_cases=list(index.get("use_cases") or []),
        extra_sections=index.get("extra_sections", ""),
        runtimes=list(index.get("runtimes") or []),
        usage_note=index.get("usage_note", ""),
        disclaimer=index.get("disclaimer", ""),
    )


def _quant_table(view: IndexCardView) -> str:
    lines = [
        "| Level     | Quality       | Speed     | Size      | Recommendation |",
        "|----------|--------------|----------|-----------|----------------|",
    ]
    for lvl in view.levels:
        lines.append(
            f"| {lvl.level_id} | {lvl.index_quality or lvl.quality} | {lvl.index_speed or lvl.speed} "
            f"| {lvl.index_size or '—'} | {lvl.index_recommendation or lvl.recommendation} |"
        )
    return "\n".join(lines) + "\n"


def render_index_card(view: IndexCardView) -> str:
    """Render the index README as markdown."""
    parts = [
        front_matter(
            {
                "license": view.license,
                "tags": view.tags,
                "base_model": view.base_repo,
                "author": view.author,
                "pipeline_tag": "text-generation",
                "language": view.languages,
            }
        ),
        f"\n# {view.model_name}-GGUF\n\n",
        f"This is a **GGUF-quantized version** of the **{hub_link(view.base_repo)}** language model",
        f" — {view.tagline}\n\n" if view.tagline else ".\n\n",
    ]
    if view.compatibility:
        parts.append(f"{view.compatibility}\n\n")
    if view.highlights:
        parts.append(f"{view.highlights.rstrip()}\n\n")

    parts.append(f"## Available Quantizations (from {view.input_precision})\n\n")
    parts.append(
        f"These variants were built from a **{view.input_precision}** base model "
        "to ensure consistency across quant levels.\n\n"
    )
    parts.append(_quant_table(view) + "\n")

    if view.use_cases:
        parts.append("> 💡 **Recommendations by Use Case**\n>\n")
        parts.append("".join(f"> - {uc}\n" for uc in view.use_cases) + "\n")
    if view.extra_sections:
        parts.append(f"{view.extra_sections.rstrip()}\n\n")

    parts.append("## Usage\n\nLoad this model using:\n")
    parts.append(bullet_list(view.runtimes + ["Or directly via `llama.cpp`"]))
    if view.usage_note:
        parts.append(f"\n{view.usage_note}\n")

    parts.append(
        "\n## Author\n\n"
        f"👤 {view.author_name} (@{view.author})  \n"
        f"🔗 [Hugging Face Profile]({HF_BASE_URL}/{view.author})\n"
    )
    if view.disclaimer:
        parts.append(f"\n## Disclaimer\n\n{view.disclaimer}\n")
    return "".join(parts)


def write_index_card(cfg: JobConfig, output_dir: Path) -> Path:
    """Write output_dir/README.md, overwriting any previous one."""
    path = Path(output_dir) / INDEX_CARD_NAME
    path.write_text(render_index_card(build_index_view(cfg)), encoding="utf-8")
    logger.info(f"Generated index card {path}")
    return path
