"""
Per-variant model cards: <output_dir>/<model>-<level>/README.md.

One card per quantized file on disk. Each card carries the level's lookup values
(quality, speed, RAM, recommendation), the actual file size, the ChatML prompt
template, sampling tables, and a curl example whose prompt and temperature come
from the level's demo bucket (high / mid / low).
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ggufrelease.artifacts.checksums import MANIFEST_NAME
from ggufrelease.cards.common import (
    CHATML_TEMPLATE,
    LLAMACPP_URL,
    bullet_list,
    front_matter,
    hub_link,
    human_size,
    license_display,
    params_table,
)
from ggufrelease.config.job_config import DemoPrompt, JobConfig, LevelInfo

logger = logging.getLogger(__name__)

VARIANT_CARD_NAME = "README.md"
OLLAMA_GENERATE_URL = "http://localhost:11434/api/generate"
DEFAULT_SAMPLING = {"temperature": 0.6, "top_p": 0.95, "top_k": 20, "min_p": 0.0, "repeat_penalty": 1.1}


@dataclass
class VariantCardView:
    model_name: str
    base_repo: str
    repo_id: str
    license: str
    author: str
    input_precision: str
    tags: list[str]
    level: LevelInfo
    file_size: str
    demo: DemoPrompt
    sampling: dict[str, Any]
    sampling_modes: list[dict[str, Any]] = field(default_factory=list)
    sampling_footer: str = ""
    usage_tips: str = ""
    prompt_prefix: str = ""
    example_rationale: list[str] = field(default_factory=list)
    example_tip: str = ""
    runtimes: list[str] = field(default_factory=list)
    closing_note: str = ""


def build_variant_view(cfg: JobConfig, level: str, artifact: Path) -> VariantCardView:
    cards = cfg.cards
    variant = cards.get("variant") or {}
    sampling = dict((cfg.modelfile or {}).get("sampling") or DEFAULT_SAMPLING)
    return VariantCardView(
        model_name=cfg.model_name,
        base_repo=cfg.base_repo,
        repo_id=cfg.repo_id,
        license=cfg.license,
        author=cfg.author,
        input_precision=cfg.input_precision,
        tags=list(cards.get("tags") or ["gguf", "llama.cpp", "quantized", "text-generation"]),
        level=cfg.lookup_level(level),
        file_size=human_size(artifact.stat().st_size),
        demo=cfg.demo_prompt_for(level),
        sampling=sampling,
        sampling_modes=list(variant.get("sampling_modes") or [{"intro": "Recommended defaults:", "params": sampling}]),
        sampling_footer=variant.get("sampling_footer", ""),
        usage_tips=variant.get("usage_tips", ""),
        prompt_prefix=variant.get("prompt_prefix", ""),
        example_rationale=list(variant.get("example_rationale") or []),
        example_tip=variant.get("example_tip", ""),
        runtimes=list(variant.get("runtimes") or []),
        closing_note=variant.get("closing_note", ""),
    )


def build_generate_request(view: VariantCardView) -> dict[str, Any]:
    """JSON body for the Ollama /api/generate example."""
    prompt = f"{view.prompt_prefix} {view.demo.prompt}".strip()
    body: dict[str, Any] = {
        "model": f"hf.co/{view.repo_id}:{view.level.level_id}",
        "prompt": prompt,
        "temperature": view.demo.temperature,
    }
    for key, value in view.sampling.items():
        if key != "temperature":
            body[key] = value
    body["stream"] = False
    return body


def _shell_single_quote(text: str) -> str:
    return text.replace("'", "'\\''")


def render_curl_example(view: VariantCardView) -> str:
    payload = json.dumps(build_generate_request(view), indent=2, ensure_ascii=False)
    return (
        "```bash\n"
        f"curl {OLLAMA_GENERATE_URL} -s -N -d '{_shell_single_quote(payload)}' | jq -r '.response'\n"
        "```\n"
    )


def _sampling_section(view: VariantCardView) -> str:
    parts = ["## Generation Parameters\n\n"]
    for mode in view.sampling_modes:
        if mode.get("title"):
            parts.append(f"### {mode['title']}\n")
        if mode.get("intro"):
            parts.append(f"{mode['intro']}\n\n")
        parts.append(params_table(mode.get("params") or view.sampling) + "\n")
        if mode.get("notes"):
            parts.append(f"{mode['notes'].rstrip()}\n\n")
    if view.sampling_footer:
        parts.append(f"{view.sampling_footer.rstrip()}\n\n")
    return "".join(parts)


def render_variant_card(view: VariantCardView) -> str:
    """Render one variant README as markdown."""
    lvl = view.level
    base = hub_link(view.base_repo)
    parts = [
        front_matter(
            {
                "license": view.license,
                "tags": view.tags,
                "base_model": view.base_repo,
                "author": view.author,
            }
        ),
        f"\n# {view.model_name}-{lvl.level_id}\n\n",
        f"Quantized version of {base} at **{lvl.level_id}** level, "
        f"derived from **{view.input_precision}** base weights.\n\n",
        "## Model Info\n\n",
        "- **Format**: GGUF (for llama.cpp and compatible runtimes)\n",
        f"- **Size**: {view.file_size}\n",
        f"- **Precision**: {lvl.level_id}\n",
        f"- **Base Model**: {base}\n",
        f"- **Conversion Tool**: [llama.cpp]({LLAMACPP_URL})\n\n",
        "## Quality & Performance\n\n",
        "| Metric | Value |\n|-------|-------|\n",
        f"| **Quality** | {lvl.quality} |\n",
        f"| **Speed** | {lvl.speed} |\n",
        f"| **RAM Required** | {lvl.ram} |\n",
        f"| **Recommendation** | {lvl.recommendation} |\n\n",
        "## Prompt Template (ChatML)\n\n",
        "This model uses the **ChatML** format used by Qwen:\n\n",
        f"```text\n{CHATML_TEMPLATE}\n```\n\n",
        "Set this in your app (LM Studio, OpenWebUI, etc.) for best results.\n\n",
        _sampling_section(view),
    ]
    if view.usage_tips:
        parts.append(f"## 💡 Usage Tips\n\n{view.usage_tips.rstrip()}\n\n")

    parts.append("## 🖥️ CLI Example Using Ollama or TGI Server\n\n")
    parts.append(
        "Here’s how you can query this model via API using `curl` and `jq`. "
        "Replace the endpoint with your local server (e.g., Ollama, Text Generation Inference).\n\n"
    )
    parts.append(render_curl_example(view) + "\n")
    if view.example_rationale:
        parts.append("🎯 **Why this works well**:\n" + bullet_list(view.example_rationale) + "\n")
    if view.example_tip:
        parts.append(f"> {view.example_tip}\n\n")

    parts.append(
        "## Verification\n\nCheck integrity:\n\n"
        f"```bash\nsha256sum -c ../{MANIFEST_NAME}\n```\n\n"
    )
    parts.append("## Usage\n\nCompatible with:\n")
    parts.append(bullet_list(view.runtimes + ["Directly via `llama.cpp`"]))
    if view.closing_note:
        parts.append(f"\n{view.closing_note}\n")
    parts.append(f"\n## License\n\n{license_display(view.license)} – see base model for full terms.\n")
    return "".join(parts)


def write_variant_cards(cfg: JobConfig, output_dir: Path) -> list[Path]:
    """Write one card per configured level whose GGUF exists; skip the rest with a warning."""
    output_dir = Path(output_dir)
    written = []
    for level in cfg.quants:
        artifact = output_dir / cfg.output_filename(level)
        if not artifact.exists():
            logger.warning(f"Skipping card for {artifact.name}: not found")
            continue
        card_dir = output_dir / cfg.variant_dirname(level)
        card_dir.mkdir(parents=True, exist_ok=True)
        path = card_dir / VARIANT_CARD_NAME
        path.write_text(render_variant_card(build_variant_view(cfg, level, artifact)), encoding="utf-8")
        logger.info(f"Generated per-model card {path.relative_to(output_dir)}")
        written.append(path)
    return written
