"""Shared pieces for the hub model cards: front matter, tables, sizes."""

import math
from typing import Any

import yaml

HF_BASE_URL = "https://huggingface.co"
LLAMACPP_URL = "https://github.com/ggerganov/llama.cpp"

# ChatML, as used by Qwen models.
CHATML_TEMPLATE = (
    "<|im_start|>system\n"
    "You are a helpful assistant.<|im_end|>\n"
    "<|im_start|>user\n"
    "{prompt}<|im_end|>\n"
    "<|im_start|>assistant"
)
STOP_SEQUENCES = ("<|im_end|>", "<|im_start|>")

SAMPLING_LABELS = {
    "temperature": "Temperature",
    "top_p": "Top-P",
    "top_k": "Top-K",
    "min_p": "Min-P",
    "repeat_penalty": "Repeat Penalty",
    "presence_penalty": "Presence Penalty",
}

_LICENSE_NAMES = {
    "apache-2.0": "Apache 2.0",
    "mit": "MIT",
    "llama3": "Llama 3 Community License",
    "gemma": "Gemma Terms of Use",
}


def front_matter(fields: dict[str, Any]) -> str:
    """Render a YAML front-matter block (keys kept in insertion order)."""
    body = yaml.safe_dump(fields, default_flow_style=False, allow_unicode=True, sort_keys=False)
    return f"---\n{body}---\n"


def hub_link(repo_id: str) -> str:
    return f"[{repo_id}]({HF_BASE_URL}/{repo_id})"


def license_display(tag: str) -> str:
    return _LICENSE_NAMES.get(tag.lower(), tag)


def human_size(num_bytes: int) -> str:
    """Size the way `ls -lh` prints it: 1024-based, rounded up, e.g. 484M, 1.9G."""
    if num_bytes < 1024:
        return str(num_bytes)
    value = float(num_bytes)
    for unit in ("K", "M", "G", "T", "P"):
        value /= 1024.0
        if value < 10:
            rounded = math.ceil(value * 10) / 10
            if rounded < 10:
                return f"{rounded:.1f}{unit}"
            return f"{math.ceil(value)}{unit}"
        rounded = math.ceil(value)
        if rounded < 1024:
            return f"{rounded}{unit}"
    return f"{math.ceil(value)}P"


def format_value(value: Any) -> str:
    if isinstance(value, float):
        return repr(value)
    return str(value)


def params_table(params: dict[str, Any]) -> str:
    """Two-column Parameter | Value markdown table for sampling settings."""
    lines = ["| Parameter | Value |", "|---------|-------|"]
    for key, value in params.items():
        lines.append(f"| {SAMPLING_LABELS.get(key, key)} | {format_value(value)} |")
    return "\n".join(lines) + "\n"


def bullet_list(items: list[str]) -> str:
    return "".join(f"- {item}\n" for item in items)
