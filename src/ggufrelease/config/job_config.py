"""
Job configuration for a release run.

One YAML profile per model size (shipped under ggufrelease/data/profiles/) holds
the run settings plus the hand-authored lookup tables used by the model cards.
Profiles are validated against data/schemas/job_config.schema.json and loaded
into an immutable JobConfig.

Example (abridged):

model_name: Qwen3-0.6B
base_repo: Qwen/Qwen3-0.6B
repo_id: geoffmunn/Qwen3-0.6B
license: apache-2.0
input_precision: f16
quants: [Q4_K_M, Q5_K_M]
levels:
  Q4_K_M: {quality: "Practical", speed: "🚀 Fast", ram: "~1.0 GB", recommendation: "..."}
demo_prompts:
  high: {levels: [Q5_K_M], mode: general, prompt: "...", temperature: 0.6}
  mid: {levels: [Q4_K_M], mode: creative, prompt: "...", temperature: 0.8}
  low: {mode: basic, prompt: "...", temperature: 0.1}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from ggufrelease.errors import ConfigError

DEFAULT_OUTPUT_DIR = "./dist"
DEFAULT_QUANTIZE_BIN = "./build/bin/llama-quantize"
DEFAULT_OUTPUT_TEMPLATE = "{model_name}-{precision}:{level}.gguf"
DEFAULT_COMMIT_MESSAGE = "Add quantized GGUF models with per-model cards, MODELFILE, and checksums"

_SCHEMA_CACHE: dict[str, dict[str, Any]] = {}


@dataclass(frozen=True)
class LevelInfo:
    """Static lookup values for one quantization level of one model size.

    The index_* fields feed the summary table in the top-level README; the
    others feed the per-variant card.
    """

    level_id: str
    quality: str
    speed: str
    ram: str
    recommendation: str
    index_quality: str = ""
    index_speed: str = ""
    index_size: str = ""
    index_recommendation: str = ""


@dataclass(frozen=True)
class DemoPrompt:
    bucket: str
    mode: str
    prompt: str
    temperature: float
    levels: tuple[str, ...] = ()


@dataclass(frozen=True)
class JobConfig:
    """Everything a release run needs. Immutable for the duration of the run."""

    model_name: str
    base_repo: str
    repo_id: str
    license: str
    input_precision: str
    quants: tuple[str, ...]
    levels: dict[str, LevelInfo]
    demo_prompts: dict[str, DemoPrompt]
    author: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    quantize_bin: str = DEFAULT_QUANTIZE_BIN
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    cards: dict[str, Any] = field(default_factory=dict)
    modelfile: dict[str, Any] = field(default_factory=dict)

    @property
    def input_filename(self) -> str:
        """Conventional source weight file name, e.g. Qwen3-0.6B-f16.gguf."""
        return f"{self.model_name}-{self.input_precision}.gguf"

    @property
    def hub_url(self) -> str:
        return f"https://huggingface.co/{self.repo_id}"

    def output_filename(self, level: str) -> str:
        return self.output_template.format(
            model_name=self.model_name,
            precision=self.input_precision,
            level=level,
        )

    def variant_dirname(self, level: str) -> str:
        return f"{self.model_name}-{level}"

    def lookup_level(self, level: str) -> LevelInfo:
        """Return the lookup record for a level, or placeholder values if unknown."""
        info = self.levels.get(level)
        if info is not None:
            return info
        return LevelInfo(
            level_id=level,
            quality="Unknown",
            speed="❓ Unknown",
            ram="~? GB",
            recommendation="",
        )

    def demo_prompt_for(self, level: str) -> DemoPrompt:
        """Pick the demo prompt bucket: high, then mid, else low."""
        for bucket in ("high", "mid"):
            prompt = self.demo_prompts[bucket]
            if level in prompt.levels:
                return prompt
        return self.demo_prompts["low"]

    def with_overrides(self, **overrides: Any) -> JobConfig:
        """Return a copy with non-None overrides applied (CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_schema(name: str = "job_config.schema.json") -> dict[str, Any]:
    """Load a JSON schema from package data (cached)."""
    if name not in _SCHEMA_CACHE:
        text = resources.files("ggufrelease.data.schemas").joinpath(name).read_text(encoding="utf-8")
        _SCHEMA_CACHE[name] = json.loads(text)
    return _SCHEMA_CACHE[name]


def list_profiles() -> list[str]:
    """Names of the built-in profiles (file stems), sorted."""
    root = resources.files("ggufrelease.data.profiles")
    return sorted(p.name[: -len(".yaml")] for p in root.iterdir() if p.name.endswith(".yaml"))


def validate_config_dict(data: Any, source: str = "<config>") -> None:
    """Validate a raw config mapping against the job config schema.

    Raises:
        ConfigError: With the failing location when validation fails.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: config must be a YAML mapping, got {type(data).__name__}")
    try:
        jsonschema.validate(instance=data, schema=load_schema())
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"{source}: invalid config at {location}: {e.message}") from e


def _build_levels(raw: dict[str, Any]) -> dict[str, LevelInfo]:
    levels: dict[str, LevelInfo] = {}
    for level_id, entry in raw.items():
        index = entry.get("index") or {}
        levels[level_id] = LevelInfo(
            level_id=level_id,
            quality=entry["quality"],
            speed=entry["speed"],
            ram=entry["ram"],
            recommendation=entry["recommendation"],
            index_quality=index.get("quality", entry["quality"]),
            index_speed=index.get("speed", entry["speed"]),
            index_size=index.get("size", ""),
            index_recommendation=index.get("recommendation", entry["recommendation"]),
        )
    return levels


def _build_demo_prompts(raw: dict[str, Any]) -> dict[str, DemoPrompt]:
    return {
        bucket: DemoPrompt(
            bucket=bucket,
            mode=entry["mode"],
            prompt=entry["prompt"],
            temperature=float(entry["temperature"]),
            levels=tuple(entry.get("levels") or ()),
        )
        for bucket, entry in raw.items()
    }


def config_from_dict(data: dict[str, Any], source: str = "<config>") -> JobConfig:
    """Validate and convert a raw mapping into a JobConfig."""
    validate_config_dict(data, source)
    return JobConfig(
        model_name=data["model_name"],
        base_repo=data["base_repo"],
        repo_id=data["repo_id"],
        license=data["license"],
        input_precision=data["input_precision"],
        quants=tuple(data["quants"]),
        levels=_build_levels(data["levels"]),
        demo_prompts=_build_demo_prompts(data["demo_prompts"]),
        author=data.get("author") or data["repo_id"].split("/", 1)[0],
        output_dir=data.get("output_dir", DEFAULT_OUTPUT_DIR),
        quantize_bin=data.get("quantize_bin", DEFAULT_QUANTIZE_BIN),
        output_template=data.get("output_template", DEFAULT_OUTPUT_TEMPLATE),
        commit_message=data.get("commit_message", DEFAULT_COMMIT_MESSAGE),
        cards=data.get("cards") or {},
        modelfile=data.get("modelfile") or {},
    )


def load_job_config(path: Path) -> JobConfig:
    """Load a job config YAML from disk."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return config_from_dict(data, source=str(path))


def load_profile(name: str) -> JobConfig:
    """Load a built-in profile by name (e.g. "qwen3-0.6b")."""
    available = list_profiles()
    if name not in available:
        raise ConfigError(f"Unknown profile '{name}'. Available profiles: {', '.join(available)}")
    text = resources.files("ggufrelease.data.profiles").joinpath(f"{name}.yaml").read_text(encoding="utf-8")
    return config_from_dict(yaml.safe_load(text), source=f"profile:{name}")
