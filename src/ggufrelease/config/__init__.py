"""Job configuration: YAML profiles per model size, validated into JobConfig."""

from ggufrelease.config.job_config import (
    DemoPrompt,
    JobConfig,
    LevelInfo,
    list_profiles,
    load_job_config,
    load_profile,
)

__all__ = [
    "DemoPrompt",
    "JobConfig",
    "LevelInfo",
    "list_profiles",
    "load_job_config",
    "load_profile",
]
