"""Upload confirmation strategies. Each takes the file list and returns True to proceed."""

import sys
from pathlib import Path
from typing import Callable

from ggufrelease.cards.common import human_size

Confirmer = Callable[[list[Path]], bool]


def describe_files(files: list[Path], root: Path) -> str:
    """One line per file: size and path relative to root."""
    return "\n".join(f"  {human_size(p.stat().st_size):>6}  {p.relative_to(root).as_posix()}" for p in files)


def always_confirm(files: list[Path]) -> bool:
    return True


def never_confirm(files: list[Path]) -> bool:
    return False


def prompt_confirm(files: list[Path]) -> bool:
    """Interactive [Y/n] prompt on stdin; empty answer means yes."""
    try:
        reply = input("Continue with upload? [Y/n] ")
    except EOFError:
        print("", file=sys.stderr)
        return False
    return not reply.strip().lower().startswith("n")
