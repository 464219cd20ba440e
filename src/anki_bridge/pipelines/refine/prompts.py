"""
Prompts for note refinement.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

PROMPTS_DIR = Path(__file__).parent / "prompts"


def _load_prompt(file_path: Path) -> str:
    """Load a prompt file."""
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt file not found: {file_path}")
    return file_path.read_text(encoding="utf-8")


@lru_cache(maxsize=None)
def build_refine_prompts() -> Dict[str, str]:
    """System and human templates for the refine step."""
    return {
        "system": _load_prompt(PROMPTS_DIR / "refine.system.txt"),
        "human": _load_prompt(PROMPTS_DIR / "refine.human.txt"),
    }
