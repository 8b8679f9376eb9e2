"""Configuration management with YAML support and pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class TimingConfig(BaseModel):
    # HP-projected start is replaced by the player position when it runs
    # ahead of it by more than this many seconds
    correction_threshold: float = Field(default=0.5, ge=0.0)
    play_cue: bool = True
    undelete_depth: int = Field(default=50, ge=1)


class SyllablizeConfig(BaseModel):
    level: int = Field(default=2, ge=0, le=2)
    dictionary_path: str = ""


class ExportConfig(BaseModel):
    style: str = "Romaji"
    time_shift: float = -0.02
    output_format: Literal["new", "full"] = "new"


class EditorConfig(BaseModel):
    undo_depth: int = Field(default=30, ge=1)


class AppConfig(BaseModel):
    timing: TimingConfig = TimingConfig()
    syllablize: SyllablizeConfig = SyllablizeConfig()
    export: ExportConfig = ExportConfig()
    editor: EditorConfig = EditorConfig()


def load_config(path: str | Path | None = None) -> AppConfig:
    if path is None:
        candidates = [Path("config.yaml"), Path("config.yml"), Path("karaoke-timer.yaml")]
        for c in candidates:
            if c.exists():
                path = c
                break
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return AppConfig(**data)
    return AppConfig()


def merge_cli_overrides(cfg: AppConfig, overrides: dict[str, Any]) -> AppConfig:
    data = cfg.model_dump()
    for key, val in overrides.items():
        if val is None:
            continue
        parts = key.split(".")
        d = data
        for p in parts[:-1]:
            d = d.setdefault(p, {})
        d[parts[-1]] = val
    return AppConfig(**data)


def load_dictionary(path: str | Path) -> list[str]:
    """Load a replacement syllable dictionary (a YAML list of strings)."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list) or not all(isinstance(e, str) and e for e in data):
        raise ValueError(f"Syllable dictionary must be a list of non-empty strings: {path}")
    return data


DEFAULT_CONFIG_YAML = """\
# karaoke-timer configuration

timing:
  correction_threshold: 0.5  # seconds the tap projection may run ahead of the player
  play_cue: true             # fire the cue call-out on every tap
  undelete_depth: 50

syllablize:
  level: 2                   # 0 = off | 1 = dictionary | 2 = dictionary + vowels
  dictionary_path: ""        # optional YAML list replacing the built-in dictionary

export:
  style: Romaji
  time_shift: -0.02          # seconds added to every exported time
  output_format: new         # new | full

editor:
  undo_depth: 30
"""
