"""
RunOptions — every knob that shapes a single update run.

Loaded from the optional YAML config file, then overridden by CLI
flags. Unknown keys in the file are rejected so typos surface early.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT_S = 15 * 60.0


class RunOptions(BaseModel):
    """Execution options for one run."""

    model_config = ConfigDict(extra="forbid")

    serial: bool = False
    safe: bool = False
    concurrency: int = Field(default=0, ge=0)           # 0 = no limit
    timeout: float = Field(default=DEFAULT_TIMEOUT_S, ge=0)  # seconds, 0 disables
    verbose: bool = False
    quiet: bool = False
    dry_run: bool = False
    explain: bool = False
    only: list[str] = Field(default_factory=list)
    skip: list[str] = Field(default_factory=list)

    @field_validator("only", "skip", mode="before")
    @classmethod
    def _split_names(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_name_list(value)
        return value

    @field_validator("only", "skip")
    @classmethod
    def _normalise_names(cls, value: list[str]) -> list[str]:
        return [v.strip().lower() for v in value if v.strip()]


def parse_name_list(raw: str | None) -> list[str]:
    """Split a comma-separated agent list, dropping blanks and duplicates."""
    if not raw or not raw.strip():
        return []
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip().lower()
        if name and name not in names:
            names.append(name)
    return names
