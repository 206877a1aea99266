"""
Data models shared by the pipeline stages and the orchestrator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from utils.errors import MinifyWarning


@dataclass
class StageResult:
    """Outcome of a single stage invocation."""
    stage: str
    inputs: list[Path] = field(default_factory=list)
    outputs: list[Path] = field(default_factory=list)
    warnings: list[MinifyWarning] = field(default_factory=list)
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """True if the stage produced no warnings."""
        return not self.warnings

    def summary(self) -> str:
        text = (
            f"{self.stage}: {len(self.inputs)} input(s) -> "
            f"{len(self.outputs)} output(s) in {self.duration:.2f}s"
        )
        if self.warnings:
            text += f", {len(self.warnings)} warning(s)"
        return text


@dataclass(frozen=True)
class Profile:
    """An ordered list of stage ids, optionally followed by watch mode."""
    name: str
    stages: tuple[str, ...]
    watch: bool = False
    description: str = ''
