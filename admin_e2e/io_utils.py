"""Utility helpers for run directories and artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import re
import secrets
from pathlib import Path
from typing import Any, Optional

RUNS_DIRNAME = "runs"


@dataclass(slots=True)
class RunPaths:
    """Convenience container for directories related to a single run."""

    run_id: str
    scenario: str
    base_dir: Path
    screenshot_dir: Path

    def build_path(self, filename: str) -> Path:
        path = self.base_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def screenshot_path(self, step: int, label: str) -> Path:
        """Return an absolute path for the screenshot of a numbered step."""
        path = self.screenshot_dir / f"{step:02d}_{sanitize_filename(label)}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


def generate_run_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    suffix = secrets.token_hex(2)
    return f"{timestamp}-{suffix}"


def default_runs_dir() -> Path:
    """Default run root: ./runs under the current working directory."""
    return Path.cwd() / RUNS_DIRNAME


def prepare_run_directories(
    run_id: str, scenario: str, root: Optional[Path] = None
) -> RunPaths:
    base_dir = Path(root or default_runs_dir()) / run_id
    screenshot_dir = base_dir / "screenshots"
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    return RunPaths(
        run_id=run_id,
        scenario=scenario,
        base_dir=base_dir,
        screenshot_dir=screenshot_dir,
    )


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
    return path


def sanitize_filename(text: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", text.strip()) or "artifact"
    cleaned = cleaned.strip("-_")
    return cleaned or "artifact"


def relative_artifact_path(path: Path, root: Optional[Path] = None) -> str:
    try:
        return str(path.resolve().relative_to((root or Path.cwd()).resolve()))
    except ValueError:
        return str(path.resolve())
