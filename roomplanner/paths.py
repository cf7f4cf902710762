"""Helpers for resolving runtime paths.

Writable directories are created alongside the running application, both
when executed from source and from a PyInstaller bundle.
"""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
import sys

UPLOAD_DIR_ENV_VAR = "ROOMPLANNER_UPLOAD_DIR"


@lru_cache()
def runtime_base_dir() -> Path:
    """Return the directory where runtime data should be stored."""

    if getattr(sys, "frozen", False):  # pragma: no cover - exercised in bundle
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent.parent


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def uploads_dir() -> Path:
    """Directory used for temporarily storing uploaded documents."""

    override = os.getenv(UPLOAD_DIR_ENV_VAR)
    if override:
        return _ensure_dir(Path(override).expanduser())
    return _ensure_dir(runtime_base_dir() / "uploads")
