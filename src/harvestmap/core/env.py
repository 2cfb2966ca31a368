"""
Repo-root and `.env` helpers.

Catalog paths in `defaults.yaml` are relative (`data/catalogs/...`). uvicorn, the CLI and pytest
can each start from a different working directory, so relative paths resolve against the repo
root rather than the cwd. The backend token usually lives in a repo-local `.env`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Any of these marks the repo root.
_ROOT_MARKERS = ("pyproject.toml", ".git", ".env")


def _find_root(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """Nearest marked directory above the cwd, else above this module, else the cwd (cached)."""
    return _find_root(Path.cwd()) or _find_root(Path(__file__).parent) or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `<root>/.env` once, without overriding variables already set."""
    env_path = get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
