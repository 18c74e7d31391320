import yaml
from pathlib import Path
from typing import Any, Optional


def find_repo_root(start: Optional[Path] = None) -> Path:
    """
    Walk upwards to find the repo root (dir that has pyproject.toml or .git).
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent

    return Path.cwd()


def load_pathway(name: str) -> Any:
    """Load one of the shipped pathway schemas from pathways/<name>.yaml."""
    path = find_repo_root() / "pathways" / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Missing pathway schema: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)
