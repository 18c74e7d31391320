"""SchemaStore — loads pathway schema documents into memory.

Pathway schemas normally come from the remote assessment API
(``GET /assessment/pathway/{name}/schema``).  The store keeps local copies
(``pathways/*.yaml|yml|json``) so that forms can be built without network
access, and accepts schemas fetched at runtime via :meth:`register`.

Usage::

    store = SchemaStore()          # defaults to pathways/ relative to repo root
    store.load()                   # parse every schema file

    schema = store.get_schema("paddy_rice")
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml

from cfp_forms.constants import DEFAULT_IGNORED_PROPERTIES

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_document(path: Path | str) -> Any:
    """Load a single YAML or JSON schema file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing schema file: {path}")
    with path.open("r", encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# SchemaStore
# ---------------------------------------------------------------------------

class SchemaStore:
    """Loads pathway schemas from a directory and provides lookup by name.

    A pathway is keyed by its file stem.  Documents that declare no
    ``ignored`` list get :data:`DEFAULT_IGNORED_PROPERTIES`, so basic mode
    prunes the usual advanced sections.

    Args:
        schema_dir: directory holding schema files (default ``pathways/``)
        ignored: default ``ignored`` list injected into documents without one
    """

    def __init__(
        self,
        schema_dir: str | Path | None = None,
        ignored: Optional[list[str]] = None,
    ) -> None:
        if schema_dir is None:
            schema_dir = find_repo_root() / "pathways"
        self._base = Path(schema_dir)
        self._ignored = list(DEFAULT_IGNORED_PROPERTIES if ignored is None else ignored)

        # Populated by load() / register(); pathway name -> raw document
        self._schemas: dict[str, dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse every schema file in the schema directory.

        Raises ``FileNotFoundError`` if the directory does not exist and
        ``ValueError`` if a file does not hold a JSON object.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing schema directory: {self._base}")

        for path in sorted(self._base.iterdir()):
            if path.suffix not in SCHEMA_SUFFIXES or not path.is_file():
                continue
            raw = load_document(path)
            if not isinstance(raw, Mapping):
                raise ValueError(f"Schema file {path.name} does not contain an object")
            self.register(path.stem, raw)

        logger.info("SchemaStore loaded %d pathway schemas from %s", len(self._schemas), self._base)

    def register(self, name: str, raw: Mapping[str, Any]) -> None:
        """Add or replace the schema for pathway *name*.

        The document is copied; ``ignored`` is injected when missing.
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"Schema for pathway '{name}' must be an object")
        schema = copy.deepcopy(dict(raw))
        if "ignored" not in schema:
            schema["ignored"] = list(self._ignored)
        if name in self._schemas:
            logger.debug("Replacing schema for pathway %s", name)
        self._schemas[name] = schema

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_schema(self, name: str) -> dict[str, Any]:
        """Return the raw schema document for pathway *name*.

        Raises:
            KeyError: if the pathway is unknown.
        """
        if name not in self._schemas:
            raise KeyError(f"Unknown pathway: {name}")
        return self._schemas[name]

    def list_pathways(self) -> list[dict[str, Any]]:
        """Return ``{name, title, description}`` for every known pathway, by name."""
        return [
            {
                "name": name,
                "title": schema.get("title") or name,
                "description": schema.get("description"),
            }
            for name, schema in sorted(self._schemas.items())
        ]

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
