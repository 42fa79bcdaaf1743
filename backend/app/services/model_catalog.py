"""
Static model catalog loader.

This module loads the default model list from models.yaml. It backs the
model endpoint whenever a provider's live catalog is unavailable.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from .providers.base import ProviderKind

CATALOG_FILE = Path(__file__).parent / "models.yaml"

REQUIRED_KEYS = ("id", "name", "provider", "kind")


@lru_cache(maxsize=None)
def _load(path: Path) -> tuple[dict[str, Any], ...]:
    if not path.exists():
        raise FileNotFoundError(f"models.yaml not found. Ensure file exists at {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML format in models.yaml: {e}")

    if not data or "models" not in data:
        raise ValueError("models.yaml must contain a 'models' key")

    entries = []
    for entry in data["models"]:
        missing = [key for key in REQUIRED_KEYS if key not in entry]
        if missing:
            raise ValueError(f"Model entry {entry.get('id')!r} missing keys: {missing}")
        # Raises ValueError for unknown kinds
        ProviderKind(entry["kind"])
        entries.append(entry)
    return tuple(entries)


def load_model_catalog(path: Path = CATALOG_FILE) -> list[dict[str, Any]]:
    """
    Load all catalog entries.

    Returns:
        list[dict]: Entries with id, name, provider, kind, description, features

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        ValueError: If the catalog is malformed
    """
    return [dict(entry) for entry in _load(path)]


def default_models(kind: ProviderKind, path: Path = CATALOG_FILE) -> list[dict[str, Any]]:
    """Return catalog entries served by one provider kind."""
    return [entry for entry in load_model_catalog(path) if entry["kind"] == kind.value]
