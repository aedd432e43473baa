"""
Function manifest loading (lambdaform.yml).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ManifestError
from .function.inputs import EnvRef
from .ids import is_valid_instance_name, slugify_instance_name

DEFAULT_MANIFEST = "lambdaform.yml"

KNOWN_KEYS = {
    "instance",
    "name",
    "description",
    "handler",
    "code",
    "runtime",
    "memory",
    "timeout",
    "environment",
    "tags",
    "role",
}

_ENV_REF = re.compile(r"^\$\{env:([A-Za-z_][A-Za-z0-9_]*)\s*(?:,\s*(.*?))?\s*\}$")


@dataclass
class Manifest:
    instance: str
    inputs: Dict[str, Any]
    base_dir: str


def _late_bind(value: Any) -> Any:
    """Replace ${env:VAR} / ${env:VAR, default} strings with EnvRef placeholders."""
    if isinstance(value, str):
        m = _ENV_REF.match(value.strip())
        if m:
            return EnvRef(var=m.group(1), default=m.group(2))
        return value
    if isinstance(value, dict):
        return {k: _late_bind(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_late_bind(v) for v in value]
    return value


def load_manifest(path: str | Path) -> Manifest:
    """
    Read a manifest file or a directory containing lambdaform.yml.

    Raises:
        ManifestError: If the file is missing, is not YAML, or has unknown keys
    """
    p = Path(path)
    if p.is_dir():
        p = p / DEFAULT_MANIFEST
    if not p.exists():
        raise ManifestError(f"Manifest not found: {p}")

    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Failed to read manifest {p}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Top-level YAML must be a mapping: {p}")

    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        raise ManifestError(f"Unknown manifest keys in {p}: {', '.join(unknown)}")

    base_dir = p.resolve().parent
    instance = data.pop("instance", None) or slugify_instance_name(base_dir.name)
    if not is_valid_instance_name(instance):
        raise ManifestError(f"Invalid instance name: {instance}")

    return Manifest(instance=instance, inputs=_late_bind(data), base_dir=str(base_dir))
