"""
Resolution step: turns raw function inputs, possibly holding late-bound
references, into an immutable ResourceSpec.

Late-bound values are evaluated exactly once here so that change detection
only ever sees plain values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..errors import ManifestError
from ..packager import fingerprint_directory, split_code_location
from .models import IdentityReference, ResourceSpec

DEFAULTS: Dict[str, Any] = {
    "description": "",
    "handler": "index.handler",
    "runtime": "nodejs20.x",
    "memory": 512,
    "timeout": 10,
}


@dataclass(frozen=True)
class EnvRef:
    """Reference to an environment variable, read at resolution time."""
    var: str
    default: Optional[str] = None

    def resolve(self) -> str:
        value = os.environ.get(self.var, self.default)
        if value is None:
            raise ManifestError(f"Environment variable {self.var} is not set and has no default")
        return value


def resolve(value: Any) -> Any:
    """Evaluate late-bound references (anything with .resolve() or a callable) recursively."""
    if isinstance(value, EnvRef):
        return value.resolve()
    if callable(value):
        return resolve(value())
    if isinstance(value, Mapping):
        return {k: resolve(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve(v) for v in value]
    return value


def _to_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ManifestError(f"'{key}' must be an integer, got {value!r}")


def _identity_from_input(role: Any) -> Optional[IdentityReference]:
    if role is None:
        return None
    if isinstance(role, IdentityReference):
        return role
    if isinstance(role, Mapping) and role.get("name"):
        return IdentityReference(name=str(role["name"]), arn=str(role.get("arn", "")))
    raise ManifestError("'role' must be a mapping with at least a 'name'")


def spec_from_inputs(inputs: Mapping[str, Any], base_dir: Optional[str] = None) -> ResourceSpec:
    """
    Build a ResourceSpec from raw inputs.

    Code paths are made absolute against base_dir and the fingerprint is
    always recomputed from the code directory.
    """
    values = {**DEFAULTS, **resolve(dict(inputs))}

    name = values.get("name")
    if not name or not isinstance(name, str):
        raise ManifestError("'name' is required")
    if not values.get("code"):
        raise ManifestError("'code' is required")

    code_dir, aux_files = split_code_location(values["code"])
    base = Path(base_dir) if base_dir else Path.cwd()
    code = tuple(str((base / p).resolve()) for p in [code_dir, *aux_files])

    environment = values.get("environment") or {}
    tags = values.get("tags") or {}
    if not isinstance(environment, Mapping) or not isinstance(tags, Mapping):
        raise ManifestError("'environment' and 'tags' must be mappings")

    return ResourceSpec(
        name=name,
        code=code,
        fingerprint=fingerprint_directory(code[0]),
        description=str(values.get("description") or ""),
        handler=str(values["handler"]),
        runtime=str(values["runtime"]),
        memory_size=_to_int("memory", values["memory"]),
        timeout=_to_int("timeout", values["timeout"]),
        environment={str(k): str(v) for k, v in environment.items()},
        tags={str(k): str(v) for k, v in tags.items()},
        identity=_identity_from_input(values.get("role")),
    )
