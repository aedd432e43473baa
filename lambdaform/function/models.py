from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

DEFAULT_SERVICE_TOKEN = "lambda.amazonaws.com"


class Decision(str, Enum):
    NOOP = "noop"
    DEPLOY = "deploy"
    REPLACE = "replace"


@dataclass(frozen=True)
class IdentityReference:
    """Execution role the function assumes."""
    name: str
    arn: str
    managed: bool = False       # synthesized by lambdaform, released on teardown

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "arn": self.arn, "managed": self.managed}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["IdentityReference"]:
        if not data:
            return None
        return cls(
            name=data["name"],
            arn=data.get("arn", ""),
            managed=bool(data.get("managed", False)),
        )


@dataclass(frozen=True)
class ResourceSpec:
    """Desired configuration of one function, fully resolved."""
    name: str
    code: Tuple[str, ...]               # (code_dir, *aux_files)
    fingerprint: str
    description: str = ""
    handler: str = "index.handler"
    runtime: str = "nodejs20.x"
    memory_size: int = 512
    timeout: int = 10
    environment: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    identity: Optional[IdentityReference] = None

    @property
    def code_dir(self) -> str:
        return self.code[0]

    @property
    def aux_files(self) -> Tuple[str, ...]:
        return self.code[1:]


@dataclass(frozen=True)
class PriorInstance:
    """Last successfully applied state of a function."""
    name: str
    code: Tuple[str, ...]
    fingerprint: str
    arn: str
    description: str = ""
    handler: str = "index.handler"
    runtime: str = "nodejs20.x"
    memory_size: int = 512
    timeout: int = 10
    environment: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    identity: Optional[IdentityReference] = None

    @classmethod
    def from_spec(cls, spec: ResourceSpec, arn: str) -> "PriorInstance":
        return cls(
            name=spec.name,
            code=tuple(spec.code),
            fingerprint=spec.fingerprint,
            arn=arn,
            description=spec.description,
            handler=spec.handler,
            runtime=spec.runtime,
            memory_size=spec.memory_size,
            timeout=spec.timeout,
            environment=dict(spec.environment),
            tags=dict(spec.tags),
            identity=spec.identity,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "handler": self.handler,
            "code": list(self.code),
            "runtime": self.runtime,
            "memory_size": self.memory_size,
            "timeout": self.timeout,
            "environment": dict(self.environment),
            "tags": dict(self.tags),
            "fingerprint": self.fingerprint,
            "arn": self.arn,
            "identity": self.identity.to_dict() if self.identity else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriorInstance":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            code=tuple(data.get("code") or ()),
            fingerprint=data.get("fingerprint", ""),
            arn=data.get("arn", ""),
            description=data.get("description", ""),
            handler=data.get("handler", "index.handler"),
            runtime=data.get("runtime", "nodejs20.x"),
            memory_size=int(data.get("memory_size", 512)),
            timeout=int(data.get("timeout", 10)),
            environment=dict(data.get("environment") or {}),
            tags=dict(data.get("tags") or {}),
            identity=IdentityReference.from_dict(data.get("identity")),
        )


@dataclass
class ReconcileResult:
    decision: Decision
    spec: ResourceSpec
    arn: Optional[str]
    instance: Optional[PriorInstance]
