from __future__ import annotations

from typing import Any, Dict, Optional, Union

from .models import Decision, PriorInstance, ResourceSpec

# environment is left out on purpose: values resolved from late-bound sources
# do not compare reliably, so env-only edits never trigger a deploy.
COMPARED_FIELDS = (
    "name",
    "description",
    "handler",
    "code",
    "runtime",
    "memory_size",
    "timeout",
    "fingerprint",
    "tags",
)


def normalized_config(source: Union[ResourceSpec, PriorInstance]) -> Dict[str, Any]:
    config = {f: getattr(source, f) for f in COMPARED_FIELDS}
    config["code"] = list(config["code"])
    config["tags"] = dict(config["tags"])
    return config


def has_config_changed(current: ResourceSpec, prior: Optional[PriorInstance]) -> bool:
    if prior is None:
        return True
    return normalized_config(current) != normalized_config(prior)


def _identity_name(source: Union[ResourceSpec, PriorInstance]) -> Optional[str]:
    return source.identity.name if source.identity else None


def has_identity_changed(current: ResourceSpec, prior: Optional[PriorInstance]) -> bool:
    """Compare role names only; an ARN reassigned by an out-of-band role recreation is not a change."""
    if prior is None:
        return True
    return _identity_name(current) != _identity_name(prior)


def decide(current: ResourceSpec, prior: Optional[PriorInstance]) -> Decision:
    """
    Pick the reconcile action. First match wins:
      1) renamed function -> REPLACE (the name is immutable remotely)
      2) new, changed config or changed role -> DEPLOY
      3) otherwise -> NOOP
    """
    if prior is not None and prior.name != current.name:
        return Decision.REPLACE
    if prior is None or has_config_changed(current, prior) or has_identity_changed(current, prior):
        return Decision.DEPLOY
    return Decision.NOOP
