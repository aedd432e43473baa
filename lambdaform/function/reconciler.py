"""
Reconciler for a single Lambda function.

Given the desired ResourceSpec and the last applied PriorInstance it
decides between NOOP, DEPLOY and REPLACE and performs the matching
provider calls. Every failure is raised to the caller; there are no
retries and no rollback (an update whose config step fails leaves the
new code in place).
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Optional, Tuple

from ..errors import ProviderCallError, RemovalError, ResourceNotFoundError
from ..packager import pack
from .changes import decide
from .identity import execution_role_name
from .models import (
    DEFAULT_SERVICE_TOKEN,
    Decision,
    IdentityReference,
    PriorInstance,
    ReconcileResult,
    ResourceSpec,
)

logger = logging.getLogger(__name__)

Notify = Callable[[str, Dict[str, Any]], None]


class Reconciler:
    def __init__(
        self,
        provider: Any,
        identity_resolver: Any,
        *,
        instance: str = "lambdaform",
        service_token: str = DEFAULT_SERVICE_TOKEN,
        notify: Optional[Notify] = None,
    ):
        self.provider = provider
        self.identity_resolver = identity_resolver
        self.instance = instance
        self.service_token = service_token
        self._notify = notify or (lambda event_type, data: None)

    def prepare(self, spec: ResourceSpec, prior: Optional[PriorInstance] = None) -> ResourceSpec:
        """Return spec with an identity attached, resolving one only when needed."""
        if spec.identity is not None:
            return spec

        # Reuse the role synthesized on an earlier run for this same name
        if prior is not None and prior.identity is not None and prior.identity.managed:
            if prior.identity.name == execution_role_name(spec.name):
                return replace(spec, identity=prior.identity)

        identity = self.identity_resolver.resolve_identity(spec.name, self.service_token)
        logger.info(f"Resolved execution role {identity.name} for {spec.name}")
        return replace(spec, identity=identity)

    def plan(self, spec: ResourceSpec, prior: Optional[PriorInstance]) -> Decision:
        if spec.identity is None:
            # Preview the role prepare() would synthesize without creating it
            role = execution_role_name(spec.name)
            if prior is not None and prior.identity is not None and prior.identity.name == role:
                spec = replace(spec, identity=prior.identity)
            else:
                spec = replace(spec, identity=IdentityReference(name=role, arn="", managed=True))
        return decide(spec, prior)

    def _params(self, spec: ResourceSpec, zip_bytes: bytes) -> Dict[str, Any]:
        return {
            "name": spec.name,
            "description": spec.description,
            "handler": spec.handler,
            "memory_size": spec.memory_size,
            "timeout": spec.timeout,
            "runtime": spec.runtime,
            "environment": dict(spec.environment),
            "tags": dict(spec.tags),
            "role_arn": spec.identity.arn,
            "zip": zip_bytes,
        }

    def deploy(self, spec: ResourceSpec, prior: Optional[PriorInstance]) -> str:
        """Create or update the function and return its ARN."""
        arn, _ = self._ship(spec, prior)
        return arn

    def _ship(self, spec: ResourceSpec, prior: Optional[PriorInstance]) -> Tuple[str, str]:
        """Pack and upload spec; return the ARN and the fingerprint of the shipped bytes."""
        if spec.identity is None:
            raise ValueError(f"No execution role resolved for {spec.name}; call prepare() first")

        artifact = pack(spec.code, self.instance)
        params = self._params(spec, artifact.zip_bytes)

        if prior is None or spec.name != prior.name:
            logger.info(f"Creating Lambda: {spec.name}")
            self._notify("CREATE", {"name": spec.name})
            return self.provider.create(params), artifact.fingerprint

        logger.info(f"Updating Lambda: {spec.name}")
        self._notify("UPDATE", {"name": spec.name})
        self.provider.update_code(params)
        arn = self.provider.update_config(params)
        self.provider.tag(arn, spec.tags)
        return arn, artifact.fingerprint

    def remove(self, name: str) -> None:
        """Delete the function; one that is already gone counts as removed."""
        logger.info(f"Removing Lambda: {name}")
        try:
            self.provider.delete({"name": name})
        except ResourceNotFoundError:
            logger.info(f"Lambda {name} not found, nothing to remove")
        except ProviderCallError as e:
            raise RemovalError(f"Failed to remove Lambda {name}: {e}") from e

    def teardown(self, prior: PriorInstance) -> None:
        """Remove the function and the execution role lambdaform created for it."""
        self.remove(prior.name)
        if prior.identity is not None and prior.identity.managed:
            self.identity_resolver.release(prior.identity)

    def reconcile(self, spec: ResourceSpec, prior: Optional[PriorInstance]) -> ReconcileResult:
        spec = self.prepare(spec, prior)
        decision = self.plan(spec, prior)
        logger.debug(f"Decision for {spec.name}: {decision.value}")

        if decision is Decision.NOOP:
            self._notify("NOOP", {"name": spec.name})
            return ReconcileResult(decision=decision, spec=spec, arn=prior.arn, instance=prior)

        if decision is Decision.REPLACE:
            self._notify("REPLACE", {"from": prior.name, "to": spec.name})
            self.remove(prior.name)
            old_identity = prior.identity
            if old_identity is not None and old_identity.managed and old_identity.name != spec.identity.name:
                self.identity_resolver.release(old_identity)

        arn, fingerprint = self._ship(spec, prior)
        # The code may have changed since the spec was built; record what was uploaded
        spec = replace(spec, fingerprint=fingerprint)
        return ReconcileResult(
            decision=decision,
            spec=spec,
            arn=arn,
            instance=PriorInstance.from_spec(spec, arn),
        )
