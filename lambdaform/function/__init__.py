"""
Lambda function reconciliation: models, change detection, provider calls.
"""

from .changes import decide, has_config_changed, has_identity_changed, normalized_config
from .identity import IamRoleConstructor, RoleResolver, execution_role_name
from .inputs import EnvRef, resolve, spec_from_inputs
from .models import (
    Decision,
    IdentityReference,
    PriorInstance,
    ReconcileResult,
    ResourceSpec,
)
from .provider import LambdaProvider
from .reconciler import Reconciler

__all__ = [
    "decide",
    "has_config_changed",
    "has_identity_changed",
    "normalized_config",
    "IamRoleConstructor",
    "RoleResolver",
    "execution_role_name",
    "EnvRef",
    "resolve",
    "spec_from_inputs",
    "Decision",
    "IdentityReference",
    "PriorInstance",
    "ReconcileResult",
    "ResourceSpec",
    "LambdaProvider",
    "Reconciler",
]
