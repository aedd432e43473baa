"""
Execution role construction.

RoleResolver synthesizes the role template for a function that does not
declare one; IamRoleConstructor creates (or looks up) the role in IAM.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import IdentityResolutionError
from .models import DEFAULT_SERVICE_TOKEN, IdentityReference

logger = logging.getLogger(__name__)

BASIC_EXECUTION_POLICY = "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"


def execution_role_name(resource_name: str) -> str:
    return f"{resource_name}-execution-role"


def trust_policy(service: str) -> Dict[str, Any]:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": service},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


class IamRoleConstructor:
    """Creates and deletes IAM roles for functions."""

    def __init__(self, client: Any = None, region: Optional[str] = None, propagation_delay: float = 10.0):
        self.client = client or boto3.client("iam", region_name=region)
        # New roles are not assumable by Lambda until IAM has propagated them
        self.propagation_delay = propagation_delay

    def construct(self, kind: str, params: Dict[str, Any]) -> IdentityReference:
        if kind != "role":
            raise IdentityResolutionError(f"Unsupported identity kind: {kind}")

        role_name = params["role_name"]
        service = params.get("service", DEFAULT_SERVICE_TOKEN)
        policy_arn = params.get("policy_arn", BASIC_EXECUTION_POLICY)

        try:
            res = self.client.create_role(
                RoleName=role_name,
                AssumeRolePolicyDocument=json.dumps(trust_policy(service)),
                Description=f"Execution role for {service}",
            )
            created = True
        except ClientError as e:
            if _error_code(e) != "EntityAlreadyExists":
                raise IdentityResolutionError(f"Failed to create role {role_name}: {e}") from e
            logger.info(f"Role {role_name} already exists, reusing it")
            try:
                res = self.client.get_role(RoleName=role_name)
            except (ClientError, BotoCoreError) as ge:
                raise IdentityResolutionError(f"Failed to read role {role_name}: {ge}") from ge
            created = False
        except BotoCoreError as e:
            raise IdentityResolutionError(f"Failed to create role {role_name}: {e}") from e

        try:
            self.client.attach_role_policy(RoleName=role_name, PolicyArn=policy_arn)
        except (ClientError, BotoCoreError) as e:
            raise IdentityResolutionError(f"Failed to attach {policy_arn} to {role_name}: {e}") from e

        if created and self.propagation_delay:
            logger.info(f"Waiting {self.propagation_delay:.0f}s for role {role_name} to propagate")
            time.sleep(self.propagation_delay)

        return IdentityReference(name=role_name, arn=res["Role"]["Arn"], managed=True)

    def destruct(self, identity: IdentityReference) -> None:
        """Delete a role, detaching its managed policies first. A missing role is not an error."""
        try:
            attached = self.client.list_attached_role_policies(RoleName=identity.name)
            for policy in attached.get("AttachedPolicies", []):
                self.client.detach_role_policy(RoleName=identity.name, PolicyArn=policy["PolicyArn"])
            self.client.delete_role(RoleName=identity.name)
        except ClientError as e:
            if _error_code(e) == "NoSuchEntity":
                logger.info(f"Role {identity.name} already gone")
                return
            raise IdentityResolutionError(f"Failed to delete role {identity.name}: {e}") from e
        except BotoCoreError as e:
            raise IdentityResolutionError(f"Failed to delete role {identity.name}: {e}") from e


class RoleResolver:
    """Builds the default execution role for a function that declares none."""

    def __init__(self, constructor: Any):
        self.constructor = constructor

    def resolve_identity(self, resource_name: str, service_token: str = DEFAULT_SERVICE_TOKEN) -> IdentityReference:
        return self.constructor.construct(
            "role",
            {
                "role_name": execution_role_name(resource_name),
                "service": service_token,
            },
        )

    def release(self, identity: IdentityReference) -> None:
        self.constructor.destruct(identity)
