"""
Thin wrapper around the boto3 Lambda client.

Translates botocore ClientError into ProviderCallError so the reconciler
never has to look at provider-specific error payloads.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from ..errors import ProviderCallError, ResourceNotFoundError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"ResourceNotFoundException"}


def is_not_found(error: ClientError) -> bool:
    """True if a ClientError means the function does not exist."""
    err = error.response.get("Error", {})
    return err.get("Code") in NOT_FOUND_CODES or "Function not found" in err.get("Message", "")


def _translate(operation: str, error: Exception) -> ProviderCallError:
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        code = err.get("Code")
        message = err.get("Message") or str(error)
        if is_not_found(error):
            return ResourceNotFoundError(operation, message, code)
        return ProviderCallError(operation, message, code)
    return ProviderCallError(operation, str(error))


class LambdaProvider:
    """Create/update/delete calls against AWS Lambda."""

    def __init__(self, client: Any = None, region: Optional[str] = None, wait_for_updates: bool = True):
        self.client = client or boto3.client("lambda", region_name=region)
        self.wait_for_updates = wait_for_updates

    def create(self, params: Dict[str, Any]) -> str:
        request = {
            "FunctionName": params["name"],
            "Code": {"ZipFile": params["zip"]},
            "Description": params.get("description", ""),
            "Handler": params["handler"],
            "MemorySize": params["memory_size"],
            "Publish": True,
            "Role": params["role_arn"],
            "Runtime": params["runtime"],
            "Timeout": params["timeout"],
            "Environment": {"Variables": dict(params.get("environment") or {})},
        }
        if params.get("tags"):
            request["Tags"] = dict(params["tags"])

        try:
            res = self.client.create_function(**request)
        except (ClientError, BotoCoreError) as e:
            raise _translate("CreateFunction", e) from e
        return res["FunctionArn"]

    def update_code(self, params: Dict[str, Any]) -> None:
        try:
            self.client.update_function_code(
                FunctionName=params["name"],
                ZipFile=params["zip"],
                Publish=True,
            )
            if self.wait_for_updates:
                # Configuration updates are rejected while the code update is in progress
                self.client.get_waiter("function_updated").wait(FunctionName=params["name"])
        except (ClientError, BotoCoreError, WaiterError) as e:
            raise _translate("UpdateFunctionCode", e) from e

    def update_config(self, params: Dict[str, Any]) -> str:
        try:
            res = self.client.update_function_configuration(
                FunctionName=params["name"],
                Description=params.get("description", ""),
                Handler=params["handler"],
                MemorySize=params["memory_size"],
                Role=params["role_arn"],
                Runtime=params["runtime"],
                Timeout=params["timeout"],
                Environment={"Variables": dict(params.get("environment") or {})},
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate("UpdateFunctionConfiguration", e) from e
        return res["FunctionArn"]

    def tag(self, arn: str, tags: Dict[str, str]) -> None:
        if not tags:
            return
        try:
            self.client.tag_resource(Resource=arn, Tags=dict(tags))
        except (ClientError, BotoCoreError) as e:
            raise _translate("TagResource", e) from e

    def delete(self, params: Dict[str, Any]) -> None:
        try:
            self.client.delete_function(FunctionName=params["name"])
        except (ClientError, BotoCoreError) as e:
            raise _translate("DeleteFunction", e) from e
