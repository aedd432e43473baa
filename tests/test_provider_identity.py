"""
Tests for the boto3-backed Lambda provider and IAM role constructor.
"""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import ClientError

from lambdaform.errors import IdentityResolutionError, ProviderCallError, ResourceNotFoundError
from lambdaform.function import IamRoleConstructor, IdentityReference, LambdaProvider, RoleResolver
from lambdaform.function.provider import is_not_found

FN_ARN = "arn:aws:lambda:us-west-2:123:function:fn-a"


def client_error(code, message="", operation="Op"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def make_params(**kw):
    params = {
        "name": "fn-a",
        "description": "demo",
        "handler": "index.handler",
        "memory_size": 512,
        "timeout": 30,
        "runtime": "nodejs20.x",
        "environment": {"STAGE": "dev"},
        "tags": {"team": "core"},
        "role_arn": "arn:aws:iam::123:role/r",
        "zip": b"PK\x03\x04",
    }
    params.update(kw)
    return params


class TestLambdaProvider:
    """Lambda API mapping and error translation."""

    def test_create_maps_params(self):
        client = Mock()
        client.create_function.return_value = {"FunctionArn": FN_ARN}

        arn = LambdaProvider(client=client).create(make_params())

        assert arn == FN_ARN
        kwargs = client.create_function.call_args.kwargs
        assert kwargs["FunctionName"] == "fn-a"
        assert kwargs["Code"] == {"ZipFile": b"PK\x03\x04"}
        assert kwargs["Publish"] is True
        assert kwargs["Role"] == "arn:aws:iam::123:role/r"
        assert kwargs["Environment"] == {"Variables": {"STAGE": "dev"}}
        assert kwargs["Tags"] == {"team": "core"}

    def test_create_failure_raises_provider_error(self):
        client = Mock()
        client.create_function.side_effect = client_error("InvalidParameterValueException", "bad role")

        with pytest.raises(ProviderCallError) as exc:
            LambdaProvider(client=client).create(make_params())
        assert exc.value.code == "InvalidParameterValueException"
        assert "bad role" in str(exc.value)

    def test_update_code_waits_before_config(self):
        client = Mock()
        client.update_function_configuration.return_value = {"FunctionArn": FN_ARN}
        provider = LambdaProvider(client=client)

        provider.update_code(make_params())
        arn = provider.update_config(make_params(memory_size=1024))

        assert arn == FN_ARN
        client.update_function_code.assert_called_once_with(FunctionName="fn-a", ZipFile=b"PK\x03\x04", Publish=True)
        client.get_waiter.assert_called_once_with("function_updated")
        client.get_waiter.return_value.wait.assert_called_once_with(FunctionName="fn-a")
        assert client.update_function_configuration.call_args.kwargs["MemorySize"] == 1024

    def test_delete_not_found_is_distinguishable(self):
        client = Mock()
        client.delete_function.side_effect = client_error("ResourceNotFoundException", "Function not found: fn-a")

        with pytest.raises(ResourceNotFoundError):
            LambdaProvider(client=client).delete({"name": "fn-a"})

    def test_is_not_found_by_message(self):
        assert is_not_found(client_error("SomethingElse", "Function not found: arn"))
        assert not is_not_found(client_error("AccessDeniedException", "nope"))

    def test_tag_skips_empty(self):
        client = Mock()
        provider = LambdaProvider(client=client)
        provider.tag(FN_ARN, {})
        client.tag_resource.assert_not_called()
        provider.tag(FN_ARN, {"a": "b"})
        client.tag_resource.assert_called_once_with(Resource=FN_ARN, Tags={"a": "b"})

    @patch("lambdaform.function.provider.boto3")
    def test_default_client_uses_region(self, mock_boto3):
        LambdaProvider(region="eu-west-1")
        mock_boto3.client.assert_called_once_with("lambda", region_name="eu-west-1")


class TestIamRoleConstructor:
    """Role creation and teardown."""

    def test_construct_creates_role_with_trust_policy(self):
        client = Mock()
        client.create_role.return_value = {"Role": {"Arn": "arn:aws:iam::123:role/fn-a-execution-role"}}

        ref = IamRoleConstructor(client=client, propagation_delay=0).construct(
            "role", {"role_name": "fn-a-execution-role", "service": "lambda.amazonaws.com"}
        )

        assert ref == IdentityReference(
            name="fn-a-execution-role", arn="arn:aws:iam::123:role/fn-a-execution-role", managed=True
        )
        doc = json.loads(client.create_role.call_args.kwargs["AssumeRolePolicyDocument"])
        assert doc["Statement"][0]["Principal"] == {"Service": "lambda.amazonaws.com"}
        client.attach_role_policy.assert_called_once()

    def test_construct_reuses_existing_role(self):
        client = Mock()
        client.create_role.side_effect = client_error("EntityAlreadyExists")
        client.get_role.return_value = {"Role": {"Arn": "arn:aws:iam::123:role/existing"}}

        ref = IamRoleConstructor(client=client, propagation_delay=0).construct("role", {"role_name": "existing"})

        assert ref.arn == "arn:aws:iam::123:role/existing"
        client.get_role.assert_called_once_with(RoleName="existing")

    def test_construct_failure_raises_identity_error(self):
        client = Mock()
        client.create_role.side_effect = client_error("AccessDenied", "not allowed")

        with pytest.raises(IdentityResolutionError, match="not allowed"):
            IamRoleConstructor(client=client, propagation_delay=0).construct("role", {"role_name": "r"})

    def test_construct_rejects_unknown_kind(self):
        with pytest.raises(IdentityResolutionError):
            IamRoleConstructor(client=Mock(), propagation_delay=0).construct("user", {"role_name": "r"})

    def test_destruct_detaches_then_deletes(self):
        client = MagicMock()
        client.list_attached_role_policies.return_value = {"AttachedPolicies": [{"PolicyArn": "arn:p"}]}

        IamRoleConstructor(client=client).destruct(IdentityReference(name="r", arn="arn:r", managed=True))

        client.detach_role_policy.assert_called_once_with(RoleName="r", PolicyArn="arn:p")
        client.delete_role.assert_called_once_with(RoleName="r")

    def test_destruct_missing_role_is_ok(self):
        client = Mock()
        client.list_attached_role_policies.side_effect = client_error("NoSuchEntity")
        IamRoleConstructor(client=client).destruct(IdentityReference(name="r", arn="arn:r"))
        client.delete_role.assert_not_called()


def test_role_resolver_uses_template():
    constructor = Mock()
    RoleResolver(constructor).resolve_identity("fn-a", "lambda.amazonaws.com")
    constructor.construct.assert_called_once_with(
        "role", {"role_name": "fn-a-execution-role", "service": "lambda.amazonaws.com"}
    )
