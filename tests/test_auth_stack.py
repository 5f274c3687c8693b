import sys
from pathlib import Path

from aws_cdk import App, Environment
from aws_cdk import assertions

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stacks.auth_stack import OUTPUT_KEYS, AuthStack


def _synth_template(**kwargs) -> dict:
    app = App()
    stack = AuthStack(app, "AuthStackTestStack", **kwargs)
    return assertions.Template.from_stack(stack).to_json()


def _find_resource_with_id(template: dict, resource_type: str, logical_id_contains: str) -> tuple[str, dict]:
    for logical_id, resource in template["Resources"].items():
        if (
            resource.get("Type") == resource_type
            and logical_id_contains in logical_id
        ):
            return logical_id, resource
    raise AssertionError(f"{resource_type} containing {logical_id_contains} not found")


def test_user_pool_name_parameter_is_pattern_constrained():
    template = _synth_template()
    param = template["Parameters"]["UserPoolName"]

    assert param["Type"] == "String"
    assert param["Default"] == "MyUsers"
    assert param["AllowedPattern"] == "[a-zA-Z0-9]+"
    assert param["ConstraintDescription"]
    assert param["Description"]


def test_min_password_length_parameter_is_bounded():
    template = _synth_template()
    param = template["Parameters"]["MinPasswordLength"]

    assert param["Type"] == "Number"
    assert param["Default"] == 8
    assert param["MinValue"] == 6
    assert param["MaxValue"] == 64
    assert param["ConstraintDescription"]


def test_parameters_flow_into_user_pool_and_identity_pool():
    template = _synth_template()
    _, pool = _find_resource_with_id(template, "AWS::Cognito::UserPool", "Users")
    _, identity_pool = _find_resource_with_id(template, "AWS::Cognito::IdentityPool", "Identities")
    props = pool["Properties"]

    assert props["UserPoolName"] == {"Ref": "UserPoolName"}
    assert props["Policies"]["PasswordPolicy"] == {
        "MinimumLength": {"Ref": "MinPasswordLength"},
        "RequireLowercase": True,
        "RequireUppercase": True,
        "RequireNumbers": True,
        "RequireSymbols": True,
    }
    assert identity_pool["Properties"]["IdentityPoolName"] == {"Ref": "UserPoolName"}


def test_outputs_are_published_without_exports():
    template = _synth_template()
    outputs = template["Outputs"]

    assert set(outputs) == set(OUTPUT_KEYS)
    assert all("Export" not in output for output in outputs.values())


def test_outputs_reference_generated_identifiers():
    template = _synth_template()
    outputs = template["Outputs"]
    pool_id, _ = _find_resource_with_id(template, "AWS::Cognito::UserPool", "Users")
    client_id, _ = _find_resource_with_id(template, "AWS::Cognito::UserPoolClient", "DefaultClient")
    identity_pool_id, _ = _find_resource_with_id(template, "AWS::Cognito::IdentityPool", "Identities")

    assert outputs["AwsAccountId"]["Value"] == {"Ref": "AWS::AccountId"}
    assert outputs["AwsRegion"]["Value"] == {"Ref": "AWS::Region"}
    assert outputs["UserPoolId"]["Value"] == {"Ref": pool_id}
    assert outputs["UserPoolClientId"]["Value"] == {"Ref": client_id}
    assert outputs["IdentityPoolId"]["Value"] == {"Ref": identity_pool_id}


def test_explicit_environment_is_passed_to_construct():
    template = _synth_template(
        env=Environment(account="123456789012", region="us-east-2")
    )
    outputs = template["Outputs"]
    _, role = _find_resource_with_id(template, "AWS::IAM::Role", "UnauthIdentitiesRole")
    resource = role["Properties"]["Policies"][0]["PolicyDocument"]["Statement"][0]["Resource"]

    assert outputs["AwsAccountId"]["Value"] == "123456789012"
    assert outputs["AwsRegion"]["Value"] == "us-east-2"
    assert resource["Fn::Join"][1][0] == "arn:aws:cognito-identity:us-east-2:123456789012:identitypool/"


def test_stack_synthesizes_full_auth_backend():
    template = assertions.Template.from_stack(AuthStack(App(), "AuthStackCountStack"))

    template.resource_count_is("AWS::Cognito::UserPool", 1)
    template.resource_count_is("AWS::Cognito::UserPoolClient", 2)
    template.resource_count_is("AWS::Cognito::IdentityPool", 1)
    template.resource_count_is("AWS::IAM::Role", 2)
    template.resource_count_is("AWS::IAM::Policy", 0)
    template.resource_count_is("AWS::Cognito::IdentityPoolRoleAttachment", 1)
    template.has_resource_properties(
        "AWS::Cognito::IdentityPool",
        {"AllowUnauthenticatedIdentities": True},
    )
