from aws_cdk import CfnOutput, CfnParameter, Stack
from constructs import Construct

from stacks.auth import (
    MIN_PASSWORD_LENGTH_BOUNDS,
    USER_POOL_NAME_PATTERN,
    Auth,
    AuthProps,
)


OUTPUT_KEYS = (
    "AwsAccountId",
    "AwsRegion",
    "UserPoolId",
    "UserPoolClientId",
    "IdentityPoolId",
)


class AuthStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        user_pool_name = CfnParameter(
            self,
            "UserPoolName",
            type="String",
            default="MyUsers",
            allowed_pattern=USER_POOL_NAME_PATTERN,
            description="Name of your pools. This will apply to both your User Pool and Identity Pool's names",
            constraint_description="The user pool name can only include characters and digits",
        )

        min_length, max_length = MIN_PASSWORD_LENGTH_BOUNDS
        min_password_length = CfnParameter(
            self,
            "MinPasswordLength",
            type="Number",
            default=8,
            min_value=min_length,
            max_value=max_length,
            description="Minimum password length to enforce your users to set.",
            constraint_description=f"Value must be between {min_length} and {max_length}",
        )

        self.auth = Auth(
            self,
            "AuthConstruct",
            AuthProps(
                user_pool_name=user_pool_name.value_as_string,
                min_password_length=min_password_length.value_as_number,
                require_lowercase=True,
                require_uppercase=True,
                require_numbers=True,
                require_symbols=True,
                region=self.region,
                account_id=self.account,
            ),
        )

        # Outputs are informational only; no cross-stack exports.
        CfnOutput(self, "AwsAccountId", value=self.account)
        CfnOutput(self, "AwsRegion", value=self.region)
        CfnOutput(
            self,
            "UserPoolId",
            value=self.auth.user_pool.ref,
        )
        CfnOutput(
            self,
            "UserPoolClientId",
            value=self.auth.user_pool_client.ref,
        )
        CfnOutput(
            self,
            "IdentityPoolId",
            value=self.auth.identity_pool.ref,
        )
