"""Cognito user pool + identity pool construct.

The Auth construct declares a user pool, a web and a mobile app client, an
identity pool federating both clients, the authenticated/unauthenticated
identity roles and the identity pool role attachment. It can be dropped into
any stack or deployed standalone through ``stacks.auth_stack.AuthStack``.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Mapping, Sequence

from aws_cdk import Stack, Token, aws_cognito as cognito, aws_iam as iam
from constructs import Construct


COGNITO_IDENTITY_PRINCIPAL = "cognito-identity.amazonaws.com"
USER_POOL_NAME_PATTERN = "[a-zA-Z0-9]+"
MIN_PASSWORD_LENGTH_BOUNDS = (6, 64)

_USER_POOL_NAME_RE = re.compile(USER_POOL_NAME_PATTERN)


class ClientKind(enum.Enum):
    WEB = "web"
    MOBILE = "mobile"


class AuthClass(enum.Enum):
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class ClientPolicy:
    construct_id: str
    client_name: str
    generate_secret: bool
    refresh_token_validity: int
    write_attributes: tuple[str, ...] = ()
    explicit_auth_flows: tuple[str, ...] = ()


CLIENT_POLICIES: Mapping[ClientKind, ClientPolicy] = {
    # 1 day is the shortest refresh window Cognito allows.
    ClientKind.WEB: ClientPolicy(
        construct_id="DefaultClient",
        client_name="default",
        generate_secret=False,
        refresh_token_validity=1,
        write_attributes=("email", "phone_number", "given_name", "family_name"),
    ),
    # Native apps can't do the hosted UI redirect, so they sign in with
    # username/password directly.
    ClientKind.MOBILE: ClientPolicy(
        construct_id="MobileAppsClient",
        client_name="mobileapps",
        generate_secret=True,
        refresh_token_validity=365,
        explicit_auth_flows=("USER_PASSWORD_AUTH",),
    ),
}

_ROLE_CONSTRUCT_IDS = {
    AuthClass.AUTHENTICATED: "AuthIdentitiesRole",
    AuthClass.UNAUTHENTICATED: "UnauthIdentitiesRole",
}


@dataclass(frozen=True)
class AuthProps:
    """Inputs of the Auth construct.

    ``min_password_length`` may be a number token (``CfnParameter.value_as_number``); literal
    values are validated eagerly. ``region``/``account_id`` default to the
    enclosing stack's.
    """

    user_pool_name: str
    min_password_length: int = 8
    require_lowercase: bool = True
    require_uppercase: bool = True
    require_numbers: bool = True
    require_symbols: bool = True
    region: str | None = None
    account_id: str | None = None

    def __post_init__(self) -> None:
        name = self.user_pool_name
        if not Token.is_unresolved(name):
            if not isinstance(name, str) or not _USER_POOL_NAME_RE.fullmatch(name):
                raise ValueError(
                    f"user_pool_name must match {USER_POOL_NAME_PATTERN} (got {name!r})"
                )
        length = self.min_password_length
        if not Token.is_unresolved(length):
            lo, hi = MIN_PASSWORD_LENGTH_BOUNDS
            if isinstance(length, bool) or not isinstance(length, (int, float)):
                raise ValueError(f"min_password_length must be a number (got {length!r})")
            if int(length) != length or not lo <= length <= hi:
                raise ValueError(
                    f"min_password_length must be an integer between {lo} and {hi} (got {length!r})"
                )


def build_user_pool(scope: Construct, props: AuthProps) -> cognito.CfnUserPool:
    return cognito.CfnUserPool(
        scope,
        "Users",
        user_pool_name=props.user_pool_name,
        alias_attributes=["email"],
        auto_verified_attributes=["email"],
        policies=cognito.CfnUserPool.PoliciesProperty(
            password_policy=cognito.CfnUserPool.PasswordPolicyProperty(
                minimum_length=props.min_password_length,
                require_lowercase=props.require_lowercase,
                require_uppercase=props.require_uppercase,
                require_numbers=props.require_numbers,
                require_symbols=props.require_symbols,
            )
        ),
        schema=[
            cognito.CfnUserPool.SchemaAttributeProperty(
                attribute_data_type="String", name="email", required=True
            ),
            cognito.CfnUserPool.SchemaAttributeProperty(
                attribute_data_type="String", name="phone_number", required=False
            ),
            cognito.CfnUserPool.SchemaAttributeProperty(
                attribute_data_type="String", name="given_name", required=True
            ),
            cognito.CfnUserPool.SchemaAttributeProperty(
                attribute_data_type="String", name="family_name", required=True
            ),
        ],
    )


def build_client(
    scope: Construct, kind: ClientKind, user_pool_id: str
) -> cognito.CfnUserPoolClient:
    policy = CLIENT_POLICIES[kind]
    return cognito.CfnUserPoolClient(
        scope,
        policy.construct_id,
        user_pool_id=user_pool_id,
        client_name=policy.client_name,
        generate_secret=policy.generate_secret,
        refresh_token_validity=policy.refresh_token_validity,
        write_attributes=list(policy.write_attributes) or None,
        explicit_auth_flows=list(policy.explicit_auth_flows) or None,
    )


def build_identity_pool(
    scope: Construct, name: str, providers: Sequence[tuple[str, str]]
) -> cognito.CfnIdentityPool:
    """Identity pool federating ``providers`` as ``(client_id, provider_name)`` pairs."""
    return cognito.CfnIdentityPool(
        scope,
        "Identities",
        identity_pool_name=name,
        allow_unauthenticated_identities=True,
        cognito_identity_providers=[
            cognito.CfnIdentityPool.CognitoIdentityProviderProperty(
                client_id=client_id,
                provider_name=provider_name,
            )
            for client_id, provider_name in providers
        ],
    )


def identity_pool_trust_conditions(identity_pool_id: str, auth_class: AuthClass) -> dict:
    if auth_class is AuthClass.UNAUTHENTICATED:
        return {}
    return {
        "StringEquals": {
            f"{COGNITO_IDENTITY_PRINCIPAL}:aud": identity_pool_id,
        },
        "ForAnyValue:StringLike": {
            f"{COGNITO_IDENTITY_PRINCIPAL}:amr": "authenticated",
        },
    }


def identity_pool_arn(region: str, account_id: str, identity_pool_id: str) -> str:
    return f"arn:aws:cognito-identity:{region}:{account_id}:identitypool/{identity_pool_id}"


def build_identity_role(
    scope: Construct,
    auth_class: AuthClass,
    identity_pool_id: str,
    pool_arn: str,
) -> iam.Role:
    return iam.Role(
        scope,
        _ROLE_CONSTRUCT_IDS[auth_class],
        assumed_by=iam.FederatedPrincipal(
            COGNITO_IDENTITY_PRINCIPAL,
            identity_pool_trust_conditions(identity_pool_id, auth_class),
            "sts:AssumeRoleWithWebIdentity",
        ),
        inline_policies={
            "MobileAnalytics": iam.PolicyDocument(
                statements=[
                    iam.PolicyStatement(
                        actions=["mobileanalytics:PutEvents"],
                        resources=[pool_arn],
                    )
                ]
            )
        },
    )


def build_role_attachment(
    scope: Construct,
    identity_pool_id: str,
    roles: Mapping[AuthClass, str],
) -> cognito.CfnIdentityPoolRoleAttachment:
    missing = [c.value for c in AuthClass if c not in roles]
    if missing:
        raise ValueError(f"role attachment is missing roles for: {', '.join(missing)}")
    # Per-client token role mappings are intentionally not declared.
    return cognito.CfnIdentityPoolRoleAttachment(
        scope,
        "IdentitiesRoleAttachments",
        identity_pool_id=identity_pool_id,
        roles={c.value: roles[c] for c in AuthClass},
    )


class Auth(Construct):
    def __init__(self, scope: Construct, construct_id: str, props: AuthProps) -> None:
        super().__init__(scope, construct_id)

        stack = Stack.of(self)
        region = props.region or stack.region
        account_id = props.account_id or stack.account

        self.user_pool = build_user_pool(self, props)

        self.user_pool_client = build_client(self, ClientKind.WEB, self.user_pool.ref)
        self.user_pool_mobile_client = build_client(
            self, ClientKind.MOBILE, self.user_pool.ref
        )

        provider_name = self.user_pool.attr_provider_name
        self.identity_pool = build_identity_pool(
            self,
            props.user_pool_name,
            [
                (self.user_pool_client.ref, provider_name),
                (self.user_pool_mobile_client.ref, provider_name),
            ],
        )

        self.identity_pool_arn = identity_pool_arn(
            region, account_id, self.identity_pool.ref
        )

        self.identity_pool_unauth_role = build_identity_role(
            self,
            AuthClass.UNAUTHENTICATED,
            self.identity_pool.ref,
            self.identity_pool_arn,
        )
        self.identity_pool_auth_role = build_identity_role(
            self,
            AuthClass.AUTHENTICATED,
            self.identity_pool.ref,
            self.identity_pool_arn,
        )

        self.identity_pool_role_attachments = build_role_attachment(
            self,
            self.identity_pool.ref,
            {
                AuthClass.AUTHENTICATED: self.identity_pool_auth_role.role_arn,
                AuthClass.UNAUTHENTICATED: self.identity_pool_unauth_role.role_arn,
            },
        )
