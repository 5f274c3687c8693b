from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Any

import boto3
import typer
from botocore.exceptions import BotoCoreError, ClientError

from stacks.auth_stack import OUTPUT_KEYS


class AuthCliError(Exception):
    pass


class UsageError(AuthCliError):
    pass


class OpError(AuthCliError):
    pass


COGNITO_AUTH_STACK = "COGNITO_AUTH_STACK"
DEFAULT_STACK_NAME = "CdkModulesAuthStandalone"

# CDK and CloudFormation both reject stack names outside this pattern.
STACK_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9-]*")


@dataclass(frozen=True)
class CliSettings:
    stack: str
    pretty: bool
    quiet: bool


def validate_stack_name(name: str) -> str:
    name = (name or "").strip()
    if not STACK_NAME_RE.fullmatch(name):
        raise UsageError(
            f"invalid stack name {name!r}: must start with a letter and contain only letters, digits and '-'"
        )
    return name


def resolve_stack_name(explicit: str | None, fallback: str | None = None) -> str:
    """Pick the stack name from the flag, then ``fallback``, then the env, then the default."""
    for candidate in (explicit, fallback, os.environ.get(COGNITO_AUTH_STACK)):
        if candidate and candidate.strip():
            return validate_stack_name(candidate)
    return DEFAULT_STACK_NAME


def aws_session(*, profile: str | None, region: str | None) -> Any:
    profile = (profile or os.environ.get("AWS_PROFILE") or "").strip()
    region = (
        region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or ""
    ).strip()
    if not profile:
        raise UsageError("missing AWS_PROFILE (set env or pass --profile)")
    if not region:
        raise UsageError("missing AWS_REGION (set env or pass --region)")
    try:
        return boto3.session.Session(profile_name=profile, region_name=region)
    except BotoCoreError as e:
        raise UsageError(f"cannot open AWS session for profile {profile!r}: {e}") from e


def deployed_auth_outputs(session: Any, *, stack: str) -> dict[str, str]:
    """Return the auth stack outputs of a deployed stack, keyed by ``OUTPUT_KEYS``."""
    cf = session.client("cloudformation")
    try:
        resp = cf.describe_stacks(StackName=stack)
    except ClientError as e:
        message = str(e.response.get("Error", {}).get("Message") or e)
        if "does not exist" in message:
            raise OpError(f"stack not found: {stack}") from e
        raise OpError(f"describe-stacks failed for stack {stack!r}: {message}") from e
    except BotoCoreError as e:
        raise OpError(f"describe-stacks failed for stack {stack!r}: {e}") from e

    described = resp.get("Stacks") or []
    if not described:
        raise OpError(f"stack not found: {stack}")
    published = {
        o.get("OutputKey"): o.get("OutputValue", "")
        for o in described[0].get("Outputs") or []
        if isinstance(o, dict)
    }
    missing = [k for k in OUTPUT_KEYS if k not in published]
    if missing:
        raise OpError(
            f"stack {stack!r} is missing auth output(s): {', '.join(missing)}"
        )
    return {k: published[k] for k in OUTPUT_KEYS}


def emit_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        typer.echo(json.dumps(obj, indent=2, sort_keys=True))
    else:
        typer.echo(json.dumps(obj, separators=(",", ":"), sort_keys=True))
