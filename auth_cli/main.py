from __future__ import annotations

import sys

import aws_cdk as cdk
import click
import typer
from rich.console import Console
from rich.markup import escape

from stacks.auth_stack import AuthStack

from . import __version__
from .cli_shared import (
    COGNITO_AUTH_STACK,
    CliSettings,
    OpError,
    UsageError,
    aws_session,
    deployed_auth_outputs,
    emit_json,
    resolve_stack_name,
    validate_stack_name,
)


_ERROR_CONSOLE = Console(stderr=True)


def _click_error_types() -> tuple[type[Exception], ...]:
    # Typer may bundle its own copy of click; accept either ClickException.
    types = {click.ClickException}
    types.update(c for c in typer.BadParameter.__mro__ if c.__name__ == "ClickException")
    return tuple(types)


_CLICK_ERRORS = _click_error_types()

app = typer.Typer(
    name="cognito-auth",
    help="Synthesize the Cognito auth stack and inspect deployed outputs.",
    no_args_is_help=True,
    add_completion=False,
)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", highlight=False)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cognito-auth {__version__}")
        raise typer.Exit(code=0)


def _settings(ctx: typer.Context) -> CliSettings:
    if isinstance(ctx.obj, CliSettings):
        return ctx.obj
    return CliSettings(stack=resolve_stack_name(None), pretty=False, quiet=False)


@app.callback()
def app_callback(
    ctx: typer.Context,
    stack: str | None = typer.Option(
        None,
        "--stack",
        help=f"Stack name (env override: {COGNITO_AUTH_STACK})",
    ),
    pretty: bool = typer.Option(False, "--pretty", help="Emit indented JSON output"),
    quiet: bool = typer.Option(False, "--quiet", help="Reduce stderr logging"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version
    ctx.obj = CliSettings(stack=resolve_stack_name(stack), pretty=pretty, quiet=quiet)


def synth_template(stack_name: str) -> dict:
    stack_name = validate_stack_name(stack_name)
    cdk_app = cdk.App()
    stack = AuthStack(cdk_app, stack_name)
    return cdk_app.synth().get_stack_by_name(stack.stack_name).template


@app.command("synth", help="Print the CloudFormation template of the auth stack.")
def synth(
    ctx: typer.Context,
    stack_name: str | None = typer.Option(None, "--stack-name", help="Stack name to synthesize"),
    pretty: bool = typer.Option(False, "--pretty", help="Emit indented JSON output"),
) -> None:
    settings = _settings(ctx)
    name = resolve_stack_name(stack_name, settings.stack)
    template = synth_template(name)
    if not settings.quiet:
        typer.echo(f"synthesized {name}: {len(template.get('Resources') or {})} resources", err=True)
    emit_json(template, pretty=pretty or settings.pretty)


@app.command("outputs", help="Print the outputs of a deployed auth stack.")
def outputs(
    ctx: typer.Context,
    stack: str | None = typer.Option(None, "--stack", help="Deployed stack name"),
    profile: str | None = typer.Option(None, "--profile", help="AWS profile (env: AWS_PROFILE)"),
    region: str | None = typer.Option(None, "--region", help="AWS region (env: AWS_REGION)"),
    pretty: bool = typer.Option(False, "--pretty", help="Emit indented JSON output"),
) -> None:
    settings = _settings(ctx)
    name = resolve_stack_name(stack, settings.stack)
    session = aws_session(profile=profile, region=region)
    emit_json(deployed_auth_outputs(session, stack=name), pretty=pretty or settings.pretty)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        result = app(args=argv, prog_name="cognito-auth", standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except _CLICK_ERRORS as e:
        _rich_error(e.format_message())
        return int(e.exit_code)
    except UsageError as e:
        _rich_error(str(e))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
