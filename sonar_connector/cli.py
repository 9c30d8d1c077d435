"""CLI entry point — command definitions using Click.

Commands:
    init          Generate a template config file
    resources     All projects, each followed by its modules
    issues        All unresolved issues of a project or module
    rule          One rule definition
"""

import dataclasses
import json
import logging
import sys
from typing import Any

import click

from sonar_connector import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _make_server(ctx: click.Context):
    """Load config and return a ready SonarServer. Exits on error."""
    from sonar_connector.config import ConfigError, load
    from sonar_connector.server import SonarServer

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    logging.getLogger(__name__).debug("Connecting to %s", config.url)
    return config, SonarServer.create(config.server_config(), config.proxy_provider())


def _progress(ctx: click.Context):
    from sonar_connector.progress import EchoProgress, NullProgress

    return EchoProgress() if ctx.obj["verbose"] else NullProgress()


def _to_json(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False, default=_to_json)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_client_errors(func):
    """Decorator that catches SonarClient exceptions and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from sonar_connector.client import (
            AuthenticationError,
            NetworkError,
            NotFoundError,
            SonarClientError,
        )

        try:
            return func(*args, **kwargs)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except SonarClientError as exc:
            click.echo(f"SonarQube error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="sonar-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging and progress output.")
@click.version_option(__version__, prog_name="sonar-connector")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """SonarQube connector: list resources, download issues and rules as JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="sonar-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template sonar-config.yaml file."""
    from sonar_connector.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your server URL, username and resource aliases.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# resources
# ---------------------------------------------------------------------------

@cli.command("resources")
@click.pass_context
@_handle_client_errors
def resources_command(ctx: click.Context) -> None:
    """All projects, each followed by its modules, sorted by name."""
    _, server = _make_server(ctx)
    resources = server.get_all_projects_and_modules(_progress(ctx))
    _emit_json(resources, ctx)


# ---------------------------------------------------------------------------
# issues
# ---------------------------------------------------------------------------

@cli.command("issues")
@click.argument("resource")
@click.pass_context
@_handle_client_errors
def issues_command(ctx: click.Context, resource: str) -> None:
    """All unresolved issues of RESOURCE (an alias or a resource key)."""
    from sonar_connector.queries.issues import build_issue_report

    config, server = _make_server(ctx)
    resource_key = config.resolve_resource(resource)
    issues = server.get_all_issues_for(resource_key, _progress(ctx))
    _emit_json(build_issue_report(resource_key, issues), ctx)


# ---------------------------------------------------------------------------
# rule
# ---------------------------------------------------------------------------

@cli.command("rule")
@click.argument("key")
@click.pass_context
@_handle_client_errors
def rule_command(ctx: click.Context, key: str) -> None:
    """The definition of rule KEY (e.g. java:S1234)."""
    _, server = _make_server(ctx)
    _emit_json(server.get_rule(key), ctx)
