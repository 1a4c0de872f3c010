"""
Command-line interface for uptimebolt-mcp

Provides CLI commands for:
- Serving MCP over stdio: uptimebolt-mcp stdio
- Serving MCP over HTTP: uptimebolt-mcp http --port 3100
- Calling a tool once: uptimebolt-mcp call is_safe_to_deploy --args '{"service_name": "api"}'
- Managing configuration: uptimebolt-mcp config --show
"""

import asyncio
import json
import sys
from typing import Optional

import click
import yaml

from . import __version__
from .config import UptimeBoltConfig, get_config, set_config
from .context import ToolContext
from .errors import ConfigurationError
from .http_server import run_http
from .observability import initialize_observability, shutdown_observability
from .server import run_stdio
from .tools import call_tool as call_tool_func
from .tools import registry


@click.group()
@click.version_option(version=__version__, prog_name="uptimebolt-mcp")
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file (default: uptimebolt.yml if present)",
)
def cli(config_file: Optional[str]):
    """uptimebolt-mcp - UptimeBolt monitoring tools over the Model Context Protocol"""
    if config_file:
        set_config(UptimeBoltConfig.load_from_file(config_file))


@cli.command()
def stdio():
    """Serve MCP over stdin/stdout"""
    config = get_config()
    initialize_observability(config)
    try:
        asyncio.run(run_stdio(config))
    except ConfigurationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    finally:
        shutdown_observability()


@cli.command()
@click.option("--host", default=None, help="Bind address (default from configuration)")
@click.option("--port", type=int, default=None, help="Port (default from configuration)")
def http(host: Optional[str], port: Optional[int]):
    """Serve MCP over streamable HTTP"""
    config = get_config()
    initialize_observability(config)
    try:
        run_http(config, host=host, port=port)
    finally:
        shutdown_observability()


@cli.command()
@click.argument("tool_name")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object")
@click.option("--token", default=None, help="Caller API key, sent as bearer token")
def call(tool_name: str, args_json: str, token: Optional[str]):
    """Invoke a single tool and print its text result"""
    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    result = asyncio.run(call_tool_func(tool_name, arguments, ToolContext(auth_token=token)))
    click.echo(result.text)
    if result.is_error:
        sys.exit(1)


@cli.command()
def tools():
    """List available tools"""
    click.echo(f"{len(registry)} tools available:\n")
    for spec in registry.specs():
        click.echo(f"  {spec.name}")
        click.echo(f"    {spec.description}")


@cli.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--format", type=click.Choice(["yaml", "json"]), default="yaml", help="Output format")
def config(show: bool, format: str):
    """Manage uptimebolt-mcp configuration"""
    if show:
        try:
            config_dict = get_config().masked_dump()

            click.echo("Current uptimebolt-mcp Configuration")
            click.echo("=" * 40)

            if format == "yaml":
                click.echo(yaml.dump(config_dict, default_flow_style=False, indent=2))
            elif format == "json":
                click.echo(json.dumps(config_dict, indent=2))

        except Exception as e:
            click.echo(f"Failed to load configuration: {e}", err=True)
            sys.exit(1)
    else:
        click.echo("Use --show to display current configuration")
        click.echo("Available options:")
        click.echo("  --show          Show current configuration")
        click.echo("  --format yaml   Output in YAML format (default)")
        click.echo("  --format json   Output in JSON format")


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
