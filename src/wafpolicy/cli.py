"""Command-line interface for wafpolicy."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from wafpolicy import __version__
from wafpolicy.utils.logging import configure_logging, get_logger

if TYPE_CHECKING:
    from wafpolicy.waf.rules import CompiledPolicy, ResolvedRule


app = typer.Typer(
    name="wafpolicy",
    help="Compile AWS WAFv2 web ACL policies from rate limit, geo block, IP set and managed rule declarations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

console = Console()
logger = get_logger(__name__)

OUTPUT_FORMATS = ("table", "json", "terraform")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"wafpolicy version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """wafpolicy - compile collision-free WAF web ACL policies."""
    log_level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    configure_logging(level=log_level)


def _handle_cli_error(error: Exception) -> None:
    """Handle exceptions and display user-friendly error messages.

    Args:
        error: The exception to handle.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    from wafpolicy.errors import WafPolicyError

    if isinstance(error, WafPolicyError):
        console.print(f"[bold red]Error:[/bold red] {error.message}")
        if error.hint:
            console.print(f"[yellow]Hint:[/yellow] {error.hint}")
    else:
        console.print(f"[red]Error: {error}[/red]")
        logger.exception("Command failed")

    raise typer.Exit(code=1)


def _action_label(rule: ResolvedRule) -> str:
    if rule.action is not None:
        return rule.action.value
    return f"override: {rule.override_action.value}"


def _print_policy_table(policy: CompiledPolicy) -> None:
    """Display a compiled policy as a table."""
    table = Table(title=f"Web ACL {policy.name}")
    table.add_column("Priority", style="cyan", justify="right")
    table.add_column("Rule", style="green")
    table.add_column("Statement", style="yellow")
    table.add_column("Action", style="red")

    for rule in policy.rules:
        table.add_row(
            str(rule.priority),
            rule.name,
            type(rule.statement).__name__,
            _action_label(rule),
        )

    console.print(f"Scope: {policy.scope.value}")
    console.print(f"Default action: {policy.default_action.value}")
    console.print(table)
    console.print(f"\nTotal: {len(policy.rules)} rules")


@app.command("compile")
def compile_command(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to policy configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    region: Annotated[
        str | None,
        typer.Option(
            "--region",
            "-r",
            help="Target region (overrides the configuration file).",
        ),
    ] = None,
    scope: Annotated[
        str | None,
        typer.Option(
            "--scope",
            help="Explicit scope (CLOUDFRONT, REGIONAL).",
        ),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format (table, json, terraform). Defaults to the configured output format, else table.",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write generated files to this directory. Defaults to the configured output directory.",
        ),
    ] = None,
) -> None:
    """Compile a policy configuration into an ordered web ACL."""
    from wafpolicy.config import load_config
    from wafpolicy.core.models import PolicyScope
    from wafpolicy.waf.compiler import compile_policy
    from wafpolicy.waf.providers.aws import AwsWafProvider

    if output_format is not None:
        output_format = output_format.lower()
        if output_format not in OUTPUT_FORMATS:
            console.print(f"[red]Unsupported format: {output_format}[/red]")
            raise typer.Exit(code=1)

    try:
        scope_override = PolicyScope(scope.upper()) if scope else None
    except ValueError:
        console.print(f"[red]Invalid scope: {scope}[/red]")
        raise typer.Exit(code=1)

    try:
        policy_config = load_config(config)

        # The output section only applies when the file declares one.
        configured_output = (
            policy_config.output if "output" in policy_config.model_fields_set else None
        )
        if output_format is None:
            output_format = configured_output.format if configured_output else "table"
        if output is None and configured_output and output_format != "table":
            output = Path(configured_output.output_dir)

        target_region = region if region is not None else policy_config.region
        explicit_scope = scope_override or policy_config.scope

        policy = compile_policy(
            policy_config.rules,
            target_region,
            name=policy_config.name,
            scope=explicit_scope,
            default_action=policy_config.default_action,
        )

        if output_format == "table":
            _print_policy_table(policy)
            return

        if output_format == "json":
            web_acl = policy.to_wafv2()
            ip_sets = policy.ip_sets_to_wafv2()
            if output:
                output.mkdir(parents=True, exist_ok=True)
                documents: dict[str, Any] = {"web-acl.json": web_acl}
                if ip_sets:
                    documents["ip-sets.json"] = ip_sets
                for filename, document in documents.items():
                    (output / filename).write_text(json.dumps(document, indent=2) + "\n")
                    console.print(f"Wrote {output / filename}")
            else:
                typer.echo(json.dumps({"WebACL": web_acl, "IPSets": ip_sets}, indent=2))
            return

        provider = AwsWafProvider(tags=policy_config.tags)
        files = provider.render(
            policy,
            region=target_region,
            associations=policy_config.associations,
        )
        if output:
            output.mkdir(parents=True, exist_ok=True)
            for tf_file in files:
                (output / tf_file.filename).write_text(tf_file.content)
                console.print(f"Wrote {output / tf_file.filename}")
        else:
            for tf_file in files:
                typer.echo(f"# --- {tf_file.filename} ---")
                typer.echo(tf_file.content)

    except Exception as e:
        _handle_cli_error(e)


@app.command("scope")
def scope_command(
    region: Annotated[
        str,
        typer.Argument(
            help="Target region or deploy-time token.",
        ),
    ],
    scope: Annotated[
        str | None,
        typer.Option(
            "--scope",
            help="Explicit scope to validate (CLOUDFRONT, REGIONAL).",
        ),
    ] = None,
) -> None:
    """Resolve the web ACL scope for a region."""
    from wafpolicy.core.models import PolicyScope
    from wafpolicy.waf.region import parse_region
    from wafpolicy.waf.scope import resolve_scope

    try:
        explicit_scope = PolicyScope(scope.upper()) if scope else None
    except ValueError:
        console.print(f"[red]Invalid scope: {scope}[/red]")
        raise typer.Exit(code=1)

    try:
        resolved = resolve_scope(explicit_scope, region)
    except Exception as e:
        _handle_cli_error(e)
        return

    parsed = parse_region(region)
    console.print(f"Region: {parsed} ({parsed.kind.value})", highlight=False, markup=False)
    console.print(f"Scope: {resolved.value}", highlight=False)


@app.command("managed-rules")
def managed_rules_command() -> None:
    """List the default AWS managed rule groups."""
    from wafpolicy.waf.catalog import DEFAULT_MANAGED_RULES

    table = Table(title="Default Managed Rule Groups")
    table.add_column("Order", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Description", style="yellow")

    for index, entry in enumerate(DEFAULT_MANAGED_RULES):
        table.add_row(str(index), entry.name, entry.description)

    console.print(table)
    console.print(f"\nTotal: {len(DEFAULT_MANAGED_RULES)} rule groups")


@config_app.command("init")
def config_init(
    path: Annotated[
        Path,
        typer.Argument(
            help="Directory to create configuration file in.",
        ),
    ] = Path(),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing configuration file.",
        ),
    ] = False,
) -> None:
    """Initialize a new policy configuration file."""
    from wafpolicy.config import generate_example_config

    config_path = path / ".wafpolicy.yml"

    if config_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists: {config_path}[/yellow]")
        console.print("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config_path.write_text(generate_example_config())
    console.print(f"Created configuration file: {config_path}")


@config_app.command("validate")
def config_validate(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration file to validate.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    region: Annotated[
        str | None,
        typer.Option(
            "--region",
            "-r",
            help="Target region (overrides the configuration file).",
        ),
    ] = None,
) -> None:
    """Validate a policy configuration file by compiling it."""
    from wafpolicy.config import load_config
    from wafpolicy.waf.compiler import compile_policy

    console.print(f"Validating configuration file: {config}...")

    try:
        policy_config = load_config(config)
        policy = compile_policy(
            policy_config.rules,
            region if region is not None else policy_config.region,
            name=policy_config.name,
            scope=policy_config.scope,
            default_action=policy_config.default_action,
        )
    except Exception as e:
        _handle_cli_error(e)
        return

    if policy_config.version != 1:
        console.print(f"[yellow]WARNING:[/yellow] Unknown version: {policy_config.version}")

    console.print(
        f"[green]Configuration is valid.[/green] {len(policy.rules)} rules, scope {policy.scope.value}"
    )


@config_app.command("show")
def config_show(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
) -> None:
    """Show the effective policy configuration."""
    from wafpolicy.config import find_config_file, load_config

    config_path = config or find_config_file()

    if config_path is None:
        console.print("[yellow]No configuration file found.[/yellow]")
        console.print("Run 'wafpolicy config init' to create one.")
        raise typer.Exit(code=0)

    console.print(f"Configuration file: {config_path}\n")

    try:
        policy_config = load_config(config_path)
    except Exception as e:
        _handle_cli_error(e)
        return

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    def flatten_dict(d: dict, prefix: str = "") -> list:
        items = []
        for key, value in d.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                items.extend(flatten_dict(value, full_key))
            elif isinstance(value, (list, tuple)):
                items.append((full_key, ", ".join(str(v) for v in value) or "(empty)"))
            else:
                items.append((full_key, str(value)))
        return items

    for key, value in flatten_dict(policy_config.model_dump(mode="json")):
        table.add_row(key, value)

    console.print(table)


if __name__ == "__main__":
    app()
