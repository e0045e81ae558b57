from __future__ import annotations

import importlib
import json
import logging
from typing import Any

import click
from tabulate import tabulate

from envlib.adapters import register_builtin_adapters
from envlib.binder import DEFAULT_ENV_FILE, REDACTED_PLACEHOLDER, Configurator
from envlib.directives import resolve_directives
from envlib.errors import ConfigError, format_config_error, suggest_troubleshooting_steps

MASK = "*****"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-f",
    "--file",
    "env_file",
    envvar="ENVCTL_FILE",
    default=DEFAULT_ENV_FILE,
    show_default=True,
    help="Env file to read (KEY=VALUE per line). Also read from ENVCTL_FILE.",
)
@click.option(
    "--no-system-env",
    "no_system_env",
    is_flag=True,
    help="Do not fall back to the process environment for missing keys",
)
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (each variable as it is set)",
)
@click.pass_context
def cli(ctx: click.Context, env_file: str, no_system_env: bool, json_output: bool, verbose: bool) -> None:
    """Env file binder CLI.

    Inspect .env-style files and mirror them onto settings classes, the same
    way applications do at startup. JSON output is always pretty-printed.
    """
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    ctx.obj["system_env"] = not no_system_env
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _report_error(ctx: click.Context, error: ConfigError) -> None:
    click.echo(format_config_error(error), err=True)
    if ctx.obj.get("verbose"):
        suggestions = suggest_troubleshooting_steps(error)
        if suggestions:
            click.echo("\nTroubleshooting suggestions:", err=True)
            for suggestion in suggestions[:3]:  # Show top 3 suggestions
                click.echo(f"  • {suggestion}", err=True)


def _load_configurator(ctx: click.Context) -> Configurator:
    log = logging.getLogger("envctl.source")
    try:
        log.info("Loading %s...", ctx.obj["env_file"])
        conf = Configurator.from_path(ctx.obj["env_file"])
    except ConfigError as e:
        _report_error(ctx, e)
        raise SystemExit(2)
    return conf.allow_default_to_system_environment(ctx.obj["system_env"])


def _render(value: Any) -> str:
    if value is None:
        return "—"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


@cli.command("get")
@click.argument("key")
@click.pass_context
def get_cmd(ctx: click.Context, key: str) -> None:
    """Print the value of KEY (env file first, then environment)."""
    conf = _load_configurator(ctx)
    value = conf.get(key)

    if ctx.obj.get("json"):
        click.echo(json.dumps({"key": key, "value": value}, indent=2, sort_keys=True))
        if value is None:
            raise SystemExit(1)
        return

    if value is None:
        click.echo(f"Key not found: {key}", err=True)
        raise SystemExit(1)
    click.echo(value)


@cli.command("list")
@click.option("--show-values", is_flag=True, help="Print values instead of masking them")
@click.pass_context
def list_cmd(ctx: click.Context, show_values: bool) -> None:
    """List the entries defined in the env file."""
    log = logging.getLogger("envctl.list")
    conf = _load_configurator(ctx)

    rows = [[key, value if show_values else MASK] for key, value in conf.source.items()]

    if ctx.obj.get("json"):
        out = {
            "file": ctx.obj["env_file"],
            "entries": [{"key": r[0], "value": r[1]} for r in rows],
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
        return

    if not rows:
        click.echo("No entries found")
        return

    log.info("Rendering %d entries", len(rows))
    click.echo(tabulate(rows, headers=["KEY", "VALUE"]))


def _import_target(spec: str) -> Any:
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected MODULE:CLASS, e.g. myapp.settings:Settings", param_hint="TARGET")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name}: {e}", param_hint="TARGET") from e

    target = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="TARGET") from e
    return target


@cli.command("mirror")
@click.argument("target")
@click.option(
    "--builtin-adapters/--no-builtin-adapters",
    default=True,
    show_default=True,
    help="Register the Path, Decimal and dict adapters before mirroring",
)
@click.pass_context
def mirror_cmd(ctx: click.Context, target: str, builtin_adapters: bool) -> None:
    """Mirror the env onto TARGET (MODULE:CLASS) and show the result."""
    log = logging.getLogger("envctl.mirror")
    settings = _import_target(target)
    conf = _load_configurator(ctx)
    if builtin_adapters:
        register_builtin_adapters(conf.registry)

    try:
        log.info("Mirroring onto %s", target)
        conf.mirror(settings)
    except ConfigError as e:
        _report_error(ctx, e)
        raise SystemExit(2)

    rows = []
    for d in resolve_directives(settings):
        if d.ignored:
            continue
        value = getattr(settings, d.name, None)
        rows.append([d.name, d.lookup_name, REDACTED_PLACEHOLDER if d.redacted and value is not None else value])

    if ctx.obj.get("json"):
        out = {"target": target, "fields": [{"field": r[0], "key": r[1], "value": r[2]} for r in rows]}
        click.echo(json.dumps(out, indent=2, sort_keys=True, default=str))
        return

    log.info("Rendering %d fields", len(rows))
    click.echo(tabulate([[r[0], r[1], _render(r[2])] for r in rows], headers=["FIELD", "KEY", "VALUE"]))


def main() -> None:  # entry point
    cli(standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    main()
