"""Command line interface for inspecting plugin capabilities."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from plughub import __version__
from plughub.config import LOG_LEVELS, PlughubConfig
from plughub.descriptors import CallingConvention
from plughub.diagnostics import export_diagnostics, setup_logging
from plughub.errors import PlughubError, ProtocolActivationError
from plughub.exporter import channel_name, partition_manifest
from plughub.host import RecordingHost
from plughub.paths import get_config_path, get_diagnostics_path
from plughub.runtime import PluginRuntime


def _load_runtime(ctx: click.Context) -> PluginRuntime:
    config: PlughubConfig = ctx.obj["config"]
    try:
        return PluginRuntime.from_config(config, plugin_dir=ctx.obj["plugin_dir"])
    except PlughubError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(__version__, prog_name="plughub")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml (defaults to the user config directory).",
)
@click.option(
    "--plugin-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Override the plugin directory from config.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (defaults to [logging] level from config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    plugin_dir: Path | None,
    log_level: str | None,
) -> None:
    """Inspect and dry-run plugin protocol handlers and web APIs."""
    config = PlughubConfig.load(config_path)
    handler = setup_logging(
        (log_level or config.logging.level).upper(),
        buffer_size=config.logging.diagnostics_buffer_size,
    )
    ctx.ensure_object(dict)
    ctx.obj.update(
        config=config,
        config_path=config_path,
        plugin_dir=plugin_dir,
        diagnostics=handler,
    )


@cli.command("plugins")
@click.pass_context
def plugins_cmd(ctx: click.Context) -> None:
    """List loaded plugins and plugins that failed to load."""
    runtime = _load_runtime(ctx)
    if not runtime.plugins:
        click.echo("No plugins found.")
    for plugin in runtime.plugins:
        meta = runtime.metadata[plugin.name]
        version = meta.version or "-"
        click.echo(f"{plugin.name}  {version}  [{meta.status}]")
        if meta.description:
            click.echo(f"  {meta.description}")
    for failure in runtime.discoverer.result.failures:
        click.secho(f"{failure.name}  [failed]", fg="red")


@cli.command("schemes")
@click.pass_context
def schemes_cmd(ctx: click.Context) -> None:
    """List protocol schemes contributed by plugins."""
    runtime = _load_runtime(ctx)
    try:
        protocols = runtime.index.protocols()
    except PlughubError as exc:
        raise click.ClickException(str(exc)) from exc
    if not protocols:
        click.echo("No protocols declared.")
    for proto in protocols:
        flags = []
        if proto.is_standard_url:
            flags.append("standard")
        if proto.is_internal:
            flags.append("internal")
        suffix = f"  ({', '.join(flags)})" if flags else ""
        click.echo(f"{proto.scheme}:  {proto.plugin}{suffix}")


@cli.command("manifests")
@click.argument("scheme")
@click.pass_context
def manifests_cmd(ctx: click.Context, scheme: str) -> None:
    """Show the web API manifests served under SCHEME."""
    runtime = _load_runtime(ctx)
    try:
        manifests = runtime.get_web_api_manifests(scheme)
    except PlughubError as exc:
        raise click.ClickException(str(exc)) from exc
    if not manifests:
        click.echo(f"No web APIs for scheme '{scheme}'.")
        return
    for api_name, manifest in manifests.items():
        click.echo(api_name)
        partition = partition_manifest(manifest)
        for convention in CallingConvention:
            functions = sorted(partition[convention])
            if functions:
                click.echo(f"  {channel_name(api_name, convention)}: {', '.join(functions)}")


@cli.command("activate")
@click.option(
    "--export-diagnostics",
    "export_diagnostics_flag",
    is_flag=True,
    help="Write captured warnings, errors and activation timings to a file.",
)
@click.option(
    "--diagnostics-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Destination for --export-diagnostics (defaults to the data directory).",
)
@click.pass_context
def activate_cmd(
    ctx: click.Context,
    export_diagnostics_flag: bool,
    diagnostics_file: Path | None,
) -> None:
    """Run the full startup sequence against an in-process host."""
    runtime = _load_runtime(ctx)
    host = RecordingHost()
    failed = False
    try:
        schemes = runtime.prepare(host)
        click.echo(f"Standard schemes: {', '.join(schemes) or '-'}")
        channels = asyncio.run(runtime.activate(host.send, host))
        click.echo(f"Exported {len(channels)} channel(s)")
    except ProtocolActivationError as exc:
        click.secho(str(exc), fg="red", err=True)
        failed = True
    except PlughubError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        for line in runtime.report.format_lines():
            click.echo(f"  {line}")
        if export_diagnostics_flag or diagnostics_file is not None:
            path = diagnostics_file or get_diagnostics_path()
            count = export_diagnostics(ctx.obj["diagnostics"], path, runtime.report)
            click.echo(f"Wrote {count} diagnostic entr{'y' if count == 1 else 'ies'} to {path}")
    if failed:
        ctx.exit(1)


@cli.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def init_config_cmd(ctx: click.Context, force: bool) -> None:
    """Write the default configuration to disk."""
    path: Path = ctx.obj["config_path"] or get_config_path()
    if path.exists() and not force:
        raise click.ClickException(f"Config already exists: {path} (use --force)")
    asyncio.run(PlughubConfig().save(path))
    click.echo(f"Wrote {path}")


__all__ = ["cli"]
