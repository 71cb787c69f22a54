"""Command-line entry point for Inkdeck."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .app_context import AppContext, determine_paths, load_context
from .config import ConfigError, bootstrap
from .engine import device_health, device_sleep_ends_in_seconds, plan_display
from .logging import configure_logging, get_logger
from .state import InventoryError
from .supervisor import Supervisor

app = typer.Typer(help="Inkdeck rendering decisions for e-ink devices.")
console = Console()

CONFIG_DIR_OPTION = typer.Option(
    None,
    "--config-dir",
    dir_okay=True,
    file_okay=False,
    resolve_path=True,
    help="Base directory for config files (defaults to ~/.inkdeck).",
)


def _determine_default_log_level(config_dir: Optional[Path]) -> str:
    config_path = determine_paths(config_dir).global_config
    if not config_path.exists():
        return "INFO"

    try:
        import yaml

        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        runtime = payload.get("runtime", {})
        log_level = runtime.get("log_level")
        if isinstance(log_level, str) and log_level.strip():
            return log_level.upper()
    except Exception:
        return "INFO"

    return "INFO"


def _bootstrap_logging(
    ctx: typer.Context,
    verbose: bool,
    json_logs: bool,
    log_file: Optional[Path],
) -> None:
    """Initialise logging once per CLI invocation."""

    if ctx.obj is None:
        ctx.obj = {}

    if ctx.obj.get("_logging_configured"):
        return

    level = "DEBUG" if verbose else _determine_default_log_level(None)
    configure_logging(level=level, json_output=json_logs, log_file=log_file)
    ctx.obj["logger"] = get_logger("inkdeck.cli")
    ctx.obj["log_level"] = level
    ctx.obj["json_logs"] = json_logs
    ctx.obj["log_file_path"] = log_file
    ctx.obj["force_log_level"] = verbose
    ctx.obj["_logging_configured"] = True


@app.callback(invoke_without_command=True)
def cli(  # noqa: D401 - Typer generates help text.
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON-formatted logs."),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        file_okay=True,
        writable=True,
        resolve_path=True,
        help="Optional file to append structured logs to.",
    ),
) -> None:
    """Inkdeck command group."""

    _bootstrap_logging(ctx, verbose, json_logs, log_file)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _logger(ctx: typer.Context):
    return ctx.obj.get("logger", get_logger("inkdeck.cli"))


def _maybe_update_log_level(ctx: typer.Context, config_dir: Optional[Path]) -> None:
    if ctx.obj.get("force_log_level"):
        return

    desired = _determine_default_log_level(config_dir)
    current = ctx.obj.get("log_level")
    if desired != current:
        configure_logging(
            level=desired,
            json_output=ctx.obj.get("json_logs", False),
            log_file=ctx.obj.get("log_file_path"),
        )
        ctx.obj["logger"] = get_logger("inkdeck.cli")
        ctx.obj["log_level"] = desired


def _load(ctx: typer.Context, command: str, config_dir: Optional[Path]) -> AppContext:
    _maybe_update_log_level(ctx, config_dir)
    try:
        return load_context(determine_paths(config_dir))
    except (ConfigError, InventoryError) as exc:
        _logger(ctx).error(f"{command}.failed", error=str(exc))
        typer.echo(f"Error loading configuration: {exc}")
        raise typer.Exit(code=1) from exc


def _format_seconds(seconds: Optional[int]) -> str:
    if seconds is None:
        return "-"
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:d}h{minutes:02d}m{secs:02d}s"


@app.command()
def init(
    ctx: typer.Context,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
    force: bool = typer.Option(False, "--force", help="Overwrite existing config.yml"),
) -> None:
    """Create the configuration directory and a starter config.yml."""

    log = _logger(ctx)
    paths = determine_paths(config_dir)
    report = bootstrap(paths, overwrite=force)

    typer.echo(f"Configuration directory: {paths.base_dir}")
    if report.global_config_created:
        if report.global_config_overwritten:
            typer.echo(f"Global config overwritten at: {paths.global_config}")
        else:
            typer.echo(f"Global config created at: {paths.global_config}")
    else:
        typer.echo(f"Global config already exists at: {paths.global_config}")
        typer.echo("Use --force to regenerate with default values.")

    log.info(
        "init.completed",
        base_dir=str(paths.base_dir),
        force=force,
        base_created=report.base_created,
        state_dir_created=report.state_dir_created,
        cache_dir_created=report.cache_dir_created,
        global_config_created=report.global_config_created,
        global_config_overwritten=report.global_config_overwritten,
    )


@app.command()
def devices(
    ctx: typer.Context,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show battery, signal and sleep state of every device."""

    log = _logger(ctx)
    context = _load(ctx, "devices", config_dir)
    try:
        device_list = context.inventory.list_devices()
    except InventoryError as exc:
        log.error("devices.failed", error=str(exc))
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    if not device_list:
        console.print("[yellow]No devices in the inventory yet.[/yellow]")
        log.info("devices.completed", device_count=0)
        return

    now = context.clock.now()
    table = Table(title="Devices")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Battery %")
    table.add_column("WiFi")
    table.add_column("Sleep ends in")
    table.add_column("Firmware")

    for device in device_list:
        health = device_health(device, context.global_config.telemetry)
        battery = "-" if health.battery_percent is None else f"{health.battery_percent:.0f}"
        bars = "-" if health.wifi_bars is None else str(health.wifi_bars)
        firmware = "update" if health.firmware.available else "-"
        table.add_row(
            device.id,
            device.name,
            battery,
            bars,
            _format_seconds(device_sleep_ends_in_seconds(device, now)),
            firmware,
        )

    console.print(table)
    log.info("devices.completed", device_count=len(device_list))


@app.command()
def plan(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier."),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Show what a device renders next and with which settings."""

    log = _logger(ctx)
    context = _load(ctx, "plan", config_dir)

    try:
        device = context.inventory.get_device(device_id)
        if device is None:
            typer.echo(f"Device '{device_id}' not found.")
            raise typer.Exit(code=1)
        result = plan_display(
            device,
            context.inventory,
            context.clock.now(),
            defaults=context.global_config.display,
            logger=log.bind(device_id=device_id),
        )
    except InventoryError as exc:
        log.error("plan.failed", error=str(exc))
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    settings = result.settings
    table = Table(title=f"Plan for {device_id}")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Content from", result.content_device_id)
    table.add_row("Sleeping", _format_seconds(result.sleep_seconds) if result.sleeping else "no")
    table.add_row("Next item", result.item.id if result.item else "-")
    table.add_row("Plugin", result.item.plugin_id if result.item else "-")
    table.add_row("Size", f"{settings.width}x{settings.height}")
    table.add_row("Rotation", str(settings.rotation))
    table.add_row("Colors / bit depth", f"{settings.colors} / {settings.bit_depth}")
    table.add_row("Mime type", settings.mime_type)
    table.add_row("Image format", result.image_format.label)
    table.add_row("Model settings", str(settings.use_model_settings))
    console.print(table)

    log.info(
        "plan.completed",
        device_id=device_id,
        item_id=result.item.id if result.item else None,
        image_format=result.image_format.value,
    )


@app.command()
def invalidate(
    ctx: typer.Context,
    plugin_id: str = typer.Argument(..., help="Plugin identifier."),
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Clear a plugin's cached image if some device cannot share it."""

    log = _logger(ctx)
    context = _load(ctx, "invalidate", config_dir)

    try:
        plugin = context.inventory.get_plugin(plugin_id)
        if plugin is None:
            typer.echo(f"Plugin '{plugin_id}' not found.")
            raise typer.Exit(code=1)
        cleared = context.invalidator(logger=log).reset_if_not_cacheable(plugin)
    except InventoryError as exc:
        log.error("invalidate.failed", error=str(exc))
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    if cleared:
        typer.echo(f"Cleared cached image of {plugin_id}")
    else:
        typer.echo(f"Cached image of {plugin_id} is shareable; kept")


@app.command()
def cleanup(
    ctx: typer.Context,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Delete rendered images no device or plugin references."""

    log = _logger(ctx)
    context = _load(ctx, "cleanup", config_dir)
    report = context.invalidator(logger=log).cleanup_folder()

    typer.echo(
        f"Deleted {len(report.deleted)} of {report.scanned} images "
        f"({report.kept_active} active, {report.kept_recent} too recent, {len(report.failed)} failed)"
    )
    if report.failed:
        raise typer.Exit(code=1)


@app.command()
def serve(
    ctx: typer.Context,
    config_dir: Optional[Path] = CONFIG_DIR_OPTION,
) -> None:
    """Run the periodic cache sweep in the foreground."""

    log = _logger(ctx)
    context = _load(ctx, "serve", config_dir)

    supervisor = Supervisor(
        config=context.global_config,
        paths=context.paths,
        logger=log,
    )
    supervisor.run()


def main() -> None:  # pragma: no cover - console script
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
