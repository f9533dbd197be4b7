import json
import logging
from typing import Any, Dict, NoReturn, Optional

import typer
import yaml

from blkinfo.core.aggregator import DeviceInfoAggregator
from blkinfo.utils import config as config_utils
from blkinfo.utils.config import HostPaths
from blkinfo.utils.errors import BlkInfoError
from blkinfo.utils.logging import setup_logging, get_logger, active_log_file, LOG_DIR, LOG_FILE
from blkinfo.version import built_at, revision, version


_LOG_LEVEL_CHOICES = {
    name: getattr(logging, name.upper()) for name in config_utils.LOG_LEVEL_VALUES
}
_LOG_LEVEL_CHOICES["warn"] = logging.WARNING

EXIT_CODE_NG = 1


app = typer.Typer(help="blkinfo - block device information utility for Linux.", no_args_is_help=True)
config_app = typer.Typer(help="Inspect and edit blkinfo configuration.")
app.add_typer(config_app, name="config")


def _emit_config_error(error: config_utils.ConfigError) -> NoReturn:
    typer.echo(f"Configuration error: {error}", err=True)
    raise typer.Exit(code=EXIT_CODE_NG)


def _emit_lookup_error(error: Exception) -> NoReturn:
    get_logger(__name__).debug("lookup_failed error=%r", error)
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=EXIT_CODE_NG)


def _render_config_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _get_config_value(key: str) -> Any:
    try:
        return config_utils.get_value(key)
    except config_utils.ConfigError as exc:
        _emit_config_error(exc)


def _host_paths() -> HostPaths:
    try:
        return HostPaths.from_config()
    except config_utils.ConfigError as exc:
        _emit_config_error(exc)


def _resolve_format(output_format: Optional[str]) -> str:
    candidate = output_format or _get_config_value("output.format")
    try:
        return config_utils.OPTIONS["output.format"].parser(candidate)
    except config_utils.ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--format")


def render(payload: Dict[str, Any], output_format: str) -> str:
    """Serialize a nested mapping as JSON or YAML."""

    if output_format == "yaml":
        text = yaml.safe_dump(payload, default_flow_style=False, sort_keys=False)
    else:
        text = json.dumps(payload, indent=2)
    return text.strip()


_FORMAT_OPTION_HELP = (
    f"Output format, one of {', '.join(config_utils.OUTPUT_FORMAT_VALUES)} (config key: output.format)."
)


@app.callback()
def configure_logging(
    log_level: Optional[str] = typer.Option(
        None,
        help="Logging level (config key: log.level).",
        metavar="LEVEL",
    ),
) -> None:
    """Configure logging before executing a sub-command."""

    configured_level = _get_config_value("log.level")

    candidate = log_level.lower() if log_level else configured_level
    candidate = "warning" if candidate == "warn" else candidate

    if candidate not in _LOG_LEVEL_CHOICES:
        choices = ", ".join(sorted(v for v in config_utils.LOG_LEVEL_VALUES))
        raise typer.BadParameter(
            f"Unsupported log level '{candidate}'. Choose from {choices}."
        )

    setup_logging(level=_LOG_LEVEL_CHOICES[candidate])


@app.command()
def show(
    path: str = typer.Argument(..., help="Device node or symlink, e.g. /dev/sda1."),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help=_FORMAT_OPTION_HELP, metavar="FORMAT"
    ),
) -> None:
    """Show everything known about a block device."""

    fmt = _resolve_format(output_format)
    try:
        info = DeviceInfoAggregator(_host_paths()).build(path)
    except (BlkInfoError, OSError) as exc:
        _emit_lookup_error(exc)

    typer.echo(render(info.to_dict(), fmt))


@app.command("os-release")
def os_release(
    path: str = typer.Argument(..., help="Device node whose filesystem is mounted."),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help=_FORMAT_OPTION_HELP, metavar="FORMAT"
    ),
) -> None:
    """Show the os-release of a mounted device; fails when it is not mounted."""

    fmt = _resolve_format(output_format)
    try:
        release = DeviceInfoAggregator(_host_paths()).mounted_os_release(path)
    except (BlkInfoError, OSError) as exc:
        _emit_lookup_error(exc)

    typer.echo(render(release, fmt))


@app.command()
def mountpoints(
    path: str = typer.Argument(..., help="Device node or symlink, e.g. /dev/sda1."),
) -> None:
    """Print every mountpoint of a device, one per line; nothing when unmounted."""

    try:
        found = DeviceInfoAggregator(_host_paths()).mountpoints(path)
    except (BlkInfoError, OSError) as exc:
        _emit_lookup_error(exc)

    for mountpoint in found:
        typer.echo(mountpoint)


@app.command()
def device(
    mountpoint: str = typer.Argument(..., help="Mountpoint to look up, e.g. /."),
) -> None:
    """Print the device mounted at MOUNTPOINT."""

    try:
        device_path = DeviceInfoAggregator(_host_paths()).device_for_mountpoint(mountpoint)
    except (BlkInfoError, OSError) as exc:
        _emit_lookup_error(exc)

    typer.echo(device_path)


@app.command("version")
def version_cmd() -> None:
    """Show version and build metadata."""

    typer.echo(f"blkinfo {version()} (commit {revision()}, built at {built_at()})")


@config_app.command("show")
def config_show(
    as_json: bool = typer.Option(False, "--json", help="Emit configuration as JSON."),
) -> None:
    """Display the effective configuration values and their defaults."""

    try:
        data = config_utils.list_config()
    except config_utils.ConfigError as exc:
        _emit_config_error(exc)

    storage_paths = {
        "config_dir": str(config_utils.config_dir()),
        "config_file": str(config_utils.config_path()),
        "log_dir": str(LOG_DIR),
        "log_file": str(LOG_FILE),
    }

    if as_json:
        payload = {"options": data, "paths": storage_paths}
        typer.echo(json.dumps(payload, indent=2))
        return

    for key in sorted(data):
        info = data[key]
        typer.echo(key)
        typer.echo(f"  value   : {_render_config_value(info['value'])} ({info['source']})")
        typer.echo(f"  default : {_render_config_value(info['default'])}")
        typer.echo(f"  type    : {info['type']}")
        if info["choices"]:
            typer.echo(f"  choices : {', '.join(info['choices'])}")
        typer.echo(f"  desc    : {info['description']}")
        typer.echo("")

    typer.echo("Storage paths:")
    for label, value in storage_paths.items():
        typer.echo(f"  {label.replace('_', ' '):<11} : {value}")


@config_app.command("set")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value."""

    try:
        parsed = config_utils.set_value(key, value)
    except config_utils.ConfigError as exc:
        _emit_config_error(exc)

    typer.echo(f"{key} = {_render_config_value(parsed)}")


@config_app.command("unset")
def config_unset(key: str) -> None:
    """Remove an override and fall back to the default."""

    try:
        config_utils.unset_value(key)
    except config_utils.ConfigError as exc:
        _emit_config_error(exc)

    typer.echo(f"Reset {key} to its default value")


@config_app.command("path")
def config_path_cmd() -> None:
    """Show where the configuration file lives."""

    typer.echo(str(config_utils.config_path()))


@app.command()
def log() -> None:
    """Show recent log entries"""
    log_file = active_log_file() or LOG_FILE
    if log_file.exists():
        typer.echo(log_file.read_text())
    else:
        typer.echo("No logs found.")


def main() -> None:
    """Console script entrypoint invoked by `blkinfo` binary."""

    app()


if __name__ == "__main__":
    main()
