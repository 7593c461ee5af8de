"""Command-line interface for activetransfer."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import Any

import click

from activetransfer import (
    ActiveTransferClient,
    AuthenticationError,
    ConfigError,
    Environment,
    OperationResult,
    environment_from_env,
    load_config,
)
from activetransfer.config import DEFAULT_CONFIG_PATH


def resolve_environment(config_path: Path, env_name: str | None) -> Environment:
    """Pick the environment from the config file, else from ACTIVETRANSFER_* variables."""
    if config_path.exists():
        return load_config(config_path).get(env_name)
    environment = environment_from_env()
    if environment is None:
        raise ConfigError(
            f"No config file at {config_path} and ACTIVETRANSFER_HOST is not set"
        )
    return environment


def get_client(config_path: Path, env_name: str | None) -> ActiveTransferClient:
    """Create a client, prompting for the password if none is configured."""
    environment = resolve_environment(config_path, env_name)
    if not environment.password:
        password = click.prompt(f"Password for {environment.username}", hide_input=True)
        environment = environment.with_password(password)
    return ActiveTransferClient(environment)


def _format_data(data: Any) -> str:
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2)
    return str(data)


def _format_size(size_bytes: float) -> str:
    """Format file size in human-readable form."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}" if unit != "B" else f"{int(size_bytes)} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def _report(result: OperationResult, label: str) -> None:
    """Print a result; exit with status 1 on failure."""
    if result.success:
        click.echo(click.style("✓ ", fg="green") + result.message)
        if result.local_path:
            click.echo(f"Saved to: {result.local_path}")
        elif result.data not in (None, ""):
            click.echo(_format_data(result.data))
        return

    click.echo(click.style("✗ ", fg="red") + f"{label} failed: {result.message}", err=True)
    if result.status is not None:
        click.echo(f"Status: {result.status} {result.status_text or ''}".rstrip(), err=True)
    if result.details not in (None, ""):
        click.echo(f"Details: {_format_data(result.details)}", err=True)
    if result.error:
        click.echo(f"Error: {result.error}", err=True)
    sys.exit(1)


def _execute(
    ctx: click.Context,
    label: str,
    call: Callable[[ActiveTransferClient], OperationResult],
) -> None:
    try:
        with get_client(ctx.obj["config"], ctx.obj["env"]) as client:
            result = call(client)
        _report(result, label)
    except AuthenticationError as e:
        click.echo(click.style(f"Authentication failed: {e}", fg="red"), err=True)
        sys.exit(1)
    except ConfigError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)


class UploadProgress:
    """Progress display: a bar when the size is known, a byte count otherwise."""

    def __init__(self, label: str = "Uploading") -> None:
        self._label = label
        self._bar: Any = None
        self._last = 0
        self._raw = False

    def __call__(self, sent: int, total: int | None) -> None:
        if total is None:
            self._raw = True
            click.echo(f"\r{self._label}: {_format_size(sent)} sent...", nl=False, err=True)
            return
        if self._bar is None:
            self._bar = click.progressbar(length=total, label=self._label, file=sys.stderr)
            self._bar.__enter__()
        self._bar.update(sent - self._last)
        self._last = sent

    def close(self) -> None:
        if self._bar is not None:
            self._bar.__exit__(None, None, None)
            self._bar = None
        elif self._raw:
            click.echo(err=True)


@click.group()
@click.version_option(package_name="activetransfer-client")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    envvar="ACTIVETRANSFER_CONFIG",
    show_default=True,
    help="Config file with server environments",
)
@click.option("--env", "-E", "env_name", default=None, help="Environment name from the config file")
@click.option("--verbose", "-v", is_flag=True, help="Log request diagnostics")
@click.pass_context
def main(ctx: click.Context, config_path: Path, env_name: str | None, verbose: bool) -> None:
    """Active Transfer CLI - Move files to and from an Active Transfer server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path
    ctx.obj["env"] = env_name


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("remote", required=False)
@click.option("--compress", "-z", is_flag=True, help="Gzip the file on the fly (uploads FILE.gz)")
@click.pass_context
def upload(ctx: click.Context, file: Path, remote: str | None, compress: bool) -> None:
    """Upload FILE to the REMOTE directory.

    REMOTE defaults to the environment's upload path.

    Examples:

        activetransfer upload report.csv /inbound

        activetransfer -E prod upload big.log --compress
    """

    def call(client: ActiveTransferClient) -> OperationResult:
        progress = UploadProgress()
        try:
            return client.upload_file(
                file,
                remote or client.environment.default_upload_path,
                compress=compress,
                on_progress=progress,
            )
        finally:
            progress.close()

    _execute(ctx, "Upload", call)


@main.command()
@click.argument("remote")
@click.argument("local", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def download(ctx: click.Context, remote: str, local: Path | None) -> None:
    """Download the REMOTE file to LOCAL.

    LOCAL defaults to the file name inside the environment's download path.
    """

    def call(client: ActiveTransferClient) -> OperationResult:
        destination = local or (
            Path(client.environment.default_download_path) / PurePosixPath(remote).name
        )
        return client.download_file(remote, destination)

    _execute(ctx, "Download", call)


@main.command("ls")
@click.argument("path", default="/")
@click.pass_context
def list_files(ctx: click.Context, path: str) -> None:
    """List the contents of a remote directory.

    PATH: Directory to list (default: /)
    """
    _execute(ctx, "List", lambda client: client.list_files(path))


@main.command()
@click.argument("path")
@click.pass_context
def mkdir(ctx: click.Context, path: str) -> None:
    """Create a remote folder."""
    _execute(ctx, "Create folder", lambda client: client.create_folder(path))


@main.command()
@click.argument("path")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def rm(ctx: click.Context, path: str, yes: bool) -> None:
    """Delete a remote file or folder."""
    if not yes:
        click.confirm(f"Delete {path}?", abort=True)
    _execute(ctx, "Delete", lambda client: client.delete(path))


@main.command()
@click.argument("old_path")
@click.argument("new_path")
@click.pass_context
def mv(ctx: click.Context, old_path: str, new_path: str) -> None:
    """Rename a remote file or folder."""
    _execute(ctx, "Rename", lambda client: client.rename(old_path, new_path))


@main.command()
@click.argument("path")
@click.pass_context
def isfile(ctx: click.Context, path: str) -> None:
    """Check whether a remote path is a file."""
    _execute(ctx, "Check", lambda client: client.is_file(path))


@main.command()
@click.pass_context
def envs(ctx: click.Context) -> None:
    """List the environments in the config file."""
    try:
        config = load_config(ctx.obj["config"])
    except ConfigError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    for key, environment in config.environments.items():
        marker = "*" if key == config.default_environment else " "
        click.echo(
            f"{marker} {key}: {environment.name} "
            f"({environment.host}:{environment.effective_port}, {environment.mode})"
        )


if __name__ == "__main__":
    main()
