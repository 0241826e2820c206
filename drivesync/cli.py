"""CLI interface for drivesync."""

import logging
from typing import Any, Optional

import click

from .api import DriveClient
from .config import config
from .exceptions import DriveAPIError, SyncError
from .output import OutputFormatter
from .sync import SyncEngine, SyncOptions, SyncResult
from .vfs import DriveFileSystem, FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ("drive:", "remote:")


def parse_location(location: str) -> tuple[bool, str]:
    """Split a command-line location into (is_remote, path).

    Locations starting with ``drive:`` or ``remote:`` live on the remote
    drive; the prefix is removed. Anything else is a local path.

    Examples:
        >>> parse_location("drive:/backup")
        (True, '/backup')
        >>> parse_location("/home/me/docs/")
        (False, '/home/me/docs/')
    """
    for prefix in REMOTE_PREFIXES:
        if location.startswith(prefix):
            return True, location[len(prefix) :]
    return False, location


class FileSystems:
    """Creates the filesystem for each side of a sync on first use.

    The remote backend needs credentials, so it is only built when a
    location actually points at the drive.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key
        self._local: Optional[LocalFileSystem] = None
        self._remote: Optional[DriveFileSystem] = None
        self._client: Optional[DriveClient] = None

    def get(self, remote: bool) -> FileSystem:
        """Get the local or the remote filesystem."""
        if not remote:
            if self._local is None:
                self._local = LocalFileSystem()
            return self._local

        if self._remote is None:
            self._client = DriveClient(api_key=self.api_key)
            self._remote = DriveFileSystem(self._client)
        return self._remote

    def close(self) -> None:
        """Release network connections."""
        if self._client is not None:
            self._client.close()


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Verbose mode (use multiple times to increase level)",
)
@click.version_option(package_name="drivesync")
@click.pass_context
def main(ctx: Any, quiet: bool, verbose: int) -> None:
    """drivesync - Synchronize directories between local disk and a cloud drive.

    Remote locations are written as drive:/path (or remote:/path).
    """
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose >= 2:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("drivesync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("--dry-run", "-n", is_flag=True, help="Dry-run mode: show what would be copied")
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    metavar="PATTERN",
    help="Glob matched against file and directory names (repeatable)",
)
@click.option(
    "--inplace",
    is_flag=True,
    help="Write files in place (faster, but may leave incomplete files "
    "behind if the program dies)",
)
@click.option(
    "--api-key", "-k", envvar="DRIVESYNC_API_KEY", help="Remote drive API key"
)
@click.pass_context
def sync(
    ctx: Any,
    paths: tuple[str, ...],
    dry_run: bool,
    exclude: tuple[str, ...],
    inplace: bool,
    api_key: Optional[str],
) -> None:
    """Copy SOURCE... into the directory DEST.

    \b
    Like rsync, a source ending in "/" copies the contents of the directory,
    while a source without it copies the directory itself:
        drivesync sync photos/ drive:/backup   ->  drive:/backup/<files>
        drivesync sync photos drive:/backup    ->  drive:/backup/photos/<files>

    Files are copied only when missing at the destination or when the source
    is newer (modification time, to the second).
    """
    out: OutputFormatter = ctx.obj["out"]
    if len(paths) < 2:
        raise click.UsageError("Must specify source and destination directories")

    *sources, destination = paths
    options = SyncOptions(
        dry_run=dry_run,
        exclude=exclude,
        write_in_place=inplace,
        verbosity=ctx.obj["verbose"],
    )

    if dry_run:
        out.info("Dry run: No changes will be made")

    filesystems = FileSystems(api_key=api_key)
    results: list[SyncResult] = []
    try:
        dst_remote, dst_path = parse_location(destination)
        dst_fs = filesystems.get(dst_remote)

        engine: Optional[SyncEngine] = None
        for source in sources:
            src_remote, src_path = parse_location(source)
            engine = SyncEngine(filesystems.get(src_remote), dst_fs, output=out)
            logger.debug("Syncing %s -> %s", source, destination)
            results.extend(engine.sync(src_path, dst_path, options))

        if engine is not None:
            engine.display_summary(results, dry_run)

    except (SyncError, DriveAPIError) as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        filesystems.close()


@main.command()
@click.option(
    "--api-key",
    "-k",
    prompt="Enter your drive API key",
    hide_input=True,
    help="Remote drive API key",
)
@click.pass_context
def init(ctx: Any, api_key: str) -> None:
    """Validate an API key and store it in the config file."""
    out: OutputFormatter = ctx.obj["out"]

    out.info("Validating API key...")
    try:
        client = DriveClient(api_key=api_key)
        try:
            user_info = client.get_logged_user()
        finally:
            client.close()
        if not user_info or not user_info.get("user"):
            out.warning("API key validation failed: Invalid API key")
            if not click.confirm("Save API key anyway?", default=False):
                out.warning("Configuration cancelled.")
                ctx.exit(1)
        else:
            out.success("API key is valid")
    except DriveAPIError as e:
        out.warning(f"API key validation failed: {e}")
        if not click.confirm("Save API key anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(1)

    try:
        config.save_api_key(api_key)
    except OSError as e:
        out.error(f"Unable to write configuration: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "Configuration saved"),
            ("Config file", str(config.get_config_path())),
        ],
    )


if __name__ == "__main__":
    main()
