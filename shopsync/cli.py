"""CLI interface for shopsync."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import click

from .api import ShopifyClient
from .cli_progress import BulkProgressDisplay
from .config import DEFAULT_CONFIG_FILE, ThemeConfig, load_config
from .exceptions import ConfigError, InvalidPathError, ShopSyncError
from .keys import AssetKeyMapper
from .notifier import Notifier
from .output import OutputFormatter
from .sync import ThemeEngine, ThemeOperations
from .task_queue import TaskQueue
from .watcher import WatchHandler, watch_theme

logger = logging.getLogger(__name__)


@dataclass
class ThemeSession:
    """Everything a command needs, built once from the configuration."""

    config: ThemeConfig
    client: ShopifyClient
    mapper: AssetKeyMapper
    notifier: Notifier
    operations: ThemeOperations
    engine: ThemeEngine


def open_session(ctx: Any) -> ThemeSession:
    """Load the configuration and wire up the components.

    The API client is closed when the command finishes.
    """
    out: OutputFormatter = ctx.obj["out"]
    try:
        config = load_config(ctx.obj["config_file"], **ctx.obj["overrides"])
    except ConfigError as e:
        out.error(str(e))
        out.info(
            f"Provide the shop settings in {DEFAULT_CONFIG_FILE} "
            "or via --url/--api-key/--password"
        )
        ctx.exit(1)

    client = ShopifyClient(config)
    ctx.call_on_close(client.close)

    mapper = AssetKeyMapper(config.base_path)
    notifier = Notifier.from_config(config, out)
    operations = ThemeOperations(
        client, mapper, notifier, dry_run=ctx.obj["dry_run"]
    )
    engine = ThemeEngine(client, operations)
    return ThemeSession(config, client, mapper, notifier, operations, engine)


def _progress(ctx: Any, description: str, no_progress: bool) -> BulkProgressDisplay:
    out: OutputFormatter = ctx.obj["out"]
    enabled = not (no_progress or out.quiet or out.json_output)
    return BulkProgressDisplay(description, enabled=enabled)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"JSON config file (default: ./{DEFAULT_CONFIG_FILE})",
)
@click.option(
    "--url", envvar="SHOPIFY_URL", help="Shop host, e.g. example.myshopify.com"
)
@click.option("--api-key", "-k", envvar="SHOPIFY_API_KEY", help="Private app API key")
@click.option(
    "--password", "-p", envvar="SHOPIFY_PASSWORD", help="Private app password"
)
@click.option(
    "--theme",
    "-t",
    "theme_id",
    envvar="SHOPIFY_THEME_ID",
    help="Theme ID (uses the legacy unscoped asset API if not set)",
)
@click.option(
    "--base",
    "-b",
    envvar="SHOPIFY_BASE",
    type=click.Path(file_okay=False),
    help="Local theme directory (default: current directory)",
)
@click.option(
    "--dry-run",
    "--no-write",
    "dry_run",
    is_flag=True,
    help="Fetch downloads without writing any files",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="shopsync")
@click.pass_context
def main(
    ctx: Any,
    config_file: Optional[str],
    url: Optional[str],
    api_key: Optional[str],
    password: Optional[str],
    theme_id: Optional[str],
    base: Optional[str],
    dry_run: bool,
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """shopsync - Keep a local theme directory in sync with your shop."""
    # Store settings in context for subcommands to access
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["config_file"] = config_file
    ctx.obj["dry_run"] = dry_run
    ctx.obj["overrides"] = {
        "url": url,
        "api_key": api_key,
        "password": password,
        "theme_id": theme_id,
        "base": base,
    }

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("shopsync").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("path", required=False, type=click.Path())
@click.option(
    "--no-json",
    is_flag=True,
    help="Skip config/settings_data.json when uploading the whole theme",
)
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.pass_context
def upload(ctx: Any, path: Optional[str], no_json: bool, no_progress: bool) -> None:
    """Upload a theme file, or the entire theme if no file is given.

    PATH: Local file inside one of the theme directories

    Examples:
        shopsync upload assets/site.css
        shopsync upload --no-json
    """
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)

    try:
        if path:
            key = session.operations.upload_file(path)
            if key is None:
                out.warning(f"Skipped {path}: not inside a theme directory")
            elif out.json_output:
                out.output_json({"uploaded": [key]})
            return

        with _progress(ctx, "Uploading theme", no_progress) as display:
            keys = session.engine.deploy(
                no_json=no_json, progress_callback=display.update
            )
        if out.json_output:
            out.output_json({"uploaded": keys})
        else:
            out.print_summary("Upload Complete", [("Files uploaded", len(keys))])
    except ShopSyncError as e:
        logger.debug(f"upload failed: {e}")
        ctx.exit(1)


@main.command()
@click.argument("path", required=False, type=click.Path())
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.pass_context
def download(ctx: Any, path: Optional[str], no_progress: bool) -> None:
    """Download a theme file, or the entire theme if no file is given.

    PATH: Local path of the file to fetch, e.g. templates/index.liquid

    Examples:
        shopsync download templates/index.liquid
        shopsync --dry-run download
    """
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)

    try:
        if path:
            try:
                key = session.mapper.make_asset_key(path)
            except InvalidPathError as e:
                out.error(str(e))
                ctx.exit(1)
            destination = session.operations.download_asset(key)
            if out.json_output:
                out.output_json({"downloaded": [str(destination)]})
            return

        with _progress(ctx, "Downloading theme", no_progress) as display:
            destinations = session.engine.download_theme(
                progress_callback=display.update
            )
        if out.json_output:
            out.output_json({"downloaded": [str(d) for d in destinations]})
        else:
            out.print_summary(
                "Download Complete", [("Files downloaded", len(destinations))]
            )
    except ShopSyncError as e:
        logger.debug(f"download failed: {e}")
        ctx.exit(1)


@main.command()
@click.argument("path", type=click.Path())
@click.pass_context
def delete(ctx: Any, path: str) -> None:
    """Remove a theme file from the shop.

    PATH: Local path of the file whose remote asset should be deleted
    """
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)

    try:
        key = session.operations.remove_file(path)
    except ShopSyncError as e:
        logger.debug(f"delete failed: {e}")
        ctx.exit(1)

    if key is None:
        out.warning(f"Skipped {path}: not inside a theme directory")
    elif out.json_output:
        out.output_json({"deleted": [key]})


@main.command()
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.pass_context
def sync(ctx: Any, no_progress: bool) -> None:
    """Upload local files that are new or newer than the shop's copy.

    Never deletes remote assets. With --dry-run only the plan is shown.
    """
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)
    dry_run = ctx.obj["dry_run"]

    try:
        with _progress(ctx, "Syncing theme", no_progress or dry_run) as display:
            stats = session.engine.sync(
                dry_run=dry_run, progress_callback=display.update
            )
    except ShopSyncError as e:
        logger.debug(f"sync failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(stats)
        return

    if dry_run:
        for key in stats["planned"]:
            out.info(f"would upload {key}")

    out.print_summary(
        "Sync Plan" if dry_run else "Sync Complete",
        [
            ("Local files", stats["local_files"]),
            ("Remote assets", stats["remote_assets"]),
            ("To upload" if dry_run else "Uploaded", stats["uploads"]),
            ("Unchanged", stats["skipped"]),
        ],
    )


@main.command()
@click.pass_context
def themes(ctx: Any) -> None:
    """Display the list of available themes."""
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)

    try:
        theme_list = session.client.list_themes()
    except ShopSyncError as e:
        out.error(str(e))
        ctx.exit(1)

    if not theme_list and not out.json_output:
        out.info("No themes found")
        return
    out.output_table(theme_list, ["id", "name", "role"], title="Themes")


main.add_command(themes, name="list-themes")


@main.command()
@click.option(
    "--debounce",
    type=int,
    default=200,
    help="Milliseconds to group filesystem events (default: 200)",
)
@click.pass_context
def watch(ctx: Any, debounce: int) -> None:
    """Watch the theme directory and push every change to the shop.

    Changes are uploaded or deleted one at a time, waiting the configured
    rate_limit_delay between requests.
    """
    out: OutputFormatter = ctx.obj["out"]
    session = open_session(ctx)
    base = session.config.base_path

    if not base.is_dir():
        out.error(f"Theme directory does not exist: {base}")
        ctx.exit(1)

    tasks = TaskQueue(
        session.operations,
        session.notifier,
        delay=session.config.delay_seconds,
    )
    handler = WatchHandler(tasks, session.notifier, base=base)

    out.info(f"Watching {base} (Ctrl+C to stop)")
    try:
        with tasks:
            watch_theme(base, handler, debounce=debounce)
    except KeyboardInterrupt:
        out.warning("Stopped watching.")
        ctx.exit(130)  # Standard exit code for SIGINT


if __name__ == "__main__":
    main()
