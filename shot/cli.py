"""CLI interface for shot using Typer.

Main entry point for the application. Handles command definitions,
argument parsing and the error boundary around each command.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from .config import (
    BIN_NAME,
    CONFIG_ENV,
    Config,
    ConfigError,
    get_config_path,
    load_config,
    write_config,
)
from .log import init_logging
from .models import Credentials, UploadRequest
from .process import (
    ClipboardError,
    DecodedImage,
    DecodeError,
    EncodeError,
    decode_file,
    fit,
    grab_clipboard,
)
from .upload import AuthError, TransportError, init_session, upload_image, verify_token
from .utils import (
    copy_to_clipboard,
    default_image_name,
    format_file_size,
    parse_metadata,
    print_error,
    print_success,
    print_warning,
    render_result,
)

logger = logging.getLogger(__name__)

DRY_RUN_NOTICE = "with --dry-run, further actions are avoided."


@dataclass
class State:
    """Global options shared by every command."""
    dry_run: bool = False
    config_path: Optional[Path] = None


app = typer.Typer(
    name=BIN_NAME,
    help="Upload images from the clipboard or disk to Cloudflare Images",
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-d",
        help="Preview the command without performing any actions",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        envvar=CONFIG_ENV,
        help="Config file (default: ~/.config/shot.json)",
    ),
) -> None:
    """Upload images to Cloudflare Images. Defaults to `paste`."""
    init_logging()
    ctx.obj = State(dry_run=dry_run, config_path=config_path)

    if ctx.invoked_subcommand is None:
        logger.info(
            "Use `%s` without subcommand defaults to `%s paste`. If this is not "
            "intended, add a subcommand. Use `%s --help` for more information.",
            BIN_NAME, BIN_NAME, BIN_NAME,
        )
        run_paste(ctx.obj)


@app.command()
def auth(
    ctx: typer.Context,
    account_id: str = typer.Argument(..., help="Cloudflare account ID"),
    token: str = typer.Argument(..., help="API token with Images permission"),
) -> None:
    """Verify and save Cloudflare credentials (account_id + token pair)."""
    state: State = ctx.obj
    credentials = Credentials(account_id=account_id, token=token)

    try:
        config = load_config(state.config_path)
        config.auth = credentials
    except ConfigError as e:
        if (state.config_path or get_config_path()).exists():
            logger.warning("Existing config is unusable and will be replaced: %s", e)
        else:
            logger.debug("Starting from a fresh config: %s", e)
        config = Config(auth=credentials)

    if state.dry_run:
        logger.info(DRY_RUN_NOTICE)
        return

    try:
        logger.info("Verifying new auth info...")
        with init_session(credentials) as session:
            verify_token(session, credentials, config.api_base, config.timeout)

        path = write_config(config, state.config_path)
    except AuthError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except TransportError as e:
        print_error(f"Connection error: {e}")
        raise typer.Exit(1)
    except ConfigError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    print_success(f"Done adding authentication! Saved to {path}")


@app.command()
def paste(
    ctx: typer.Context,
    file_name: Optional[str] = typer.Option(
        None,
        "--file-name",
        "-n",
        help="Filename of the image, defaults to upload time (e.g. 2021-12-20T01:01:01Z.png)",
    ),
    metadata: Optional[list[str]] = typer.Option(
        None,
        "--metadata",
        "-m",
        help="Key-value pair bound to the image, format K=V. Repeatable",
    ),
    require_signed_urls: bool = typer.Option(
        False,
        "--require-signed-urls",
        help="Require signed URLs to access the variants",
    ),
    copy: bool = typer.Option(
        False,
        "--copy",
        "-c",
        help="Copy the first variant URL to the clipboard",
    ),
) -> None:
    """Upload the image in the clipboard."""
    run_paste(ctx.obj, file_name, metadata, require_signed_urls, copy)


@app.command()
def upload(
    ctx: typer.Context,
    file_path: Path = typer.Argument(..., help="Path of the image to upload"),
    file_name: Optional[str] = typer.Option(
        None,
        "--file-name",
        "-n",
        help="Filename of the image, defaults to the local file name with .png",
    ),
    metadata: Optional[list[str]] = typer.Option(
        None,
        "--metadata",
        "-m",
        help="Key-value pair bound to the image, format K=V. Repeatable",
    ),
    require_signed_urls: bool = typer.Option(
        False,
        "--require-signed-urls",
        help="Require signed URLs to access the variants",
    ),
    copy: bool = typer.Option(
        False,
        "--copy",
        "-c",
        help="Copy the first variant URL to the clipboard",
    ),
) -> None:
    """Encode a local image to PNG and upload it."""
    state: State = ctx.obj
    meta = _parse_metadata_option(metadata)

    try:
        config = load_config(state.config_path)
        logger.info("Reading file")
        image = decode_file(file_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)
    except DecodeError as e:
        print_error(f"Unsupported img format: {e}")
        raise typer.Exit(1)

    filename = file_name or f"{file_path.stem}.png"
    _fit_and_upload(state, config, image, filename, meta, require_signed_urls, copy)


def run_paste(
    state: State,
    file_name: Optional[str] = None,
    metadata: Optional[list[str]] = None,
    require_signed_urls: bool = False,
    copy: bool = False,
) -> None:
    """Read the clipboard image and hand it to the upload pipeline."""
    meta = _parse_metadata_option(metadata)

    try:
        config = load_config(state.config_path)
    except ConfigError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(1)

    try:
        image = grab_clipboard()
    except ClipboardError as e:
        logger.error("Failed to retrieve image data from clipboard")
        logger.error("%s", e)
        return

    filename = file_name or default_image_name()
    _fit_and_upload(state, config, image, filename, meta, require_signed_urls, copy)


def _parse_metadata_option(items: Optional[list[str]]) -> dict[str, str]:
    try:
        return parse_metadata(items or [])
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="'--metadata'")


def _fit_and_upload(
    state: State,
    config: Config,
    image: DecodedImage,
    filename: str,
    metadata: dict[str, str],
    require_signed_urls: bool,
    copy: bool,
) -> None:
    """Fit the image under the size limit, upload it and print the result."""
    try:
        logger.info("Encoding image")
        payload = fit(image, config.limits.hard_limit, config.limits.resize_target)
    except EncodeError as e:
        print_error(f"Unable to encode image: {e}")
        raise typer.Exit(1)

    if payload.size > config.limits.hard_limit:
        print_warning(
            f"Resized image is still {format_file_size(payload.size)}, "
            "the upload may be rejected"
        )

    logger.info(
        "Image (%s): %d x %d, %s",
        filename, payload.width, payload.height, format_file_size(payload.size),
    )

    request = UploadRequest(
        filename=filename,
        data=payload.data,
        require_signed_urls=require_signed_urls,
        metadata=metadata,
    )

    if state.dry_run:
        logger.info(DRY_RUN_NOTICE)
        return

    logger.info("Uploading image...")
    try:
        with init_session(config.auth) as session:
            result = upload_image(
                session, config.auth, request, config.api_base, config.timeout
            )
    except TransportError as e:
        print_error(f"Failed to upload image: {e}")
        raise typer.Exit(1)

    render_result(result)

    if copy and result.success and result.result and result.result.variants:
        if copy_to_clipboard(result.result.variants[0]):
            print_success("URL copied to clipboard")
        else:
            print_warning("Unable to copy URL to clipboard")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
