"""Utility functions for shot.

Provides clipboard text copy, metadata parsing, default naming and
Rich console output of upload results.
"""

from datetime import datetime, timezone
from urllib.parse import urlparse

import pyperclip
from rich.console import Console
from rich.markup import escape

from .models import UploadResult


console = Console()

LABEL_WIDTH = 5


def copy_to_clipboard(text: str) -> bool:
    """Copy text to system clipboard.

    Args:
        text: Text to copy

    Returns:
        True if successful, False otherwise
    """
    try:
        pyperclip.copy(text)
        return True
    except pyperclip.PyperclipException:
        return False


def parse_metadata(items: list[str]) -> dict[str, str]:
    """Parse K=V items into a metadata mapping.

    Splits on the first '=', so values may contain '='. A key given
    twice keeps the later value.

    Raises:
        ValueError: If an item has no '='
    """
    metadata = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Parse failed for {item!r}. Format: K=V")
        metadata[key] = value
    return metadata


def default_image_name(now: datetime | None = None) -> str:
    """Name an image after the upload time, e.g. 2021-12-20T01:01:01Z.png"""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ") + ".png"


def format_rfc3339(dt: datetime) -> str:
    if dt.tzinfo is None:
        return dt.isoformat() + "Z"
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def format_markdown_url(url: str, filename: str) -> str:
    return f"![{filename}]({url})"


def format_html_url(url: str, filename: str) -> str:
    return f'<img alt="{filename}" src="{url}" />'


def variant_name(url: str) -> str:
    """Return the last path segment of a variant URL, e.g. 'public'."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    return segments[-1] if segments else "UNKNOWN"


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


def display_title(title: str) -> None:
    console.print()
    console.print(f" {'':>{LABEL_WIDTH}}  [bold]{title}[/bold]", highlight=False)


def display_aligned(key: str, value: str) -> None:
    console.print(
        f" [bold blue]{escape(key):>{LABEL_WIDTH}}[/bold blue]  {escape(value)}",
        highlight=False,
    )


def render_result(result: UploadResult) -> None:
    """Print an upload result: messages, then errors or the image record.

    Args:
        result: Parsed API response
    """
    for message in result.messages or []:
        console.print(f"[blue]Message[/blue]  {escape(message)}")

    if not result.success:
        print_error("API returned an error:")
        for err in result.errors:
            console.print(f"  (Code [red]{err.code}[/red]) {escape(err.message)}", highlight=False)
        return

    image = result.result
    if image is None:
        print_error(f"Bad response: {result!r}")
        return

    print_success("Image uploaded.")
    display_title("General")
    display_aligned("ID", image.id)
    display_aligned("Name", image.filename)
    display_aligned("Time", format_rfc3339(image.uploaded))

    if image.meta:
        display_title("Metadata")
        for key, value in image.meta.items():
            display_aligned(key, value)

    for url in image.variants:
        display_title(f"Variant [green]{escape(variant_name(url))}[/green]")
        display_aligned("Url", url)
        display_aligned("HTML", format_html_url(url, image.filename))
        display_aligned("MD", format_markdown_url(url, image.filename))


def print_success(message: str) -> None:
    """Print a success message with checkmark.

    Args:
        message: Message to print
    """
    console.print(f"[green]✓[/green] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message with X mark.

    Args:
        message: Message to print
    """
    console.print(f"[red]✗[/red] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message with exclamation mark.

    Args:
        message: Message to print
    """
    console.print(f"[yellow]![/yellow] {escape(message)}")
