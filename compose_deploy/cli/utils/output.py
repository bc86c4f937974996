# compose_deploy/cli/utils/output.py
"""Output formatting utilities"""

from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ...constants import EMOJI_SUCCESS, EMOJI_WARNING, EMOJI_PACKAGE
from ...models.result import BuildContextResult, PackResult
from ...utils.file_utils import format_size

console = Console()


def print_success(message: str) -> None:
    """Print a success line"""
    console.print(f"[green]{EMOJI_SUCCESS}[/green] {escape(message)}")


def print_warnings(warnings: List[str]) -> None:
    """Print collected warnings, if any"""
    if not warnings:
        return
    console.print(f"\n[bold yellow]{EMOJI_WARNING} {len(warnings)} warning(s):[/bold yellow]")
    for warning in warnings:
        console.print(f"  • {escape(warning)}")


def format_pack_result(result: PackResult, context: BuildContextResult = None) -> None:
    """Format and display a packaged build context"""
    lines = [
        f"[green]{EMOJI_SUCCESS}[/green] Build context packaged",
        "",
        f"[bold]Digest:[/bold] {result.digest}",
        f"[bold]Size:[/bold] {format_size(result.size)}",
        f"[bold]Files:[/bold] {result.file_count}",
    ]
    if context is not None:
        label = "Uploaded to" if context.uploaded else "Context"
        lines.append(f"[bold]{label}:[/bold] {escape(context.url)}")

    console.print(Panel("\n".join(lines), title=f"{EMOJI_PACKAGE} Pack Result", border_style="green"))
