"""CLI utilities"""

from .output import console, format_pack_result, print_success, print_warnings

__all__ = ["console", "format_pack_result", "print_success", "print_warnings"]
