# compose_deploy/utils/file_utils.py
"""File operation utilities"""

import os
from pathlib import Path
from typing import Union


def format_size(size: int) -> str:
    """
    Format file size in human-readable format

    Args:
        size: Size in bytes

    Returns:
        Formatted size string
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"


def to_slash(path: Union[str, Path]) -> str:
    """
    Convert an OS path to forward-slash form

    Args:
        path: Relative path

    Returns:
        Path string using '/' separators
    """
    path = str(path)
    if os.sep != '/':
        path = path.replace(os.sep, '/')
    return path


def clean_path(path: str) -> str:
    """
    Lexically clean a slash-separated path

    Collapses repeated separators, drops '.' elements and resolves '..'
    elements against preceding ones. An empty result becomes '.'.

    Args:
        path: Path to clean

    Returns:
        Cleaned path
    """
    if not path:
        return "."
    rooted = path.startswith('/')
    parts = []
    for part in path.split('/'):
        if part in ('', '.'):
            continue
        if part == '..':
            if parts and parts[-1] != '..':
                parts.pop()
            elif not rooted:
                parts.append(part)
            continue
        parts.append(part)
    cleaned = '/'.join(parts)
    if rooted:
        return '/' + cleaned
    return cleaned or '.'
