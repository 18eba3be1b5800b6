"""Target file discovery."""

import logging
import os
from pathlib import Path
from typing import Iterable

from mapper_rewrite.models import FileTask, normalize_extension

logger = logging.getLogger(__name__)


def _walk_directory(root: Path, extension: str, exclude_dirs: set[str]) -> list[Path]:
    """Collect files under root whose name ends with extension (case-insensitive)."""
    found: list[Path] = []

    def _on_error(error: OSError) -> None:
        logger.warning("Skipping unreadable path %s: %s", error.filename, error.strerror or error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        # Prune excluded directories and keep traversal order stable
        dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirs)
        for name in sorted(filenames):
            if name.lower().endswith(extension):
                found.append(Path(dirpath) / name)
    return found


def discover_files(
    root_paths: Iterable[str | Path],
    extension: str,
    exclude_dirs: Iterable[str] = (".git",),
) -> list[FileTask]:
    """Expand root paths into a deduplicated list of FileTasks.

    A root that is a file is included as-is. A root that is a directory is
    walked recursively for files matching the extension. Missing or
    unreadable roots are logged as warnings and skipped. A file reachable
    from more than one root appears once, at its first-seen position.

    Args:
        root_paths: Files or directories to scan.
        extension: Target suffix; a missing leading dot is added.
        exclude_dirs: Directory names never descended into.

    Returns:
        FileTasks in discovery order.
    """
    ext = normalize_extension(extension)
    excluded = set(exclude_dirs)
    discovered: list[Path] = []

    for raw_root in root_paths:
        root = Path(raw_root)
        try:
            if root.is_file():
                discovered.append(root)
            elif root.is_dir():
                discovered.extend(_walk_directory(root, ext, excluded))
            else:
                logger.warning("Skipping %s: not a file or directory", root)
        except OSError as e:
            logger.warning("Skipping %s: %s", root, e)

    # Deduplicate on resolved path, preserving first-seen order
    unique: dict[Path, Path] = {}
    for path in discovered:
        unique.setdefault(path.resolve(), path)

    return [FileTask(path=path) for path in unique.values()]
