"""Console progress line and summary rendering."""

import logging
import sys
from typing import TextIO

from mapper_rewrite.models import BatchSummary

DEFAULT_PATH_WIDTH = 50
ELLIPSIS = "..."


def format_duration(seconds: float) -> str:
    """Render seconds as "1h 2m 3s", "2m 3s" or "0m 3s"."""
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


def truncate_path(path: str, width: int = DEFAULT_PATH_WIDTH) -> str:
    """Shorten a path to width characters, keeping its tail."""
    if len(path) <= width:
        return path
    if width <= len(ELLIPSIS):
        return path[-width:]
    return ELLIPSIS + path[-(width - len(ELLIPSIS)):]


def estimate_remaining(
    elapsed: float,
    completed: int,
    total: int,
    fallback_per_file: float,
) -> float:
    """Remaining seconds from the rolling average of completed files.

    Before any file has completed the upfront per-file estimate is used.
    """
    remaining_files = max(0, total - completed)
    if completed > 0:
        return elapsed / completed * remaining_files
    return fallback_per_file * remaining_files


class ProgressReporter:
    """Writes one in-place progress line per file, then a summary line."""

    def __init__(self, stream: TextIO | None = None, path_width: int = DEFAULT_PATH_WIDTH) -> None:
        self.stream = stream or sys.stdout
        self.path_width = path_width
        self._line_open = False
        self._last_length = 0

    def render(
        self,
        index: int,
        total: int,
        completed: int,
        path: str,
        elapsed: float,
        remaining: float,
        status: str | None = None,
    ) -> str:
        """Overwrite the current progress line.

        Args:
            index: 1-based position of the file being handled.
            total: Number of files in the batch.
            completed: Files finished so far; drives the percentage.
            path: File being handled.
            elapsed: Seconds since processing started.
            remaining: Estimated seconds left.
            status: Outcome to append once the file is done.

        Returns:
            The rendered line, without control characters.
        """
        percent = (completed / total * 100) if total else 100.0
        line = (
            f"[{index}/{total}] {percent:5.1f}% | {truncate_path(path, self.path_width)}"
            f" | elapsed {format_duration(elapsed)}"
            f" | remaining {format_duration(remaining)}"
        )
        if status:
            line += f" | {status}"
        padding = " " * max(0, self._last_length - len(line))
        self.stream.write(f"\r{line}{padding}")
        self.stream.flush()
        self._line_open = True
        self._last_length = len(line)
        return line

    def break_line(self) -> None:
        """End an open progress line so other output starts on a fresh line."""
        if self._line_open:
            self.stream.write("\n")
            self.stream.flush()
            self._line_open = False
            self._last_length = 0

    def message(self, text: str) -> None:
        self.break_line()
        self.stream.write(f"{text}\n")
        self.stream.flush()

    def summary(self, summary: BatchSummary) -> str:
        """Write the final summary line and return it."""
        line = (
            f"Done: {summary.attempted}/{summary.total_files} files attempted "
            f"({summary.succeeded} succeeded, {summary.skipped} skipped, "
            f"{summary.failed} failed) in {format_duration(summary.elapsed_seconds)}"
        )
        if summary.cancelled:
            line += " [cancelled]"
        self.message(line)
        return line


class ProgressLogHandler(logging.StreamHandler):
    """Stream handler that breaks the progress line before each record."""

    def __init__(self, reporter: ProgressReporter, stream: TextIO | None = None) -> None:
        super().__init__(stream or sys.stderr)
        self.reporter = reporter

    def emit(self, record: logging.LogRecord) -> None:
        self.reporter.break_line()
        super().emit(record)
