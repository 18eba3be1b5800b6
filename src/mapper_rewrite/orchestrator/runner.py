"""Batch runner: discover targets, then drive the batch graph."""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterable

from mapper_rewrite.models import (
    BatchSummary,
    ConflictStrategy,
    TemplateMode,
    normalize_extension,
)
from mapper_rewrite.models.config_models import (
    DEFAULT_ESTIMATED_CALL_SECONDS,
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_THROTTLE_SECONDS,
)
from mapper_rewrite.orchestrator.discovery import discover_files
from mapper_rewrite.orchestrator.graph import build_graph
from mapper_rewrite.orchestrator.progress import ProgressReporter
from mapper_rewrite.orchestrator.state import make_initial_state, recursion_limit_for
from mapper_rewrite.orchestrator.throttle import FixedDelayLimiter, RateLimiter
from mapper_rewrite.transform.client import TextTransformer
from mapper_rewrite.transform.conflict_resolver import parse_strategy
from mapper_rewrite.transform.exceptions import ConfigurationError
from mapper_rewrite.transform.file_transformer import FileTransformer
from mapper_rewrite.transform.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)


class BatchRunner:
    """Rewrites every matching file under the given roots, one at a time."""

    def __init__(
        self,
        service: TextTransformer,
        template_mode: TemplateMode = TemplateMode.FORMAT,
        limiter: RateLimiter | None = None,
        reporter: ProgressReporter | None = None,
        throttle_seconds: float = DEFAULT_THROTTLE_SECONDS,
        estimated_call_seconds: float = DEFAULT_ESTIMATED_CALL_SECONDS,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the runner.

        Args:
            service: External transformation service.
            template_mode: PromptBuilder form ("format" or "prefix").
            limiter: Pause policy between files. Defaults to a fixed delay
                of throttle_seconds.
            reporter: Progress renderer. Defaults to stdout.
            throttle_seconds: Fixed inter-file delay.
            estimated_call_seconds: Per-file latency used for the forecast.
            exclude_dirs: Directory names never descended into.
            cancel_event: Set from outside to stop before the next file.
            clock: Monotonic time source.
        """
        self.service = service
        self.template_mode = TemplateMode(template_mode)
        self.throttle_seconds = throttle_seconds
        self.estimated_call_seconds = estimated_call_seconds
        self.limiter = limiter or FixedDelayLimiter(throttle_seconds)
        self.reporter = reporter or ProgressReporter()
        self.exclude_dirs = tuple(exclude_dirs)
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock

    def run(
        self,
        root_paths: Iterable[str | Path],
        extension: str,
        template: str,
        strategy: str | ConflictStrategy,
    ) -> BatchSummary:
        """Run one batch.

        Flow:
        1. Validate configuration (roots, extension, template, strategy)
        2. Discover and deduplicate target files
        3. Report "nothing to do" when no file matched
        4. Invoke the graph: estimate -> process/throttle loop -> done
        5. Report and return the summary

        Args:
            root_paths: Files or directories to process.
            extension: Target suffix, matched case-insensitively.
            template: Prompt template loaded before the run.
            strategy: Conflict side to keep ("ours" or "theirs").

        Returns:
            BatchSummary of the run. Per-file failures are counted, never raised.

        Raises:
            ConfigurationError: If the configuration is invalid, or the prompt
                template turns out to be malformed on first use.
            GraphBuildError: If the graph cannot be built.
        """
        roots = list(root_paths)
        if not roots:
            raise ConfigurationError("No target paths given")
        try:
            ext = normalize_extension(extension)
        except ValueError as e:
            raise ConfigurationError(f"Invalid extension '{extension}': {e}") from e
        if not template or not template.strip():
            raise ConfigurationError("Prompt template is empty")
        conflict_strategy = parse_strategy(strategy)

        transformer = FileTransformer(
            service=self.service,
            template=template,
            strategy=conflict_strategy,
            prompt_builder=PromptBuilder(self.template_mode),
        )

        logger.info("Collecting *%s files...", ext)
        tasks = discover_files(roots, ext, self.exclude_dirs)
        if not tasks:
            self.reporter.message(f"No *{ext} files found; nothing to do.")
            return BatchSummary(total_files=0)

        graph = build_graph(
            transformer=transformer,
            limiter=self.limiter,
            reporter=self.reporter,
            estimated_call_seconds=self.estimated_call_seconds,
            throttle_seconds=self.throttle_seconds,
            cancel_event=self.cancel_event,
            clock=self.clock,
        )
        try:
            result = graph.invoke(
                make_initial_state(tasks, ext),
                config={"recursion_limit": recursion_limit_for(len(tasks))},
            )
        finally:
            self.reporter.break_line()

        summary = BatchSummary.from_outcomes(
            total_files=result["total_files"],
            outcomes=result["outcomes"],
            elapsed_seconds=result["elapsed_seconds"],
            estimated_seconds=result["estimated_seconds"],
            cancelled=result["cancelled"],
        )
        self.reporter.summary(summary)
        return summary
