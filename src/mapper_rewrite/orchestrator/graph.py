"""LangGraph pipeline for a batch run.

Wires the upfront estimate, the per-file FileTransformer step and the rate
limiter into a StateGraph. Files are handled strictly one at a time.
"""

import logging
import threading
import time
from typing import Callable

from langgraph.graph import END, START, StateGraph

from mapper_rewrite.orchestrator.exceptions import GraphBuildError
from mapper_rewrite.orchestrator.progress import (
    ProgressReporter,
    estimate_remaining,
    format_duration,
)
from mapper_rewrite.orchestrator.state import BatchState
from mapper_rewrite.orchestrator.throttle import RateLimiter, estimate_duration
from mapper_rewrite.transform.file_transformer import FileTransformer

logger = logging.getLogger(__name__)


def make_estimate_node(
    estimated_call_seconds: float,
    throttle_seconds: float,
    clock: Callable[[], float],
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that forecasts the batch duration.

    The forecast is informational only. The closure also stamps start_time.
    """

    def estimate_node(state: BatchState) -> dict:
        total = state["total_files"]
        estimated = estimate_duration(total, estimated_call_seconds, throttle_seconds)
        logger.info("Found %d *%s file(s) to process", total, state["extension"])
        logger.info("Estimated duration: about %s", format_duration(estimated))
        return {"estimated_seconds": estimated, "start_time": clock()}

    return estimate_node


def make_process_node(
    transformer: FileTransformer,
    reporter: ProgressReporter,
    cancel_event: threading.Event,
    fallback_per_file: float,
    clock: Callable[[], float],
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that transforms the file at current_index.

    The closure:
    1. Stops with cancelled=True if cancel_event is set
    2. Renders the progress line for the file about to be handled
    3. Calls transformer.transform(path, label) -> FileOutcome
    4. Re-renders the line with the outcome and closes it
    5. Returns {"outcomes": [outcome], "processed_count": n, "current_index": i + 1}

    Per-file failures come back as FileOutcome values and never stop the batch.
    """

    def process_node(state: BatchState) -> dict:
        if cancel_event.is_set():
            return {"cancelled": True}

        index = state["current_index"]
        total = state["total_files"]
        task = state["tasks"][index]
        start_time = state["start_time"] if state["start_time"] is not None else clock()

        elapsed = clock() - start_time
        reporter.render(
            index=index + 1,
            total=total,
            completed=state["processed_count"],
            path=str(task.path),
            elapsed=elapsed,
            remaining=estimate_remaining(
                elapsed, state["processed_count"], total, fallback_per_file
            ),
        )

        outcome = transformer.transform(task.path, task.file_type_label)

        processed = state["processed_count"] + 1
        elapsed = clock() - start_time
        reporter.render(
            index=index + 1,
            total=total,
            completed=processed,
            path=str(task.path),
            elapsed=elapsed,
            remaining=estimate_remaining(elapsed, processed, total, fallback_per_file),
            status=outcome.status.value,
        )
        reporter.break_line()

        return {
            "outcomes": [outcome],
            "processed_count": processed,
            "current_index": index + 1,
            "start_time": start_time,
        }

    return process_node


def make_throttle_node(
    limiter: RateLimiter,
    cancel_event: threading.Event,
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that pauses between two files."""

    def throttle_node(state: BatchState) -> dict:
        completed = limiter.pause(cancel_event)
        return {"cancelled": not completed}

    return throttle_node


def make_done_node(clock: Callable[[], float]) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that records total elapsed time."""

    def done_node(state: BatchState) -> dict:
        start_time = state["start_time"]
        elapsed = clock() - start_time if start_time is not None else 0.0
        if state["cancelled"]:
            logger.warning(
                "Batch cancelled after %d of %d file(s)",
                state["processed_count"],
                state["total_files"],
            )
        return {"elapsed_seconds": elapsed}

    return done_node


def next_file_or_done(state: BatchState) -> str:
    """Route after a file: throttle before the next one, or finish."""
    if state["cancelled"] or state["current_index"] >= state["total_files"]:
        return "done"
    return "throttle"


def continue_or_cancel(state: BatchState) -> str:
    return "done" if state["cancelled"] else "continue"


def build_graph(
    transformer: FileTransformer,
    limiter: RateLimiter,
    reporter: ProgressReporter,
    estimated_call_seconds: float,
    throttle_seconds: float,
    cancel_event: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
):
    """Build and compile the batch StateGraph.

    Edge topology:
      START -> estimate_node -> process_node
      process_node -> conditional(next_file_or_done) -> {throttle_node, done_node}
      throttle_node -> conditional(continue_or_cancel) -> {process_node, done_node}
      done_node -> END

    The initial state must hold at least one task; BatchRunner returns early
    for an empty discovery.

    Args:
        transformer: FileTransformer holding template and strategy.
        limiter: Rate limiter applied between files.
        reporter: Progress line renderer.
        estimated_call_seconds: Per-file service latency used for forecasts.
        throttle_seconds: Delay used for forecasts.
        cancel_event: Set to stop before the next file.
        clock: Monotonic time source.

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    cancel_event = cancel_event or threading.Event()
    try:
        graph = StateGraph(BatchState)

        graph.add_node(
            "estimate_node",
            make_estimate_node(estimated_call_seconds, throttle_seconds, clock),
        )
        graph.add_node(
            "process_node",
            make_process_node(
                transformer,
                reporter,
                cancel_event,
                estimated_call_seconds + throttle_seconds,
                clock,
            ),
        )
        graph.add_node("throttle_node", make_throttle_node(limiter, cancel_event))
        graph.add_node("done_node", make_done_node(clock))

        graph.add_edge(START, "estimate_node")
        graph.add_edge("estimate_node", "process_node")
        graph.add_conditional_edges(
            "process_node",
            next_file_or_done,
            {"throttle": "throttle_node", "done": "done_node"},
        )
        graph.add_conditional_edges(
            "throttle_node",
            continue_or_cancel,
            {"continue": "process_node", "done": "done_node"},
        )
        graph.add_edge("done_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build batch graph: {exc}") from exc
