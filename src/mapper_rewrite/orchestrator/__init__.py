"""Batch orchestration for the rewriter."""

from mapper_rewrite.orchestrator.discovery import discover_files
from mapper_rewrite.orchestrator.exceptions import GraphBuildError, OrchestratorError
from mapper_rewrite.orchestrator.graph import build_graph
from mapper_rewrite.orchestrator.progress import ProgressLogHandler, ProgressReporter
from mapper_rewrite.orchestrator.runner import BatchRunner
from mapper_rewrite.orchestrator.state import BatchState, make_initial_state
from mapper_rewrite.orchestrator.throttle import FixedDelayLimiter, RateLimiter

__all__ = [
    "BatchRunner",
    "BatchState",
    "FixedDelayLimiter",
    "GraphBuildError",
    "OrchestratorError",
    "ProgressLogHandler",
    "ProgressReporter",
    "RateLimiter",
    "build_graph",
    "discover_files",
    "make_initial_state",
]
