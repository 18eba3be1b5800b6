"""State definition for the LangGraph batch pipeline."""

import operator
from typing import Annotated, TypedDict

from mapper_rewrite.models import FileOutcome, FileTask

# Graph steps per file: process_node + throttle_node
STEPS_PER_FILE = 2
RECURSION_HEADROOM = 10


class BatchState(TypedDict):
    """State for one batch run.

    ``outcomes`` accumulates across process_node visits via its reducer.
    All other fields use default overwrite semantics.
    """

    # Input
    extension: str
    tasks: list[FileTask]
    total_files: int

    # Estimating
    estimated_seconds: float

    # Processing
    current_index: int
    processed_count: int
    start_time: float | None
    outcomes: Annotated[list[FileOutcome], operator.add]
    cancelled: bool

    # Done
    elapsed_seconds: float


def make_initial_state(tasks: list[FileTask], extension: str) -> BatchState:
    """Create the initial state for a batch run.

    Args:
        tasks: Deduplicated FileTasks in discovery order.
        extension: Normalized target extension, used for reporting.

    Returns:
        BatchState dict with all fields initialised to defaults.
    """
    return {
        "extension": extension,
        "tasks": list(tasks),
        "total_files": len(tasks),
        "estimated_seconds": 0.0,
        "current_index": 0,
        "processed_count": 0,
        "start_time": None,
        "outcomes": [],
        "cancelled": False,
        "elapsed_seconds": 0.0,
    }


def recursion_limit_for(total_files: int) -> int:
    """Graph recursion limit large enough to visit every file once."""
    return total_files * STEPS_PER_FILE + RECURSION_HEADROOM
