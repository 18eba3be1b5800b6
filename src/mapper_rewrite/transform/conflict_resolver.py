"""Merge-conflict marker resolution.

Collapses ``<<<<<<< / ======= / >>>>>>>`` blocks to a single side in one
forward scan. Non-conflict lines are kept verbatim, including their line
endings.
"""

from enum import Enum

from mapper_rewrite.models import ConflictStrategy
from mapper_rewrite.transform.exceptions import ConfigurationError

# Markers
START_MARKER = "<<<<<<<"
BASE_MARKER = "|||||||"  # diff3 merge base section
SEPARATOR_MARKER = "======="
END_MARKER = ">>>>>>>"

# Content must contain both of these before a scan is attempted
DETECT_START = "<<<<<<< HEAD"
DETECT_SEPARATOR = SEPARATOR_MARKER


class _ScanState(Enum):
    OUTSIDE = "outside"
    IN_CONFLICT = "in_conflict"


def parse_strategy(value: str | ConflictStrategy) -> ConflictStrategy:
    """Convert a raw strategy value, rejecting anything but ours/theirs.

    Raises:
        ConfigurationError: If the value is not a known strategy.
    """
    try:
        return ConflictStrategy(value)
    except ValueError as e:
        choices = ", ".join(s.value for s in ConflictStrategy)
        raise ConfigurationError(
            f"Invalid conflict strategy '{value}' (expected one of: {choices})"
        ) from e


def has_conflict_markers(content: str) -> bool:
    return DETECT_START in content and DETECT_SEPARATOR in content


def resolve(content: str, strategy: ConflictStrategy) -> tuple[str, bool]:
    """Resolve merge-conflict blocks in content.

    Scan states are OUTSIDE and IN_CONFLICT, plus a flag for whether the
    current side is being kept. The start marker selects the "ours" side
    when strategy is ours; the separator selects the "theirs" side when
    strategy is theirs; the end marker returns to OUTSIDE. Markers are
    always dropped. A block with no end marker runs to the end of content.

    Args:
        content: Full file content.
        strategy: Side to keep.

    Returns:
        Tuple of (resolved_content, was_conflicted). Content without both a
        ``<<<<<<< HEAD`` and a ``=======`` marker is returned unchanged with
        was_conflicted False.
    """
    strategy = parse_strategy(strategy)
    if not has_conflict_markers(content):
        return content, False

    state = _ScanState.OUTSIDE
    selecting = False
    kept: list[str] = []

    for line in content.splitlines(keepends=True):
        if line.startswith(START_MARKER):
            state = _ScanState.IN_CONFLICT
            selecting = strategy == ConflictStrategy.OURS
            continue

        if state == _ScanState.IN_CONFLICT:
            if line.startswith(BASE_MARKER):
                selecting = False
                continue
            if line.startswith(SEPARATOR_MARKER):
                selecting = strategy == ConflictStrategy.THEIRS
                continue
            if line.startswith(END_MARKER):
                state = _ScanState.OUTSIDE
                selecting = False
                continue
            if selecting:
                kept.append(line)
            continue

        kept.append(line)

    return "".join(kept), True


class ConflictResolver:
    """Resolves conflict markers with a fixed strategy."""

    def __init__(self, strategy: str | ConflictStrategy) -> None:
        self.strategy: ConflictStrategy = parse_strategy(strategy)

    def resolve(self, content: str) -> tuple[str, bool]:
        return resolve(content, self.strategy)
