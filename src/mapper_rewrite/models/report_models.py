"""Report models for batch results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from mapper_rewrite.models.task_models import FileOutcome, OutcomeStatus


class BatchSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_files: int                  # Files discovered after deduplication
    attempted: int = 0                # Files handed to the transformer
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    conflicts_resolved: int = 0
    elapsed_seconds: float = 0.0
    estimated_seconds: float = 0.0    # Upfront forecast, advisory only
    cancelled: bool = False
    failures: list[FileOutcome] = Field(default_factory=list)
    finished_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_outcomes(
        cls,
        total_files: int,
        outcomes: list[FileOutcome],
        elapsed_seconds: float,
        estimated_seconds: float = 0.0,
        cancelled: bool = False,
    ) -> "BatchSummary":
        """Tally per-file outcomes into a summary."""
        counts = {status: 0 for status in OutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            total_files=total_files,
            attempted=len(outcomes),
            succeeded=counts[OutcomeStatus.SUCCESS],
            skipped=counts[OutcomeStatus.SKIPPED],
            failed=counts[OutcomeStatus.FAILED],
            conflicts_resolved=sum(1 for o in outcomes if o.was_conflicted),
            elapsed_seconds=elapsed_seconds,
            estimated_seconds=estimated_seconds,
            cancelled=cancelled,
            failures=[o for o in outcomes if o.status == OutcomeStatus.FAILED],
        )
