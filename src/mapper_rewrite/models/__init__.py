"""Data models for the batch rewriter."""

from mapper_rewrite.models.config_models import RunConfig, normalize_extension
from mapper_rewrite.models.report_models import BatchSummary
from mapper_rewrite.models.task_models import (
    ConflictStrategy,
    FailureReason,
    FileOutcome,
    FileTask,
    OutcomeStatus,
    TemplateMode,
)

__all__ = [
    "BatchSummary",
    "ConflictStrategy",
    "FailureReason",
    "FileOutcome",
    "FileTask",
    "OutcomeStatus",
    "RunConfig",
    "TemplateMode",
    "normalize_extension",
]
