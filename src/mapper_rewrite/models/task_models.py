"""Task-related models for the batch rewriter."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ConflictStrategy(str, Enum):
    """Which side of a merge conflict block survives."""

    OURS = "ours"
    THEIRS = "theirs"


class TemplateMode(str, Enum):
    """How the prompt template is combined with file content."""

    FORMAT = "format"
    PREFIX = "prefix"


class OutcomeStatus(str, Enum):
    """Result of transforming a single file."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why a single file failed."""

    READ_ERROR = "read_error"
    SERVICE_ERROR = "service_error"
    EMPTY_RESPONSE = "empty_response"
    NON_TEXT_RESPONSE = "non_text_response"
    WRITE_ERROR = "write_error"


class FileTask(BaseModel):
    """A discovered file waiting to be rewritten."""

    model_config = ConfigDict(frozen=True)
    path: Path

    @property
    def file_type_label(self) -> str:
        return self.path.suffix.lstrip(".").upper()


class FileOutcome(BaseModel):
    """What happened to one file."""

    model_config = ConfigDict(frozen=True)
    path: Path
    status: OutcomeStatus
    reason: FailureReason | None = None
    detail: str | None = None  # Error message for failed outcomes
    was_conflicted: bool = False

    @classmethod
    def success(cls, path: Path, was_conflicted: bool = False) -> "FileOutcome":
        return cls(path=path, status=OutcomeStatus.SUCCESS, was_conflicted=was_conflicted)

    @classmethod
    def skipped(cls, path: Path) -> "FileOutcome":
        return cls(path=path, status=OutcomeStatus.SKIPPED)

    @classmethod
    def failed(
        cls,
        path: Path,
        reason: FailureReason,
        detail: str | None = None,
        was_conflicted: bool = False,
    ) -> "FileOutcome":
        return cls(
            path=path,
            status=OutcomeStatus.FAILED,
            reason=reason,
            detail=detail,
            was_conflicted=was_conflicted,
        )
