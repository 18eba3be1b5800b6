"""Validated run configuration."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mapper_rewrite.models.task_models import ConflictStrategy, TemplateMode

DEFAULT_EXTENSION = ".xml"
DEFAULT_TEMPLATE_PATH = "prompt.txt"
DEFAULT_THROTTLE_SECONDS = 5.0
DEFAULT_ESTIMATED_CALL_SECONDS = 3.0
DEFAULT_EXCLUDE_DIRS = (".git",)
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_MAX_TOKENS = 8192


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and make sure it starts with a dot."""
    ext = extension.strip().lower()
    if not ext:
        raise ValueError("extension must not be empty")
    if not ext.startswith("."):
        ext = "." + ext
    return ext


class RunConfig(BaseModel):
    """Options for one batch run, as assembled by the CLI."""

    model_config = ConfigDict(frozen=True)

    root_paths: list[Path] = Field(min_length=1)
    extension: str = DEFAULT_EXTENSION
    template_path: Path = Path(DEFAULT_TEMPLATE_PATH)
    template_mode: TemplateMode = TemplateMode.FORMAT
    strategy: ConflictStrategy = ConflictStrategy.OURS
    llm_provider: str = "auto"
    model: str = DEFAULT_MODEL
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    throttle_seconds: float = Field(default=DEFAULT_THROTTLE_SECONDS, ge=0)
    estimated_call_seconds: float = Field(default=DEFAULT_ESTIMATED_CALL_SECONDS, ge=0)
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS

    @field_validator("extension")
    @classmethod
    def _normalize_extension(cls, value: str) -> str:
        return normalize_extension(value)

    @field_validator("llm_provider")
    @classmethod
    def _check_provider(cls, value: str) -> str:
        if value not in {"auto", "anthropic", "openai"}:
            raise ValueError(f"Unsupported provider: {value}")
        return value
