"""Rewrite a single file through the transformation service."""

import logging
from pathlib import Path

from mapper_rewrite.models import (
    ConflictStrategy,
    FailureReason,
    FileOutcome,
    TemplateMode,
)
from mapper_rewrite.transform.client import TextTransformer
from mapper_rewrite.transform.conflict_resolver import ConflictResolver
from mapper_rewrite.transform.exceptions import (
    EmptyResponseError,
    NonTextResponseError,
    ServiceError,
)
from mapper_rewrite.transform.prompt_builder import PromptBuilder
from mapper_rewrite.transform.response_sanitizer import ResponseSanitizer

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class FileTransformer:
    """Read, resolve, prompt, call, sanitize, write. One file at a time."""

    def __init__(
        self,
        service: TextTransformer,
        template: str,
        strategy: str | ConflictStrategy = ConflictStrategy.OURS,
        prompt_builder: PromptBuilder | None = None,
        sanitizer: ResponseSanitizer | None = None,
    ) -> None:
        """Initialize the transformer.

        Args:
            service: External transformation service.
            template: Prompt template shared read-only by every file.
            strategy: Conflict side to keep ("ours" or "theirs").
            prompt_builder: Defaults to format-mode PromptBuilder.
            sanitizer: Defaults to ResponseSanitizer.

        Raises:
            ConfigurationError: If strategy is not ours/theirs.
        """
        self.service = service
        self.template = template
        self.resolver = ConflictResolver(strategy)
        self.prompt_builder = prompt_builder or PromptBuilder(TemplateMode.FORMAT)
        self.sanitizer = sanitizer or ResponseSanitizer()

    @property
    def strategy(self) -> ConflictStrategy:
        return self.resolver.strategy

    def transform(self, path: str | Path, file_type_label: str | None = None) -> FileOutcome:
        """Transform one file in place.

        Per-file problems are logged and returned as a failed FileOutcome so
        the batch can carry on. The file is written at most once, and only
        when every earlier step succeeded.

        Args:
            path: File to rewrite.
            file_type_label: Label used by prefix-mode prompts, e.g. "XML".

        Returns:
            FileOutcome with status success, skipped or failed.

        Raises:
            MalformedPromptError: If the template cannot be applied. This is a
                configuration problem shared by every file, so it is not
                turned into a per-file failure.
        """
        file_path = Path(path)

        try:
            content = file_path.read_bytes().decode(ENCODING)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read %s: %s", file_path, e)
            return FileOutcome.failed(file_path, FailureReason.READ_ERROR, str(e))

        if not content:
            logger.debug("Skipping empty file %s", file_path)
            return FileOutcome.skipped(file_path)

        content, was_conflicted = self.resolver.resolve(content)
        if was_conflicted:
            logger.info(
                "Resolved merge conflicts in %s using '%s' strategy",
                file_path,
                self.strategy.value,
            )

        prompt = self.prompt_builder.build(self.template, content, file_type_label)

        try:
            raw_response = self.service.generate(prompt)
        except EmptyResponseError as e:
            logger.error("No candidate output from service for %s: %s", file_path, e)
            return FileOutcome.failed(
                file_path, FailureReason.EMPTY_RESPONSE, str(e), was_conflicted
            )
        except NonTextResponseError as e:
            logger.error("Non-text response from service for %s: %s", file_path, e)
            return FileOutcome.failed(
                file_path, FailureReason.NON_TEXT_RESPONSE, str(e), was_conflicted
            )
        except ServiceError as e:
            logger.error("Service call failed for %s: %s", file_path, e)
            return FileOutcome.failed(
                file_path, FailureReason.SERVICE_ERROR, str(e), was_conflicted
            )

        final_content = self.sanitizer.clean(raw_response, file_type_label)

        try:
            file_path.write_bytes(final_content.encode(ENCODING))
        except OSError as e:
            logger.error("Failed to write %s: %s", file_path, e)
            return FileOutcome.failed(
                file_path, FailureReason.WRITE_ERROR, str(e), was_conflicted
            )

        logger.debug("Rewrote %s (%d chars)", file_path, len(final_content))
        return FileOutcome.success(file_path, was_conflicted)
