"""File transformation components for the batch rewriter."""

from mapper_rewrite.transform.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    MalformedPromptError,
    NonTextResponseError,
    ProviderConfigError,
    ServiceCallError,
    ServiceError,
    TransformError,
)
from mapper_rewrite.transform.client import TextTransformer, TransformClient
from mapper_rewrite.transform.conflict_resolver import ConflictResolver, parse_strategy, resolve
from mapper_rewrite.transform.file_transformer import FileTransformer
from mapper_rewrite.transform.prompt_builder import PromptBuilder, load_template
from mapper_rewrite.transform.response_sanitizer import ResponseSanitizer, clean

__all__ = [
    "ConfigurationError",
    "ConflictResolver",
    "EmptyResponseError",
    "FileTransformer",
    "MalformedPromptError",
    "NonTextResponseError",
    "PromptBuilder",
    "ProviderConfigError",
    "ResponseSanitizer",
    "ServiceCallError",
    "ServiceError",
    "TextTransformer",
    "TransformClient",
    "TransformError",
    "clean",
    "load_template",
    "parse_strategy",
    "resolve",
]
