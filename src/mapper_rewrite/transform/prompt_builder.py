"""Prompt construction from a template and file content."""

from pathlib import Path

from mapper_rewrite.models import TemplateMode
from mapper_rewrite.transform.exceptions import ConfigurationError, MalformedPromptError

CONTENT_PLACEHOLDER = "{content}"
PRINTF_PLACEHOLDER = "%s"


def load_template(path: str | Path) -> str:
    """Read the prompt template once, before the batch starts.

    Raises:
        ConfigurationError: If the file is missing, unreadable or blank.
    """
    template_path = Path(path)
    try:
        template = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Failed to read prompt template '{template_path}': {e}"
        ) from e
    if not template.strip():
        raise ConfigurationError(f"Prompt template '{template_path}' is empty")
    return template


def file_type_header(file_type_label: str) -> str:
    return f"\n\n--- {file_type_label} FILE ---\n"


class PromptBuilder:
    """Builds service prompts in one of two forms.

    ``format``: the template holds exactly one ``{content}`` slot, replaced
    by the file content. Other braces are left as they are, so templates may
    quote MyBatis ``#{param}`` expressions. A template without ``{content}``
    may use a single printf-style ``%s`` slot instead.

    ``prefix``: the template is used as-is, followed by a header naming the
    file type and then the file content.
    """

    def __init__(
        self,
        mode: TemplateMode = TemplateMode.FORMAT,
        placeholder: str = CONTENT_PLACEHOLDER,
        fallback_placeholder: str = PRINTF_PLACEHOLDER,
    ) -> None:
        self.mode = TemplateMode(mode)
        self.placeholder = placeholder
        self.fallback_placeholder = fallback_placeholder

    def build(
        self,
        template: str,
        content: str,
        file_type_label: str | None = None,
    ) -> str:
        """Combine template and content into a prompt.

        Raises:
            MalformedPromptError: In format mode, when the template does not
                contain exactly one placeholder.
        """
        if self.mode == TemplateMode.PREFIX:
            label = file_type_label or "TEXT"
            return f"{template.rstrip()}{file_type_header(label)}{content}"

        slot = self.placeholder
        if slot not in template and self.fallback_placeholder:
            slot = self.fallback_placeholder
        slots = template.count(slot)
        if slots != 1:
            raise MalformedPromptError(
                f"Prompt template must contain exactly one {self.placeholder} "
                f"(or {self.fallback_placeholder}) slot for file content (found {slots})"
            )
        return template.replace(slot, content)
