"""Strip code-fence wrapping from service responses."""

import re
from typing import Iterable

FENCE = "```"

# Content-type tags stripped from an opening fence even when no newline follows
DEFAULT_CONTENT_TAGS = ("xml",)

# Opening fence line carrying an optional language tag, e.g. "```xml"
_TAGGED_OPENING_RE = re.compile(r"^```[\w.+#-]*[ \t]*(?:\r?\n|$)")


def _inline_tag_re(tags: Iterable[str]) -> re.Pattern | None:
    """Match "```<tag>" where the tag runs straight into the content."""
    names = sorted({t.strip().lower() for t in tags if t and t.strip()}, key=len, reverse=True)
    if not names:
        return None
    alternatives = "|".join(re.escape(name) for name in names)
    return re.compile(rf"^```(?:{alternatives})(?![\w.+#-])[ \t]*", re.IGNORECASE)


def _is_fenced(text: str) -> bool:
    return len(text) >= 2 * len(FENCE) and text.startswith(FENCE) and text.endswith(FENCE)


def _strip_once(text: str, inline_re: re.Pattern | None) -> str:
    """Remove one layer of opening/closing fence from already-trimmed text."""
    limit = len(text) - len(FENCE)
    match = _TAGGED_OPENING_RE.match(text)
    if not (match and match.end() <= limit) and inline_re is not None:
        match = inline_re.match(text)
    if match and match.end() <= limit:
        body = text[match.end():]
    else:
        body = text[len(FENCE):]
    return body[: -len(FENCE)].strip()


def clean(raw: str, content_tags: Iterable[str] = DEFAULT_CONTENT_TAGS) -> str:
    """Recover file content from a raw service response.

    Leading and trailing whitespace is trimmed. When the text both starts
    and ends with a fence, the opening fence and the closing fence are
    removed and the result trimmed again. An opening fence loses its
    language tag when a newline follows the tag, or when the tag is one of
    content_tags even if the content starts on the same line. This repeats
    until the text is no longer wrapped, which makes the function
    idempotent. Fences in the middle of the text are untouched.

    Examples:
        "```xml\\n<foo/>\\n```" -> "<foo/>"
        "```xml<foo/>```" -> "<foo/>"
        "plain text" -> "plain text"
    """
    inline_re = _inline_tag_re(content_tags)
    text = raw.strip()
    while _is_fenced(text):
        text = _strip_once(text, inline_re)
    return text


class ResponseSanitizer:
    """Swappable sanitizer used by FileTransformer.

    The file type label of the file being rewritten (e.g. "SQL") is added
    to the default content tags for that call.
    """

    def __init__(self, content_tags: Iterable[str] = DEFAULT_CONTENT_TAGS) -> None:
        self.content_tags = tuple(content_tags)

    def clean(self, raw: str, file_type_label: str | None = None) -> str:
        tags = self.content_tags + ((file_type_label,) if file_type_label else ())
        return clean(raw, tags)
