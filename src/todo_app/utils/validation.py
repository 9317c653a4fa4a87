"""Input validation for todo text and tags.

Validators normalize their input and either return the cleaned value or raise
:class:`ValidationError`. They never touch the store, so a failed validation
always leaves the list unchanged.
"""

import logging
from typing import Any, Iterable, List, Optional

from ..constants import MAX_TAGS_PER_TODO, MAX_TODO_TEXT_LENGTH

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when user input violates a todo policy limit."""

    def __init__(self, message: str, field: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message)


def _is_encodable(value: str) -> bool:
    # Lone surrogates come from undecodable argv bytes and cannot be stored
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def validate_text(text: Optional[str], max_length: int = MAX_TODO_TEXT_LENGTH) -> str:
    """Return the trimmed todo text.

    Raises:
        ValidationError: If the text is empty after trimming or too long
    """
    if not isinstance(text, str):
        raise ValidationError("Todo text must be a string", "text", text)

    cleaned = text.strip()
    if not cleaned:
        raise ValidationError("Todo text cannot be empty", "text", text)
    if not _is_encodable(cleaned):
        raise ValidationError("Todo text must be valid UTF-8", "text", text)
    if len(cleaned) > max_length:
        raise ValidationError(
            f"Todo text is {len(cleaned)} characters, the limit is {max_length}",
            "text",
            text,
        )
    return cleaned


def normalize_tag(tag: Optional[str]) -> str:
    """Strip a single tag.

    Raises:
        ValidationError: If the tag is blank
    """
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError("Tag cannot be empty", "tags", tag)
    if not _is_encodable(tag):
        raise ValidationError("Tag must be valid UTF-8", "tags", tag)
    return tag.strip()


def validate_tags(
    tags: Optional[Iterable[str]], max_tags: int = MAX_TAGS_PER_TODO
) -> List[str]:
    """Return de-duplicated, stripped tags in their original order.

    Blank entries are dropped rather than rejected.

    Raises:
        ValidationError: If more than ``max_tags`` distinct tags remain
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags]

    cleaned: List[str] = []
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            logger.debug(f"Dropping blank tag: {tag!r}")
            continue
        stripped = tag.strip()
        if not _is_encodable(stripped):
            raise ValidationError("Tag must be valid UTF-8", "tags", tag)
        if stripped not in cleaned:
            cleaned.append(stripped)

    if len(cleaned) > max_tags:
        raise ValidationError(
            f"A todo can have at most {max_tags} tags, got {len(cleaned)}",
            "tags",
            cleaned,
        )
    return cleaned
