"""
Input sanitization utilities for user-provided recipe and preference text.

Recipe text is rendered back to other clients, so markup and script-like
content is stripped before it is stored.
"""
import re
from typing import Annotated, List

from pydantic import AfterValidator

# Longest accepted allergy or disliked-ingredient tag
MAX_TAG_LENGTH = 50


def sanitize_text_input(value: str) -> str:
    """
    Remove HTML tags, script URIs and inline event handlers, then trim.

    Line breaks inside the text are preserved since ingredients and
    instructions are newline separated.

    Examples:
        >>> sanitize_text_input("  2 eggs<script>x</script>  ")
        '2 eggsx'
        >>> sanitize_text_input("javascript:alert(1)")
        'alert(1)'
    """
    if not value:
        return value

    value = re.sub(r'<[^>]*>', '', value)
    value = re.sub(r'(?i)(javascript|data|vbscript):', '', value)
    value = re.sub(r'(?i)on\w+\s*=', '', value)

    return value.strip()


def normalize_tags(values: List[str]) -> List[str]:
    """
    Clean a list of free-form tags (allergies, disliked ingredients).

    Blank tags are dropped and case-insensitive duplicates collapse onto the
    first spelling seen.

    Raises:
        ValueError: If a tag is longer than MAX_TAG_LENGTH.
    """
    seen = set()
    tags: List[str] = []
    for raw in values:
        tag = sanitize_text_input(raw)
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag '{tag[:20]}...' exceeds {MAX_TAG_LENGTH} characters")
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
    return tags


# Annotated types for use in Pydantic models
TrimmedStr = Annotated[str, AfterValidator(sanitize_text_input)]

TagList = Annotated[List[str], AfterValidator(normalize_tags)]
