"""
Shared utility modules.
"""
from healthymeal.utils.sanitization import sanitize_text_input, normalize_tags, TrimmedStr, TagList

__all__ = ["sanitize_text_input", "normalize_tags", "TrimmedStr", "TagList"]
