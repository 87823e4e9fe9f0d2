"""Token estimation utilities.

Token estimates use tiktoken so that section sizes line up with what an
LLM context window will actually be charged.
"""

import tiktoken

from ...config import settings
from ..scoring.constants import BYTES_PER_TOKEN

_encoding: tiktoken.Encoding | None = None


def get_encoder() -> tiktoken.Encoding:
    """Get or create the tiktoken encoder (lazy initialization).

    Returns:
        The tiktoken encoding configured by ``settings.token_encoding``
    """
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding(settings.token_encoding)
    return _encoding


def count_tokens(text: str) -> int:
    """Count tokens in text using tiktoken.

    Args:
        text: Text to count tokens for

    Returns:
        Number of tokens in the text
    """
    if not text:
        return 0
    return len(get_encoder().encode(text, disallowed_special=()))


def estimate_tokens_from_size(size: int) -> int:
    """Estimate tokens for a file known only by its byte size."""
    if size <= 0:
        return 0
    return max(1, size // BYTES_PER_TOKEN)
