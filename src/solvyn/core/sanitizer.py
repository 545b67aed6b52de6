# src/solvyn/core/sanitizer.py
"""Input guard applied before any evaluation attempt.

This is a length guard plus whitespace trimming. It is NOT a security
boundary: it does not neutralize injection payloads, control characters,
or prompt-injection text destined for an AI provider. Evaluators and
providers remain responsible for treating their input as untrusted.
"""

from solvyn.contracts.errors import InputTooLongError

DEFAULT_MAX_INPUT_LENGTH = 500


def sanitize_input(text: str, max_length: int = DEFAULT_MAX_INPUT_LENGTH) -> str:
    """Trim surrounding whitespace and enforce the length limit.

    Args:
        text: Raw caller input
        max_length: Maximum allowed length of the trimmed text

    Returns:
        The trimmed text

    Raises:
        InputTooLongError: If the trimmed text is longer than max_length
    """
    safe = text.strip()
    if len(safe) > max_length:
        raise InputTooLongError(max_length)
    return safe
