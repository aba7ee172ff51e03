"""
Data processing used by POST /process and the `process` CLI command.
"""

from .errors import InvalidInputError


def process_data(text: str) -> str:
    """
    Transform input text.

    >>> process_data("hello")
    'Processed: HELLO'

    Raises:
        InvalidInputError: If text is empty.
    """
    if not text:
        raise InvalidInputError("Input cannot be empty")

    return f"Processed: {text.upper()}"
