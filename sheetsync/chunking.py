"""Split record lists into bounded batches for size-capped store calls."""

from typing import TypeVar

T = TypeVar("T")


def chunked(items: list[T], size: int) -> list[list[T]]:
    """
    Partition items into consecutive lists of at most `size`.

    Args:
        items: Records to split
        size: Maximum batch size

    Returns:
        List of batches; the last one may be smaller, empty input gives []
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [items[i : i + size] for i in range(0, len(items), size)]
