"""
Batch planning for bounded store lookups.

The asset store caps the number of values in an in-list predicate, so long
serial lists are looked up in consecutive batches. Callers consume the
batches one at a time, in order.
"""

from typing import Iterator, Sequence, TypeVar

from exceptions import ValidationError

T = TypeVar("T")


def plan_batches(items: Sequence[T], max_batch_size: int) -> Iterator[list[T]]:
    """
    Split items into ordered batches of at most max_batch_size.

    Concatenating the batches gives back the input exactly; an empty input
    yields no batches.

    Raises:
        ValidationError: If max_batch_size is below 1
    """
    if max_batch_size < 1:
        raise ValidationError(
            code="INVALID_BATCH_SIZE",
            message="Batch size must be at least 1",
            details={"max_batch_size": max_batch_size}
        )

    for start in range(0, len(items), max_batch_size):
        yield list(items[start:start + max_batch_size])


def count_batches(total: int, max_batch_size: int) -> int:
    """Number of batches plan_batches yields for total items."""
    return (total + max_batch_size - 1) // max_batch_size  # Ceiling division
