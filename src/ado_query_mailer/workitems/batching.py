"""Split work item id lists into batch-fetch sized chunks."""

from collections.abc import Iterator

from ado_query_mailer.workitems.base import MAX_BATCH_SIZE


def chunk_ids(ids: list[int], size: int = MAX_BATCH_SIZE) -> Iterator[list[int]]:
    """Yield successive chunks of at most *size* ids from *ids*.

    The input list is consumed: every yielded id is removed from *ids*,
    so the list is empty once the generator is exhausted.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    while ids:
        chunk = ids[:size]
        del ids[:size]
        yield chunk
