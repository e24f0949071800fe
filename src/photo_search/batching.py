from typing import List, Sequence

from photo_search.schemas import MediaRecord

DEFAULT_BATCH_SIZE = 15


def plan_batches(records: Sequence[MediaRecord], batch_size: int = DEFAULT_BATCH_SIZE) -> List[List[MediaRecord]]:
    """
    Splits the photos into contiguous batches of at most `batch_size`, keeping
    catalog order. Every record lands in exactly one batch; no batch is empty.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    return [list(records[i:i + batch_size]) for i in range(0, len(records), batch_size)]
