"""
Shuffle phase: group map output by key and assign whole groups to reducers
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

from localmr.common.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

KeyFunction = Callable[[str], str]


def identity_key(record: str) -> str:
    """Default key function: a record is its own key"""
    return record


def group_records(mapper_outputs: Sequence[Sequence[str]],
                  key_fn: Optional[KeyFunction] = None) -> Dict[str, List[str]]:
    """
    Group every emitted record under its key

    Records keep mapper-output order, then within-output order.

    Args:
        mapper_outputs: One record sequence per map task, in task order
        key_fn: Key extractor applied to each record (identity by default)

    Returns:
        Dictionary mapping key to its records, with keys in sorted order
    """
    key_fn = key_fn or identity_key
    groups = defaultdict(list)
    for records in mapper_outputs:
        for record in records:
            groups[key_fn(record)].append(record)

    return {key: groups[key] for key in sorted(groups)}


def shuffle(mapper_outputs: Sequence[Sequence[str]], num_reducers: int,
            key_fn: Optional[KeyFunction] = None) -> List[List[str]]:
    """
    Distribute grouped records across reducer buckets

    The i-th group in key order goes, as a whole, to bucket i mod num_reducers,
    so every record with a given key lands in the same bucket.

    Args:
        mapper_outputs: One record sequence per map task, in task order
        num_reducers: Number of reducer buckets
        key_fn: Key extractor applied to each record (identity by default)

    Returns:
        num_reducers buckets; some may be empty

    Raises:
        InvalidArgumentError: If mapper_outputs is empty or num_reducers <= 0
    """
    if not mapper_outputs or not isinstance(num_reducers, int) or num_reducers <= 0:
        raise InvalidArgumentError(
            f"Invalid argument: {len(mapper_outputs or [])} mapper outputs, num_reducers={num_reducers!r}")

    groups = group_records(mapper_outputs, key_fn)

    buckets = [[] for _ in range(num_reducers)]
    for i, records in enumerate(groups.values()):
        buckets[i % num_reducers].extend(records)

    logger.info(f"Shuffled {sum(len(b) for b in buckets)} records in {len(groups)} groups "
                f"into {num_reducers} buckets")
    return buckets
