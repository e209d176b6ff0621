# Overview: Record id assignment for products, sales and users.

from __future__ import annotations

from typing import Iterable

from ..time_utils import now_millis


def next_record_id(existing_ids: Iterable[int]) -> int:
    """
    Timestamp-derived id that is unique within a collection.

    Ids are milliseconds since the epoch, bumped past the largest id already
    in use so that two records created in the same millisecond (or after a
    clock step backwards) never collide. Ids are never reused.
    """
    highest = max(existing_ids, default=0)
    return max(now_millis(), highest + 1)


def allocate_record_ids(existing_ids: Iterable[int], count: int) -> list[int]:
    """Reserve `count` consecutive fresh ids, for bulk imports."""
    first = next_record_id(existing_ids)
    return [first + offset for offset in range(count)]
