from __future__ import annotations

from uuid import UUID


def canonical_pair(user_a: UUID, user_b: UUID) -> tuple[UUID, UUID]:
    """Order two user ids so an unordered pair always maps to one row.

    Ids are compared on their string form, the same ordering Postgres uses
    for ``uuid`` columns.
    """
    first, second = sorted((user_a, user_b), key=str)
    return first, second
