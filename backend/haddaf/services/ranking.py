from __future__ import annotations
from typing import Any, Iterable, Sequence, TypeVar

T = TypeVar("T")

TOP_N = 3


def ranking_key(s: Any) -> tuple:
    # Most points first; on equal points the earlier submission wins
    return (-int(s.total_points or 0), s.created_at)


def rank_top(submissions: Iterable[T], n: int = TOP_N) -> list[T]:
    """
    Ordered top-n of `submissions` (anything with total_points and created_at).

    sorted() is stable, so entries equal on both points and timestamp keep
    their input order. Pure: the input is not modified.
    """
    if n <= 0:
        return []
    return sorted(submissions, key=ranking_key)[:n]


def pinned_order(top: Sequence[T], submissions: Iterable[T]) -> list[T]:
    """`top` first, then the rest of `submissions` in their original order, without duplicates."""
    top_ids = {s.id for s in top}
    return list(top) + [s for s in submissions if s.id not in top_ids]


def pinned_rank(submission_id: Any, top: Sequence[Any]) -> int | None:
    for idx, s in enumerate(top):
        if s.id == submission_id:
            return idx + 1
    return None
