"""
Sorting utilities
=================

The ranker needs a *stable* descending sort: categories with equal totals
must keep the order in which they were first seen. A merge sort gives that
guarantee explicitly, for both directions.
"""

from __future__ import annotations
from typing import Callable, List, TypeVar

T = TypeVar("T")


def merge_sort(arr: List[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Stable merge sort; returns a new list.

    With reverse=True, larger keys come first and equal keys keep their
    input order.
    """
    if len(arr) <= 1:
        return arr[:]
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key, reverse=reverse)
    right = merge_sort(arr[mid:], key=key, reverse=reverse)
    return _merge(left, right, key=key, reverse=reverse)


def _merge(left: List[T], right: List[T], key: Callable[[T], object], reverse: bool) -> List[T]:
    out: List[T] = []
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = key(left[i]), key(right[j])
        # on ties the left element wins, in both directions
        take_left = (a >= b) if reverse else (a <= b)
        if take_left:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out
