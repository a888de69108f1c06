"""
Core engine (SHED)
==================

The analysis is a straight pipeline over in-memory records:

1) transform  -> RawRecord to NormalizedRecord (damage in US$)
2) aggregate  -> one CategoryTotals per distinct category label
3) rank_top   -> top-N categories for one metric, largest first

Category labels are used exactly as they appear in the data. Near-duplicate
spellings ("TSTM WIND" / "THUNDERSTORM WIND") stay separate categories.
"""

from __future__ import annotations
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .dsa import merge_sort
from .errors import DataFormatError, InvalidArgumentError
from .models import (
    CROP_DAMAGE, FATALITIES, INJURIES, MISSING_CATEGORY, PROPERTY_DAMAGE,
    CategoryTotals, NormalizedRecord, RankedList, RawRecord,
)
from .units import normalize

Totals = Dict[str, CategoryTotals]


# ---------------- Transformer ----------------
def transform(raw: RawRecord, row: Optional[int] = None) -> NormalizedRecord:
    """Normalize one raw record. Raises DataFormatError on a non-numeric count or magnitude."""
    prop = _to_number(raw.property_damage_magnitude, "property_damage_magnitude", row)
    crop = _to_number(raw.crop_damage_magnitude, "crop_damage_magnitude", row)
    return NormalizedRecord(
        category=raw.category,
        fatalities=_to_number(raw.fatalities, "fatalities", row),
        injuries=_to_number(raw.injuries, "injuries", row),
        property_damage_dollars=normalize(prop, raw.property_damage_unit),
        crop_damage_dollars=normalize(crop, raw.crop_damage_unit),
    )


# ---------------- Aggregator ----------------
def aggregate(records: Iterable[NormalizedRecord]) -> Totals:
    """Sum the four metrics per category.

    The returned dict preserves first-seen category order, which the ranker
    relies on for tie-breaking. Records without a category are counted
    under MISSING_CATEGORY.
    """
    totals: Totals = {}
    for rec in records:
        key = _category_key(rec.category)
        entry = totals.get(key)
        if entry is None:
            entry = totals[key] = CategoryTotals(category=key)
        entry.add(rec)
    return totals


def merge_totals(parts: Sequence[Totals]) -> Totals:
    """Combine partial aggregates by summation.

    Parts must be given in input order; a category keeps the position of the
    first part that saw it.
    """
    merged: Totals = {}
    for part in parts:
        for key, entry in part.items():
            target = merged.get(key)
            if target is None:
                target = merged[key] = CategoryTotals(category=key)
            target.absorb(entry)
    return merged


def aggregate_partitioned(records: Sequence[NormalizedRecord], partitions: int) -> Totals:
    """Aggregate contiguous chunks separately, then merge them in chunk order."""
    if not isinstance(partitions, int) or isinstance(partitions, bool) or partitions < 1:
        raise InvalidArgumentError(f"partitions must be a positive integer, got {partitions!r}")
    if partitions == 1 or len(records) <= 1:
        return aggregate(records)
    size = math.ceil(len(records) / partitions)
    chunks = [records[i:i + size] for i in range(0, len(records), size)]
    return merge_totals([aggregate(chunk) for chunk in chunks])


# ---------------- Ranker ----------------
def rank_top(totals: Totals, metric: str, n: int) -> RankedList:
    """Return the top `n` (category, value) pairs for `metric`, largest first.

    Equal values keep the insertion order of `totals`. If fewer than `n`
    categories exist, all of them are returned.
    """
    if not isinstance(n, int) or isinstance(n, bool) or n <= 0:
        raise InvalidArgumentError(f"n must be a positive integer, got {n!r}")
    attr = metric_attr(metric)
    pairs = [(cat, entry.value(attr)) for cat, entry in totals.items()]
    ranked = merge_sort(pairs, key=_rank_key, reverse=True)
    return ranked[:n]


def metric_attr(metric: str) -> str:
    """Resolve a metric name (or common alias) to a CategoryTotals attribute."""
    m = str(metric).strip().lower().replace("-", "_")
    if m in ("fatalities", "deaths"):
        return FATALITIES
    if m in ("injuries", "injured"):
        return INJURIES
    if m in ("property_damage_dollars", "propertydamagedollars", "property_damage", "property", "propdmg"):
        return PROPERTY_DAMAGE
    if m in ("crop_damage_dollars", "cropdamagedollars", "crop_damage", "crop", "cropdmg"):
        return CROP_DAMAGE
    raise InvalidArgumentError(
        f"unknown metric {metric!r}; expected one of: fatalities, injuries, "
        "property_damage_dollars, crop_damage_dollars"
    )


# ---------------- Helpers ----------------
def _rank_key(pair) -> tuple:
    # NaN totals (e.g. inf + -inf) compare false both ways; rank them last
    v = pair[1]
    if v != v:
        return (0, 0.0)
    return (1, v)


def _category_key(category: Optional[str]) -> str:
    if category is None:
        return MISSING_CATEGORY
    if not isinstance(category, str) and pd.isna(category):
        return MISSING_CATEGORY
    return category


def _to_number(x: Any, field: str, row: Optional[int]) -> float:
    """Convert a cell to float; missing or non-numeric cells are a DataFormatError."""
    if x is None or (not isinstance(x, str) and pd.isna(x)):
        raise DataFormatError(f"missing value for {field}", row=row, field=field)
    if isinstance(x, bool):
        raise DataFormatError(f"non-numeric value for {field}: {x!r}", row=row, field=field)
    try:
        return float(x)
    except (TypeError, ValueError) as e:
        raise DataFormatError(f"non-numeric value for {field}: {x!r}", row=row, field=field) from e
