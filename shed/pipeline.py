"""
Report driver
=============

Runs the whole analysis over a loaded table:

    raw records -> transform -> aggregate -> rank (x4 metrics)

Records reach the transformer in input order, unfiltered. The same `n`
is used for every metric.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Dict, List, Sequence

from .engine import Totals, aggregate, aggregate_partitioned, rank_top, transform
from .errors import DataFormatError, InvalidArgumentError
from .models import METRICS, NormalizedRecord, RankedList, RawRecord

logger = logging.getLogger(__name__)

ON_ERROR_CHOICES = ("raise", "skip")


@dataclass
class PipelineResult:
    """Everything the report needs from one run."""
    totals: Totals
    rankings: Dict[str, RankedList]
    n: int
    records_in: int
    records_used: int
    skipped: int = 0
    # (row, message) for every skipped row
    errors: List[tuple] = field(default_factory=list)

    def ranking(self, metric: str) -> RankedList:
        return self.rankings[metric]


def transform_all(raw_records: Sequence[RawRecord], on_error: str = "raise") -> tuple:
    """Transform every record, applying the corrupt-row policy.

    Returns (normalized_records, errors) where errors lists (row, message)
    for skipped rows.
    """
    if on_error not in ON_ERROR_CHOICES:
        raise InvalidArgumentError(f"on_error must be one of {ON_ERROR_CHOICES}, got {on_error!r}")

    out: List[NormalizedRecord] = []
    errors: List[tuple] = []
    for i, raw in enumerate(raw_records):
        try:
            out.append(transform(raw, row=i))
        except DataFormatError as e:
            if on_error == "raise":
                raise
            logger.debug("Skipping corrupt row: %s", e)
            errors.append((i, str(e)))
    if errors:
        logger.warning("Skipped %d of %d rows with unreadable values", len(errors), len(raw_records))
    return out, errors


def run_pipeline(
    raw_records: Sequence[RawRecord],
    n: int = 10,
    *,
    on_error: str = "raise",
    partitions: int = 1,
) -> PipelineResult:
    """Run transform -> aggregate -> rank for all four metrics."""
    # validate before doing the expensive part
    if not isinstance(n, int) or isinstance(n, bool) or n <= 0:
        raise InvalidArgumentError(f"n must be a positive integer, got {n!r}")

    logger.info("Transforming %d records", len(raw_records))
    normalized, errors = transform_all(raw_records, on_error=on_error)

    if partitions == 1:
        totals = aggregate(normalized)
    else:
        totals = aggregate_partitioned(normalized, partitions)
    logger.info("Aggregated into %d categories", len(totals))

    rankings = {metric: rank_top(totals, metric, n) for metric in METRICS}
    return PipelineResult(
        totals=totals,
        rankings=rankings,
        n=n,
        records_in=len(raw_records),
        records_used=len(normalized),
        skipped=len(errors),
        errors=errors,
    )
