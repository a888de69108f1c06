"""
Data model (storm records and per-category totals)
==================================================

Each row of the storm table becomes a `RawRecord`. The transformer turns it
into a `NormalizedRecord` with damage expressed in US$, and the aggregator
folds those into one `CategoryTotals` per distinct category label.

Raw and normalized records are immutable (`frozen=True`): the pipeline
produces new values at every stage instead of editing earlier ones.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

# Label used for rows whose category cell is blank.
# Matches how the dataset's own tooling prints a missing value.
MISSING_CATEGORY = "NA"

FATALITIES = "fatalities"
INJURIES = "injuries"
PROPERTY_DAMAGE = "property_damage_dollars"
CROP_DAMAGE = "crop_damage_dollars"

# Ranking order used by the report
METRICS: Tuple[str, ...] = (FATALITIES, INJURIES, PROPERTY_DAMAGE, CROP_DAMAGE)

# (category, value) pairs, largest value first
RankedList = List[Tuple[str, float]]


@dataclass(frozen=True)
class RawRecord:
    """One storm event as read from the table.

    Values are kept as they came out of the file (usually text or None);
    numeric conversion happens in `engine.transform`.
    """
    category: Optional[str]
    fatalities: Any
    injuries: Any
    property_damage_magnitude: Any
    property_damage_unit: Any
    crop_damage_magnitude: Any
    crop_damage_unit: Any


@dataclass(frozen=True)
class NormalizedRecord:
    """Immutable record with damage converted to US$."""
    category: Optional[str]
    fatalities: float
    injuries: float
    property_damage_dollars: float
    crop_damage_dollars: float


@dataclass
class CategoryTotals:
    """Running sums for one category."""
    category: str
    fatalities: float = 0.0
    injuries: float = 0.0
    property_damage_dollars: float = 0.0
    crop_damage_dollars: float = 0.0

    def add(self, rec: NormalizedRecord) -> None:
        self.fatalities += rec.fatalities
        self.injuries += rec.injuries
        self.property_damage_dollars += rec.property_damage_dollars
        self.crop_damage_dollars += rec.crop_damage_dollars

    def absorb(self, other: "CategoryTotals") -> None:
        """Add another partial total for the same category."""
        self.fatalities += other.fatalities
        self.injuries += other.injuries
        self.property_damage_dollars += other.property_damage_dollars
        self.crop_damage_dollars += other.crop_damage_dollars

    def value(self, metric: str) -> float:
        return getattr(self, metric)

    def as_dict(self) -> dict:
        return {
            "category": self.category,
            FATALITIES: self.fatalities,
            INJURIES: self.injuries,
            PROPERTY_DAMAGE: self.property_damage_dollars,
            CROP_DAMAGE: self.crop_damage_dollars,
        }
