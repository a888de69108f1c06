"""
Dataset loader (storm table -> RawRecord list)
==============================================

Reads the storm events table and converts each row into a `RawRecord`.

Key ideas:
- Several header spellings are accepted, because the course copy of the
  database and NOAA's own exports name the columns differently.
- Only the seven columns the analysis needs are read, all as text.
  Turning text into numbers is the transformer's job, so a bad cell is
  reported there with its row number.
- Rows are never dropped or reordered here.
"""

from __future__ import annotations
import logging
import os
import re
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .errors import DataFormatError
from .models import RawRecord

logger = logging.getLogger(__name__)

# RawRecord field -> accepted column names, preferred first
COLUMN_ALIASES: Dict[str, Sequence[str]] = {
    "category": ("EVTYPE", "EVENT_TYPE", "Event Type", "Event"),
    "fatalities": ("FATALITIES", "DEATHS_DIRECT", "Deaths"),
    "injuries": ("INJURIES", "INJURIES_DIRECT", "Injuries"),
    "property_damage_magnitude": ("PROPDMG", "Property Damage"),
    "property_damage_unit": ("PROPDMGEXP", "Property Damage Exp", "Property Damage Unit"),
    "crop_damage_magnitude": ("CROPDMG", "Crop Damage"),
    "crop_damage_unit": ("CROPDMGEXP", "Crop Damage Exp", "Crop Damage Unit"),
}

_EXCEL_EXT = (".xlsx", ".xlsm")


def _to_opt_str(x) -> Optional[str]:
    """Return the cell text, or None for a blank cell."""
    if x is None:
        return None
    if not isinstance(x, str) and pd.isna(x):
        return None
    return str(x)


def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())


def _col(columns: Sequence[str], *names: str) -> str:
    cols = list(columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise DataFormatError(f"Missing required column. Tried={tuple(names)}. Available={cols}")


def _is_excel(path: str) -> bool:
    return str(path).lower().endswith(_EXCEL_EXT)


# Only blank cells and the literal "NA" mean missing; "NULL", "None", "N/A", "nan"
# and similar are real labels.
NA_VALUES = ["", "NA"]


def _read(path: str, **kwargs) -> pd.DataFrame:
    kwargs.setdefault("keep_default_na", False)
    kwargs.setdefault("na_values", NA_VALUES)
    if _is_excel(path):
        return pd.read_excel(path, engine="openpyxl", **kwargs)
    # compression (.bz2, .gz, .zip) is inferred from the file name
    return pd.read_csv(path, **kwargs)


def resolve_columns(columns: Sequence[str]) -> Dict[str, str]:
    """Map every RawRecord field to the matching column name in `columns`."""
    stripped = [str(c).strip() for c in columns]
    return {field: _col(stripped, *aliases) for field, aliases in COLUMN_ALIASES.items()}


def records_from_frame(df: pd.DataFrame) -> List[RawRecord]:
    """Convert an already loaded DataFrame into RawRecords (row order kept)."""
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    mapping = resolve_columns(df.columns)
    fields = list(mapping)
    cols = [df[mapping[f]].tolist() for f in fields]

    records: List[RawRecord] = []
    for values in zip(*cols):
        records.append(RawRecord(**{f: _to_opt_str(v) for f, v in zip(fields, values)}))
    return records


def load_storm_table(path: str) -> List[RawRecord]:
    """
    Load a storm table (.csv, .csv.bz2, .csv.gz or .xlsx).

    Raises DataFormatError if a required column is missing.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    header = _read(path, nrows=0)
    mapping = resolve_columns(header.columns)

    # usecols needs the names as they appear in the file
    raw_names = {str(c).strip(): c for c in header.columns}
    usecols = [raw_names[mapping[f]] for f in COLUMN_ALIASES]

    logger.info("Reading %s", path)
    df = _read(path, usecols=usecols, dtype=str)
    records = records_from_frame(df)
    logger.info("Loaded %d rows from %s", len(records), os.path.basename(path))
    return records
