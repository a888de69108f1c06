"""Shared fixtures for SHED tests."""

import pytest

from shed.models import RawRecord


def raw(cat, fat, inj, prop, prop_unit, crop, crop_unit):
    return RawRecord(
        category=cat,
        fatalities=fat,
        injuries=inj,
        property_damage_magnitude=prop,
        property_damage_unit=prop_unit,
        crop_damage_magnitude=crop,
        crop_damage_unit=crop_unit,
    )


@pytest.fixture
def scenario_records():
    """Three-row scenario: two TORNADO rows and one FLOOD row."""
    return [
        raw("TORNADO", 5, 10, 2.5, "K", 0, ""),
        raw("TORNADO", 3, 0, 1, "M", 0, ""),
        raw("FLOOD", 1, 1, 1, "B", 2, "K"),
    ]


@pytest.fixture
def storm_csv(tmp_path):
    """Small CSV in the layout of the course storm database."""
    path = tmp_path / "storms.csv"
    path.write_text(
        "STATE__,BGN_DATE,EVTYPE,FATALITIES,INJURIES,PROPDMG,PROPDMGEXP,CROPDMG,CROPDMGEXP\n"
        '1,4/18/1950,TORNADO,5,10,2.5,K,0,\n'
        '1,4/18/1950,TORNADO,3,0,1,M,0,\n'
        '2,6/1/1993,FLOOD,1,1,1,B,2,K\n'
        '2,6/2/1993,TSTM WIND,0,2,5,k,0,?\n'
        '3,7/4/1995,,0,0,0,,0,\n'
    )
    return path


@pytest.fixture
def make_raw():
    """Factory for RawRecord rows: make_raw(cat, fat, inj, prop, unit, crop, unit)."""
    return raw
