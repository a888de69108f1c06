"""
Tests for the transformer, aggregator and ranker.
"""

import itertools

import pytest

from shed.dsa import merge_sort
from shed.engine import (
    aggregate, aggregate_partitioned, merge_totals, metric_attr, rank_top, transform,
)
from shed.errors import DataFormatError, InvalidArgumentError
from shed.models import (
    CROP_DAMAGE, FATALITIES, INJURIES, MISSING_CATEGORY, PROPERTY_DAMAGE,
    CategoryTotals, NormalizedRecord,
)


def _norm(cat, fat=0, inj=0, prop=0, crop=0):
    return NormalizedRecord(cat, fat, inj, prop, crop)


def _totals(*pairs):
    """Totals with a controlled insertion order; each pair is (category, fatalities)."""
    return {cat: CategoryTotals(category=cat, fatalities=v) for cat, v in pairs}


class TestTransform:

    def test_damage_is_normalized(self, make_raw):
        rec = transform(make_raw("FLOOD", "1", "2", "1.5", "m", "3", "K"))
        assert rec.category == "FLOOD"
        assert rec.fatalities == 1
        assert rec.injuries == 2
        assert rec.property_damage_dollars == 1_500_000
        assert rec.crop_damage_dollars == 3000

    def test_category_is_kept_verbatim(self, make_raw):
        rec = transform(make_raw(" tstm wind ", 0, 0, 0, "", 0, ""))
        assert rec.category == " tstm wind "

    def test_missing_count_is_data_format_error(self, make_raw):
        with pytest.raises(DataFormatError) as exc:
            transform(make_raw("HAIL", None, 0, 0, "", 0, ""), row=7)
        assert exc.value.row == 7
        assert exc.value.field == "fatalities"
        assert "row 7" in str(exc.value)

    @pytest.mark.parametrize("bad", ["abc", "", "1,000", float("nan")])
    def test_non_numeric_magnitude_is_data_format_error(self, make_raw, bad):
        with pytest.raises(DataFormatError):
            transform(make_raw("HAIL", 0, 0, bad, "K", 0, ""))

    def test_unknown_unit_is_not_an_error(self, make_raw):
        rec = transform(make_raw("HAIL", 0, 0, "4", "?", "2", None))
        assert rec.property_damage_dollars == 4
        assert rec.crop_damage_dollars == 2


class TestAggregate:

    def test_scenario(self, scenario_records):
        totals = aggregate([transform(r) for r in scenario_records])
        assert list(totals) == ["TORNADO", "FLOOD"]
        t = totals["TORNADO"]
        assert (t.fatalities, t.injuries, t.property_damage_dollars, t.crop_damage_dollars) == (8, 10, 1_002_500, 0)
        f = totals["FLOOD"]
        assert (f.fatalities, f.injuries, f.property_damage_dollars, f.crop_damage_dollars) == (1, 1, 1_000_000_000, 2000)

    def test_case_and_whitespace_sensitive(self):
        totals = aggregate([_norm("Flood", 1), _norm("FLOOD", 1), _norm("FLOOD ", 1)])
        assert list(totals) == ["Flood", "FLOOD", "FLOOD "]

    def test_missing_category_is_counted(self):
        totals = aggregate([_norm(None, 2), _norm(float("nan"), 3), _norm("HAIL", 1)])
        assert totals[MISSING_CATEGORY].fatalities == 5
        assert sum(t.fatalities for t in totals.values()) == 6

    def test_permutation_invariant(self):
        recs = [_norm("A", 1, 2, 3, 4), _norm("B", 5, 0, 1, 0), _norm("A", 0, 1, 0, 2), _norm("C", 2, 2, 2, 2)]
        expected = {k: v.as_dict() for k, v in aggregate(recs).items()}
        for perm in itertools.permutations(recs):
            got = {k: v.as_dict() for k, v in aggregate(perm).items()}
            assert got == expected

    def test_empty(self):
        assert aggregate([]) == {}


class TestPartitioned:

    def test_matches_single_pass_including_order(self):
        recs = [_norm(c, i) for i, c in enumerate("ABACBDEAFD")]
        single = aggregate(recs)
        for k in (1, 2, 3, 4, 10, 25):
            parted = aggregate_partitioned(recs, k)
            assert list(parted) == list(single)
            assert {c: t.as_dict() for c, t in parted.items()} == {c: t.as_dict() for c, t in single.items()}

    def test_merge_totals_sums(self):
        a = _totals(("X", 1), ("Y", 2))
        b = _totals(("Y", 3), ("Z", 4))
        merged = merge_totals([a, b])
        assert list(merged) == ["X", "Y", "Z"]
        assert merged["Y"].fatalities == 5
        # inputs untouched
        assert a["Y"].fatalities == 2

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True])
    def test_invalid_partitions(self, bad):
        with pytest.raises(InvalidArgumentError):
            aggregate_partitioned([_norm("A")], bad)


class TestRankTop:

    def test_scenario(self, scenario_records):
        totals = aggregate([transform(r) for r in scenario_records])
        assert rank_top(totals, PROPERTY_DAMAGE, 1) == [("FLOOD", 1_000_000_000)]
        assert rank_top(totals, FATALITIES, 5) == [("TORNADO", 8), ("FLOOD", 1)]

    def test_camel_case_metric_names(self, scenario_records):
        totals = aggregate([transform(r) for r in scenario_records])
        assert rank_top(totals, "propertyDamageDollars", 1) == rank_top(totals, PROPERTY_DAMAGE, 1)
        assert rank_top(totals, "cropDamageDollars", 1) == [("FLOOD", 2000)]

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 10])
    def test_boundedness(self, n):
        totals = _totals(("A", 3), ("B", 1), ("C", 2), ("D", 5))
        assert len(rank_top(totals, FATALITIES, n)) == min(n, 4)

    def test_descending(self):
        totals = _totals(*[(f"C{i}", v) for i, v in enumerate([3, 9, 1, 9, 0, 4, 4, 7])])
        ranked = rank_top(totals, FATALITIES, 8)
        values = [v for _, v in ranked]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_ties_keep_insertion_order(self):
        totals = _totals(("ZEBRA", 4), ("APPLE", 4), ("MANGO", 9), ("KIWI", 4))
        assert rank_top(totals, FATALITIES, 4) == [("MANGO", 9), ("ZEBRA", 4), ("APPLE", 4), ("KIWI", 4)]
        reordered = _totals(("KIWI", 4), ("MANGO", 9), ("ZEBRA", 4), ("APPLE", 4))
        assert rank_top(reordered, FATALITIES, 2) == [("MANGO", 9), ("KIWI", 4)]

    @pytest.mark.parametrize("n", [0, -3, 2.0, None, True])
    def test_invalid_n(self, n):
        totals = _totals(("A", 1))
        with pytest.raises(InvalidArgumentError):
            rank_top(totals, FATALITIES, n)
        assert totals["A"].fatalities == 1

    def test_unknown_metric(self):
        with pytest.raises(InvalidArgumentError):
            rank_top(_totals(("A", 1)), "wind_speed", 1)

    def test_nan_totals_rank_last(self):
        totals = _totals(("A", 1.0), ("BROKEN", float("nan")), ("C", 5.0), ("D", float("inf")))
        ranked = rank_top(totals, FATALITIES, 4)
        assert [c for c, _ in ranked] == ["D", "C", "A", "BROKEN"]
        values = [v for _, v in ranked[:3]]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_inf_minus_inf_category_does_not_break_order(self, make_raw):
        rows = [
            make_raw("X", 0, 0, "inf", "", 0, ""),
            make_raw("X", 0, 0, "-inf", "", 0, ""),
            make_raw("Y", 0, 0, "2", "K", 0, ""),
            make_raw("Z", 0, 0, "3", "", 0, ""),
        ]
        totals = aggregate([transform(r) for r in rows])
        assert [c for c, _ in rank_top(totals, PROPERTY_DAMAGE, 3)] == ["Y", "Z", "X"]

    def test_empty_totals(self):
        assert rank_top({}, INJURIES, 3) == []


class TestMetricAttr:

    @pytest.mark.parametrize("name,attr", [
        ("fatalities", FATALITIES), ("Deaths", FATALITIES), ("injuries", INJURIES),
        ("property-damage", PROPERTY_DAMAGE), ("PROPDMG", PROPERTY_DAMAGE),
        ("crop", CROP_DAMAGE), ("crop_damage_dollars", CROP_DAMAGE),
    ])
    def test_aliases(self, name, attr):
        assert metric_attr(name) == attr


class TestMergeSort:

    def test_stable_descending(self):
        items = [("a", 1), ("b", 2), ("c", 1), ("d", 2), ("e", 3)]
        out = merge_sort(items, key=lambda p: p[1], reverse=True)
        assert out == [("e", 3), ("b", 2), ("d", 2), ("a", 1), ("c", 1)]

    def test_stable_ascending(self):
        items = [("a", 1), ("b", 0), ("c", 1)]
        assert merge_sort(items, key=lambda p: p[1]) == [("b", 0), ("a", 1), ("c", 1)]

    def test_returns_copy(self):
        items = [3, 1, 2]
        assert merge_sort(items) == [1, 2, 3]
        assert items == [3, 1, 2]
