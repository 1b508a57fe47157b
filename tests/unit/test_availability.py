from datetime import date

import pytest

from src.domain.availability import DateRange
from src.domain.exceptions import InvalidInputError


def _range(start_day, end_day):
    return DateRange(date(2026, 11, start_day), date(2026, 11, end_day))


def test_overlapping_ranges_conflict():
    existing = _range(4, 6)
    assert existing.overlaps(_range(1, 5))
    assert _range(1, 5).overlaps(existing)


def test_touching_ranges_do_not_conflict():
    existing = _range(3, 5)
    assert not existing.overlaps(_range(1, 3))
    assert not existing.overlaps(_range(5, 8))


def test_contained_range_conflicts():
    assert _range(1, 10).overlaps(_range(3, 4))


def test_disjoint_ranges_do_not_conflict():
    assert not _range(1, 2).overlaps(_range(10, 12))


def test_single_day_ranges_never_conflict_with_each_other():
    assert not _range(7, 7).overlaps(_range(7, 7))
    assert _range(6, 8).overlaps(_range(7, 7))
    assert _range(7, 7).overlaps(_range(6, 8))


def test_start_after_end_is_rejected():
    with pytest.raises(InvalidInputError):
        _range(5, 4)


def test_missing_dates_are_rejected():
    with pytest.raises(InvalidInputError):
        DateRange(None, date(2026, 11, 1))


def test_day_count_is_inclusive():
    assert _range(1, 1).day_count == 1
    assert _range(1, 3).day_count == 3
