from decimal import Decimal

import pytest

from src.domain.exceptions import InvalidInputError
from src.domain.vendor import (
    MAX_VENUE_UNITS,
    EventPackageData,
    EventTeamKind,
    EventTeamOffering,
    FreelancerCategory,
    FreelancerKind,
    Pricing,
    VendorProfile,
    VendorType,
    VenueKind,
    VenueUnitData,
    validate_unit_batch,
)


def _unit(title, price="1000", unit_id=None):
    return VenueUnitData(title=title, capacity=100, price_per_day=Decimal(price), id=unit_id)


def _profile(kind):
    return VendorProfile(user_id="user-1", name="Royal Gardens", city="Jaipur", kind=kind)


def test_venue_requires_at_least_one_unit():
    with pytest.raises(InvalidInputError, match="at least one venue unit"):
        _profile(VenueKind(units=()))


def test_event_team_requires_at_least_one_package():
    with pytest.raises(InvalidInputError, match="at least one package"):
        _profile(EventTeamKind(offering=EventTeamOffering(packages=())))


def test_freelancer_requires_category():
    with pytest.raises(InvalidInputError):
        _profile(FreelancerKind(category=None))


def test_freelancer_rejects_negative_base_price():
    with pytest.raises(InvalidInputError):
        _profile(
            FreelancerKind(
                category=FreelancerCategory.DJ,
                pricing=Pricing(base_price=Decimal("-1")),
            )
        )


def test_profile_reports_vendor_type():
    assert _profile(VenueKind(units=(_unit("Hall A"),))).vendor_type == VendorType.VENUE
    assert _profile(FreelancerKind(category=FreelancerCategory.DJ)).vendor_type == VendorType.FREELANCER


def test_unit_batch_preserves_order():
    batch = validate_unit_batch([_unit("Hall A"), _unit("Hall B"), _unit("Lawn")])
    assert [unit.title for unit in batch] == ["Hall A", "Hall B", "Lawn"]


def test_unit_batch_rejects_duplicate_titles():
    with pytest.raises(InvalidInputError, match="unique"):
        validate_unit_batch([_unit("Hall A"), _unit("hall a ")])


def test_unit_batch_is_bounded():
    units = [_unit(f"Hall {i}") for i in range(MAX_VENUE_UNITS + 1)]
    with pytest.raises(InvalidInputError):
        validate_unit_batch(units)

    with pytest.raises(InvalidInputError):
        validate_unit_batch([_unit("Extra")], existing_count=MAX_VENUE_UNITS)


def test_unit_rejects_bad_capacity_and_price():
    with pytest.raises(InvalidInputError):
        VenueUnitData(title="Hall", capacity=0, price_per_day=Decimal("10"))
    with pytest.raises(InvalidInputError):
        VenueUnitData(title="Hall", capacity=10, price_per_day=Decimal("-10"))


def test_package_requires_name():
    with pytest.raises(InvalidInputError):
        EventPackageData(name=" ", price=Decimal("10"))


def test_find_unit_and_package():
    venue = _profile(VenueKind(units=(_unit("Hall A", unit_id="u1"), _unit("Hall B", unit_id="u2"))))
    assert venue.find_unit("u2").title == "Hall B"
    assert venue.find_unit("missing") is None
    assert venue.find_package("p1") is None

    package = EventPackageData(name="Silver", price=Decimal("5000"), id="p1")
    team = _profile(EventTeamKind(offering=EventTeamOffering(packages=(package,))))
    assert team.find_package("p1") is package
    assert team.find_unit("u1") is None
