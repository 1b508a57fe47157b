# src/domain/pricing.py

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from src.domain.availability import DateRange
from src.domain.exceptions import InvalidInputError
from src.domain.vendor import (
    EventPackageData,
    EventTeamKind,
    FreelancerKind,
    VendorKind,
    VendorType,
    VenueKind,
    VenueUnitData,
)


CENT = Decimal("0.01")

ADVANCE_PERCENT: dict[VendorType, Decimal] = {
    VendorType.VENUE: Decimal("0.40"),
    VendorType.FREELANCER: Decimal("0.25"),
    VendorType.EVENT_TEAM: Decimal("0.50"),
}
DEFAULT_ADVANCE_PERCENT = Decimal("0.30")


@dataclass(frozen=True)
class PriceBreakdown:
    total: Decimal
    advance: Decimal
    remaining: Decimal
    advance_percent: Decimal

    @property
    def advance_percent_label(self) -> str:
        return f"{(self.advance_percent * 100).normalize():f}%"


def advance_percent_for(vendor_type: VendorType | str) -> Decimal:
    try:
        key = VendorType(vendor_type)
    except ValueError:
        return DEFAULT_ADVANCE_PERCENT
    return ADVANCE_PERCENT.get(key, DEFAULT_ADVANCE_PERCENT)


def day_count(start: date, end: date) -> int:
    """Inclusive number of calendar days covered by [start, end]."""
    return DateRange(start, end).day_count


def to_minor_units(amount: Decimal) -> int:
    """Converts a major-unit amount to integer minor units (paise, cents)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _base_total(
    kind: VendorKind,
    start: date,
    end: date,
    unit: VenueUnitData | None,
    package: EventPackageData | None,
) -> Decimal | None:
    match kind:
        case VenueKind():
            if unit is None:
                raise InvalidInputError("A venue unit is required to price a venue booking")
            return Decimal(unit.price_per_day) * day_count(start, end)
        case FreelancerKind(pricing=pricing):
            return pricing.base_price
        case EventTeamKind():
            if package is None:
                raise InvalidInputError("A package must be selected to price an event team booking")
            return package.price
        case _:
            raise TypeError(f"Unknown vendor kind: {type(kind)!r}")


def compute_price(
    kind: VendorKind,
    start: date,
    end: date,
    unit: VenueUnitData | None = None,
    package: EventPackageData | None = None,
    explicit_total: Decimal | None = None,
) -> PriceBreakdown:
    """
    Total, advance and remaining amounts for a booking.

    A positive explicit total overrides the catalog price. The advance is
    rounded half-up to the currency's minor unit and the remainder absorbs
    the difference, so advance + remaining always equals total.
    """
    if explicit_total is not None and explicit_total > 0:
        total = explicit_total
    else:
        total = _base_total(kind, start, end, unit, package)

    if total is None:
        raise InvalidInputError("Unable to determine a price for this booking")
    try:
        total = Decimal(total).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidInputError("Booking total is not a valid amount") from exc
    if total < 0:
        raise InvalidInputError("Booking total cannot be negative")

    percent = advance_percent_for(kind.vendor_type)
    advance = (total * percent).quantize(CENT, rounding=ROUND_HALF_UP)
    return PriceBreakdown(
        total=total,
        advance=advance,
        remaining=total - advance,
        advance_percent=percent,
    )
