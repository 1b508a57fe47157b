# src/domain/vendor.py

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Sequence, Union

from src.domain.exceptions import InvalidInputError


MAX_VENUE_UNITS = 20


class VendorType(str, Enum):
    VENUE = "venue"
    FREELANCER = "freelancer"
    EVENT_TEAM = "event_team"


class FreelancerCategory(str, Enum):
    PHOTOGRAPHER = "photographer"
    VIDEOGRAPHER = "videographer"
    CATERER = "caterer"
    MEHNDI_ARTIST = "mehndi_artist"
    DECORATOR = "decorator"
    PRIEST = "priest"
    DJ = "dj"
    ANCHOR = "anchor"
    MAKEUP_ARTIST = "makeup_artist"
    OTHER = "other"


@dataclass(frozen=True)
class Pricing:
    base_price: Decimal | None = None
    currency: str = "INR"


@dataclass(frozen=True)
class VenueUnitData:
    title: str
    capacity: int
    price_per_day: Decimal
    price_per_hour: Decimal | None = None
    min_booking_hours: int = 0
    amenities: tuple[str, ...] = ()
    images: tuple[str, ...] = ()
    verified: bool = False
    is_active: bool = True
    id: str | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise InvalidInputError("Venue unit title is required")
        if self.capacity <= 0:
            raise InvalidInputError(f"Venue unit '{self.title}' must have a positive capacity")
        if self.price_per_day < 0:
            raise InvalidInputError(f"Venue unit '{self.title}' has a negative day price")
        if self.price_per_hour is not None and self.price_per_hour < 0:
            raise InvalidInputError(f"Venue unit '{self.title}' has a negative hourly price")


@dataclass(frozen=True)
class EventPackageData:
    name: str
    price: Decimal
    description: str | None = None
    included_services: tuple[str, ...] = ()
    excluded_services: tuple[str, ...] = ()
    max_guests: int | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidInputError("Package name is required")
        if self.price is None or self.price < 0:
            raise InvalidInputError(f"Package '{self.name}' must have a non-negative price")


@dataclass(frozen=True)
class EventTeamOffering:
    packages: tuple[EventPackageData, ...]
    event_types_covered: tuple[str, ...] = ()
    note: str | None = None


@dataclass(frozen=True)
class VenueKind:
    units: tuple[VenueUnitData, ...]

    vendor_type = VendorType.VENUE


@dataclass(frozen=True)
class FreelancerKind:
    category: FreelancerCategory
    pricing: Pricing = field(default_factory=Pricing)

    vendor_type = VendorType.FREELANCER


@dataclass(frozen=True)
class EventTeamKind:
    offering: EventTeamOffering

    vendor_type = VendorType.EVENT_TEAM


VendorKind = Union[VenueKind, FreelancerKind, EventTeamKind]


def validate_unit_batch(units: Sequence[VenueUnitData], existing_count: int = 0) -> tuple[VenueUnitData, ...]:
    """
    Validates an ordered batch of venue units before any of them is persisted.
    Titles must be unique within the vendor and the total stays bounded.
    """
    batch = tuple(units)
    if existing_count + len(batch) > MAX_VENUE_UNITS:
        raise InvalidInputError(
            f"A venue may list at most {MAX_VENUE_UNITS} units"
        )
    titles = [unit.title.strip().lower() for unit in batch]
    if len(set(titles)) != len(titles):
        raise InvalidInputError("Venue unit titles must be unique")
    return batch


def validate_kind(kind: VendorKind) -> None:
    match kind:
        case VenueKind(units=units):
            if not units:
                raise InvalidInputError(
                    "Venue vendors must provide at least one venue unit."
                )
            validate_unit_batch(units)
        case EventTeamKind(offering=offering):
            if not offering.packages:
                raise InvalidInputError(
                    "Event teams must provide at least one package."
                )
        case FreelancerKind(category=category):
            if not isinstance(category, FreelancerCategory):
                raise InvalidInputError(
                    "Freelancer vendor must specify freelancerCategory."
                )
            base_price = kind.pricing.base_price
            if base_price is not None and base_price < 0:
                raise InvalidInputError("Freelancer base price must be non-negative")
        case _:
            raise TypeError(f"Unknown vendor kind: {type(kind)!r}")


@dataclass(frozen=True)
class VendorProfile:
    """
    A vendor as the catalog sees it. The kind carries the type-specific
    payload, so a venue without units or an event team without packages
    cannot be constructed.
    """

    user_id: str
    name: str
    city: str
    kind: VendorKind
    description: str | None = None
    contact_number: str | None = None
    profile_photo: str | None = None
    booked_dates: tuple[str, ...] = ()
    id: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidInputError("Vendor name is required")
        if not self.city or not self.city.strip():
            raise InvalidInputError("Vendor city is required")
        validate_kind(self.kind)

    @property
    def vendor_type(self) -> VendorType:
        return self.kind.vendor_type

    def find_unit(self, unit_id: str) -> VenueUnitData | None:
        if not isinstance(self.kind, VenueKind):
            return None
        return next((unit for unit in self.kind.units if unit.id == unit_id), None)

    def find_package(self, package_id: str) -> EventPackageData | None:
        if not isinstance(self.kind, EventTeamKind):
            return None
        return next(
            (package for package in self.kind.offering.packages if package.id == package_id),
            None,
        )
