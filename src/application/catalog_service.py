import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from src.application.policy import ensure_admin, ensure_vendor_owner_or_admin
from src.domain.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UploadError,
)
from src.domain.identity import Principal, Role
from src.domain.vendor import (
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
from src.infrastructure.db.models import EventPackage, Vendor, VenueUnit
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.repositories.vendor_repository import VendorRepository

logger = logging.getLogger(__name__)

_COMMON_FIELDS = frozenset({"name", "city", "description", "contact_number"})

# Each vendor type may only touch its own payload.
UPDATABLE_FIELDS: dict[VendorType, frozenset[str]] = {
    VendorType.VENUE: _COMMON_FIELDS,
    VendorType.FREELANCER: _COMMON_FIELDS | {"base_price", "currency", "freelancer_category"},
    VendorType.EVENT_TEAM: _COMMON_FIELDS | {"event_types_covered", "event_team_note"},
}

NON_NULLABLE_FIELDS = frozenset(
    {"name", "city", "currency", "freelancer_category", "event_types_covered"}
)


def unit_to_data(unit: VenueUnit) -> VenueUnitData:
    return VenueUnitData(
        id=unit.id,
        title=unit.title,
        capacity=unit.capacity,
        price_per_day=unit.price_per_day,
        price_per_hour=unit.price_per_hour,
        min_booking_hours=unit.min_booking_hours,
        amenities=tuple(unit.amenities or ()),
        images=tuple(unit.images or ()),
        verified=unit.verified,
        is_active=unit.is_active,
    )


def package_to_data(package: EventPackage) -> EventPackageData:
    return EventPackageData(
        id=package.id,
        name=package.name,
        price=package.price,
        description=package.description,
        included_services=tuple(package.included_services or ()),
        excluded_services=tuple(package.excluded_services or ()),
        max_guests=package.max_guests,
    )


def vendor_to_profile(vendor: Vendor) -> VendorProfile:
    """Maps a persisted vendor onto its tagged kind."""
    if vendor.type == VendorType.VENUE:
        kind = VenueKind(units=tuple(unit_to_data(unit) for unit in vendor.units))
    elif vendor.type == VendorType.FREELANCER:
        kind = FreelancerKind(
            category=vendor.freelancer_category,
            pricing=Pricing(base_price=vendor.base_price, currency=vendor.currency),
        )
    elif vendor.type == VendorType.EVENT_TEAM:
        kind = EventTeamKind(
            offering=EventTeamOffering(
                packages=tuple(package_to_data(package) for package in vendor.packages),
                event_types_covered=tuple(vendor.event_types_covered or ()),
                note=vendor.event_team_note,
            )
        )
    else:
        raise TypeError(f"Unknown vendor type: {vendor.type!r}")

    return VendorProfile(
        id=vendor.id,
        user_id=vendor.user_id,
        name=vendor.name,
        city=vendor.city,
        kind=kind,
        description=vendor.description,
        contact_number=vendor.contact_number,
        profile_photo=vendor.profile_photo,
        booked_dates=tuple(vendor.booked_dates or ()),
    )


def _unit_row(data: VenueUnitData, position: int) -> VenueUnit:
    return VenueUnit(
        position=position,
        title=data.title.strip(),
        capacity=data.capacity,
        price_per_day=data.price_per_day,
        price_per_hour=data.price_per_hour,
        min_booking_hours=data.min_booking_hours,
        amenities=list(data.amenities),
        images=list(data.images),
        verified=False,
        is_active=data.is_active,
    )


def _package_row(data: EventPackageData, position: int) -> EventPackage:
    return EventPackage(
        position=position,
        name=data.name.strip(),
        description=data.description,
        price=data.price,
        included_services=list(data.included_services),
        excluded_services=list(data.excluded_services),
        max_guests=data.max_guests,
    )


class CatalogService:
    """Vendor records, their venue units and event packages."""

    def __init__(self, db: Session, media_store=None):
        self.db = db
        self.media_store = media_store
        self.vendor_repository = VendorRepository(db)
        self.user_repository = UserRepository(db)

    # -----------------------------
    # Queries
    # -----------------------------
    def get_vendor(self, vendor_id: str) -> Vendor:
        vendor = self.vendor_repository.get_by_id(vendor_id)
        if not vendor:
            raise NotFoundError("Vendor not found")
        return vendor

    def get_vendor_for_user(self, user_id: str) -> Vendor:
        vendor = self.vendor_repository.get_by_user_id(user_id)
        if not vendor:
            raise NotFoundError("Vendor profile not found")
        return vendor

    def get_unit(self, vendor_id: str, unit_id: str) -> VenueUnit:
        self.get_vendor(vendor_id)
        unit = self.vendor_repository.get_unit(vendor_id, unit_id)
        if not unit:
            raise NotFoundError("Venue unit not found")
        return unit

    def list_vendors(
        self,
        vendor_type: VendorType | str | None = None,
        city: str | None = None,
        category: FreelancerCategory | str | None = None,
    ) -> list[Vendor]:
        try:
            vendor_type = VendorType(vendor_type) if vendor_type else None
            category = FreelancerCategory(category) if category else None
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
        return self.vendor_repository.list_vendors(
            vendor_type=vendor_type,
            city=city,
            category=category,
        )

    # -----------------------------
    # Mutations
    # -----------------------------
    def register_vendor(self, principal: Principal, profile: VendorProfile) -> Vendor:
        if not principal.is_admin:
            if principal.role != Role.VENDOR:
                raise ForbiddenError("Only vendor accounts can register a vendor profile")
            if profile.user_id != principal.subject_id:
                raise ForbiddenError("Vendors can only register their own profile")

        if not self.user_repository.get_by_id(profile.user_id):
            raise NotFoundError("User not found")
        if self.vendor_repository.get_by_user_id(profile.user_id):
            raise InvalidInputError("A vendor profile already exists for this account")

        vendor = Vendor(
            user_id=profile.user_id,
            type=profile.vendor_type,
            name=profile.name.strip(),
            city=profile.city.strip(),
            description=profile.description,
            contact_number=profile.contact_number,
            booked_dates=list(profile.booked_dates),
            event_types_covered=[],
        )
        kind = profile.kind
        match kind:
            case VenueKind(units=units):
                vendor.units = [_unit_row(unit, position) for position, unit in enumerate(units)]
            case FreelancerKind(category=category, pricing=pricing):
                vendor.freelancer_category = category
                vendor.base_price = pricing.base_price
                vendor.currency = pricing.currency
            case EventTeamKind(offering=offering):
                vendor.packages = [
                    _package_row(package, position)
                    for position, package in enumerate(offering.packages)
                ]
                vendor.event_types_covered = list(offering.event_types_covered)
                vendor.event_team_note = offering.note

        self.vendor_repository.add(vendor)
        self.db.flush()
        logger.info("Registered %s vendor %s for user %s", vendor.type.value, vendor.id, vendor.user_id)
        return vendor

    def update_vendor(
        self,
        principal: Principal,
        vendor_id: str,
        changes: Mapping[str, Any],
    ) -> Vendor:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)

        unknown = set(changes) - UPDATABLE_FIELDS[vendor.type]
        if unknown:
            raise InvalidInputError(
                f"Fields cannot be updated on a {vendor.type.value} vendor: {', '.join(sorted(unknown))}"
            )
        nulled = sorted(
            name for name, value in changes.items() if value is None and name in NON_NULLABLE_FIELDS
        )
        if nulled:
            raise InvalidInputError(f"Fields cannot be cleared: {', '.join(nulled)}")

        for field_name, value in changes.items():
            if field_name == "freelancer_category" and value is not None:
                try:
                    value = FreelancerCategory(value)
                except ValueError as exc:
                    raise InvalidInputError(f"Unknown freelancer category: {value}") from exc
            setattr(vendor, field_name, value)

        # Rebuilding the profile re-checks the type invariants.
        vendor_to_profile(vendor)
        self.db.flush()
        logger.info("Vendor %s updated fields %s", vendor.id, sorted(changes))
        return vendor

    def add_venue_units(
        self,
        principal: Principal,
        vendor_id: str,
        units: Iterable[VenueUnitData],
    ) -> list[VenueUnit]:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)
        if vendor.type != VendorType.VENUE:
            raise InvalidInputError("Only venue vendors have venue units")

        batch = validate_unit_batch(
            [*map(unit_to_data, vendor.units), *units],
        )[len(vendor.units):]
        start = len(vendor.units)
        rows = [_unit_row(unit, start + offset) for offset, unit in enumerate(batch)]
        vendor.units.extend(rows)
        self.db.flush()
        logger.info("Vendor %s added %s venue unit(s)", vendor.id, len(rows))
        return rows

    def add_event_package(
        self,
        principal: Principal,
        vendor_id: str,
        package: EventPackageData,
    ) -> EventPackage:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)
        if vendor.type != VendorType.EVENT_TEAM:
            raise InvalidInputError("Only event teams offer packages")

        row = _package_row(package, len(vendor.packages))
        vendor.packages.append(row)
        self.db.flush()
        return row

    def set_availability_overrides(
        self,
        principal: Principal,
        vendor_id: str,
        dates: Iterable[date],
    ) -> Vendor:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)

        vendor.booked_dates = sorted({day.isoformat() for day in dates})
        self.db.flush()
        logger.info("Vendor %s availability overrides set (%s dates)", vendor.id, len(vendor.booked_dates))
        return vendor

    def mark_unit_verified(
        self,
        principal: Principal,
        vendor_id: str,
        unit_id: str,
    ) -> VenueUnit:
        ensure_admin(principal)
        unit = self.get_unit(vendor_id, unit_id)

        if unit.verified:
            return unit

        unit.verified = True
        unit.verified_at = datetime.now(timezone.utc)
        unit.verified_by = principal.subject_id
        self.db.flush()
        logger.info("Venue unit %s of vendor %s verified by %s", unit.id, vendor_id, principal.subject_id)
        return unit

    def attach_unit_image(
        self,
        principal: Principal,
        vendor_id: str,
        unit_id: str,
        data: bytes,
        filename: str,
    ) -> VenueUnit:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)
        unit = self.get_unit(vendor_id, unit_id)

        url = self._upload(data, f"vendors/{vendor_id}/units/{unit_id}", filename)
        unit.images = [*(unit.images or []), url]
        self.db.flush()
        return unit

    def attach_profile_photo(
        self,
        principal: Principal,
        vendor_id: str,
        data: bytes,
        filename: str,
    ) -> Vendor:
        vendor = self.get_vendor(vendor_id)
        ensure_vendor_owner_or_admin(principal, vendor)

        vendor.profile_photo = self._upload(data, f"vendors/{vendor_id}/profile", filename)
        self.db.flush()
        return vendor

    def _upload(self, data: bytes, folder: str, filename: str) -> str:
        # Upload completes before any row is touched, so a failure leaves state unchanged.
        if self.media_store is None:
            raise UploadError("Media store not configured")
        return self.media_store.upload(data, folder, filename)
