from decimal import Decimal

from src.application.catalog_service import CatalogService
from src.config import Settings
from src.container import ServiceContainer
from src.domain.identity import Principal, Role
from src.domain.vendor import (
    EventPackageData,
    EventTeamKind,
    EventTeamOffering,
    FreelancerCategory,
    FreelancerKind,
    Pricing,
    VendorProfile,
    VenueKind,
    VenueUnitData,
)
from src.infrastructure.db.session import session_scope
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.repositories.vendor_repository import VendorRepository


USERS = [
    {"name": "Marketplace Admin", "email": "admin@eventbookings.test", "role": Role.ADMIN},
    {"name": "Priya Sharma", "email": "priya@eventbookings.test", "role": Role.CUSTOMER},
    {"name": "Rajmahal Palace", "email": "rajmahal@eventbookings.test", "role": Role.VENDOR},
    {"name": "Arjun Lens", "email": "arjun@eventbookings.test", "role": Role.VENDOR},
    {"name": "Shubh Utsav Events", "email": "shubh@eventbookings.test", "role": Role.VENDOR},
]


def _vendor_profiles(users) -> list[VendorProfile]:
    return [
        VendorProfile(
            user_id=users["rajmahal@eventbookings.test"].id,
            name="Rajmahal Palace",
            city="Jaipur",
            description="Heritage palace with indoor and outdoor spaces.",
            kind=VenueKind(
                units=(
                    VenueUnitData(
                        title="Durbar Hall",
                        capacity=400,
                        price_per_day=Decimal("50000"),
                        amenities=("AC", "Stage", "Parking"),
                    ),
                    VenueUnitData(
                        title="Courtyard Lawn",
                        capacity=900,
                        price_per_day=Decimal("75000"),
                        amenities=("Lighting", "Parking"),
                    ),
                )
            ),
        ),
        VendorProfile(
            user_id=users["arjun@eventbookings.test"].id,
            name="Arjun Lens Photography",
            city="Mumbai",
            kind=FreelancerKind(
                category=FreelancerCategory.PHOTOGRAPHER,
                pricing=Pricing(base_price=Decimal("15000")),
            ),
        ),
        VendorProfile(
            user_id=users["shubh@eventbookings.test"].id,
            name="Shubh Utsav Events",
            city="Delhi",
            kind=EventTeamKind(
                offering=EventTeamOffering(
                    packages=(
                        EventPackageData(
                            name="Silver",
                            price=Decimal("60000"),
                            included_services=("Decor", "Anchor"),
                            max_guests=200,
                        ),
                        EventPackageData(
                            name="Gold",
                            price=Decimal("120000"),
                            included_services=("Decor", "Anchor", "DJ", "Catering"),
                            max_guests=500,
                        ),
                    ),
                    event_types_covered=("wedding", "birthday", "corporate"),
                )
            ),
        ),
    ]


def seed_users(db) -> dict:
    repository = UserRepository(db)
    users = {}
    for item in USERS:
        user = repository.get_by_email(item["email"])
        if user is None:
            user = repository.create(item["name"], item["email"], item["role"])
        users[item["email"]] = user
    db.flush()
    return users


def seed_vendors(db, users) -> None:
    admin = users["admin@eventbookings.test"]
    catalog = CatalogService(db)
    vendors = VendorRepository(db)
    for profile in _vendor_profiles(users):
        if vendors.get_by_user_id(profile.user_id):
            continue
        catalog.register_vendor(Principal(subject_id=admin.id, role=Role.ADMIN), profile)


def main() -> None:
    container = ServiceContainer(Settings.from_env())
    container.start()
    try:
        with session_scope(container.session_factory) as db:
            users = seed_users(db)
            seed_vendors(db, users)
        print("Seed complete: admin, customer, Rajmahal Palace, Arjun Lens, Shubh Utsav Events added.")
    finally:
        container.shutdown()


if __name__ == "__main__":
    main()
