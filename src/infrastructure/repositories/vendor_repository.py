# src/infrastructure/repositories/vendor_repository.py

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func, select

from src.infrastructure.db.models import Vendor, VenueUnit
from src.domain.vendor import FreelancerCategory, VendorType


class VendorRepository:

    def __init__(self, db: Session):
        self.db = db

    def lock_vendor(self, vendor_id: str) -> Vendor | None:
        """
        SELECT ... FOR UPDATE on the vendor row.
        Serializes availability check + booking insert per vendor.
        """

        stmt = (
            select(Vendor)
            .where(Vendor.id == vendor_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_id(self, vendor_id: str) -> Vendor | None:
        stmt = (
            select(Vendor)
            .options(selectinload(Vendor.units), selectinload(Vendor.packages))
            .where(Vendor.id == vendor_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_user_id(self, user_id: str) -> Vendor | None:
        stmt = (
            select(Vendor)
            .options(selectinload(Vendor.units), selectinload(Vendor.packages))
            .where(Vendor.user_id == user_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_vendors(
        self,
        vendor_type: VendorType | None = None,
        city: str | None = None,
        category: FreelancerCategory | None = None,
    ) -> list[Vendor]:
        stmt = (
            select(Vendor)
            .options(selectinload(Vendor.units), selectinload(Vendor.packages))
            .order_by(Vendor.created_at)
        )
        if vendor_type is not None:
            stmt = stmt.where(Vendor.type == vendor_type)
        if city:
            stmt = stmt.where(func.lower(Vendor.city).contains(city.lower(), autoescape=True))
        if category is not None:
            stmt = stmt.where(Vendor.freelancer_category == category)
        return list(self.db.execute(stmt).scalars().all())

    def get_unit(self, vendor_id: str, unit_id: str) -> VenueUnit | None:
        stmt = (
            select(VenueUnit)
            .where(VenueUnit.vendor_id == vendor_id)
            .where(VenueUnit.id == unit_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, vendor: Vendor) -> Vendor:
        self.db.add(vendor)
        return vendor
