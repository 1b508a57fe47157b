from src.domain.exceptions import ForbiddenError
from src.domain.identity import Principal, Role
from src.infrastructure.db.models import Booking, Vendor


def ensure_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")


def ensure_customer(principal: Principal) -> None:
    if principal.role != Role.CUSTOMER:
        raise ForbiddenError("Access denied. Customers only.")


def owns_vendor(principal: Principal, vendor: Vendor) -> bool:
    return principal.role == Role.VENDOR and vendor.user_id == principal.subject_id


def ensure_vendor_owner_or_admin(principal: Principal, vendor: Vendor) -> None:
    """Vendor records and their bookings' status belong to the owning account."""
    if principal.is_admin or owns_vendor(principal, vendor):
        return
    raise ForbiddenError("Not authorized to modify this vendor's records")


def can_view_booking(principal: Principal, booking: Booking, vendor: Vendor) -> bool:
    if principal.is_admin:
        return True
    if principal.role == Role.CUSTOMER:
        return booking.customer_id == principal.subject_id
    return owns_vendor(principal, vendor)


def ensure_booking_customer_or_admin(principal: Principal, booking: Booking) -> None:
    if principal.is_admin:
        return
    if principal.role == Role.CUSTOMER and booking.customer_id == principal.subject_id:
        return
    raise ForbiddenError("Only the booking's customer or an admin may do this")
