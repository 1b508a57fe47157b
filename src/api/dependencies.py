from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.application.availability_service import AvailabilityChecker
from src.application.booking_service import BookingService
from src.application.catalog_service import CatalogService
from src.application.customer_service import CustomerService
from src.container import ServiceContainer
from src.domain.identity import Principal

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_db(container: ServiceContainer = Depends(get_container)):
    db = container.session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> Principal:
    token = credentials.credentials if credentials else None
    return container.auth_verifier.verify(token)


def get_booking_service(
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
) -> BookingService:
    return BookingService(
        db,
        gateway=container.gateway,
        currency=container.settings.payment_currency,
        frontend_url=container.settings.frontend_url,
    )


def get_catalog_service(
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
) -> CatalogService:
    return CatalogService(db, media_store=container.media_store)


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(db)


def get_availability_checker(db: Session = Depends(get_db)) -> AvailabilityChecker:
    return AvailabilityChecker(db)
