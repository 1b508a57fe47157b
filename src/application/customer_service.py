import logging
from typing import Any, Mapping

from sqlalchemy.orm import Session

from src.application.policy import ensure_customer
from src.domain.exceptions import InvalidInputError, NotFoundError
from src.domain.identity import Principal
from src.infrastructure.db.models import User
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "phone", "city"})


class CustomerService:
    """Self-service profile for customer accounts."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)

    def get_profile(self, principal: Principal) -> User:
        ensure_customer(principal)
        user = self.user_repository.get_by_id(principal.subject_id)
        if not user:
            raise NotFoundError("Customer not found")
        return user

    def update_profile(self, principal: Principal, changes: Mapping[str, Any]) -> User:
        user = self.get_profile(principal)

        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise InvalidInputError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if "name" in changes and not (changes["name"] or "").strip():
            raise InvalidInputError("Name cannot be empty")

        for field_name, value in changes.items():
            if isinstance(value, str):
                value = value.strip() or None
            setattr(user, field_name, value)

        self.db.flush()
        logger.info("Customer %s updated fields %s", user.id, sorted(changes))
        return user
