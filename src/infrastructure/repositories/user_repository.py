from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import User
from src.domain.identity import Role


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        return self.db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        return self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def create(
        self,
        name: str,
        email: str,
        role: Role = Role.CUSTOMER,
        phone: str | None = None,
        city: str | None = None,
    ) -> User:
        user = User(name=name, email=email, role=role, phone=phone, city=city)
        self.db.add(user)
        return user
