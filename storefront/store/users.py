from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from storefront.core.errors import DuplicateUser
from storefront.db.models import User, Role
from storefront.security.utils import hash_password, verify_password

class UserRepository:
    """Credential store over the ``users`` table. Plaintext passwords never leave ``create``."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def create(self, fields: dict) -> User:
        user = User(
            name=fields['name'],
            email=fields['email'],
            password_hash=hash_password(fields['password']),
            role=Role(fields.get('role') or Role.customer),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # lost a race with a concurrent signup for the same email
            self.db.rollback()
            raise DuplicateUser() from exc
        self.db.refresh(user)
        return user

    def set_role(self, user: User, role: Role) -> User:
        user.role = role
        self.db.add(user); self.db.commit(); self.db.refresh(user)
        return user

    def verify_password(self, user: User, plaintext: str) -> bool:
        return verify_password(plaintext, user.password_hash)
