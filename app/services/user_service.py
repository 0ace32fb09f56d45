"""User service - comptes, profils"""

from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.models.user import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email", "role", "profile_photo", "cover_photo", "bio")
REQUIRED_FIELDS = ("name", "email", "role", "password")


class EmailAlreadyUsedError(Exception):
    pass


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def find_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, name: str, email: str, password: str, role: str = "free") -> User:
    if find_user_by_email(db, email):
        raise EmailAlreadyUsedError(email)

    user = User(name=name, email=email, role=role)
    user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Account created: user_id={user.id}")
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = find_user_by_email(db, email)
    if not user or not user.verify_password(password):
        return None
    return user


def update_user(db: Session, user: User, fields: dict) -> Optional[User]:
    """Applique les champs fournis. Retourne None si rien à mettre à jour."""
    changes = {k: v for k, v in fields.items() if k in PROFILE_FIELDS or k == "password"}
    # champs obligatoires: null = non fourni
    changes = {k: v for k, v in changes.items() if v is not None or k not in REQUIRED_FIELDS}
    if not changes:
        return None

    new_email = changes.get("email")
    if new_email and new_email != user.email:
        owner = find_user_by_email(db, new_email)
        if owner and owner.id != user.id:
            raise EmailAlreadyUsedError(new_email)

    password = changes.pop("password", None)
    if password:
        user.set_password(password)
    for field, value in changes.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: User) -> None:
    # cascade ORM: tâches et codes de reset
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info(f"Account deleted: user_id={user_id}")
