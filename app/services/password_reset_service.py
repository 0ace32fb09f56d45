"""
Service de récupération de mot de passe - codes numériques à usage unique
"""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional, Tuple
import logging
import secrets

from app.core.config import settings
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User
from app.services.user_service import find_user_by_email

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Token inválido ou expirado"
USER_NOT_FOUND = "Usuário não encontrado"


def generate_code(length: int = None) -> str:
    length = length or settings.PASSWORD_RESET_TOKEN_LENGTH
    # jamais de zéro en tête: le code garde toujours `length` chiffres
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def create_reset_token(db: Session, email: str, now: datetime = None) -> Optional[Tuple[PasswordResetToken, User]]:
    """Émet un nouveau code et invalide les précédents. None si email inconnu."""
    user = find_user_by_email(db, email)
    if not user:
        return None

    now = now or datetime.utcnow()
    db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id,
        PasswordResetToken.used == False
    ).update({"used": True}, synchronize_session=False)

    reset_token = PasswordResetToken(
        user_id=user.id,
        token=generate_code(),
        expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MIN)
    )
    db.add(reset_token)
    db.commit()
    db.refresh(reset_token)
    logger.info(f"Password reset token issued: user_id={user.id}")
    return reset_token, user


def find_valid_token(db: Session, email: str, token: str, now: datetime = None) -> Tuple[Optional[PasswordResetToken], Optional[str]]:
    """Retourne (token, None) si valide, sinon (None, erreur)."""
    user = find_user_by_email(db, email)
    if not user:
        return None, USER_NOT_FOUND

    now = now or datetime.utcnow()
    reset_token = db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id,
        PasswordResetToken.token == token,
        PasswordResetToken.used == False,
        PasswordResetToken.expires_at > now
    ).first()

    if not reset_token:
        return None, INVALID_TOKEN
    return reset_token, None


def reset_password(db: Session, email: str, token: str, new_password: str, now: datetime = None) -> Tuple[bool, Optional[str]]:
    reset_token, error = find_valid_token(db, email, token, now)
    if not reset_token:
        return False, error

    reset_token.user.set_password(new_password)
    reset_token.used = True
    db.commit()
    logger.info(f"Password reset: user_id={reset_token.user_id}")
    return True, None
