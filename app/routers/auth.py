from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.core.security import create_access_token
from app.schemas.user import UserCreate, LoginRequest, TokenResponse
from app.schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    ValidateTokenRequest,
    ValidateTokenResponse,
    ResetPasswordRequest,
)
from app.schemas.base import MessageResponse
from app.services.user_service import create_user, authenticate, EmailAlreadyUsedError
from app.services.password_reset_service import create_reset_token, find_valid_token, reset_password
from app.services.email_service import send_password_reset_email

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user) -> dict:
    return {
        "token": create_access_token(user.id),
        "user": user
    }


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Créer un nouvel utilisateur et le connecter"""
    try:
        new_user = create_user(db, user_data.name, user_data.email, user_data.password)
    except EmailAlreadyUsedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email já cadastrado")

    return _token_response(new_user)


@router.post("/signin", response_model=TokenResponse)
def signin(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Se connecter et recevoir le token"""
    user = authenticate(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email ou senha inválidos")

    return _token_response(user)


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Envoie un code à 6 chiffres par email (valable 10 minutes)"""
    issued = create_reset_token(db, request.email)
    if not issued:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email não encontrado")

    reset_token, user = issued
    sent, error = send_password_reset_email(user.email, reset_token.token, user.name)
    if not sent:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Falha ao enviar email: {error}"
        )

    return ForgotPasswordResponse(
        message="Token de recuperação enviado para seu email",
        expires_in=settings.PASSWORD_RESET_EXPIRE_MIN * 60
    )


@router.post("/validate-token", response_model=ValidateTokenResponse, response_model_exclude_none=True)
def validate_token(request: ValidateTokenRequest, db: Session = Depends(get_db)):
    reset_token, error = find_valid_token(db, request.email, request.token)
    return ValidateTokenResponse(valid=reset_token is not None, error=error)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password_endpoint(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    ok, error = reset_password(db, request.email, request.token, request.new_password)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    return MessageResponse(message="Senha alterada com sucesso")
