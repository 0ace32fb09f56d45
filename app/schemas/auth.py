from pydantic import EmailStr, Field
from typing import Optional

from app.schemas.base import CamelModel

# Schemas récupération de mot de passe

class ForgotPasswordRequest(CamelModel):
    email: EmailStr

class ForgotPasswordResponse(CamelModel):
    message: str
    expires_in: int  # secondes

class ValidateTokenRequest(CamelModel):
    email: EmailStr
    token: str

class ValidateTokenResponse(CamelModel):
    valid: bool
    error: Optional[str] = None

class ResetPasswordRequest(CamelModel):
    email: EmailStr
    token: str
    new_password: str = Field(min_length=6, max_length=72)
