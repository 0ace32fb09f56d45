"""
Service email - envoi via l'API HTTP de Resend
"""

import requests
from typing import Optional, Tuple
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15
RESET_SUBJECT = "AgendAI - Código de Recuperação de Senha"


def render_reset_email(user_name: str, token: str, expire_min: int) -> str:
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #333;">Olá, {user_name}!</h2>
    <p>Você solicitou a recuperação de senha da sua conta AgendAI.</p>
    <p>Use o código abaixo para redefinir sua senha:</p>
    <div style="background-color: #f5f5f5; padding: 20px; text-align: center; margin: 20px 0; border-radius: 8px;">
        <span style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #333;">{token}</span>
    </div>
    <p style="color: #666;">Este código é válido por <strong>{expire_min} minutos</strong>.</p>
    <p style="color: #666;">Se você não solicitou essa recuperação, ignore este email.</p>
</div>
"""


def send_password_reset_email(to_email: str, token: str, user_name: str) -> Tuple[bool, Optional[str]]:
    """Retourne (succès, erreur). Ne lève jamais."""
    if not settings.RESEND_API_KEY:
        logger.error("RESEND_API_KEY not configured")
        return False, "RESEND_API_KEY não configurada"

    try:
        response = requests.post(
            settings.RESEND_API_URL,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json={
                "from": settings.EMAIL_FROM,
                "to": [to_email],
                "subject": RESET_SUBJECT,
                "html": render_reset_email(user_name, token, settings.PASSWORD_RESET_EXPIRE_MIN)
            },
            timeout=REQUEST_TIMEOUT
        )
    except requests.RequestException as e:
        logger.error(f"Email delivery failed: {e}")
        return False, str(e)

    if not response.ok:
        logger.error(f"Email API error: {response.status_code}")
        return False, f"{response.status_code} - {response.text}"

    return True, None
