"""
Service Groq - appels HTTP à l'API chat completions (format OpenAI)
"""

import requests
from typing import List, Dict, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class AgentError(Exception):
    """Échec de l'agent, avec un code stable pour la couche HTTP"""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def complete_chat(api_key: Optional[str], messages: List[Dict[str, str]]) -> str:
    """Envoie la conversation au modèle et retourne le texte de la réponse.

    Pas de retry; pas de timeout explicite (défaut du transport).
    """
    if not api_key:
        raise AgentError("missing_api_key", "GROQ_API_KEY não configurada")

    try:
        response = requests.post(
            settings.GROQ_API_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": settings.GROQ_MODEL,
                "messages": messages,
                "temperature": settings.GROQ_TEMPERATURE,
                "max_tokens": settings.GROQ_MAX_TOKENS
            }
        )
    except requests.RequestException as e:
        logger.error(f"Groq transport error: {e}")
        raise AgentError("transport_error", f"Erro de conexão: {e}") from e

    if not response.ok:
        logger.error(f"Groq API error: {response.status_code}")
        raise AgentError("upstream_status", f"Erro na API do Groq: {response.status_code} - {response.text}")

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        content = None

    if not content or not content.strip():
        raise AgentError("empty_completion", "Resposta vazia do modelo")

    return content
