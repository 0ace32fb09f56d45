"""
Router de l'agent de planification.

Endpoint:
- POST /agent/schedule - message en langage naturel → conversation ou actions sur les tâches
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.agent import (
    AgentRequest,
    AgentResponse,
    ConversationReply,
    ConversationResponse,
    IntentResultResponse,
    TaskBatchResponse,
)
from app.services.agent_service import AgentFailure, BatchReport, handle_agent_message

router = APIRouter(prefix="/agent", tags=["agent"])

# code d'erreur de l'agent → statut HTTP
ERROR_STATUS = {
    "missing_api_key": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "transport_error": status.HTTP_502_BAD_GATEWAY,
    "upstream_status": status.HTTP_502_BAD_GATEWAY,
    "empty_completion": status.HTTP_502_BAD_GATEWAY,
    "invalid_json": status.HTTP_400_BAD_REQUEST,
    "invalid_intents": status.HTTP_400_BAD_REQUEST,
}


def _batch_response(report: BatchReport) -> TaskBatchResponse:
    results = [
        IntentResultResponse(
            action=outcome.intent.action,
            success=outcome.success,
            message=outcome.message,
            task=outcome.task,
            deleted=outcome.deleted,
            error=outcome.error
        )
        for outcome in report.outcomes
    ]
    return TaskBatchResponse(results=results, summary=report.summary, message=report.message)


@router.post("/schedule", response_model=AgentResponse)
def schedule(
    request: AgentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Interpréter un message avec le modèle et appliquer les actions.

    exemple:
    POST /agent/schedule
    {"message": "Agendar reunião com equipe amanhã às 14h"}
    →
    {
      "success": true,
      "isConversation": false,
      "results": [{"action": "create", "success": true, "task": {...}, "message": "..."}],
      "summary": "1/1 tarefas processadas com sucesso",
      "message": "Pronto! Criei a tarefa \"Reunião com equipe\" para amanhã às 14:00."
    }
    """
    result = handle_agent_message(db, current_user, request.message, api_key=settings.GROQ_API_KEY)

    if isinstance(result, AgentFailure):
        raise HTTPException(status_code=ERROR_STATUS.get(result.code, status.HTTP_400_BAD_REQUEST), detail=result.message)
    if isinstance(result, ConversationReply):
        return ConversationResponse(message=result.message)
    return _batch_response(result)
