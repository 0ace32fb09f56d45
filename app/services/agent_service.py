"""
Service agent - interprète un message en langage naturel et l'applique aux tâches.

Étapes:
1 construire le prompt (date du jour + agenda de l'utilisateur)
2 appeler le modèle et classer la réponse (conversation ou liste d'intentions)
3 valider toutes les intentions avant toute écriture
4 appliquer chaque intention dans l'ordre, un échec n'arrête pas les suivantes
5 narrer chaque résultat + message global
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.models.task import Task, TASK_PRIORITIES, TASK_STATUSES, TERMINAL_STATUSES
from app.models.user import User
from app.schemas.agent import (
    ConversationReply,
    CreateIntent,
    DeleteIntent,
    Intent,
    TaskBatch,
    UnknownIntent,
    UpdateIntent,
)
from app.schemas.task import TaskResponse
from app.services import narration_service, task_service
from app.services.groq_service import AgentError, complete_chat
from app.services.narration_service import to_date

logger = logging.getLogger(__name__)

NO_TASKS_CONTEXT = "O usuário não possui tarefas agendadas."

SYSTEM_PROMPT = """Seu nome é Lucy, você é uma assistente virtual simpática, especializada em agendamento de tarefas no AgendAI. Responda sempre em português brasileiro.

TIPOS DE INTERAÇÃO:

1. CONVERSA CASUAL - saudações, perguntas sobre você, agradecimentos, despedidas ou assuntos que não envolvem tarefas.
   Responda com: {{"isConversation": true, "message": "sua resposta amigável"}}

2. CONSULTA DE DISPONIBILIDADE - "quais dias estou livre?", "o que tenho amanhã?", "minha agenda".
   Analise as tarefas existentes abaixo e responda com: {{"isConversation": true, "message": "resposta sobre a agenda"}}

3. AGENDAMENTO - criar, alterar ou remover tarefas.
   Responda com: {{"isConversation": false, "tasks": [...]}}
   Identifique TODAS as tarefas mencionadas, uma entrada por tarefa.

AÇÕES:
- "create": agendar, marcar, criar, lembrar, adicionar
- "update": alterar, mudar, atualizar, remarcar, adiar, concluir
- "delete": deletar, remover, cancelar, excluir, apagar

CAMPOS DE CADA TAREFA:
- action: obrigatório - "create", "update" ou "delete"
- taskIdentifier: obrigatório para update/delete - palavra-chave que identifica a tarefa existente
- title: obrigatório para create (máximo 50 caracteres)
- description: opcional
- scheduledDate: formato YYYY-MM-DD
- scheduledTime: formato HH:MM
- priority: "low", "medium" ou "high" (padrão "medium")
- status: "pending", "in_progress", "completed" ou "cancelled" (apenas update)

DATAS (hoje é {current_date}):
- "amanhã" = dia seguinte a hoje
- "próxima segunda/terça/..." = próxima ocorrência desse dia
- "semana que vem" = próxima segunda-feira
- sem horário mencionado: scheduledTime = null

REGRAS:
- ação não explícita: assuma "create"
- "marcar como concluído/feito" = action "update" com status "completed"

{tasks_context}

Responda APENAS com JSON válido, sem texto adicional."""

CODE_FENCE = re.compile(r"```(?:json)?")
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

NO_TASKS_ERROR = "Nenhuma tarefa identificada na solicitação"
MISSING_ACTION_ERROR = "Ação não identificada em uma das tarefas"
MISSING_TITLE_ERROR = "Título obrigatório para criar tarefa"
MISSING_IDENTIFIER_ERROR = "Identificador obrigatório para atualizar/deletar tarefa"

INTENT_TYPES = {
    "create": CreateIntent,
    "update": UpdateIntent,
    "delete": DeleteIntent,
}


class TaskNotFoundError(LookupError):
    pass


@dataclass
class AgentFailure:
    """Échec de toute la requête (rien n'a été écrit)"""
    code: str
    message: str


@dataclass
class IntentOutcome:
    intent: Intent
    success: bool
    message: str = ""
    task: Optional[TaskResponse] = None  # état juste après cette intention
    deleted: Optional[dict] = None
    error: Optional[str] = None


@dataclass
class BatchReport:
    outcomes: List[IntentOutcome] = field(default_factory=list)
    summary: str = ""
    message: str = ""


# ============ PROMPT ============

def build_tasks_context(tasks: List[Task]) -> str:
    """Agenda en cours: tâches datées, ni terminées ni annulées, par date croissante."""
    upcoming = [
        t for t in tasks
        if t.scheduled_date and t.status not in TERMINAL_STATUSES
    ]
    if not upcoming:
        return NO_TASKS_CONTEXT

    upcoming.sort(key=lambda t: t.scheduled_date.isoformat())
    lines = []
    for t in upcoming:
        when = t.scheduled_date.isoformat()
        if t.scheduled_time:
            when += f" às {t.scheduled_time}"
        lines.append(f"- {when}: {t.title}")
    return "TAREFAS EXISTENTES DO USUÁRIO:\n" + "\n".join(lines)


def build_system_prompt(current_date: str, tasks_context: str) -> str:
    return SYSTEM_PROMPT.format(current_date=current_date, tasks_context=tasks_context)


def build_messages(current_date: str, tasks_context: str, user_message: str) -> List[dict]:
    return [
        {"role": "system", "content": build_system_prompt(current_date, tasks_context)},
        {"role": "user", "content": user_message}
    ]


# ============ CLASSIFICATION / VALIDATION ============

def strip_code_fences(content: str) -> str:
    return CODE_FENCE.sub("", content).strip()


def parse_intents(raw_tasks) -> List[Intent]:
    """Valide la liste complète avant toute écriture (tout ou rien)."""
    if not isinstance(raw_tasks, list) or not raw_tasks:
        raise AgentError("invalid_intents", NO_TASKS_ERROR)

    for raw in raw_tasks:
        if not isinstance(raw, dict) or not isinstance(raw.get("action"), str) or not raw["action"]:
            raise AgentError("invalid_intents", MISSING_ACTION_ERROR)
        action = raw["action"]
        if action == "create" and not raw.get("title"):
            raise AgentError("invalid_intents", MISSING_TITLE_ERROR)
        if action in ("update", "delete") and not raw.get("taskIdentifier"):
            raise AgentError("invalid_intents", MISSING_IDENTIFIER_ERROR)

    intents = []
    for raw in raw_tasks:
        model = INTENT_TYPES.get(raw["action"], UnknownIntent)
        try:
            intents.append(model.model_validate(raw))
        except ValidationError as e:
            raise AgentError("invalid_intents", f"Tarefa inválida: {e.errors()[0]['msg']}") from e
    return intents


def parse_agent_response(content: str) -> Union[ConversationReply, TaskBatch]:
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Unparseable model output")
        raise AgentError("invalid_json", f"Falha ao interpretar resposta: {content}") from e

    if not isinstance(data, dict):
        raise AgentError("invalid_json", f"Falha ao interpretar resposta: {content}")

    if data.get("isConversation") is True:
        return ConversationReply(message=str(data.get("message") or ""))
    return TaskBatch(intents=parse_intents(data.get("tasks")))


def interpret_message(api_key: Optional[str], user_message: str, tasks: List[Task],
                      today: date) -> Union[AgentFailure, ConversationReply, TaskBatch]:
    messages = build_messages(today.isoformat(), build_tasks_context(tasks), user_message)
    try:
        content = complete_chat(api_key, messages)
        return parse_agent_response(content)
    except AgentError as e:
        return AgentFailure(code=e.code, message=e.message)


# ============ APPLICATION ============

def normalize_time(value: Optional[str]) -> Optional[str]:
    """"14:00", "14:00:00" ou "9:5" → "HH:MM"."""
    if not value:
        return None
    match = re.fullmatch(r"(\d{1,2}):(\d{1,2})(?::\d{1,2})?", value.strip())
    if not match:
        raise ValueError(f"Horário inválido: {value}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Horário inválido: {value}")
    return f"{hour:02d}:{minute:02d}"


def normalize_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    # YYYY-MM-DD strict: isoparse accepte "2025-06" ou "2025-W24"
    if not DATE_PATTERN.fullmatch(value.strip()):
        raise ValueError(f"Data inválida: {value}")
    try:
        return to_date(value.strip())
    except ValueError as e:
        raise ValueError(f"Data inválida: {value}") from e


def _check_choice(value: Optional[str], choices, label: str) -> Optional[str]:
    if value is not None and value not in choices:
        raise ValueError(f"{label} inválida: {value}")
    return value


def _changes_from(intent: UpdateIntent) -> dict:
    fields = {
        "title": intent.title[:255] if intent.title else None,
        "description": intent.description[:1000] if intent.description else None,
        "scheduled_date": normalize_date(intent.scheduled_date),
        "scheduled_time": normalize_time(intent.scheduled_time),
        "priority": _check_choice(intent.priority, TASK_PRIORITIES, "Prioridade"),
        "status": _check_choice(intent.status, TASK_STATUSES, "Situação"),
    }
    # champs absents = inchangés
    return {k: v for k, v in fields.items() if v is not None}


def _resolve(db: Session, user: User, identifier: str) -> Task:
    task = task_service.find_task_by_text(db, user.id, identifier)
    if not task:
        raise TaskNotFoundError(f'Tarefa "{identifier}" não encontrada')
    return task


def apply_intent(db: Session, user: User, intent: Intent, today: date, rng=None) -> IntentOutcome:
    if isinstance(intent, CreateIntent):
        task = task_service.create_task(
            db,
            user.id,
            title=intent.title[:255],
            description=intent.description[:1000] if intent.description else None,
            scheduled_date=normalize_date(intent.scheduled_date),
            scheduled_time=normalize_time(intent.scheduled_time),
            priority=_check_choice(intent.priority, TASK_PRIORITIES, "Prioridade") or "medium",
            status="pending",
            created_by_agent=True
        )
        message = narration_service.narrate_create(
            task.title, task.scheduled_date, task.scheduled_time, today, rng
        )
        return IntentOutcome(intent=intent, success=True, message=message, task=TaskResponse.model_validate(task))

    if isinstance(intent, UpdateIntent):
        task = _resolve(db, user, intent.task_identifier)
        changes = _changes_from(intent)
        task = task_service.update_task(db, user.id, task.id, changes)
        message = narration_service.narrate_update(
            intent.task_identifier,
            user.first_name,
            today,
            scheduled_date=changes.get("scheduled_date"),
            scheduled_time=changes.get("scheduled_time"),
            status=changes.get("status"),
            rng=rng
        )
        return IntentOutcome(intent=intent, success=True, message=message, task=TaskResponse.model_validate(task))

    if isinstance(intent, DeleteIntent):
        task = _resolve(db, user, intent.task_identifier)
        deleted = {"id": task.id, "title": task.title}
        task_service.delete_task(db, user.id, task.id)
        message = narration_service.narrate_delete(intent.task_identifier, rng)
        return IntentOutcome(intent=intent, success=True, message=message, deleted=deleted)

    raise ValueError(f"Ação não reconhecida: {intent.action}")


def apply_intents(db: Session, user: User, intents: List[Intent], today: date, rng=None) -> BatchReport:
    """Applique les intentions dans l'ordre; chaque échec devient un résultat."""
    outcomes = []
    for intent in intents:
        try:
            outcome = apply_intent(db, user, intent, today, rng)
        except Exception as e:
            db.rollback()
            logger.warning(f"Intent '{intent.action}' failed for user_id={user.id}: {e}")
            outcome = IntentOutcome(
                intent=intent,
                success=False,
                message=narration_service.narrate_failure(user.first_name, str(e)),
                error=str(e)
            )
        outcomes.append(outcome)

    summary, message = narration_service.summarize(
        [o.message for o in outcomes],
        [o.success for o in outcomes],
        user.first_name
    )
    logger.info(f"Agent batch for user_id={user.id}: {summary}")
    return BatchReport(outcomes=outcomes, summary=summary, message=message)


def handle_agent_message(db: Session, user: User, user_message: str, api_key: Optional[str],
                         today: Optional[date] = None, rng=None) -> Union[AgentFailure, ConversationReply, BatchReport]:
    today = today or date.today()
    tasks = task_service.list_tasks(db, user.id)

    result = interpret_message(api_key, user_message, tasks, today)
    if isinstance(result, (AgentFailure, ConversationReply)):
        return result
    if isinstance(result, TaskBatch):
        return apply_intents(db, user, result.intents, today, rng)
    raise TypeError(f"Unexpected agent result: {type(result).__name__}")
