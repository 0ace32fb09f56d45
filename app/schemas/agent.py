"""
Schemas de l'agent: intentions renvoyées par le modèle et réponses de l'API.

Le modèle répond soit une conversation, soit une liste d'intentions
taguées par `action` (create / update / delete).
"""

from pydantic import Field
from typing import Optional, List, Literal, Union

from app.schemas.base import CamelModel
from app.schemas.task import TaskResponse


# Requête
class AgentRequest(CamelModel):
    message: str = Field(min_length=1, max_length=1000)


# Intentions (valeurs brutes du modèle, normalisées à l'application)
class CreateIntent(CamelModel):
    action: Literal["create"] = "create"
    title: str
    description: Optional[str] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    priority: Optional[str] = None


class UpdateIntent(CamelModel):
    action: Literal["update"] = "update"
    task_identifier: str
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_date: Optional[str] = None
    scheduled_time: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class DeleteIntent(CamelModel):
    action: Literal["delete"] = "delete"
    task_identifier: str


class UnknownIntent(CamelModel):
    """Action non reconnue: validée, mais échoue à l'application"""
    action: str
    task_identifier: Optional[str] = None


Intent = Union[CreateIntent, UpdateIntent, DeleteIntent, UnknownIntent]


# Réponse du modèle, une fois classée
class ConversationReply(CamelModel):
    is_conversation: Literal[True] = True
    message: str


class TaskBatch(CamelModel):
    is_conversation: Literal[False] = False
    intents: List[Intent]


# Réponses API
class DeletedTask(CamelModel):
    id: int
    title: str


class IntentResultResponse(CamelModel):
    action: str
    success: bool
    message: str
    task: Optional[TaskResponse] = None
    deleted: Optional[DeletedTask] = None
    error: Optional[str] = None


class ConversationResponse(CamelModel):
    success: bool = True
    is_conversation: Literal[True] = True
    message: str


class TaskBatchResponse(CamelModel):
    success: bool = True
    is_conversation: Literal[False] = False
    results: List[IntentResultResponse]
    summary: str
    message: str


AgentResponse = Union[ConversationResponse, TaskBatchResponse]
