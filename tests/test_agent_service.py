import json
from datetime import date
from unittest.mock import patch

import pytest

from app.models.task import Task
from app.schemas.agent import ConversationReply, CreateIntent, UnknownIntent
from app.services.agent_service import (
    normalize_date,
    NO_TASKS_CONTEXT,
    AgentFailure,
    BatchReport,
    build_messages,
    build_tasks_context,
    handle_agent_message,
    normalize_time,
    parse_agent_response,
    strip_code_fences,
)
from app.services.groq_service import AgentError
from app.services.task_service import create_task, list_tasks

TODAY = date(2025, 6, 10)


class FirstChoice:
    def choice(self, seq):
        return seq[0]


def _model_reply(payload):
    return json.dumps(payload, ensure_ascii=False)


def _run(db, user, content, message="mensagem"):
    with patch("app.services.agent_service.complete_chat", return_value=content) as mock_chat:
        result = handle_agent_message(db, user, message, api_key="test-key", today=TODAY, rng=FirstChoice())
    return result, mock_chat


# ========== PROMPT ==========

def test_tasks_context_empty(db, user):
    assert build_tasks_context([]) == NO_TASKS_CONTEXT


def test_tasks_context_only_upcoming_sorted(db, user):
    create_task(db, user.id, title="Sem data")
    create_task(db, user.id, title="Dentista", scheduled_date=date(2025, 6, 20), scheduled_time="09:00")
    create_task(db, user.id, title="Feita", scheduled_date=date(2025, 6, 11), status="completed")
    create_task(db, user.id, title="Cancelada", scheduled_date=date(2025, 6, 11), status="cancelled")
    create_task(db, user.id, title="Mercado", scheduled_date=date(2025, 6, 12))

    context = build_tasks_context(list_tasks(db, user.id))
    assert context == (
        "TAREFAS EXISTENTES DO USUÁRIO:\n"
        "- 2025-06-12: Mercado\n"
        "- 2025-06-20 às 09:00: Dentista"
    )


def test_build_messages_includes_date_and_context():
    messages = build_messages("2025-06-10", NO_TASKS_CONTEXT, "oi")
    assert [m["role"] for m in messages] == ["system", "user"]
    assert "hoje é 2025-06-10" in messages[0]["content"]
    assert NO_TASKS_CONTEXT in messages[0]["content"]
    assert messages[1]["content"] == "oi"


def test_prompt_sent_to_model(db, user):
    create_task(db, user.id, title="Dentista", scheduled_date=date(2025, 6, 20))
    _, mock_chat = _run(db, user, _model_reply({"isConversation": True, "message": "Oi!"}), message="o que tenho?")

    api_key, messages = mock_chat.call_args[0]
    assert api_key == "test-key"
    assert "- 2025-06-20: Dentista" in messages[0]["content"]
    assert messages[1] == {"role": "user", "content": "o que tenho?"}


# ========== CLASSIFICATION ==========

def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```{"a": 1}```') == '{"a": 1}'


def test_parse_conversation():
    reply = parse_agent_response('```json\n{"isConversation": true, "message": "Olá!"}\n```')
    assert isinstance(reply, ConversationReply)
    assert reply.message == "Olá!"


def test_parse_invalid_json():
    with pytest.raises(AgentError) as exc:
        parse_agent_response("não é json")
    assert exc.value.code == "invalid_json"
    assert "não é json" in exc.value.message


@pytest.mark.parametrize("payload, expected", [
    ({"isConversation": False, "tasks": []}, "Nenhuma tarefa identificada na solicitação"),
    ({"isConversation": False}, "Nenhuma tarefa identificada na solicitação"),
    ({"tasks": [{"title": "X"}]}, "Ação não identificada em uma das tarefas"),
    ({"tasks": [{"action": "create"}]}, "Título obrigatório para criar tarefa"),
    ({"tasks": [{"action": "delete"}]}, "Identificador obrigatório para atualizar/deletar tarefa"),
    ({"tasks": [{"action": ["create"], "title": "X"}]}, "Ação não identificada em uma das tarefas"),
    ({"tasks": [{"action": 5, "title": "X"}]}, "Ação não identificada em uma das tarefas"),
])
def test_parse_invalid_intents(payload, expected):
    with pytest.raises(AgentError) as exc:
        parse_agent_response(_model_reply(payload))
    assert exc.value.code == "invalid_intents"
    assert exc.value.message == expected


def test_parse_intents_typed():
    batch = parse_agent_response(_model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "Mercado"},
        {"action": "archive", "taskIdentifier": "x"}
    ]}))
    assert isinstance(batch.intents[0], CreateIntent)
    assert isinstance(batch.intents[1], UnknownIntent)


def test_normalize_date_strict():
    assert normalize_date("2025-06-11") == date(2025, 6, 11)
    assert normalize_date(None) is None
    for value in ["2025-06", "2025-W24", "2025-06-11T23:59", "11/06/2025", "2025-13-01"]:
        with pytest.raises(ValueError, match="Data inválida"):
            normalize_date(value)


def test_normalize_time():
    assert normalize_time("14:00") == "14:00"
    assert normalize_time("9:5") == "09:05"
    assert normalize_time("14:00:00") == "14:00"
    assert normalize_time(None) is None
    with pytest.raises(ValueError):
        normalize_time("25:00")


# ========== FAILURES: NOTHING WRITTEN ==========

def test_invalid_batch_writes_nothing(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "Válida"},
        {"action": "update"}
    ]})
    result, _ = _run(db, user, content)
    assert isinstance(result, AgentFailure)
    assert result.code == "invalid_intents"
    assert list_tasks(db, user.id) == []


def test_missing_api_key(db, user):
    result = handle_agent_message(db, user, "oi", api_key=None, today=TODAY)
    assert isinstance(result, AgentFailure)
    assert result.code == "missing_api_key"
    assert result.message == "GROQ_API_KEY não configurada"


def test_conversation_writes_nothing(db, user):
    result, _ = _run(db, user, _model_reply({"isConversation": True, "message": "Olá, Maria!"}))
    assert isinstance(result, ConversationReply)
    assert result.message == "Olá, Maria!"
    assert list_tasks(db, user.id) == []


# ========== CREATE ==========

def test_create_meeting_tomorrow(db, user):
    """"Criar tarefa reunião amanhã às 14h" """
    content = _model_reply({"isConversation": False, "tasks": [{
        "action": "create",
        "title": "Reunião",
        "scheduledDate": "2025-06-11",
        "scheduledTime": "14:00"
    }]})
    result, _ = _run(db, user, content, message="Criar tarefa reunião amanhã às 14h")

    assert isinstance(result, BatchReport)
    assert result.summary == "1/1 tarefas processadas com sucesso"
    outcome = result.outcomes[0]
    assert outcome.success
    assert outcome.task.scheduled_date == date(2025, 6, 11)
    assert outcome.task.scheduled_time == "14:00"
    assert "amanhã" in result.message
    assert "14:00" in result.message
    assert result.message == 'Pronto! Criei a tarefa "Reunião" para amanhã às 14:00.'


def test_create_defaults(db, user):
    content = _model_reply({"isConversation": False, "tasks": [{"action": "create", "title": "Ler livro"}]})
    result, _ = _run(db, user, content)

    task = db.query(Task).filter(Task.user_id == user.id).one()
    assert task.title == "Ler livro"
    assert task.priority == "medium"
    assert task.status == "pending"
    assert task.created_by_agent is True
    assert task.scheduled_date is None


def test_create_with_invalid_priority_fails_alone(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "A", "priority": "urgente"},
        {"action": "create", "title": "B", "priority": "high"}
    ]})
    result, _ = _run(db, user, content)
    assert [o.success for o in result.outcomes] == [False, True]
    assert result.outcomes[0].error == "Prioridade inválida: urgente"
    assert [t.title for t in list_tasks(db, user.id)] == ["B"]


# ========== UPDATE / DELETE ==========

def test_update_most_recent_match(db, user):
    create_task(db, user.id, title="Reunião com equipe")
    create_task(db, user.id, title="Reunião de pais")
    content = _model_reply({"isConversation": False, "tasks": [{
        "action": "update",
        "taskIdentifier": "REUNIÃO",
        "scheduledDate": "2025-06-12",
        "scheduledTime": "16:00"
    }]})
    result, _ = _run(db, user, content)

    outcome = result.outcomes[0]
    assert outcome.success
    assert outcome.task.title == "Reunião de pais"
    assert outcome.task.scheduled_time == "16:00"
    assert result.message == 'Pronto! Atualizei a tarefa "REUNIÃO", agora para quinta-feira às 16:00.'

    db.expire_all()
    untouched = [t for t in list_tasks(db, user.id) if t.title == "Reunião com equipe"][0]
    assert untouched.scheduled_date is None


def test_update_completed_congratulates(db, user):
    create_task(db, user.id, title="Relatório mensal")
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "update", "taskIdentifier": "relatório", "status": "completed"}
    ]})
    result, _ = _run(db, user, content)
    assert result.outcomes[0].task.status == "completed"
    assert result.message == 'Parabéns, Maria! 🎉 Você concluiu a tarefa "relatório". Continue assim!'


def test_update_matches_description(db, user):
    create_task(db, user.id, title="Compromisso", description="Levar o carro na oficina")
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "update", "taskIdentifier": "oficina", "priority": "high"}
    ]})
    result, _ = _run(db, user, content)
    assert result.outcomes[0].task.priority == "high"


def test_delete_task(db, user):
    task = create_task(db, user.id, title="Dentista")
    task_id = task.id
    content = _model_reply({"isConversation": False, "tasks": [{"action": "delete", "taskIdentifier": "dentista"}]})
    result, _ = _run(db, user, content)

    outcome = result.outcomes[0]
    assert outcome.success
    assert outcome.deleted == {"id": task_id, "title": "Dentista"}
    assert result.message == 'Pronto! Removi a tarefa "dentista" da sua agenda.'
    db.expire_all()
    assert list_tasks(db, user.id) == []


def test_task_not_found(db, user):
    content = _model_reply({"isConversation": False, "tasks": [{"action": "delete", "taskIdentifier": "dentista"}]})
    result, _ = _run(db, user, content)

    outcome = result.outcomes[0]
    assert outcome.success is False
    assert outcome.error == 'Tarefa "dentista" não encontrada'
    assert result.summary == "0/1 tarefas processadas com sucesso"
    assert result.message == "Desculpe, Maria, não consegui processar nenhuma das tarefas."


def test_other_user_task_not_found(db, user, make_user):
    other = make_user(email="other@example.com")
    create_task(db, other.id, title="Dentista")
    content = _model_reply({"isConversation": False, "tasks": [{"action": "delete", "taskIdentifier": "dentista"}]})
    result, _ = _run(db, user, content)
    assert result.outcomes[0].success is False
    assert len(list_tasks(db, other.id)) == 1


# ========== BATCH ==========

def test_partial_batch(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "Comprar pão"},
        {"action": "delete", "taskIdentifier": "dentista"}
    ]})
    result, _ = _run(db, user, content)

    assert result.summary == "1/2 tarefas processadas com sucesso"
    assert result.message == "Consegui processar 1 de 2 tarefas, Maria. Confira os detalhes abaixo."
    assert [o.success for o in result.outcomes] == [True, False]
    # la création reste enregistrée
    db.expire_all()
    assert [t.title for t in list_tasks(db, user.id)] == ["Comprar pão"]


def test_batch_applied_in_order(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "Academia"},
        {"action": "update", "taskIdentifier": "academia", "status": "cancelled"}
    ]})
    result, _ = _run(db, user, content)
    assert result.summary == "2/2 tarefas processadas com sucesso"
    assert result.message == "Tudo certo, Maria! Processei todas as 2 tarefas que você pediu."
    # chaque résultat garde l'état de sa propre étape
    assert result.outcomes[0].task.status == "pending"
    assert result.outcomes[1].task.status == "cancelled"
    db.expire_all()
    assert list_tasks(db, user.id)[0].status == "cancelled"


def test_unknown_action_fails_alone(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "archive", "taskIdentifier": "x"},
        {"action": "create", "title": "Mercado"}
    ]})
    result, _ = _run(db, user, content)
    assert result.outcomes[0].success is False
    assert result.outcomes[0].error == "Ação não reconhecida: archive"
    assert result.outcomes[1].success is True


def test_invalid_date_fails_alone(db, user):
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "create", "title": "A", "scheduledDate": "amanhã"},
        {"action": "create", "title": "Trimestre", "scheduledDate": "2025-06"},
        {"action": "create", "title": "B", "scheduledDate": "2025-06-12"}
    ]})
    result, _ = _run(db, user, content)

    assert [o.success for o in result.outcomes] == [False, False, True]
    assert result.outcomes[0].error == "Data inválida: amanhã"
    assert result.outcomes[1].error == "Data inválida: 2025-06"
    assert result.summary == "1/3 tarefas processadas com sucesso"
    db.expire_all()
    tasks = list_tasks(db, user.id)
    assert [t.title for t in tasks] == ["B"]
    assert tasks[0].scheduled_date == date(2025, 6, 12)


def test_invalid_time_on_update_leaves_task_untouched(db, user):
    create_task(db, user.id, title="Dentista", scheduled_time="09:00")
    content = _model_reply({"isConversation": False, "tasks": [
        {"action": "update", "taskIdentifier": "dentista", "title": "Dentista novo", "scheduledTime": "25:00"},
        {"action": "create", "title": "Mercado"}
    ]})
    result, _ = _run(db, user, content)

    assert [o.success for o in result.outcomes] == [False, True]
    assert result.outcomes[0].error == "Horário inválido: 25:00"
    assert result.outcomes[0].message == "Desculpe, Maria, não consegui concluir essa ação: Horário inválido: 25:00"
    db.expire_all()
    dentist = [t for t in list_tasks(db, user.id) if t.title != "Mercado"][0]
    assert dentist.title == "Dentista"
    assert dentist.scheduled_time == "09:00"
