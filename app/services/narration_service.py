"""
Narration de l'agent - phrases en portugais pour chaque intention traitée.
"""

import random
from datetime import date, datetime
from typing import List, Optional, Tuple, Union

from dateutil.parser import isoparse

OPENERS = ["Pronto!", "Feito!", "Tudo certo!", "Perfeito!", "Combinado!"]

WEEKDAYS = [
    "segunda-feira",
    "terça-feira",
    "quarta-feira",
    "quinta-feira",
    "sexta-feira",
    "sábado",
    "domingo"
]


def to_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(value).date()


def relative_date(target: Union[str, date], today: Union[str, date]) -> str:
    """
    Date relative à aujourd'hui:
    0 → "hoje", +1 → "amanhã", -1 → "ontem", +2..+7 → jour de la semaine, sinon "d/m".

    Différence calculée sur des dates calendaires (pas d'heure ni de fuseau).
    """
    target, today = to_date(target), to_date(today)
    diff = (target - today).days

    if diff == 0:
        return "hoje"
    if diff == 1:
        return "amanhã"
    if diff == -1:
        return "ontem"
    if 2 <= diff <= 7:
        return WEEKDAYS[target.weekday()]
    return f"{target.day}/{target.month}"


def pick_opener(rng=None) -> str:
    return (rng or random).choice(OPENERS)


def narrate_create(title: str, scheduled_date, scheduled_time: Optional[str], today, rng=None) -> str:
    sentence = f'{pick_opener(rng)} Criei a tarefa "{title}"'
    if scheduled_date:
        sentence += f" para {relative_date(scheduled_date, today)}"
    if scheduled_time:
        sentence += f" às {scheduled_time}"
    return sentence + "."


def narrate_update(identifier: str, first_name: str, today, scheduled_date=None,
                   scheduled_time: Optional[str] = None, status: Optional[str] = None, rng=None) -> str:
    if status == "completed":
        return f'Parabéns, {first_name}! 🎉 Você concluiu a tarefa "{identifier}". Continue assim!'
    if status == "cancelled":
        return f'Tudo bem, {first_name}. A tarefa "{identifier}" foi cancelada.'

    sentence = f'{pick_opener(rng)} Atualizei a tarefa "{identifier}"'
    if scheduled_date:
        sentence += f", agora para {relative_date(scheduled_date, today)}"
    if scheduled_time:
        sentence += f" às {scheduled_time}"
    return sentence + "."


def narrate_delete(identifier: str, rng=None) -> str:
    return f'{pick_opener(rng)} Removi a tarefa "{identifier}" da sua agenda.'


def narrate_failure(first_name: str, error: str) -> str:
    return f"Desculpe, {first_name}, não consegui concluir essa ação: {error}"


def summarize(narrations: List[str], successes: List[bool], first_name: str) -> Tuple[str, str]:
    """Retourne (résumé "k/n", message global)."""
    total = len(successes)
    ok = sum(1 for s in successes if s)
    summary = f"{ok}/{total} tarefas processadas com sucesso"

    if ok == total and total == 1:
        message = narrations[0]
    elif ok == total:
        message = f"Tudo certo, {first_name}! Processei todas as {total} tarefas que você pediu."
    elif ok == 0:
        message = f"Desculpe, {first_name}, não consegui processar nenhuma das tarefas."
    else:
        message = f"Consegui processar {ok} de {total} tarefas, {first_name}. Confira os detalhes abaixo."

    return summary, message
