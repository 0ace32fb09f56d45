"""Task service"""

from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.models.task import Task

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "scheduled_date", "scheduled_time", "priority", "status")


def create_task(
    db: Session,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    scheduled_date=None,
    scheduled_time: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    created_by_agent: bool = False
) -> Task:
    task = Task(
        user_id=user_id,
        title=title,
        description=description,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        priority=priority or "medium",
        status=status or "pending",
        created_by_agent=created_by_agent
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None
) -> List[Task]:
    # Plus récentes en premier
    query = db.query(Task).filter(Task.user_id == user_id)
    if status:
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_task(db: Session, user_id: int, task_id: int) -> Optional[Task]:
    # la tâche d'un autre utilisateur n'existe pas
    return db.query(Task).filter(
        Task.id == task_id,
        Task.user_id == user_id
    ).first()


def find_task_by_text(db: Session, user_id: int, text: str) -> Optional[Task]:
    """Première tâche (la plus récente) dont le titre ou la description contient `text`.

    Comparaison insensible à la casse, faite en Python pour gérer les accents
    (ILIKE de SQLite ne replie que l'ASCII).
    """
    needle = text.lower()
    for task in list_tasks(db, user_id):
        if needle in task.title.lower():
            return task
        if task.description and needle in task.description.lower():
            return task
    return None


def update_task(db: Session, user_id: int, task_id: int, fields: dict) -> Optional[Task]:
    task = get_task(db, user_id, task_id)
    if not task:
        return None

    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if not changes:
        return task

    for field, value in changes.items():
        setattr(task, field, value)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user_id: int, task_id: int) -> bool:
    task = get_task(db, user_id, task_id)
    if not task:
        return False
    db.delete(task)
    db.commit()
    return True
