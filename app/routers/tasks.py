from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.models.task import TASK_PRIORITIES, TASK_STATUSES
from app.schemas.task import TaskCreate, TaskUpdate, TaskResponse
from app.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])

TASK_NOT_FOUND = "Tarefa não encontrada"
# colonnes NOT NULL: null dans la requête = champ ignoré
REQUIRED_FIELDS = ("title", "priority", "status")


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.create_task(
        db,
        current_user.id,
        title=task_data.title,
        description=task_data.description,
        scheduled_date=task_data.scheduled_date,
        scheduled_time=task_data.scheduled_time,
        priority=task_data.priority,
        status=task_data.status
    )


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status_filter: Optional[str] = Query(None),
    priority_filter: Optional[str] = Query(None)
):
    # filtres inconnus ignorés
    if status_filter not in TASK_STATUSES:
        status_filter = None
    if priority_filter not in TASK_PRIORITIES:
        priority_filter = None

    return task_service.list_tasks(db, current_user.id, status=status_filter, priority=priority_filter)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = task_service.get_task(db, current_user.id, task_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    update_data = {
        field: value for field, value in task_data.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_FIELDS
    }
    task = task_service.update_task(db, current_user.id, task_id, update_data)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not task_service.delete_task(db, current_user.id, task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TASK_NOT_FOUND)
