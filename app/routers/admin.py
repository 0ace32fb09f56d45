from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.deps import require_admin
from app.models.user import User
from app.schemas.user import UserEnvelope, AdminUserUpdate
from app.schemas.base import MessageResponse
from app.services.user_service import find_user_by_id, update_user, delete_user, EmailAlreadyUsedError

router = APIRouter(prefix="/admin/users", tags=["admin"])

USER_NOT_FOUND = "Usuário não encontrado"


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = find_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return user


@router.get("/{user_id}", response_model=UserEnvelope)
def admin_get_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return {"user": _get_user_or_404(db, user_id)}


@router.put("/{user_id}", response_model=UserEnvelope)
def admin_update_user(
    user_id: int,
    user_data: AdminUserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    user = _get_user_or_404(db, user_id)
    try:
        updated = update_user(db, user, user_data.model_dump(exclude_unset=True))
    except EmailAlreadyUsedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email já cadastrado")

    if not updated:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhum dado para atualizar")
    return {"user": updated}


@router.delete("/{user_id}", response_model=MessageResponse)
def admin_delete_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    delete_user(db, _get_user_or_404(db, user_id))
    return MessageResponse(message="Usuário deletado com sucesso")
