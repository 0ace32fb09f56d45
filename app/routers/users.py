from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.user import UserEnvelope, UserUpdate
from app.schemas.base import MessageResponse
from app.services.user_service import update_user, delete_user, EmailAlreadyUsedError

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/me", response_model=UserEnvelope)
def get_me(current_user: User = Depends(get_current_user)):
    return {"user": current_user}


@router.put("/me", response_model=UserEnvelope)
def update_me(
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        user = update_user(db, current_user, user_data.model_dump(exclude_unset=True))
    except EmailAlreadyUsedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email já cadastrado")

    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhum dado para atualizar")
    return {"user": user}


@router.delete("/me", response_model=MessageResponse)
def delete_me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    delete_user(db, current_user)
    return MessageResponse(message="Conta deletada com sucesso")
