"""클라이언트 API 엔드포인트."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import CurrentUser, get_current_user
from schemas import ClientResponse
from services import ClientService

router = APIRouter()


@router.get("", response_model=list[ClientResponse])
def list_clients(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ClientService(db).get_all(user.id)
