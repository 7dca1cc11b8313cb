import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Automation, Client
from schemas import ClientResponse

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, user_id: str) -> list[ClientResponse]:
        """사용자 클라이언트 목록 (이름순, 자동화 수 포함)."""
        rows = (
            self.db.query(Client, func.count(Automation.id))
            .outerjoin(Automation, Automation.client_id == Client.id)
            .filter(Client.user_id == user_id)
            .group_by(Client.id)
            .order_by(Client.name)
            .all()
        )
        return [
            ClientResponse(
                id=client.id,
                name=client.name,
                created_at=client.created_at,
                automation_count=count,
            )
            for client, count in rows
        ]
