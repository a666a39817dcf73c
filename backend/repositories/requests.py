"""
Book request repository backed by SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from domain.models import BookRequest, RequestStatus
from repositories.models import RequestORM


def _request_from_orm(orm: RequestORM) -> BookRequest:
    return BookRequest(
        id=orm.id,
        user_id=orm.user_id,
        title=orm.title,
        letter=orm.letter,
        status=RequestStatus(orm.status),
        decided_by=orm.decided_by,
    )


class RequestsRepository:
    """Persistence for book requests."""

    def add_request(self, session: Session, user_id: int, title: str, letter: str) -> BookRequest:
        orm = RequestORM(
            user_id=user_id,
            title=title,
            letter=letter,
            status=RequestStatus.PENDING.value,
        )
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _request_from_orm(orm)

    def get_request(self, session: Session, request_id: int) -> Optional[BookRequest]:
        orm = session.get(RequestORM, request_id)
        return _request_from_orm(orm) if orm else None

    def get_requests(
        self,
        session: Session,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
    ) -> List[BookRequest]:
        query = session.query(RequestORM)
        if status:
            query = query.filter(RequestORM.status == status.value)
        if user_id is not None:
            query = query.filter(RequestORM.user_id == user_id)
        return [_request_from_orm(r) for r in query.order_by(RequestORM.id).all()]

    def update_request_status(
        self,
        session: Session,
        request_id: int,
        status: RequestStatus,
        admin_id: int,
        expected: RequestStatus = RequestStatus.PENDING,
    ) -> bool:
        """
        Compare-and-set the status of a request.

        Returns False when the row is missing or no longer in ``expected``,
        so two racing decisions cannot both win.
        """
        updated = (
            session.query(RequestORM)
            .filter(RequestORM.id == request_id, RequestORM.status == expected.value)
            .update(
                {
                    RequestORM.status: status.value,
                    RequestORM.decided_by: admin_id,
                    RequestORM.decided_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
        )
        session.commit()
        return updated == 1
