"""
Credential repository backed by SQLAlchemy.
"""
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from domain.models import AdminRecord, UserRecord
from repositories.models import AdminORM, UserORM


def _user_from_orm(orm: UserORM) -> UserRecord:
    return UserRecord(
        id=orm.id,
        username=orm.username,
        password_hash=orm.password_hash,
        email=orm.email,
    )


def _admin_from_orm(orm: AdminORM) -> AdminRecord:
    return AdminRecord(id=orm.id, username=orm.username, password_hash=orm.password_hash)


class UsersRepository:
    """Lookups and inserts for users and admins."""

    def get_user(self, session: Session, username: str) -> Optional[UserRecord]:
        orm = session.query(UserORM).filter(UserORM.username == username).first()
        return _user_from_orm(orm) if orm else None

    def get_user_by_email(self, session: Session, email: str) -> Optional[UserRecord]:
        orm = (
            session.query(UserORM)
            .filter(func.lower(UserORM.email) == email.lower())
            .first()
        )
        return _user_from_orm(orm) if orm else None

    def get_admin(self, session: Session, username: str) -> Optional[AdminRecord]:
        orm = session.query(AdminORM).filter(AdminORM.username == username).first()
        return _admin_from_orm(orm) if orm else None

    def username_taken(self, session: Session, username: str) -> bool:
        """Usernames are unique across users and admins."""
        return (
            self.get_user(session, username) is not None
            or self.get_admin(session, username) is not None
        )

    def add_user(self, session: Session, username: str, password_hash: str, email: str) -> UserRecord:
        orm = UserORM(username=username, password_hash=password_hash, email=email)
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _user_from_orm(orm)

    def add_admin(self, session: Session, username: str, password_hash: str) -> AdminRecord:
        orm = AdminORM(username=username, password_hash=password_hash)
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _admin_from_orm(orm)
