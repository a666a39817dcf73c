"""
Credential checks and registration.

Password hashes are produced and compared with werkzeug's one-way helpers;
nothing else in the codebase looks at a hash.
"""
import logging

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from domain.errors import AuthError, AuthFailure, DuplicateRegistration
from domain.models import Admin, AdminRecord, Identity, User, UserRecord
from repositories import UsersRepository
from services.validators import clean_email, clean_password, clean_username

logger = logging.getLogger(__name__)
users_repo = UsersRepository()


def hash_secret(secret: str) -> str:
    return generate_password_hash(secret)


def verify_secret(secret: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, secret)


def authenticate(session: Session, name: str, secret: str) -> Identity:
    """
    Resolve a username and password to an identity.

    User records are consulted before admin records.
    """
    user = users_repo.get_user(session, name)
    if user:
        if not verify_secret(secret, user.password_hash):
            logger.info("login rejected: bad password for user")
            raise AuthError(AuthFailure.INVALID_CREDENTIAL)
        return User(id=user.id, name=user.username)

    admin = users_repo.get_admin(session, name)
    if admin:
        if not verify_secret(secret, admin.password_hash):
            logger.info("login rejected: bad password for admin")
            raise AuthError(AuthFailure.INVALID_CREDENTIAL)
        return Admin(id=admin.id, name=admin.username)

    logger.info("login rejected: unknown name")
    raise AuthError(AuthFailure.NOT_FOUND)


def register(session: Session, username: str, password: str, email: str) -> UserRecord:
    username = clean_username(username)
    password = clean_password(password)
    email = clean_email(email)

    if users_repo.username_taken(session, username) or users_repo.get_user_by_email(session, email):
        raise DuplicateRegistration()

    user = users_repo.add_user(session, username, hash_secret(password), email)
    logger.info("registered user %s", user.id)
    return user


def create_admin(session: Session, username: str, password: str) -> AdminRecord:
    """Provision an administrator. Not reachable over HTTP."""
    username = clean_username(username)
    password = clean_password(password)
    if users_repo.username_taken(session, username):
        raise DuplicateRegistration()
    admin = users_repo.add_admin(session, username, hash_secret(password))
    logger.info("created admin %s", admin.id)
    return admin
