import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aetherflow.auth.models import User
from aetherflow.core.exceptions import AppError
from aetherflow.core.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


async def register_user(db: AsyncSession, username: str, email: str, password: str) -> User:
    email = email.lower()
    result = await db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    if result.scalar_one_or_none() is not None:
        raise AppError("Username or email already registered", status_code=409, code="DUPLICATE_USER")

    user = User(username=username, email=email, hashed_password=hash_password(password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        raise AppError("Invalid credentials", status_code=401, code="INVALID_LOGIN")
    return user


def issue_token(user: User) -> str:
    return create_access_token(str(user.id))
