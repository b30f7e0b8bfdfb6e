from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.schema.user import User
from onboarding.users.constants import logger
from onboarding.users.errors import DuplicateUserError, UserStorageError


async def user_id_by_email(session: AsyncSession, email: str) -> Optional[int]:
    stmt = select(User.id).where(User.email == email)
    try:
        res = await session.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error("users.lookup_failed", extra={"error": str(exc)})
        raise UserStorageError() from exc
    user = res.first()
    return user[0] if user else None


async def create_pending_user(session: AsyncSession, user: User) -> User:
    session.add(user)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError as exc:
        # unique(email) lost to a concurrent sign-up
        await session.rollback()
        logger.warning("users.create_conflict", extra={"error": str(exc.orig)})
        raise DuplicateUserError() from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("users.create_failed", extra={"error": str(exc)})
        raise UserStorageError() from exc
    return user
