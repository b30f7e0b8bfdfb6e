from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Optional, Protocol
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.otp.constants import logger
from onboarding.otp.errors import StorageError
from onboarding.schema.otp_code import OtpCode, OtpType


@dataclass(frozen=True)
class OtpFilter:
    kind: OtpType
    destination: str
    record_id: Optional[int] = None
    code: Optional[str] = None
    verified: Optional[bool] = None
    live_at: Optional[datetime] = None   # matches expires_at > live_at
    confirmed_since: Optional[datetime] = None   # matches verified_at >= confirmed_since


@dataclass(frozen=True)
class OtpPatch:
    verified: Optional[bool] = None
    attempts_increment: int = 0
    verified_at: Optional[datetime] = None


class OtpStore(Protocol):
    """Keyed record store the issuer and verifier talk to.

    Mutations issued inside ``atomic()`` become durable together when the block
    exits cleanly, and are discarded otherwise. Every backend failure surfaces
    as ``StorageError``.
    """

    async def insert(self, record: OtpCode) -> OtpCode: ...

    async def update_where(self, flt: OtpFilter, patch: OtpPatch) -> int: ...

    async def query_one(self, flt: OtpFilter, newest_first: bool = True) -> Optional[OtpCode]: ...

    def atomic(self): ...


def _where_clauses(flt: OtpFilter):
    kind = OtpType(flt.kind)
    clauses = [OtpCode.type == kind.value]
    if kind == OtpType.EMAIL:
        clauses.append(OtpCode.email == flt.destination)
    else:
        clauses.append(OtpCode.phone == flt.destination)

    if flt.record_id is not None:
        clauses.append(OtpCode.id == flt.record_id)
    if flt.code is not None:
        clauses.append(OtpCode.otp_code == flt.code)
    if flt.verified is not None:
        clauses.append(OtpCode.verified == flt.verified)
    if flt.live_at is not None:
        clauses.append(OtpCode.expires_at > flt.live_at)
    if flt.confirmed_since is not None:
        clauses.append(OtpCode.verified_at >= flt.confirmed_since)
    return clauses


def _patch_values(patch: OtpPatch) -> dict:
    values = {}
    if patch.verified is not None:
        values["verified"] = patch.verified
    if patch.verified_at is not None:
        values["verified_at"] = patch.verified_at
    if patch.attempts_increment:
        values["attempts"] = OtpCode.attempts + patch.attempts_increment
    return values


class SqlOtpStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator["SqlOtpStore"]:
        try:
            yield self
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning("otp.store.integrity_error", extra={"error": str(exc.orig)})
            raise StorageError("A verification code is already being issued. Please try again.") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("otp.store.transaction_failed", extra={"error": str(exc)})
            raise StorageError() from exc
        except BaseException:
            await self.session.rollback()
            raise

    async def insert(self, record: OtpCode) -> OtpCode:
        try:
            self.session.add(record)
            await self.session.flush()
        except IntegrityError as exc:
            logger.warning("otp.store.live_code_conflict", extra={"error": str(exc.orig)})
            raise StorageError("A verification code is already being issued. Please try again.") from exc
        except SQLAlchemyError as exc:
            logger.error("otp.store.insert_failed", extra={"error": str(exc)})
            raise StorageError() from exc
        return record

    async def update_where(self, flt: OtpFilter, patch: OtpPatch) -> int:
        values = _patch_values(patch)
        if not values:
            return 0
        stmt = (
            update(OtpCode)
            .where(*_where_clauses(flt))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            res = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("otp.store.update_failed", extra={"error": str(exc)})
            raise StorageError() from exc
        return res.rowcount or 0

    async def query_one(self, flt: OtpFilter, newest_first: bool = True) -> Optional[OtpCode]:
        order = OtpCode.created_at.desc() if newest_first else OtpCode.created_at.asc()
        tiebreak = OtpCode.id.desc() if newest_first else OtpCode.id.asc()
        stmt = (
            select(OtpCode)
            .where(*_where_clauses(flt))
            .order_by(order, tiebreak)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            res = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("otp.store.query_failed", extra={"error": str(exc)})
            raise StorageError() from exc
        return res.scalars().first()
