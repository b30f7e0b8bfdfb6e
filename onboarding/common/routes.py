from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from onboarding.common import logger
from onboarding.common.utils import json_error, json_ok
from onboarding.db.dependencies import get_session

home_router = APIRouter()


@home_router.get("/health")
async def health_check():
    return {"status": "ok", "message": "Server is running"}


@home_router.get("/health/db")
async def db_health_check(session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(select(1))
    except (SQLAlchemyError, OSError) as e:
        logger.error("health.db_unreachable", extra={"error": str(e)})
        return json_error({"status": "unhealthy", "message": "Database connection error"},
                          status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return json_ok({"status": "ok", "message": "Database reachable"})
