from typing import AsyncGenerator
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    # session maker is built once in the app lifespan
    async with request.app.state.session_maker() as session:
        yield session
