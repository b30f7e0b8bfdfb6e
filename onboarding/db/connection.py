from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from onboarding.config.settings import Settings
from onboarding.db.utils import _normalize_db_url


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(_normalize_db_url(settings.DATABASE_URL), echo=False, pool_pre_ping=True)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
