from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from geotrust.core.config import get_settings

settings = get_settings()
engine = create_async_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
