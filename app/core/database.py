"""
Database configuration and session management
"""

from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)


class Database:
    """Owns the async engine and session factory for one application instance"""

    def __init__(self, url: str, echo: bool = False, create_tables: bool = True):
        self.url = url.replace("postgresql://", "postgresql+asyncpg://")
        self.echo = echo
        self.create_tables = create_tables
        self.engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None

    async def connect(self) -> None:
        """Create the engine, check connectivity and create tables if enabled"""
        # Register table metadata before create_all
        import app.models  # noqa: F401

        self.engine = create_async_engine(self.url, echo=self.echo, future=True)
        if self.engine.dialect.name == "sqlite":
            enable_sqlite_savepoints(self.engine)
        self._session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if self.create_tables:
                await conn.run_sync(SQLModel.metadata.create_all)
                logger.info("Database tables created")

        logger.info("Database connected")

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self._session_maker = None
            logger.info("Database connection closed")

    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._session_maker is None:
            raise RuntimeError("Database is not connected")
        async with self._session_maker() as session:
            yield session


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on the sqlite driver"""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def database_from_settings() -> Database:
    settings = get_settings()
    return Database(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        create_tables=settings.DB_AUTO_CREATE,
    )


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency to get database session"""
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
