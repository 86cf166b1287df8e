from __future__ import annotations
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from haddaf.config import settings

class Base(DeclarativeBase):
    pass

def _serialize_sqlite(engine: AsyncEngine) -> None:
    """
    pysqlite defers BEGIN until the first write, so reads in a read-modify-write
    transaction would run outside it. Take the write lock up front instead.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

def make_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(url, future=True, echo=False)
    if engine.dialect.name == "sqlite":
        _serialize_sqlite(engine)
    return engine

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)

engine = make_engine(settings.database_url)
SessionLocal = make_sessionmaker(engine)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session

def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    # Transactions that retry need a fresh session per attempt
    return SessionLocal
