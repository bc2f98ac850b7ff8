from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
import json
from typing import Any

from pydantic import BaseModel
import redis.asyncio as redis
from sqlalchemy import Table, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession


def json_serializer(value):
    if isinstance(value, BaseModel | SQLModel):
        return value.model_dump_json()
    elif isinstance(value, datetime):
        return value.isoformat()
    return json.dumps(value)


# 数据库引擎
def create_engine(url: str) -> AsyncEngine:
    kwargs: dict[str, Any] = {}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=30,
            max_overflow=50,
            pool_timeout=30.0,
            pool_recycle=3600,  # 1小时回收连接
        )
    return create_async_engine(
        url,
        json_serializer=json_serializer,
        pool_pre_ping=True,  # 启用连接预检查
        **kwargs,
    )


async def check_connection(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables(engine: AsyncEngine, tables: Sequence[Table]) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all, tables=tables)


@asynccontextmanager
async def with_db(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """All-or-nothing unit of work: commit on success, roll back on any error."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise


# Redis 连接
def create_redis(url: str) -> redis.Redis:
    return redis.from_url(url, decode_responses=True)
