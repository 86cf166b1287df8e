from __future__ import annotations
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from haddaf.db import get_sessionmaker
from haddaf.services.users import UserDirectory

def get_user_directory(
    request: Request,
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> UserDirectory:
    # One directory per process, created on first request
    directory = getattr(request.app.state, "user_directory", None)
    if directory is None:
        directory = UserDirectory(sessionmaker)
        request.app.state.user_directory = directory
    return directory
