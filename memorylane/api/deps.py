from typing import AsyncIterator, Optional

from fastapi import Depends

from memorylane.core.access import AccessScopedSession, ScopedRepositories, default_storage_factory
from memorylane.core.auth import get_credential
from memorylane.core.config import settings
from memorylane.core.db import SessionLocal

storage_factory = default_storage_factory(settings)


def get_scope(credential: Optional[str] = Depends(get_credential)) -> AccessScopedSession:
    return AccessScopedSession(credential, SessionLocal, storage_factory, settings)


async def get_repositories(
    scope: AccessScopedSession = Depends(get_scope)
) -> AsyncIterator[ScopedRepositories]:
    async with scope.open() as repositories:
        yield repositories
