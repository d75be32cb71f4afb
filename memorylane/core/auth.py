from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

bearer_scheme = HTTPBearer(auto_error=False)


async def get_credential(
    authorization: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """Токен вызывающего передается дальше как есть, без проверки содержимого"""
    if authorization is None:
        return None
    return authorization.credentials
