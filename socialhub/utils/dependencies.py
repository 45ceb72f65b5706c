from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from socialhub.utils.live_channel import LiveChannel
from socialhub.utils.presence import PresenceRegistry
from socialhub.utils.security import decode_access_token


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return {"_id": str(sub)}


def get_live_channel(connection: HTTPConnection) -> LiveChannel:
    return connection.app.state.live_channel


def get_presence(connection: HTTPConnection) -> PresenceRegistry:
    return connection.app.state.live_channel.presence
