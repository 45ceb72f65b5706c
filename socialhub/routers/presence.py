from fastapi import APIRouter, Depends

from socialhub.utils.dependencies import get_presence
from socialhub.utils.presence import PresenceRegistry


router = APIRouter(prefix="/presence", tags=["chat"])


@router.get("/{user_id}")
async def presence(user_id: str, registry: PresenceRegistry = Depends(get_presence)):
    """Online status as seen by this process only."""
    return {"user_id": user_id, "online": registry.is_online(user_id)}
