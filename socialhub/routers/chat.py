from fastapi import APIRouter, Depends, status

from socialhub.database.connection import mongo_db_dependency
from socialhub.repositories.conversation_repository import ConversationRepository
from socialhub.repositories.message_repository import MessageRepository
from socialhub.repositories.user_repository import UserRepository
from socialhub.schemas.message import SendMessageRequest
from socialhub.services.chat_service import ChatService
from socialhub.utils.dependencies import get_current_user, get_live_channel
from socialhub.utils.live_channel import LiveChannel


router = APIRouter(prefix="/messages", tags=["chat"])


def get_chat_service(db = Depends(mongo_db_dependency), live: LiveChannel = Depends(get_live_channel)) -> ChatService:
    return ChatService(MessageRepository(db), ConversationRepository(db), UserRepository(db), live)


@router.get("/conversations")
async def list_conversations(current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    return await service.list_conversations(current_user["_id"])


@router.get("/{peer_id}")
async def get_thread(peer_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    return await service.list_between(current_user["_id"], peer_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(body: SendMessageRequest, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    return await service.send_message(current_user["_id"], body.recipient_id, body.content)


@router.delete("/{message_id}")
async def delete_message(message_id: str, current_user: dict = Depends(get_current_user), service: ChatService = Depends(get_chat_service)):
    await service.delete_message(message_id, current_user["_id"])
    return {"message": "Message deleted successfully"}
