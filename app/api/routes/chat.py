from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import settings
from app.schemas.chat import ChatRequest, ChatResponse
from app.services.chat.gemini import GeminiChatConfig, GeminiChatService


router = APIRouter(prefix="/api/chat", tags=["chat"])


@lru_cache
def get_chat_service() -> GeminiChatService:
    return GeminiChatService(GeminiChatConfig.from_settings(settings))


@router.post("", response_model=ChatResponse)
def chat(body: ChatRequest, service: GeminiChatService = Depends(get_chat_service)) -> ChatResponse:
    """Single-turn beauty-advisor chat. Upstream failures come back as the reply text."""
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required.")
    return ChatResponse(response=service.get_chat_response(body.message))
