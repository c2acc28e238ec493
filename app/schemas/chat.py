from app.schemas.common import CamelModel


class ChatRequest(CamelModel):
    # optional so that a missing message is answered with 400, not 422
    message: str | None = None


class ChatResponse(CamelModel):
    response: str
